"""
Storage collaborator: resolves an external content reference to a byte stream.
LocalStorage keeps every reference contained under its root directory.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO
from urllib.parse import unquote, urlparse

from hooktrigger.core.errors import StorageError
from hooktrigger.utils.logger import get_logger

log = get_logger("storage")


class Storage(ABC):
    """Byte-stream provider. Implement open() only."""

    @abstractmethod
    def open(self, reference: str) -> BinaryIO:
        """Open a reference for binary reading. Raises StorageError."""


class LocalStorage(Storage):
    def __init__(self, root: str | Path = ".") -> None:
        self.root = Path(root).resolve()

    def resolve(self, reference: str) -> Path:
        """Map a path or file:// URI onto a file inside root."""
        if not reference:
            raise StorageError("Empty content reference")
        parsed = urlparse(reference)
        if parsed.scheme == "file":
            raw = unquote(parsed.path)
        elif parsed.scheme and len(parsed.scheme) > 1:
            raise StorageError(f"Unsupported storage scheme: {parsed.scheme}://")
        else:
            raw = reference

        candidate = Path(raw)
        if not candidate.is_absolute():
            candidate = self.root / candidate
        resolved = candidate.resolve()
        if resolved != self.root and self.root not in resolved.parents:
            raise StorageError(f"Reference escapes storage root: {reference}")
        return resolved

    def open(self, reference: str) -> BinaryIO:
        path = self.resolve(reference)
        if not path.is_file():
            raise StorageError(f"File not found: {reference}")
        log.debug("Reading %s (%d bytes)", path, path.stat().st_size)
        try:
            return path.open("rb")
        except OSError as exc:
            raise StorageError(f"Cannot read {reference}: {exc}") from exc
