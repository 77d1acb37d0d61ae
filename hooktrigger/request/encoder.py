"""Content encoding for file-backed request bodies."""
from __future__ import annotations

from dataclasses import dataclass
from typing import BinaryIO

from hooktrigger.core.errors import ConfigurationError, StorageError
from hooktrigger.core.models import ContentType

TEXT_TYPES = (ContentType.JSON, ContentType.XML, ContentType.TEXT)


@dataclass(frozen=True)
class EncodedBody:
    content_type: str
    content: bytes | str


def encode(content_type: ContentType, source: BinaryIO) -> EncodedBody:
    """Read the whole source. Text types become str, BINARY stays bytes.

    The body is tagged with the content type name (JSON, XML, TEXT, BINARY),
    which the assembler sends as the Content-Type header.
    """
    content_type = ContentType.parse(content_type)
    try:
        with source:
            data = source.read()
    except OSError as exc:
        raise StorageError(f"Cannot read content source: {exc}") from exc

    if content_type in TEXT_TYPES:
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ConfigurationError(f"{content_type.value} content is not valid UTF-8: {exc}") from exc
        return EncodedBody(content_type.name, text)
    return EncodedBody(content_type.name, bytes(data))
