"""
Logger factory for hooktrigger.
Console on stdout (or a given stream), optional rotating file (10MB, 3 backups) per logger name.
"""
from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import TextIO

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"
MAX_BYTES = 10 * 1024 * 1024
BACKUP_COUNT = 3


def get_logger(
    name: str,
    log_dir: Path | str | None = None,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> logging.Logger:
    logger = logging.getLogger(f"hooktrigger.{name}")
    if logger.handlers:
        return logger  # already configured

    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    fmt = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    ch = logging.StreamHandler(stream or sys.stdout)
    ch.setFormatter(fmt)
    logger.addHandler(ch)

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            filename=log_dir / f"hooktrigger_{name.replace('.', '_')}.log",
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        fh.setFormatter(fmt)
        logger.addHandler(fh)

    logger.propagate = False
    return logger


def configure(level: str, log_dir: Path | str | None = None, stream: TextIO | None = None) -> None:
    """Apply level (and a rotating file) to every hooktrigger logger created so far.

    With ``stream`` set, console handlers are pointed at it; the CLI uses this
    to keep stdout for its JSON result.
    """
    value = getattr(logging, level.upper(), logging.INFO)
    for name, logger in list(logging.Logger.manager.loggerDict.items()):
        if not name.startswith("hooktrigger.") or not isinstance(logger, logging.Logger):
            continue
        logger.setLevel(value)
        if stream is not None:
            for h in logger.handlers:
                # file handlers are StreamHandlers too
                if type(h) is logging.StreamHandler:
                    h.setStream(stream)
        if log_dir is None or any(isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers):
            continue
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        fh = logging.handlers.RotatingFileHandler(
            filename=Path(log_dir) / f"{name.replace('.', '_')}.log",
            maxBytes=MAX_BYTES,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
        fh.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT))
        logger.addHandler(fh)
