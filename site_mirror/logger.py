# === FILE: site_mirror/logger.py ===
"""Project-wide logging configuration for **SiteMirror**.

Log records go to *stderr* (and optionally to a rotating file), never to
stdout: stdout belongs to command output such as ``discover --json-output``,
which must stay machine-readable when redirected.

Usage::

    from site_mirror.logger import logger
    logger.info("Discovery started")

The CLI calls :func:`init_logging` once options are parsed; tests and
embedding code may call :func:`configure` directly.
"""
from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Final, Optional, TextIO, Union

_DEFAULT_FORMAT: Final[str] = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_LOGGER_NAME: Final[str] = "SiteMirror"
_ROTATE_BYTES: Final[int] = 5 * 1024 * 1024
_ROTATE_BACKUPS: Final[int] = 3

_LevelT = Union[int, str]


def _console_handler(fmt: str, stream: Optional[TextIO] = None) -> logging.StreamHandler:
    # sys.stderr is looked up per call: CliRunner and capsys swap it
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def _rotating_handler(file: Union[Path, str], fmt: str) -> RotatingFileHandler:
    Path(file).expanduser().parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(
        filename=str(file),
        maxBytes=_ROTATE_BYTES,
        backupCount=_ROTATE_BACKUPS,
        encoding="utf-8",
    )
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure(
    *,
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
    replace_handlers: bool = True,
    stream: Optional[TextIO] = None,
) -> logging.Logger:
    """(Re)configure the ``SiteMirror`` logger.

    Parameters
    ----------
    level
        Numeric or textual logging level (e.g. ``"DEBUG"``).
    log_file
        Rotating logfile (5 MiB x 3) added next to the console handler.
    log_format
        Format string for :class:`logging.Formatter`.
    replace_handlers
        Close and drop the current handlers first.
    stream
        Console stream; ``sys.stderr`` when omitted.
    """
    lg = logging.getLogger(_LOGGER_NAME)
    lg.setLevel(level)

    if replace_handlers:
        for handler in list(lg.handlers):
            handler.close()
        lg.handlers.clear()

    lg.addHandler(_console_handler(log_format, stream))
    if log_file is not None:
        lg.addHandler(_rotating_handler(log_file, log_format))

    lg.propagate = False
    return lg


def init_logging(
    level: _LevelT = "INFO",
    log_file: str | Path | None = None,
    log_format: str = _DEFAULT_FORMAT,
) -> logging.Logger:
    """Shortcut used by the CLI: replace handlers and apply *level*."""
    return configure(level=level, log_file=log_file, log_format=log_format, replace_handlers=True)


logger: logging.Logger = init_logging()

__all__ = ["logger", "configure", "init_logging"]
