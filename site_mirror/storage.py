# File: site_mirror/storage.py
"""site_mirror.storage: filesystem primitives used by the mirror phase."""

from __future__ import annotations

from pathlib import Path
from typing import Union

from site_mirror.errors import WriteError
from site_mirror.logger import logger

__all__ = ["target_exists", "ensure_directory", "write_file"]


def target_exists(path: Union[str, Path]) -> bool:
    """Existing file means the URL was mirrored already (in this or a previous run)."""
    return Path(path).is_file()


def ensure_directory(path: Union[str, Path]) -> Path:
    """Create *path* and its parents; no-op when it already exists."""
    p = Path(path)
    try:
        p.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise WriteError(p, exc) from exc
    return p


def write_file(path: Union[str, Path], data: Union[bytes, str]) -> Path:
    """Write *data* to *path*, creating parent directories first."""
    p = Path(path)
    ensure_directory(p.parent)
    try:
        if isinstance(data, str):
            p.write_text(data, encoding="utf-8")
        else:
            p.write_bytes(data)
    except OSError as exc:
        raise WriteError(p, exc) from exc
    logger.debug("Wrote %d bytes to %s", len(data), p)
    return p
