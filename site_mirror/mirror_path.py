# File: site_mirror/mirror_path.py
"""site_mirror.mirror_path: mapping of site URLs onto the local mirror tree.

The mapping is a pure function of the URL and the root URL, so re-running it
always yields the same file and "file exists" can serve as the resume signal.
"""

from __future__ import annotations

import hashlib
import posixpath
import re
from dataclasses import dataclass
from pathlib import Path, PurePosixPath
from typing import Sequence, Union
from urllib.parse import unquote, urlsplit

from site_mirror.utils import same_origin

__all__: Sequence[str] = ("INDEX_FILENAME", "MirrorTarget", "in_root", "mirror_target", "root_prefix")

INDEX_FILENAME = "index.html"
_INVALID_CHARS_RE = re.compile(r'[<>:"\\|?*\x00-\x1f]')
_QUERY_DIGEST_LEN = 10


@dataclass(frozen=True, slots=True)
class MirrorTarget:
    """Local placement of one URL, relative to the output directory."""

    directory: str
    filename: str

    @property
    def relative_path(self) -> PurePosixPath:
        return PurePosixPath(self.directory, self.filename) if self.directory else PurePosixPath(self.filename)

    def under(self, output_directory: Union[str, Path]) -> Path:
        """Absolute-or-relative file path inside *output_directory*."""
        return Path(output_directory).joinpath(*self.relative_path.parts)


def root_prefix(root_url: str) -> str:
    """Directory part of the root URL's path, always ending with ``/``.

    ``https://site/docs`` and ``https://site/docs/`` both give ``/docs/``;
    ``https://site/docs/index.html`` gives ``/docs/`` as well.
    """
    path = unquote(urlsplit(root_url).path) or "/"
    if path.endswith("/"):
        return path
    last = path.rsplit("/", 1)[-1]
    if "." in last:
        return posixpath.dirname(path).rstrip("/") + "/"
    return path + "/"


def _sanitize(segment: str) -> str:
    return _INVALID_CHARS_RE.sub("_", segment)


def _relative_to_root(path: str, prefix: str) -> str | None:
    if path.startswith(prefix):
        return path[len(prefix):]
    if path + "/" == prefix:
        return ""
    return None


def in_root(url: str, root_url: str) -> bool:
    """True when *url* is same-origin and its path lies under the root's directory."""
    if not same_origin(url, root_url):
        return False
    path = unquote(urlsplit(url).path) or "/"
    return _relative_to_root(path, root_prefix(root_url)) is not None


def _with_query(filename: str, query: str) -> str:
    """``page.html`` + ``sort=price`` -> ``page-<digest>.html``; no query, no change."""
    if not query:
        return filename
    digest = hashlib.sha1(query.encode("utf-8")).hexdigest()[:_QUERY_DIGEST_LEN]
    stem, suffix = posixpath.splitext(filename)
    return f"{stem}-{digest}{suffix}"


def mirror_target(url: str, root_url: str) -> MirrorTarget:
    """Map *url* to ``{directory, filename}`` relative to the mirror root.

    ``root/catalogue/page-2/`` -> ``catalogue/page-2`` + ``index.html``;
    ``root/static/style.css`` -> ``static`` + ``style.css``. A query string
    is folded into the filename as a short digest, so ``list/?page=2`` and
    ``list/?page=3`` get files of their own.

    Raises ValueError when the path lies outside the root's directory.
    """
    parts = urlsplit(url)
    path = unquote(parts.path) or "/"
    relative = _relative_to_root(path, root_prefix(root_url))
    if relative is None:
        raise ValueError(f"{url} is outside the mirror root {root_url}")

    segments = [_sanitize(s) for s in relative.split("/") if s not in ("", ".", "..")]
    if segments and not relative.endswith("/") and "." in segments[-1]:
        filename = segments.pop()
    else:
        filename = INDEX_FILENAME
    return MirrorTarget(directory="/".join(segments), filename=_with_query(filename, parts.query))
