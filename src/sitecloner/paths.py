"""Mapping of URLs to relative output paths.

Every function here is pure: the same URL always maps to the same path, so a
page can rewrite its references before the corresponding download finishes.
Paths always use forward slashes.
"""

import hashlib
import posixpath
import re
from enum import Enum
from urllib.parse import urlsplit

from .urls import remove_dot_segments

_UNSAFE_CHARS = re.compile(r"[?&=/\\]")


class Category(str, Enum):
    """Asset category, also used as the directory name under resources."""

    CSS = "css"
    JS = "js"
    IMG = "img"


def url_digest(url: str, length: int = 8) -> str:
    """Short stable digest of a URL."""
    return hashlib.sha1(url.encode("utf-8")).hexdigest()[:length]


def page_path(url: str) -> str:
    """Local path of an HTML page, always browsable as a file.

    Dot segments are collapsed first, so the result never leaves the output root.
    """
    path = remove_dot_segments(urlsplit(url).path)
    if path in ("", "/"):
        return "index.html"

    path = path.lstrip("/")
    if path.endswith("/"):
        return path + "index.html"
    if "." not in posixpath.basename(path):
        return path + "/index.html"
    return path


def asset_filename(url: str, unique: bool = True) -> str:
    """Derive a filesystem-safe filename for an asset URL.

    The last path segment is used along with the query string, with ``?``,
    ``&`` and ``=`` replaced by underscores. An empty segment yields a
    synthetic ``resource_<digest>`` name. With ``unique`` set, a digest of the
    full URL is inserted before the extension so same-named assets from
    different paths never overwrite each other.
    """
    parts = urlsplit(url)
    segment = posixpath.basename(parts.path)

    if not segment:
        return f"resource_{url_digest(url)}"

    name = segment + (f"?{parts.query}" if parts.query else "")
    name = _UNSAFE_CHARS.sub("_", name)
    if name in (".", ".."):
        return f"resource_{url_digest(url)}"

    if not unique:
        return name
    stem, ext = posixpath.splitext(segment)
    if parts.query:
        stem = _UNSAFE_CHARS.sub("_", f"{stem}?{parts.query}")
    return f"{stem}-{url_digest(url)}{_UNSAFE_CHARS.sub('_', ext)}"


def asset_path(
    url: str,
    category: Category,
    resources_dir: str = "resources",
    unique: bool = True,
) -> str:
    """Local path of an asset: ``<resources_dir>/<category>/<file>``."""
    return posixpath.join(resources_dir, Category(category).value, asset_filename(url, unique))


def relative_reference(from_page: str, target: str) -> str:
    """Reference to ``target`` as written inside the page stored at ``from_page``."""
    start = posixpath.dirname(from_page) or "."
    return posixpath.relpath(target, start)
