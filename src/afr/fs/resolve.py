"""Request path → file resolution.

Resolution failures are values (``None``), never exceptions, so fallback
chains compose without exception-driven control flow. Only filesystem
errors other than "not found" propagate.

Site resolution, per directory, in strict order::

    /about      → about (exact file)
                → about.html        (no extension, no trailing slash)
                → about/index.html
    /docs/      → docs/index.html
    /main.css   → main.css only     (has an extension)

Lists of directories act as a priority-ordered overlay: the first
directory with a hit wins.
"""

import os
import re
import stat as stat_module
from collections.abc import Awaitable, Callable, Iterable
from pathlib import PurePath
from typing import Any
from urllib.parse import urlsplit

import anyio

from afr.fs.dirs import Dir, ResolvedFile

_EXT_RE = re.compile(r"[^\\/](\.[^:\\/]+)$")

type Url = str | PurePath


def ext(path: str) -> str:
    """File extension of a URL path, including the dot; ``""`` if none.

    Everything from the first non-leading dot of the last segment counts, so
    ``/app.min.js`` gives ``.min.js``. A leading dot does not count:
    ``/.env`` has no extension.
    """
    match = _EXT_RE.search(path)
    return match.group(1) if match else ""


async def fs_maybe_stat(path: str | os.PathLike[str]) -> os.stat_result | None:
    """``stat()`` that maps "not found" to ``None``.

    Permission and I/O errors propagate.
    """
    try:
        return await anyio.Path(path).stat()
    except (FileNotFoundError, NotADirectoryError):
        return None


async def dir_resolve(directory: Dir, url: Url) -> ResolvedFile | None:
    """Resolve *url* inside *directory* to an existing location."""
    _check_dir(directory)

    path = directory.resolve_url(url)
    if path is None:
        return None

    # Hidden by policy and missing look the same to callers
    if not directory.allow_path(path):
        return None

    info = await fs_maybe_stat(path)
    if info is None:
        return None

    return ResolvedFile(path=path, is_file=stat_module.S_ISREG(info.st_mode))


async def dir_resolve_file(directory: Dir, url: Url) -> ResolvedFile | None:
    """Like ``dir_resolve()``, but only regular files count."""
    found = await dir_resolve(directory, url)
    return found.only_file() if found else None


async def dir_resolve_site_file(directory: Dir, url: Url) -> ResolvedFile | None:
    """Resolve a human-facing path with clean-URL fallbacks."""
    _check_dir(directory)
    path = _url_path(directory, url)
    if path is None:
        return None

    found = await dir_resolve_file(directory, path)
    if found:
        return found

    if ext(path):
        return None

    if not path.endswith("/"):
        found = await dir_resolve_file(directory, path + ".html")
        if found:
            return found

    return await dir_resolve_file(directory, _ensure_trailing_slash(path) + "index.html")


async def procure[T](
    dirs: Iterable[Dir],
    fun: Callable[..., Awaitable[T | None]],
    *args: Any,
) -> T | None:
    """Call ``fun(dir, *args)`` for each dir in order; return the first hit."""
    for directory in dirs:
        _check_dir(directory)
        found = await fun(directory, *args)
        if found:
            return found
    return None


async def resolve(dirs: Iterable[Dir], url: Url) -> ResolvedFile | None:
    """First existing location for *url* across *dirs* (files or directories)."""
    return await procure(dirs, dir_resolve, url)


async def resolve_file(dirs: Iterable[Dir], url: Url) -> ResolvedFile | None:
    """First regular file for *url* across *dirs*."""
    return await procure(dirs, dir_resolve_file, url)


async def resolve_site_file(dirs: Iterable[Dir], url: Url) -> ResolvedFile | None:
    """First site-resolution hit for *url* across *dirs*."""
    return await procure(dirs, dir_resolve_site_file, url)


def _check_dir(directory: object) -> None:
    if not isinstance(directory, Dir):
        msg = f"expected a Dir, got {directory!r}"
        raise TypeError(msg)


def _url_path(directory: Dir, url: Url) -> str | None:
    """URL-style path of *url*, without query string or fragment.

    Filesystem paths are expressed relative to the directory root.
    """
    if isinstance(url, PurePath):
        if not url.is_absolute():
            return "/" + url.as_posix()
        if url != directory.root and not directory.contains(url):
            return None
        return "/" + directory.rel(url)
    parts = urlsplit(url)
    if parts.scheme or parts.netloc:
        return parts.path or "/"
    return url.split("?", 1)[0].split("#", 1)[0]


def _ensure_trailing_slash(path: str) -> str:
    return path if path.endswith("/") else path + "/"
