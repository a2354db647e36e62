"""File responses for resolved paths.

Only ``GET`` is answered; anything else yields ``None`` so the caller can
fall through to its own handling.
"""

import os
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath

from afr.config import CONTENT_TYPES
from afr.fs.dirs import Dir
from afr.fs.resolve import resolve_file, resolve_site_file
from afr.http.request import Request
from afr.http.response import FileResponse

NOT_FOUND_PAGE = "404.html"


def content_type(path: str | os.PathLike[str], table: Mapping[str, str] = CONTENT_TYPES) -> str | None:
    """Content type for *path* from its last suffix; ``None`` if unlisted."""
    suffix = PurePosixPath(os.fspath(path).replace("\\", "/")).suffix
    return table.get(suffix.lower())


def res_exact_file(
    path: str | os.PathLike[str],
    *,
    status: int = 200,
    headers: Mapping[str, str] | None = None,
    content_types: Mapping[str, str] = CONTENT_TYPES,
) -> FileResponse:
    """Stream the file at *path*.

    A ``content-type`` in *headers* wins over the extension table.
    """
    response = FileResponse(
        path=Path(path),
        status=status,
        content_type=content_type(path, content_types),
    )
    if headers:
        response = response.with_headers(headers)
    return response


async def res_file(
    request: Request,
    dirs: Iterable[Dir],
    *,
    content_types: Mapping[str, str] = CONTENT_TYPES,
) -> FileResponse | None:
    """Serve the exact file the request path names."""
    if request.method != "GET":
        return None
    found = await resolve_file(dirs, request.path)
    if found is None:
        return None
    return res_exact_file(found.path, content_types=content_types)


async def res_site(
    request: Request,
    dirs: Iterable[Dir],
    *,
    content_types: Mapping[str, str] = CONTENT_TYPES,
) -> FileResponse | None:
    """Serve the request path with clean-URL fallbacks."""
    if request.method != "GET":
        return None
    found = await resolve_site_file(dirs, request.path)
    if found is None:
        return None
    return res_exact_file(found.path, content_types=content_types)


async def res_site_not_found(
    request: Request,
    dirs: Iterable[Dir],
    page: str = NOT_FOUND_PAGE,
    *,
    content_types: Mapping[str, str] = CONTENT_TYPES,
) -> FileResponse | None:
    """Serve the custom not-found page with status 404, if one exists."""
    if request.method != "GET":
        return None
    found = await resolve_file(dirs, page)
    if found is None:
        return None
    return res_exact_file(found.path, status=404, content_types=content_types)


async def res_site_with_not_found(
    request: Request,
    dirs: Iterable[Dir],
    page: str = NOT_FOUND_PAGE,
    *,
    content_types: Mapping[str, str] = CONTENT_TYPES,
) -> FileResponse | None:
    """``res_site()``, falling back to the custom not-found page."""
    dirs = tuple(dirs)
    response = await res_site(request, dirs, content_types=content_types)
    if response is not None:
        return response
    return await res_site_not_found(request, dirs, page, content_types=content_types)
