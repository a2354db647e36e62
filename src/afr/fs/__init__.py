"""Directory resolution and file serving.

``Dir`` describes a served or watched directory; the ``resolve`` functions
map request paths onto files inside it, and ``serve`` builds responses.
"""

from afr.fs.dirs import Dir, ResolvedFile, dirs
from afr.fs.resolve import (
    dir_resolve,
    dir_resolve_file,
    dir_resolve_site_file,
    ext,
    fs_maybe_stat,
    procure,
    resolve,
    resolve_file,
    resolve_site_file,
)
from afr.fs.serve import (
    content_type,
    res_exact_file,
    res_file,
    res_site,
    res_site_not_found,
    res_site_with_not_found,
)

__all__ = [
    "Dir",
    "ResolvedFile",
    "content_type",
    "dir_resolve",
    "dir_resolve_file",
    "dir_resolve_site_file",
    "dirs",
    "ext",
    "fs_maybe_stat",
    "procure",
    "res_exact_file",
    "res_file",
    "res_site",
    "res_site_not_found",
    "res_site_with_not_found",
    "resolve",
    "resolve_file",
    "resolve_site_file",
]
