"""Served and watched directories.

A ``Dir`` is a root directory plus an optional allow-test. Resolution
never leaves the root: ``..`` segments and escaping joins resolve to
``None``, the same outcome as a file that does not exist.
"""

import os
import re
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path, PurePath
from urllib.parse import unquote, urlsplit

type DirTest = Callable[[str], bool] | re.Pattern[str]


@dataclass(frozen=True, slots=True)
class ResolvedFile:
    """A location inside a ``Dir`` that exists on disk."""

    path: Path
    is_file: bool

    def only_file(self) -> ResolvedFile | None:
        """Return self for regular files, ``None`` for directories."""
        return self if self.is_file else None


class Dir:
    """A root directory with an optional allow-test.

    The test receives the POSIX path relative to the root (``"css/main.css"``)
    and is either a callable or a compiled regex, matched with ``search``::

        Dir("public")
        Dir(".", re.compile(r"\\.(html|css)$"))
        Dir(".", lambda path: "node_modules" not in path)

    Relative roots are made absolute against the current working directory
    at construction. Symlinks are not resolved.
    """

    __slots__ = ("root", "test")

    def __init__(self, path: str | os.PathLike[str], test: DirTest | None = None) -> None:
        if test is not None and not (callable(test) or isinstance(test, re.Pattern)):
            msg = f"expected a callable or compiled regex as dir test, got {test!r}"
            raise TypeError(msg)
        self.root = Path(os.path.abspath(os.fspath(path).replace("\\", "/")))
        self.test = test

    def __repr__(self) -> str:
        return f"Dir({str(self.root)!r}, {self.test!r})"

    def resolve_url(self, url: str | PurePath) -> Path | None:
        """Join a request path, URL, or filesystem path onto the root.

        Strings are request paths or URLs, percent-decoded. Only the path of
        an ``http:`` style URL is used, and a leading ``//`` never names a
        host. ``file:`` URLs and absolute ``Path`` values are locations that
        must already lie inside the root. Returns ``None`` for anything that
        would escape.
        """
        if isinstance(url, str) and url.startswith("file:"):
            url = Path(unquote(urlsplit(url).path))
        if isinstance(url, PurePath):
            if ".." in url.parts or "\x00" in str(url):
                return None
            if url.is_absolute():
                path = Path(url)
                return path if self._inside(path) else None
            return self.root.joinpath(url)

        segments = _url_segments(url)
        if segments is None:
            return None
        path = self.root.joinpath(*segments)
        return path if self._inside(path) else None

    def allow(self, path: str) -> bool:
        """Apply the allow-test to a root-relative POSIX path.

        The empty path (the root itself) is never allowed.
        """
        if not isinstance(path, str):
            msg = f"expected a string path, got {path!r}"
            raise TypeError(msg)
        if not path:
            return False
        test = self.test
        if test is None:
            return True
        if isinstance(test, re.Pattern):
            return test.search(path) is not None
        return bool(test(path))

    def allow_path(self, path: str | PurePath) -> bool:
        """``allow()`` applied to the root-relative form of *path*."""
        return self.allow(self.rel(path))

    def rel(self, path: str | PurePath) -> str:
        """POSIX path of *path* relative to the root, or ``""`` outside it.

        ``file:`` URLs are accepted and percent-decoded.
        """
        if isinstance(path, str):
            if path.startswith("file:"):
                path = unquote(urlsplit(path).path)
            path = Path(path.replace("\\", "/"))
        if not path.is_absolute():
            path = self.root.joinpath(path)
        if ".." in path.parts or path == self.root or not self._inside(path):
            return ""
        return path.relative_to(self.root).as_posix()

    def contains(self, path: str | PurePath) -> bool:
        """Whether *path* lies strictly inside the root."""
        return bool(self.rel(path))

    def _inside(self, path: PurePath) -> bool:
        return path == self.root or path.is_relative_to(self.root)


def dirs(*items: Dir) -> tuple[Dir, ...]:
    """Validate and bundle directories for the ``resolve`` functions."""
    for item in items:
        if not isinstance(item, Dir):
            msg = f"expected Dir instances, got {item!r}"
            raise TypeError(msg)
    return items


def _url_segments(url: str) -> list[str] | None:
    """Decoded, non-empty path segments of *url*; ``None`` on traversal."""
    if not isinstance(url, str):
        msg = f"expected a string or path, got {url!r}"
        raise TypeError(msg)
    parts = urlsplit(url.replace("\\", "/"))
    raw = parts.path if parts.scheme else url.split("?", 1)[0].split("#", 1)[0]
    segments = [segment for segment in unquote(raw).replace("\\", "/").split("/") if segment]
    if any(segment == ".." or "\x00" in segment for segment in segments):
        return None
    return [segment for segment in segments if segment != "."]
