"""Filesystem watching: turns raw change batches into broadcast messages.

Each changed path is matched against the given directories in order; the
first directory that contains it and allows it produces one message with
the path relative to that directory::

    async for msg in watch([Dir("public")]):
        await broad.send(msg)      # {"type": "change", "path": "css/main.css"}

Additions and deletions are reported as ``rename``, modifications as
``change``.
"""

import logging
import os
from collections.abc import AsyncGenerator, Iterable, Iterator
from typing import Any

import anyio
from watchfiles import Change, awatch

from afr.fs.dirs import Dir, dirs as validate_dirs
from afr.realtime.messages import CHANGE, RENAME

logger = logging.getLogger("afr.watch")

CHANGE_TYPES = {
    Change.added: RENAME,
    Change.deleted: RENAME,
    Change.modified: CHANGE,
}


def change_type(kind: Change) -> str:
    """Message type for a watchfiles change kind."""
    return CHANGE_TYPES.get(kind, CHANGE)


def translate(changes: Iterable[tuple[Change, str]], dirs: Iterable[Dir]) -> Iterator[dict[str, Any]]:
    """Messages for one batch of changes, in path order."""
    dirs = tuple(dirs)
    for kind, abs_path in sorted(changes, key=lambda item: (item[1], item[0])):
        for directory in dirs:
            path = directory.rel(abs_path)
            if directory.allow(path):
                yield {"type": change_type(kind), "path": path}
                break


async def watch(
    dirs: Iterable[Dir],
    target: str | os.PathLike[str] | None = None,
    *,
    stop_event: anyio.Event | None = None,
    debounce_ms: int = 50,
) -> AsyncGenerator[dict[str, Any]]:
    """Watch *target* (default: every dir root) and yield change messages.

    Ends when *stop_event* is set.
    """
    dirs = validate_dirs(*dirs)
    targets = [target] if target is not None else [directory.root for directory in dirs]
    logger.debug("watching %s", ", ".join(os.fspath(path) for path in targets))

    async for changes in awatch(*targets, stop_event=stop_event, debounce=debounce_ms):
        for msg in translate(changes, dirs):
            logger.debug("%s %s", msg["type"], msg["path"])
            yield msg
