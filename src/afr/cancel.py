"""Explicit cancellation signal.

A ``CancelToken`` is created per inbound request and handed to every
client built from it. Cancelling is idempotent; each registered callback
fires at most once and can be removed before it fires.
"""

import logging
from collections.abc import Callable

logger = logging.getLogger("afr.server")


class CancelToken:
    """One-way cancellation flag with single-shot callbacks.

    Usage::

        token = CancelToken()
        token.add_callback(client.deinit)
        ...
        token.cancel()  # runs client.deinit() once
        token.cancel()  # no-op
    """

    __slots__ = ("_callbacks", "_cancelled")

    def __init__(self) -> None:
        self._cancelled = False
        self._callbacks: list[Callable[[], object]] = []

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def add_callback(self, callback: Callable[[], object]) -> None:
        """Register *callback*. Runs immediately if already cancelled."""
        if self._cancelled:
            callback()
            return
        self._callbacks.append(callback)

    def remove_callback(self, callback: Callable[[], object]) -> None:
        """Unregister *callback*; unknown callbacks are ignored."""
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def cancel(self) -> None:
        """Fire every pending callback once."""
        if self._cancelled:
            return
        self._cancelled = True
        callbacks, self._callbacks = self._callbacks, []
        for callback in callbacks:
            try:
                callback()
            except Exception:
                logger.exception("cancel callback %r failed", callback)

    def __repr__(self) -> str:
        return f"CancelToken(cancelled={self._cancelled}, callbacks={len(self._callbacks)})"
