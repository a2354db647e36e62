"""Client handles: one per connected browser tab.

A handle owns an in-memory byte sink that the ASGI layer drains into the
HTTP response. It joins its ``Broad`` on construction and leaves it on
``deinit()``, which the request's ``CancelToken`` triggers when the
client disconnects.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import anyio
from anyio.streams.memory import MemoryObjectReceiveStream

from afr.cancel import CancelToken
from afr.errors import ClientCancelledError
from afr.realtime.messages import Msg, encode_json, frame_event

if TYPE_CHECKING:
    from afr.realtime.broad import Broad


class BroadClient:
    """Base handle: a sink, a broad, and an optional cancel signal.

    ``deinit()`` is idempotent and always runs in the same order: detach
    from the signal, leave the broad, close the sink. Chunks already in
    the sink are still delivered to the reader after the sink closes.
    """

    __slots__ = ("_done", "_receive", "_send", "broad", "signal")

    content_type = "application/octet-stream"

    def __init__(self, broad: Broad, signal: CancelToken | None = None) -> None:
        if signal is not None and not isinstance(signal, CancelToken):
            msg = f"expected a CancelToken, got {signal!r}"
            raise TypeError(msg)
        if signal is not None and signal.cancelled:
            msg = "can't construct client: incoming signal already cancelled"
            raise ClientCancelledError(msg)

        self.broad = broad
        self.signal = signal
        self._done = False
        self._send, self._receive = anyio.create_memory_object_stream[bytes](broad.config.client_buffer)

        broad.add(self)
        if signal is not None:
            signal.add_callback(self.deinit)

    def __repr__(self) -> str:
        state = "closed" if self._done else "open"
        return f"<{type(self).__name__} {state}>"

    @property
    def closed(self) -> bool:
        return self._done

    @property
    def stream(self) -> MemoryObjectReceiveStream[bytes]:
        """Receive side of the sink, drained by the response sender."""
        return self._receive

    async def write_bytes(self, chunk: bytes) -> None:
        """Append raw bytes to the sink.

        Waits while the sink holds ``config.client_buffer`` unread chunks.

        Raises ``anyio.ClosedResourceError`` after ``deinit()`` and
        ``anyio.BrokenResourceError`` once the reader has gone away.
        """
        await self._send.send(chunk)

    async def write(self, msg: Msg) -> None:
        """Serialize and deliver *msg*."""
        await self.write_encoded(encode_json(msg))

    async def write_encoded(self, data: bytes) -> None:
        """Deliver an already-serialized JSON message."""
        raise NotImplementedError

    def deinit(self) -> None:
        if self._done:
            return
        self._done = True
        if self.signal is not None:
            self.signal.remove_callback(self.deinit)
        self.broad.remove(self)
        self._send.close()


class EventClient(BroadClient):
    """One-shot handle: delivers exactly one JSON body, then closes."""

    __slots__ = ()

    content_type = "application/json"

    async def write_encoded(self, data: bytes) -> None:
        try:
            await self.write_bytes(data)
        finally:
            self.deinit()


class EventStreamClient(BroadClient):
    """Streaming handle: one ``data:`` frame per message, stays open."""

    __slots__ = ()

    content_type = "text/event-stream"

    async def write_encoded(self, data: bytes) -> None:
        await self.write_bytes(frame_event(data))
