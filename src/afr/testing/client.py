"""Async test client for afr applications.

Drives any ASGI app in-process and returns the same ``Response`` type used
in production. Long-lived streams are opened with ``connect()``, which
keeps the connection up until the block exits or ``disconnect()`` is
called.
"""

import contextlib
import json as json_module
import math
from collections.abc import AsyncIterator
from typing import Any

import anyio

from afr._internal.asgi import ASGIApp
from afr.http.response import Response
from afr.testing.sse import EventFrame, parse_sse_frames


def _build_scope(method: str, path: str, headers: dict[str, str] | None) -> dict[str, Any]:
    if "?" in path:
        path_part, query_string = path.split("?", 1)
    else:
        path_part = path
        query_string = ""

    raw_headers: list[tuple[bytes, bytes]] = []
    for name, value in (headers or {}).items():
        raw_headers.append((name.lower().encode("latin-1"), value.encode("latin-1")))

    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": method.upper(),
        "path": path_part,
        "raw_path": path_part.encode("latin-1"),
        "query_string": query_string.encode("latin-1"),
        "root_path": "",
        "headers": raw_headers,
        "server": ("testserver", 80),
        "client": ("127.0.0.1", 0),
    }


class StreamConnection:
    """An open connection to a streaming endpoint.

    Usage::

        async with client.connect("/afr/events") as conn:
            await broad.send({"type": "change", "path": "main.css"})
            [frame] = await conn.frames(1)
            assert frame.json()["path"] == "main.css"
    """

    __test__ = False

    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        self.status = 0
        self.headers: dict[str, str] = {}
        self._started = anyio.Event()
        self._closed = anyio.Event()
        self._disconnect = anyio.Event()
        self._body = bytearray()
        self._consumed_frames = 0
        self._send_chunk, self._receive_chunk = anyio.create_memory_object_stream[bytes](math.inf)

    @property
    def closed(self) -> bool:
        """Whether the server has finished the response."""
        return self._closed.is_set()

    def disconnect(self) -> None:
        """Make the next ``receive()`` report ``http.disconnect``."""
        self._disconnect.set()

    async def receive_chunk(self) -> bytes | None:
        """Next body chunk, or ``None`` once the response is finished."""
        with anyio.fail_after(self.timeout):
            try:
                chunk = await self._receive_chunk.receive()
            except anyio.EndOfStream:
                return None
        self._body.extend(chunk)
        return chunk

    async def read_all(self) -> bytes:
        """The whole body, waiting for the response to finish."""
        while await self.receive_chunk() is not None:
            pass
        return bytes(self._body)

    async def frames(self, count: int) -> list[EventFrame]:
        """Wait for the next *count* event-stream frames and return them."""
        while True:
            frames = parse_sse_frames(self._body.decode("utf-8"))
            start = self._consumed_frames
            if len(frames) - start >= count:
                self._consumed_frames += count
                return frames[start : start + count]
            if await self.receive_chunk() is None:
                msg = f"stream closed after {len(frames) - start} of {count} frames"
                raise AssertionError(msg)

    async def wait_closed(self) -> None:
        with anyio.fail_after(self.timeout):
            await self._closed.wait()

    async def _asgi_send(self, message: dict[str, Any]) -> None:
        if message["type"] == "http.response.start":
            self.status = message["status"]
            for name_b, value_b in message.get("headers", []):
                self.headers[name_b.decode("latin-1")] = value_b.decode("latin-1")
            self._started.set()
        elif message["type"] == "http.response.body":
            chunk = message.get("body", b"")
            if chunk:
                self._send_chunk.send_nowait(chunk)
            if not message.get("more_body", False):
                self._send_chunk.close()
                self._closed.set()


class TestClient:
    __test__ = False  # Tell pytest this is not a test class
    """Async test client for afr applications.

    Sends requests through the ASGI interface directly, no HTTP involved.
    Entering the client runs the app's lifespan startup; leaving it runs
    shutdown.

    Usage::

        async with TestClient(app) as client:
            response = await client.get("/afr/client.mjs")
            assert response.status == 200
    """

    def __init__(self, app: ASGIApp, *, lifespan: bool = True, timeout: float = 5.0) -> None:
        self.app = app
        self.lifespan = lifespan
        self.timeout = timeout
        self._stack: contextlib.AsyncExitStack | None = None
        self._lifespan_send: Any = None
        self._lifespan_done = anyio.Event()

    async def __aenter__(self) -> TestClient:
        if not self.lifespan:
            return self

        self._stack = contextlib.AsyncExitStack()
        tg = await self._stack.enter_async_context(anyio.create_task_group())
        send_stream, receive_stream = anyio.create_memory_object_stream[dict[str, Any]](math.inf)
        self._lifespan_send = send_stream
        started = anyio.Event()
        failure: list[str] = []

        async def receive() -> dict[str, Any]:
            return await receive_stream.receive()

        async def send(message: dict[str, Any]) -> None:
            if message["type"] == "lifespan.startup.complete":
                started.set()
            elif message["type"] == "lifespan.startup.failed":
                failure.append(message.get("message", ""))
                started.set()
            elif message["type"] == "lifespan.shutdown.complete":
                self._lifespan_done.set()

        tg.start_soon(self.app, {"type": "lifespan", "asgi": {"version": "3.0"}}, receive, send)
        await send_stream.send({"type": "lifespan.startup"})
        with anyio.fail_after(self.timeout):
            await started.wait()
        if failure:
            await self._stack.aclose()
            msg = f"lifespan startup failed: {failure[0]}"
            raise RuntimeError(msg)
        return self

    async def __aexit__(self, *args: object) -> None:
        if self._stack is None:
            return
        await self._lifespan_send.send({"type": "lifespan.shutdown"})
        with anyio.fail_after(self.timeout):
            await self._lifespan_done.wait()
        await self._stack.aclose()
        self._stack = None

    async def get(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a GET request."""
        return await self.request("GET", path, headers=headers)

    async def head(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send a HEAD request."""
        return await self.request("HEAD", path, headers=headers)

    async def options(self, path: str, *, headers: dict[str, str] | None = None) -> Response:
        """Send an OPTIONS request."""
        return await self.request("OPTIONS", path, headers=headers)

    async def post(
        self,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
        json: Any = None,
    ) -> Response:
        """Send a POST request."""
        extra_headers: dict[str, str] = {}
        request_body = body or b""

        if json is not None:
            request_body = json_module.dumps(json).encode("utf-8")
            extra_headers["content-type"] = "application/json"

        merged = {**extra_headers, **(headers or {})}
        return await self.request("POST", path, headers=merged, body=request_body)

    async def request(
        self,
        method: str,
        path: str,
        *,
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> Response:
        """Send a request and collect the complete response.

        The client disconnects as soon as the request body is consumed, so
        streaming endpoints answer with their headers and whatever was
        already buffered.
        """
        scope = _build_scope(method, path, headers)
        request_body = body or b""
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            return {"type": "http.disconnect"}

        response_status = 200
        response_headers: list[tuple[bytes, bytes]] = []
        response_body_parts: list[bytes] = []

        async def send(message: dict[str, Any]) -> None:
            nonlocal response_status, response_headers
            if message["type"] == "http.response.start":
                response_status = message["status"]
                response_headers = list(message.get("headers", []))
            elif message["type"] == "http.response.body":
                response_body_parts.append(message.get("body", b""))

        with anyio.fail_after(self.timeout):
            await self.app(scope, receive, send)

        content_type: str | None = None
        extra_headers: list[tuple[str, str]] = []
        for name_b, value_b in response_headers:
            name_str = name_b.decode("latin-1")
            value_str = value_b.decode("latin-1")
            if name_str == "content-type":
                content_type = value_str
            elif name_str != "content-length":
                extra_headers.append((name_str, value_str))

        return Response(
            body=b"".join(response_body_parts),
            status=response_status,
            content_type=content_type,
            headers=tuple(extra_headers),
        )

    @contextlib.asynccontextmanager
    async def connect(
        self,
        path: str,
        *,
        method: str = "GET",
        headers: dict[str, str] | None = None,
        body: bytes | None = None,
    ) -> AsyncIterator[StreamConnection]:
        """Open a long-lived connection; disconnect when the block exits."""
        conn = StreamConnection(self.timeout)
        scope = _build_scope(method, path, headers)
        request_body = body or b""
        body_sent = False

        async def receive() -> dict[str, Any]:
            nonlocal body_sent
            if not body_sent:
                body_sent = True
                return {"type": "http.request", "body": request_body, "more_body": False}
            await conn._disconnect.wait()
            return {"type": "http.disconnect"}

        async with anyio.create_task_group() as tg:
            tg.start_soon(self.app, scope, receive, conn._asgi_send)
            with anyio.fail_after(self.timeout):
                await conn._started.wait()
            try:
                yield conn
            finally:
                conn.disconnect()
                with anyio.move_on_after(self.timeout):
                    await conn._closed.wait()
                if not conn.closed:
                    tg.cancel_scope.cancel()
