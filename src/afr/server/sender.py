"""ASGI response sending: translates afr responses into ASGI messages.

Complete bodies go out in one message, files in chunks, and streams until
either the producer ends or the client disconnects.
"""

import contextlib
import logging

import anyio

from afr._internal.asgi import Receive, Send
from afr.http.response import AnyResponse, FileResponse, Response, StreamResponse

logger = logging.getLogger("afr.server")

# What an ASGI server raises when writing to a connection that is gone
WRITE_ERRORS = (OSError, RuntimeError, anyio.BrokenResourceError, anyio.ClosedResourceError)


def _body_allowed(status: int) -> bool:
    """Whether an HTTP status code permits a response body."""
    return not (100 <= status < 200 or status in {204, 304})


def _raw_headers(content_type: str | None, headers: tuple[tuple[str, str], ...]) -> list[tuple[bytes, bytes]]:
    raw: list[tuple[bytes, bytes]] = []
    if content_type is not None:
        raw.append((b"content-type", content_type.encode("latin-1")))
    for name, value in headers:
        raw.append((name.lower().encode("latin-1"), value.encode("latin-1")))
    return raw


async def send_response(response: Response, send: Send) -> None:
    """Translate a Response into ASGI send() calls."""
    raw_headers = _raw_headers(response.content_type, response.headers)
    body = response.body_bytes if _body_allowed(response.status) else b""
    raw_headers.append((b"content-length", str(len(body)).encode("latin-1")))

    await send(
        {
            "type": "http.response.start",
            "status": response.status,
            "headers": raw_headers,
        }
    )
    await send(
        {
            "type": "http.response.body",
            "body": body,
        }
    )


async def send_file_response(response: FileResponse, send: Send) -> None:
    """Stream a file from disk in ``chunk_size`` pieces."""
    path = anyio.Path(response.path)
    size = (await path.stat()).st_size

    raw_headers = _raw_headers(response.content_type, response.headers)
    raw_headers.append((b"content-length", str(size).encode("latin-1")))

    async with await anyio.open_file(response.path, "rb") as file:
        await send(
            {
                "type": "http.response.start",
                "status": response.status,
                "headers": raw_headers,
            }
        )
        while chunk := await file.read(response.chunk_size):
            await send(
                {
                    "type": "http.response.body",
                    "body": chunk,
                    "more_body": True,
                }
            )

    await send(
        {
            "type": "http.response.body",
            "body": b"",
            "more_body": False,
        }
    )


async def send_stream_response(response: StreamResponse, send: Send, receive: Receive) -> None:
    """Pump a long-lived stream until it ends or the client goes away.

    Two tasks run side by side: the pump forwards chunks, the monitor
    waits for ``http.disconnect``. Whichever finishes first stops the
    other. The response's ``signal`` is cancelled afterwards in every case.
    """
    async def monitor_disconnect() -> None:
        while True:
            message = await receive()
            if message.get("type") == "http.disconnect":
                return

    async def pump() -> None:
        async for chunk in response.chunks:
            if not chunk:
                continue
            try:
                await send(
                    {
                        "type": "http.response.body",
                        "body": chunk,
                        "more_body": True,
                    }
                )
            except WRITE_ERRORS as exc:
                logger.debug("stream write failed: %r", exc)
                return

    try:
        await send(
            {
                "type": "http.response.start",
                "status": response.status,
                "headers": _raw_headers(response.content_type, response.headers),
            }
        )
        async with anyio.create_task_group() as tg:

            async def first_completed(func) -> None:
                try:
                    await func()
                finally:
                    tg.cancel_scope.cancel()

            tg.start_soon(first_completed, monitor_disconnect)
            tg.start_soon(first_completed, pump)
    finally:
        if response.signal is not None:
            response.signal.cancel()
        aclose = getattr(response.chunks, "aclose", None)
        if aclose is not None:
            with anyio.CancelScope(shield=True):
                await aclose()

    with contextlib.suppress(*WRITE_ERRORS):
        await send(
            {
                "type": "http.response.body",
                "body": b"",
                "more_body": False,
            }
        )


async def send_any(response: AnyResponse, send: Send, receive: Receive) -> None:
    """Dispatch on the response shape."""
    match response:
        case StreamResponse():
            await send_stream_response(response, send, receive)
        case FileResponse():
            await send_file_response(response, send)
        case _:
            await send_response(response, send)
