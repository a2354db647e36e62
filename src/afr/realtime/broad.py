"""The broadcaster: a registry of connected clients plus its control routes.

Routes, relative to the namespace (default ``/afr/``)::

    client.mjs   GET    browser client script
    events       GET    event stream, one ``data:`` frame per message
    event        GET    one-shot: the next message as a JSON body
    send         POST   broadcast the JSON body to every client

``HEAD`` and ``OPTIONS`` on any path get an empty 200 with CORS headers.
"""

import logging
from collections.abc import Iterator, Mapping
from typing import Any

import anyio

from afr.client import render_client_script
from afr.config import BroadConfig
from afr.errors import ClientCancelledError, HTTPError, MethodNotAllowed
from afr.http.request import Request
from afr.http.response import Response, StreamResponse
from afr.realtime.clients import BroadClient, EventClient, EventStreamClient
from afr.realtime.messages import DEINIT, Msg, encode_json
from afr.server.errors import http_error_response

logger = logging.getLogger("afr.broad")

NOP_METHODS = frozenset({"HEAD", "OPTIONS"})

# Failures that only mean "the client is already gone"
CANCEL_ERRORS = (
    anyio.BrokenResourceError,
    anyio.ClosedResourceError,
    anyio.EndOfStream,
    ClientCancelledError,
)


def should_log_err(exc: BaseException | None) -> bool:
    """Whether a delivery failure is worth reporting."""
    return exc is not None and not isinstance(exc, CANCEL_ERRORS)


class Broad:
    """Broadcasts messages to every connected client.

    Usage::

        broad = Broad(BroadConfig(namespace="/afr/"))

        response = await broad.route(request)   # None: not a broad route
        await broad.send({"type": "change", "path": "/main.css"})
        await broad.deinit()                    # on shutdown

    Membership changes only through ``add``/``remove``/``clear``; a handle
    that is removed is always deinitialized too.
    """

    __slots__ = ("_members", "_routes", "_script", "config")

    def __init__(self, config: BroadConfig | None = None) -> None:
        self.config = config or BroadConfig()
        self._members: set[BroadClient] = set()
        self._script = render_client_script(self.config)
        self._routes = {
            self.client_path: ("GET", self._res_client),
            self.events_path: ("GET", self._res_events),
            self.event_path: ("GET", self._res_event),
            self.send_path: ("POST", self._res_send),
        }

    def __repr__(self) -> str:
        return f"Broad(namespace={self.namespace!r}, members={len(self._members)})"

    # -- Paths --

    @property
    def namespace(self) -> str:
        return self.config.namespace

    @property
    def client_path(self) -> str:
        return self.namespace + "client.mjs"

    @property
    def events_path(self) -> str:
        return self.namespace + "events"

    @property
    def event_path(self) -> str:
        return self.namespace + "event"

    @property
    def send_path(self) -> str:
        return self.namespace + "send"

    # -- Read-only membership views --

    def __iter__(self) -> Iterator[BroadClient]:
        return iter(tuple(self._members))

    def __len__(self) -> int:
        return len(self._members)

    def __contains__(self, client: object) -> bool:
        return client in self._members

    # -- Membership --

    def add(self, client: BroadClient) -> None:
        if not isinstance(client, BroadClient):
            msg = f"expected a BroadClient, got {client!r}"
            raise TypeError(msg)
        if client.broad is not self:
            msg = f"{client!r} belongs to a different broad"
            raise ValueError(msg)
        self._members.add(client)
        if self.config.verbose:
            logger.info("client connected (%d total)", len(self._members))

    def remove(self, client: BroadClient) -> None:
        """Remove and deinitialize *client*; unknown clients are ignored."""
        if client not in self._members:
            return
        self._members.discard(client)
        client.deinit()
        if self.config.verbose:
            logger.info("client disconnected (%d total)", len(self._members))

    def clear(self) -> None:
        for client in tuple(self._members):
            self.remove(client)

    # -- Broadcasting --

    async def send(self, msg: Msg) -> None:
        """Deliver *msg* to every current member concurrently.

        A member whose delivery fails, or stalls past
        ``config.delivery_timeout_ms``, is removed; the rest still receive it.
        """
        await self._fan_out(encode_json(msg))

    async def deinit(self, extra: Mapping[str, Any] | None = None) -> None:
        """Tell every member to reconnect, then close them all."""
        if extra is not None and not isinstance(extra, Mapping):
            msg = f"expected a mapping, got {extra!r}"
            raise TypeError(msg)
        try:
            await self._fan_out(encode_json({"type": DEINIT, **(extra or {})}))
        finally:
            self.clear()

    async def _fan_out(self, data: bytes) -> None:
        members = tuple(self._members)
        if not members:
            return
        async with anyio.create_task_group() as tg:
            for client in members:
                tg.start_soon(self._deliver, client, data)

    async def _deliver(self, client: BroadClient, data: bytes) -> None:
        try:
            with anyio.fail_after(self.config.delivery_timeout_ms / 1000):
                await client.write_encoded(data)
        except Exception as exc:
            self.remove(client)
            if should_log_err(exc):
                logger.error("delivery to %r failed", client, exc_info=exc)

    # -- Routing --

    async def route(self, request: Request) -> Response | StreamResponse | None:
        """Answer a control route; ``None`` if *request* is not one."""
        if request.method in NOP_METHODS:
            return self._cors(Response(body="", content_type=None))

        entry = self._routes.get(request.path)
        if entry is None:
            return None

        method, handler = entry
        try:
            if request.method != method:
                raise MethodNotAllowed(request.method, request.path, frozenset({method, *NOP_METHODS}))
            return await handler(request)
        except HTTPError as exc:
            return self._cors(http_error_response(exc))

    async def route_or_404(self, request: Request) -> Response | StreamResponse:
        """``route()``, or a plain 404."""
        response = await self.route(request)
        if response is None:
            return self._cors(Response(body="not found", status=404))
        return response

    async def _res_client(self, request: Request) -> Response:
        return self._cors(Response(body=self._script, content_type="application/javascript"))

    async def _res_events(self, request: Request) -> StreamResponse | None:
        if request.signal.cancelled:
            return None
        return self._res_via(request, EventStreamClient).with_header("cache-control", "no-cache")

    async def _res_event(self, request: Request) -> StreamResponse | None:
        if request.signal.cancelled:
            return None
        return self._res_via(request, EventClient)

    def _res_via(self, request: Request, client_type: type[BroadClient]) -> StreamResponse:
        client = client_type(self, request.signal)
        response = StreamResponse(
            chunks=client.stream,
            content_type=client.content_type,
            signal=request.signal,
        )
        return response.with_headers(self.config.cors_headers)

    async def _res_send(self, request: Request) -> Response:
        try:
            msg = await request.json()
        except ValueError as exc:
            return self._cors(Response(body=str(exc), status=400))
        if not isinstance(msg, dict):
            detail = f"expected a JSON object, got {type(msg).__name__}"
            return self._cors(Response(body=detail, status=400))

        try:
            await self.send(msg)
        except Exception as exc:
            logger.exception("500 %s %s", request.method, request.path)
            return self._cors(Response(body=str(exc) or type(exc).__name__, status=500))
        return self._cors(Response(body="true", content_type="application/json"))

    def _cors(self, response: Response) -> Response:
        return response.with_headers(self.config.cors_headers)
