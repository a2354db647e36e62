"""All-in-one development application.

Combines a broadcaster, static site serving, and a file watcher in one
ASGI app. Mutable during setup (``serve``/``watch``); the watcher starts
with the ASGI lifespan and stops before the broadcaster tells its clients
to reconnect.
"""

import logging

import anyio

from afr._internal.asgi import Receive, Scope, Send
from afr.config import AppConfig
from afr.fs.dirs import Dir, dirs as validate_dirs
from afr.fs.serve import res_site_with_not_found
from afr.http.request import Request
from afr.http.response import AnyResponse
from afr.realtime.broad import Broad
from afr.server.handler import handle_request
from afr.watch import watch

logger = logging.getLogger("afr.server")


class App:
    """Serve a directory tree and live-reload every page that uses it.

    Usage::

        app = App()
        app.serve(Dir("public"))
        app.watch(Dir("public", re.compile(r"\\.(html|css|js)$")))
        app.run(port=8000)

    Pages opt in with
    ``<script type="module" src="/afr/client.mjs"></script>``.
    """

    def __init__(self, config: AppConfig | None = None, *, broad: Broad | None = None) -> None:
        self.config = config or AppConfig()
        self.broad = broad or Broad(self.config.broad)
        self._serve_dirs: list[Dir] = []
        self._watch_dirs: list[Dir] = []

    @property
    def serve_dirs(self) -> tuple[Dir, ...]:
        return tuple(self._serve_dirs)

    @property
    def watch_dirs(self) -> tuple[Dir, ...]:
        return tuple(self._watch_dirs)

    # -- Setup --

    def serve(self, *dirs: Dir) -> App:
        """Serve files from *dirs*, first directory first."""
        self._serve_dirs.extend(validate_dirs(*dirs))
        return self

    def watch(self, *dirs: Dir) -> App:
        """Broadcast changes to files inside *dirs*."""
        self._watch_dirs.extend(validate_dirs(*dirs))
        return self

    # -- Requests --

    async def handle(self, request: Request) -> AnyResponse | None:
        """Broadcaster routes first, then the site, then the custom 404 page."""
        response = await self.broad.route(request)
        if response is not None:
            return response
        return await res_site_with_not_found(
            request,
            self._serve_dirs,
            self.config.not_found_page,
            content_types=self.config.broad.content_types,
        )

    async def watch_and_broadcast(self, *, stop_event: anyio.Event | None = None) -> None:
        """Relay every change in the watched dirs to the broadcaster."""
        if not self._watch_dirs:
            return
        async for msg in watch(
            self._watch_dirs,
            stop_event=stop_event,
            debounce_ms=self.config.watch_debounce_ms,
        ):
            await self.broad.send(msg)

    # -- ASGI --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return
        await handle_request(scope, receive, send, dispatch=self.handle, debug=self.config.debug)

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the watcher for as long as the server is up."""
        stop_event = anyio.Event()

        async with anyio.create_task_group() as tg:
            while True:
                message = await receive()
                msg_type = message["type"]

                if msg_type == "lifespan.startup":
                    tg.start_soon(self._run_watcher, stop_event)
                    await send({"type": "lifespan.startup.complete"})

                elif msg_type == "lifespan.shutdown":
                    stop_event.set()
                    tg.cancel_scope.cancel()
                    break

        await self.broad.deinit()
        await send({"type": "lifespan.shutdown.complete"})

    async def _run_watcher(self, stop_event: anyio.Event) -> None:
        try:
            await self.watch_and_broadcast(stop_event=stop_event)
        except Exception:
            logger.exception("file watcher stopped")

    # -- Running --

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Start a pounce server for this app."""
        from afr.server.dev import run_server

        _host = host or self.config.host
        _port = port or self.config.port
        logger.info("listening on http://%s:%d", _host, _port)
        run_server(self, _host, _port)
