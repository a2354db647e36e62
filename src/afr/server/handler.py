"""ASGI handler: translates ASGI scope/messages to afr types.

The only component that touches raw ASGI directly. Converts scope dicts
to typed Request objects, dispatches, and sends the response back through
ASGI send().
"""

import logging
from collections.abc import Awaitable, Callable

from afr._internal.asgi import Receive, Scope, Send
from afr.errors import HTTPError, NotFound
from afr.http.request import Request
from afr.http.response import AnyResponse
from afr.realtime.broad import Broad
from afr.server.errors import handle_http_error, handle_internal_error
from afr.server.sender import send_any

logger = logging.getLogger("afr.server")

type Dispatch = Callable[[Request], Awaitable[AnyResponse | None]]
type Hook = Callable[[], Awaitable[None]]


async def handle_request(
    scope: Scope,
    receive: Receive,
    send: Send,
    *,
    dispatch: Dispatch,
    debug: bool = False,
) -> None:
    """Process a single HTTP request: build, dispatch, send.

    A dispatcher that returns ``None`` produces a 404.
    """
    if scope["type"] != "http":
        return

    request = Request.from_asgi(scope, receive)

    try:
        response = await dispatch(request)
        if response is None:
            raise NotFound()
    except HTTPError as exc:
        response = handle_http_error(exc, request)
    except Exception as exc:
        response = handle_internal_error(exc, request, debug=debug)

    await send_any(response, send, receive)


async def handle_lifespan(
    receive: Receive,
    send: Send,
    *,
    startup: Hook | None = None,
    shutdown: Hook | None = None,
) -> None:
    """Run the ASGI lifespan protocol with optional startup/shutdown hooks."""
    while True:
        message = await receive()
        msg_type = message["type"]

        if msg_type == "lifespan.startup":
            try:
                if startup is not None:
                    await startup()
                await send({"type": "lifespan.startup.complete"})
            except Exception as exc:
                logger.exception("startup failed")
                await send(
                    {
                        "type": "lifespan.startup.failed",
                        "message": str(exc),
                    }
                )
                return

        elif msg_type == "lifespan.shutdown":
            if shutdown is not None:
                await shutdown()
            await send({"type": "lifespan.shutdown.complete"})
            return


class BroadASGI:
    """A ``Broad`` as a standalone ASGI application.

    Control routes are answered by the broad, everything else is a 404.
    Shutdown tells every connected client to reconnect::

        app = BroadASGI(Broad())
    """

    __slots__ = ("broad", "debug")

    def __init__(self, broad: Broad | None = None, *, debug: bool = False) -> None:
        self.broad = broad or Broad()
        self.debug = debug

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await handle_lifespan(receive, send, shutdown=self.broad.deinit)
            return
        await handle_request(scope, receive, send, dispatch=self.broad.route_or_404, debug=self.debug)
