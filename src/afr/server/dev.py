"""Development server.

Starts a pounce ASGI server with a live afr application object. The
broadcaster keeps its clients in memory, so it always runs in a single
worker.
"""

from afr._internal.asgi import ASGIApp


def run_server(app: ASGIApp, host: str, port: int, *, reload: bool = False) -> None:
    """Serve *app* with pounce until interrupted.

    Pounce's ``run()`` takes an import string, but afr has a live ASGI
    object, so ``pounce.Server`` is used directly.
    """
    from pounce.config import ServerConfig
    from pounce.server import Server

    config = ServerConfig(
        host=host,
        port=port,
        workers=1,
        reload=reload,
    )
    server = Server(config, app)
    server.run()
