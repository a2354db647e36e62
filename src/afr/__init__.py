"""afr: live reload for development servers.

Watches files, serves them, and tells connected browser tabs to reload or
swap a stylesheet when something changes.

All-in-one usage::

    from afr import App, Dir

    app = App()
    app.serve(Dir("public"))
    app.watch(Dir("public"))
    app.run(port=8000)

Notify a running broadcaster from a build script::

    from afr import remote
    await remote.send({"type": "change", "path": "main.css"}, port=8000)
"""

__version__ = "0.1.0"
__all__ = [
    "AfrError",
    "App",
    "AppConfig",
    "Broad",
    "BroadASGI",
    "BroadConfig",
    "CancelToken",
    "Dir",
    "HTTPError",
    "MethodNotAllowed",
    "NotFound",
    "Request",
    "Response",
    "SendError",
    "remote",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import afr`` fast while providing a clean top-level API.
    """
    if name == "App":
        from afr.app import App

        return App

    if name in ("AppConfig", "BroadConfig"):
        from afr import config

        return getattr(config, name)

    if name == "Broad":
        from afr.realtime.broad import Broad

        return Broad

    if name == "BroadASGI":
        from afr.server.handler import BroadASGI

        return BroadASGI

    if name == "CancelToken":
        from afr.cancel import CancelToken

        return CancelToken

    if name == "Dir":
        from afr.fs.dirs import Dir

        return Dir

    if name == "Request":
        from afr.http.request import Request

        return Request

    if name == "Response":
        from afr.http.response import Response

        return Response

    if name in ("AfrError", "HTTPError", "MethodNotAllowed", "NotFound", "SendError"):
        from afr import errors

        return getattr(errors, name)

    if name == "remote":
        import afr.remote

        return afr.remote

    msg = f"module 'afr' has no attribute {name!r}"
    raise AttributeError(msg)
