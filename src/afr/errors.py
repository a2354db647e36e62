"""afr exception hierarchy.

Shared across the broadcaster, file serving, and the ASGI layer so every
module raises and catches the same types.
"""

from dataclasses import dataclass


class AfrError(Exception):
    """Base for all afr-specific errors."""


class ClientCancelledError(AfrError):
    """Raised when constructing a client whose signal is already cancelled."""


class SendError(AfrError):
    """Raised when a broadcaster answers a ``send`` with a non-OK status."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"non-OK response (code {status}): {body}")


@dataclass(frozen=True, slots=True)
class HTTPError(AfrError):
    """An error that maps directly to an HTTP status code.

    Raised by request handlers; the ASGI handler converts it into a
    response instead of letting it reach the server.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818
    """404: nothing answers the request path."""

    def __init__(self, detail: str = "not found") -> None:
        super().__init__(status=404, detail=detail)


class MethodNotAllowed(HTTPError):  # noqa: N818
    """405: the path is a known endpoint, but not for this method."""

    def __init__(self, method: str, path: str, allowed: frozenset[str]) -> None:
        allow_value = ", ".join(sorted(allowed))
        super().__init__(
            status=405,
            detail=f"method {method} not allowed for path {path}",
            headers=(("Allow", allow_value),),
        )
