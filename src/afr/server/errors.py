"""Error handling for afr requests.

Maps HTTPError exceptions and unexpected failures to plain-text responses.
"""

import logging

from afr.errors import HTTPError
from afr.http.request import Request
from afr.http.response import Response

logger = logging.getLogger("afr.server")


def http_error_response(exc: HTTPError) -> Response:
    """Plain-text response carrying the error's status, detail and headers."""
    response = Response(body=exc.detail or f"Error {exc.status}", status=exc.status)
    for name, value in exc.headers:
        response = response.with_header(name, value)
    return response


def handle_http_error(exc: HTTPError, request: Request) -> Response:
    """Map an HTTPError raised while handling *request* to a Response."""
    logger.debug("%d %s %s: %s", exc.status, request.method, request.path, exc.detail)
    return http_error_response(exc)


def handle_internal_error(exc: Exception, request: Request, *, debug: bool = False) -> Response:
    """Handle unexpected exceptions as 500 errors.

    With ``debug`` the error text goes into the body.
    """
    logger.exception("500 %s %s", request.method, request.path)
    if debug:
        return Response(body=str(exc) or type(exc).__name__, status=500)
    return Response(body="Internal Server Error", status=500)
