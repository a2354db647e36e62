"""Talking to a running broadcaster over HTTP.

    from afr import remote

    await remote.send({"type": "change", "path": "main.css"}, port=8000)
    await remote.maybe_send(remote.CHANGE_MSG, port=8000)   # never raises
"""

import logging
from collections.abc import Mapping
from typing import Any

import httpx

from afr.config import DEFAULT_HOSTNAME, DEFAULT_NAMESPACE, normalize_namespace
from afr.errors import SendError
from afr.realtime.messages import CHANGE

logger = logging.getLogger("afr.remote")

CHANGE_MSG: Mapping[str, Any] = {"type": CHANGE}


def loc(
    url: str | httpx.URL | None = None,
    *,
    port: int | None = None,
    hostname: str = DEFAULT_HOSTNAME,
    namespace: str = DEFAULT_NAMESPACE,
) -> httpx.URL:
    """Base URL of a broadcaster, ending in its namespace.

    Either *url* (any URL on the broadcaster's origin) or *port* is needed.
    """
    if url is None:
        if isinstance(port, bool) or not isinstance(port, int) or port <= 0:
            msg = f"expected a positive port number, got {port!r}"
            raise ValueError(msg)
        url = f"http://{hostname}:{port}"
    return httpx.URL(url).join(normalize_namespace(namespace))


def client_path(url: str | httpx.URL | None = None, **opts: Any) -> httpx.URL:
    """URL of the broadcaster's client script."""
    return loc(url, **opts).join("client.mjs")


async def send(
    body: Mapping[str, Any],
    url: str | httpx.URL | None = None,
    *,
    client: httpx.AsyncClient | None = None,
    timeout: float = 10.0,
    **opts: Any,
) -> Any:
    """POST *body* to the broadcaster, which relays it to every client.

    Returns the decoded response (JSON when declared, text otherwise).
    Raises ``SendError`` on a non-2xx answer.
    """
    if not isinstance(body, Mapping):
        msg = f"expected a mapping as message body, got {body!r}"
        raise TypeError(msg)

    target = loc(url, **opts).join("send")
    if client is not None:
        response = await client.post(target, json=dict(body), timeout=timeout)
    else:
        async with httpx.AsyncClient() as own_client:
            response = await own_client.post(target, json=dict(body), timeout=timeout)

    if not response.is_success:
        raise SendError(response.status_code, response.text)

    if "json" in response.headers.get("content-type", ""):
        return response.json()
    return response.text


async def maybe_send(body: Mapping[str, Any], url: str | httpx.URL | None = None, **opts: Any) -> Any | None:
    """``send()``, logging failures instead of raising them."""
    try:
        return await send(body, url, **opts)
    except (httpx.HTTPError, SendError) as exc:
        logger.error("send failed: %s", exc)
        return None
