"""Python counterpart of the browser client.

``ReconnectState`` is the reconnection policy without any I/O: a fixed
attempt budget that is refilled by every successful open, a fixed delay
between attempts, and key filtering of incoming messages. ``Receiver``
drives it over an httpx event-stream connection.
"""

import inspect
import json as json_module
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import anyio
import httpx

from afr.config import DEFAULT_NAMESPACE
from afr.realtime.messages import DEINIT, Msg, Reaction, reaction

logger = logging.getLogger("afr.remote")

DEFAULT_RECONNECT_DELAY_MS = 1024
DEFAULT_RECONNECT_ATTEMPTS = 8


@dataclass(slots=True)
class ReconnectState:
    """Reconnection state: at most one transport and one pending retry.

    ``remaining`` is ``None`` until the first successful open; while it is
    unknown every error schedules a retry.
    """

    key: str | None = None
    attempts: int = DEFAULT_RECONNECT_ATTEMPTS
    transport_open: bool = False
    timer_pending: bool = False
    remaining: int | None = None

    def reinit(self) -> None:
        """Tear down the previous transport and timer, start connecting."""
        self.timer_pending = False
        self.transport_open = True

    def on_open(self) -> None:
        self.remaining = self.attempts

    def on_error(self) -> bool:
        """Close the transport; return whether a retry is scheduled."""
        self.transport_open = False
        if self.remaining is None:
            self.timer_pending = True
            return True
        remaining = self.remaining
        self.remaining -= 1
        if remaining > 0:
            self.timer_pending = True
            return True
        self.timer_pending = False
        return False

    def on_message(self, msg: Any) -> Reaction | None:
        """Decide what to do with an incoming message.

        Messages for another key, or that are not objects, are ignored.
        """
        if not isinstance(msg, dict):
            return None
        if msg.get("key") != self.key:
            return None
        if msg.get("type") == DEINIT:
            return Reaction.RECONNECT
        return reaction(msg)


type Callback = Callable[..., Awaitable[None] | None]


class Receiver:
    """Listens to a broadcaster's event stream and reacts to changes.

    Usage::

        receiver = Receiver(
            "http://localhost:8000/afr/",
            on_reload=lambda: print("reload"),
            on_stylesheet=lambda path: print("restyle", path),
        )
        await receiver.run()   # returns once the retry budget is spent

    Callbacks may be plain functions or coroutines.
    """

    def __init__(
        self,
        url: str = f"http://localhost:8000{DEFAULT_NAMESPACE}",
        *,
        key: str | None = None,
        on_reload: Callback | None = None,
        on_stylesheet: Callback | None = None,
        reconnect_delay_ms: int = DEFAULT_RECONNECT_DELAY_MS,
        reconnect_attempts: int = DEFAULT_RECONNECT_ATTEMPTS,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.events_url = httpx.URL(url).join("events")
        self.state = ReconnectState(key=key, attempts=reconnect_attempts)
        self.on_reload = on_reload
        self.on_stylesheet = on_stylesheet
        self.delay = reconnect_delay_ms / 1000
        self._client = client

    async def run(self) -> None:
        """Connect, react to messages, and reconnect until out of attempts."""
        if self._client is not None:
            await self._run(self._client)
            return
        async with httpx.AsyncClient(timeout=httpx.Timeout(None, connect=5.0)) as client:
            await self._run(client)

    async def _run(self, client: httpx.AsyncClient) -> None:
        while True:
            self.state.reinit()
            try:
                if await self._listen(client):
                    continue
            except (httpx.HTTPError, ValueError) as exc:
                logger.debug("event stream %s failed: %s", self.events_url, exc)
            if not self.state.on_error():
                logger.debug("giving up on %s", self.events_url)
                return
            await anyio.sleep(self.delay)

    async def _listen(self, client: httpx.AsyncClient) -> bool:
        """Consume one connection; ``True`` means reconnect immediately."""
        async with client.stream(
            "GET",
            self.events_url,
            headers={"accept": "text/event-stream"},
        ) as response:
            response.raise_for_status()
            self.state.on_open()
            async for line in response.aiter_lines():
                if not line.startswith("data:"):
                    continue
                msg = json_module.loads(line[5:].strip())
                outcome = self.state.on_message(msg)
                if outcome is Reaction.RECONNECT:
                    return True
                await self._react(outcome, msg)
        return False

    async def _react(self, outcome: Reaction | None, msg: Msg) -> None:
        if outcome is Reaction.STYLESHEET and self.on_stylesheet is not None:
            await _call(self.on_stylesheet, msg["path"])
        elif outcome is Reaction.RELOAD and self.on_reload is not None:
            await _call(self.on_reload)


async def _call(callback: Callback, *args: Any) -> None:
    result = callback(*args)
    if inspect.isawaitable(result):
        await result
