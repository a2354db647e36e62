"""Broadcast messages and how receivers react to them.

A message is a JSON object ``{"type": ..., "path": ..., "key": ...}``.
The hub never inspects it beyond serializing; receivers match ``key``
against their own and react to ``type``.
"""

import json as json_module
import re
from collections.abc import Mapping
from enum import StrEnum
from typing import Any

type Msg = Mapping[str, Any]

CHANGE = "change"
RENAME = "rename"
DEINIT = "deinit"

# Same shape as the browser client: last dot-segment after at least one char
_EXT_RE = re.compile(r".([.][^.]+)$")


class Reaction(StrEnum):
    """What a receiver does with a change notification."""

    STYLESHEET = "stylesheet"
    IGNORE = "ignore"
    RELOAD = "reload"
    # Server asked the receiver to drop its connection and open a new one
    RECONNECT = "reconnect"


def change(path: str, *, kind: str = CHANGE, key: str | None = None) -> dict[str, Any]:
    """Build a change notification for *path*."""
    msg: dict[str, Any] = {"type": kind, "path": path}
    if key is not None:
        msg["key"] = key
    return msg


def encode_json(msg: Msg) -> bytes:
    """Serialize *msg* as compact UTF-8 JSON."""
    return json_module.dumps(msg, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def frame_event(data: bytes) -> bytes:
    """Wrap serialized JSON as one event-stream frame."""
    return b"data: " + data + b"\n\n"


def encode_event_stream(msg: Msg) -> bytes:
    """Serialize *msg* as one ``data: <json>`` event-stream frame."""
    return frame_event(encode_json(msg))


def ext_name(path: str | None) -> str:
    match = _EXT_RE.search(path or "")
    return match.group(1) if match else ""


def reaction(msg: Msg) -> Reaction | None:
    """Content-reaction policy for change notifications.

    ``None`` for messages that are not ``change``/``rename``.
    """
    if msg.get("type") not in (CHANGE, RENAME):
        return None
    extension = ext_name(msg.get("path"))
    if extension == ".css":
        return Reaction.STYLESHEET
    if extension == ".map":
        return Reaction.IGNORE
    return Reaction.RELOAD

