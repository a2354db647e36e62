"""Live-reload broadcasting: the client registry, its handles, and receivers."""

from afr.realtime.broad import Broad, should_log_err
from afr.realtime.clients import BroadClient, EventClient, EventStreamClient
from afr.realtime.messages import CHANGE, DEINIT, RENAME, Msg, Reaction, change, encode_event_stream, reaction
from afr.realtime.receiver import ReconnectState, Receiver

__all__ = [
    "CHANGE",
    "DEINIT",
    "RENAME",
    "Broad",
    "BroadClient",
    "EventClient",
    "EventStreamClient",
    "Msg",
    "Reaction",
    "ReconnectState",
    "Receiver",
    "change",
    "encode_event_stream",
    "reaction",
    "should_log_err",
]
