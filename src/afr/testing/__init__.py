"""Test utilities for afr applications.

Provides an in-process ASGI test client with support for long-lived
streams, and event-stream frame parsing::

    from afr.testing import TestClient, parse_sse_frames
"""

from afr.testing.client import StreamConnection, TestClient
from afr.testing.sse import EventFrame, parse_sse_frames

__all__ = [
    "EventFrame",
    "StreamConnection",
    "TestClient",
    "parse_sse_frames",
]
