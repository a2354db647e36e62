"""Broadcaster and app configuration.

Frozen dataclasses: immutable after creation, no string-key dict lookups.
The default header and content-type tables are read-only mappings, so
several independent hubs can share a process without shared mutable state.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

DEFAULT_NAMESPACE = "/afr/"
DEFAULT_HOSTNAME = "localhost"

CONTENT_TYPES: Mapping[str, str] = MappingProxyType({
    ".css": "text/css",
    ".gif": "image/gif",
    ".htm": "text/html",
    ".html": "text/html",
    ".ico": "image/x-icon",
    ".jpeg": "image/jpeg",
    ".jpg": "image/jpeg",
    ".js": "application/javascript",
    ".json": "application/json",
    ".mjs": "application/javascript",
    ".pdf": "application/pdf",
    ".png": "image/png",
    ".svg": "image/svg+xml",
    ".tif": "image/tiff",
    ".tiff": "image/tiff",
    ".xml": "text/xml",
    ".zip": "application/zip",
    ".webp": "image/webp",
    ".woff": "font/woff",
    ".woff2": "font/woff2",
})

CORS_HEADERS: Mapping[str, str] = MappingProxyType({
    "access-control-allow-credentials": "true",
    "access-control-allow-headers": "content-type",
    "access-control-allow-methods": "OPTIONS, HEAD, GET, POST",
    "access-control-allow-origin": "*",
})


def normalize_namespace(namespace: str) -> str:
    """``afr`` / ``/afr`` / ``/afr/`` all become ``/afr/``."""
    stripped = namespace.replace("\\", "/").strip("/")
    return f"/{stripped}/" if stripped else "/"


@dataclass(frozen=True, slots=True)
class BroadConfig:
    """Configuration of one broadcaster (``Broad``).

    Override what you need::

        BroadConfig(namespace="/reload/", reconnect_delay_ms=500)
    """

    namespace: str = DEFAULT_NAMESPACE
    verbose: bool = False

    # Client script: fixed retry delay and retry budget after a successful open
    reconnect_delay_ms: int = 1024
    reconnect_attempts: int = 8

    # Per-client buffered messages; a full buffer makes delivery wait
    client_buffer: int = 64
    # A delivery still waiting after this long drops the client
    delivery_timeout_ms: int = 5000

    cors_headers: Mapping[str, str] = field(default=CORS_HEADERS)
    content_types: Mapping[str, str] = field(default=CONTENT_TYPES)

    def __post_init__(self) -> None:
        if self.client_buffer < 1:
            msg = f"client_buffer must be at least 1, got {self.client_buffer}"
            raise ValueError(msg)
        if self.delivery_timeout_ms <= 0:
            msg = f"delivery_timeout_ms must be positive, got {self.delivery_timeout_ms}"
            raise ValueError(msg)
        object.__setattr__(self, "namespace", normalize_namespace(self.namespace))
        object.__setattr__(self, "cors_headers", MappingProxyType(dict(self.cors_headers)))
        object.__setattr__(self, "content_types", MappingProxyType(dict(self.content_types)))


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Configuration of the all-in-one development app.

    All fields have sensible defaults::

        AppConfig(port=3000, not_found_page="missing.html")
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Broadcaster
    broad: BroadConfig = field(default_factory=BroadConfig)

    # Files
    not_found_page: str = "404.html"

    # Watcher
    watch_debounce_ms: int = 50

    # Put error text into 500 bodies
    debug: bool = False
