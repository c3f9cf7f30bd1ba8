"""Transport layer types and configuration."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any
from urllib.parse import urlparse


class TransportEventType(Enum):
    """Types of transport events for observability."""

    OPENING = auto()
    OPENED = auto()
    CLOSING = auto()
    CLOSED = auto()
    ENVELOPE_SENT = auto()
    ENVELOPE_RECEIVED = auto()
    ERROR = auto()


@dataclass
class TransportEvent:
    """Event emitted by transport for observability."""

    type: TransportEventType
    timestamp: float
    data: dict[str, Any] | None = None
    error: Exception | None = None

    def __str__(self) -> str:
        base = f"[{self.type.name}]"
        if self.data:
            base += f" {self.data}"
        if self.error:
            base += f" error={self.error}"
        return base


@dataclass
class TransportConfig:
    """Configuration for the websocket transport."""

    open_timeout: float = 10.0
    """Timeout for the opening handshake in seconds."""

    ping_interval: float | None = 20.0
    """Keepalive ping interval in seconds (None disables pings)."""

    close_timeout: float = 10.0
    """Timeout for the closing handshake in seconds."""

    max_size: int | None = 2**20
    """Maximum size of an inbound frame in bytes."""

    subprotocols: list[str] = field(default_factory=lambda: ["lime"])
    """Websocket subprotocols offered to the hub."""

    headers: dict[str, str] = field(default_factory=dict)
    """Additional headers sent with the opening handshake."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.open_timeout <= 0:
            raise ValueError("open_timeout must be positive")
        if self.close_timeout <= 0:
            raise ValueError("close_timeout must be positive")
        if self.ping_interval is not None and self.ping_interval <= 0:
            raise ValueError("ping_interval must be positive")
        if self.max_size is not None and self.max_size < 1:
            raise ValueError("max_size must be at least 1")


def validate_uri(uri: str) -> str:
    """
    Check a hub URI before opening it.

    ``wss://`` is accepted for any host; ``ws://`` only for localhost.

    Raises:
        ValueError: If the URI is empty or not allowed.
    """
    if not uri:
        raise ValueError("uri is required")
    parsed = urlparse(uri)
    if parsed.scheme == "wss":
        return uri
    if parsed.scheme == "ws":
        host = parsed.hostname or ""
        if host in ("localhost", "127.0.0.1", "::1", "[::1]"):
            return uri
        raise ValueError("Remote connections must use wss://")
    raise ValueError(f"Unsupported uri scheme: {parsed.scheme!r}")
