"""
Hub Transport Layer.

Defines the transport contract used by the client channel and a
websocket implementation of it.
"""

from messaginghub.transport.types import (
    TransportConfig,
    TransportEvent,
    TransportEventType,
    validate_uri,
)
from messaginghub.transport.base import Transport, TransportError, ConnectionError, TimeoutError, SessionError
from messaginghub.transport.websocket import WebSocketTransport

__all__ = [
    "Transport",
    "TransportConfig",
    "TransportEvent",
    "TransportEventType",
    "TransportError",
    "ConnectionError",
    "TimeoutError",
    "SessionError",
    "WebSocketTransport",
    "validate_uri",
]
