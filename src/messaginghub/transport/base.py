"""Abstract base transport and error types."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable

from messaginghub.transport.types import TransportConfig, TransportEvent

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Base exception for transport errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class ConnectionError(TransportError):
    """Failed to open the connection to the hub."""

    pass


class TimeoutError(TransportError):
    """Opening the connection timed out."""

    pass


class SessionError(TransportError):
    """Send attempted while the transport is not open."""

    pass


def _noop(*args: Any) -> None:
    pass


class Transport(ABC):
    """
    Abstract base class for hub transports.

    Transports open and close the network connection and move envelope
    dicts in both directions. Owners observe the connection through three
    settable hooks, all called on the event loop:

    - ``on_envelope(envelope)`` for every inbound envelope
    - ``on_error(exc)`` when the connection fails
    - ``on_close()`` when the connection ends, whether closed explicitly
      or lost
    """

    def __init__(self, config: TransportConfig | None = None):
        self.config = config or TransportConfig()
        self.on_envelope: Callable[[dict], None] = _noop
        self.on_error: Callable[[Exception | None], None] = _noop
        self.on_close: Callable[[], None] = _noop
        self._event_handlers: list[Callable[[TransportEvent], None]] = []

    def on_event(self, handler: Callable[[TransportEvent], None]) -> None:
        """
        Register an event handler for transport events.

        Args:
            handler: Callback invoked when transport events occur.
        """
        self._event_handlers.append(handler)

    def _emit_event(self, event: TransportEvent) -> None:
        """Emit an event to all registered handlers."""
        for handler in self._event_handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Transport event handler failed for {event}")

    @abstractmethod
    async def open(self, uri: str) -> None:
        """
        Open the connection to the hub.

        Raises:
            ConnectionError: If the connection cannot be established.
            TimeoutError: If the opening handshake times out.
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """
        Close the connection.

        Safe to call multiple times. ``on_close`` fires once the connection
        is down.
        """
        pass

    @abstractmethod
    async def send(self, envelope: dict) -> None:
        """
        Send an envelope to the hub.

        Raises:
            SessionError: If the transport is not open.
            TransportError: If the send fails.
        """
        pass

    @abstractmethod
    def is_connected(self) -> bool:
        """Check if the transport is open."""
        pass
