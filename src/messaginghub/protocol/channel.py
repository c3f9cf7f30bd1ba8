"""Abstract client channel consumed by the hub client."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Callable

from messaginghub.protocol.envelopes import (
    Command,
    Message,
    Notification,
    Session,
    SessionCompression,
    SessionEncryption,
)

if TYPE_CHECKING:
    from messaginghub.authentication import AuthenticationStrategy
    from messaginghub.transport.base import Transport

MessageHook = Callable[[Message], None]
NotificationHook = Callable[[Notification], None]
CommandHook = Callable[[Command], None]


def _ignore(envelope: object) -> None:
    pass


class ProtocolChannel(ABC):
    """
    Session-level channel over a transport.

    Implementations own the handshake wire format and envelope
    serialization. The hub client only drives the session through
    ``establish_session``/``send_finishing_session``, sends envelopes
    fire-and-forget, and sets the ``on_*`` hooks to receive inbound traffic.
    Hooks are invoked on the event loop in arrival order.
    """

    def __init__(
        self,
        transport: "Transport",
        auto_reply_pings: bool = True,
        auto_fill_envelopes: bool = False,
    ):
        """
        Initialize the channel.

        Args:
            transport: Transport the channel reads from and writes to.
            auto_reply_pings: Answer hub ping commands and start listening
                for inbound envelopes automatically.
            auto_fill_envelopes: Fill missing ``from``/``to`` on outgoing
                envelopes with the session's nodes.
        """
        self.transport = transport
        self.auto_reply_pings = auto_reply_pings
        self.auto_fill_envelopes = auto_fill_envelopes
        self.on_message: MessageHook = _ignore
        self.on_notification: NotificationHook = _ignore
        self.on_command: CommandHook = _ignore

    @abstractmethod
    async def establish_session(
        self,
        encryption: SessionEncryption,
        compression: SessionCompression,
        identity: str,
        authentication: "AuthenticationStrategy",
        instance: str,
    ) -> Session:
        """
        Run the session handshake.

        Returns:
            The established session.

        Raises:
            Exception: Any failure of the handshake, including the hub
                answering with a failed session.
        """

    @abstractmethod
    def send_message(self, message: Message) -> None:
        """Send a message without waiting."""

    @abstractmethod
    def send_notification(self, notification: Notification) -> None:
        """Send a notification without waiting."""

    @abstractmethod
    def send_command(self, command: Command) -> None:
        """Send a command without waiting for its response."""

    @abstractmethod
    async def send_finishing_session(self) -> None:
        """Ask the hub to finish the current session."""


ChannelFactory = Callable[["Transport", bool, bool], ProtocolChannel]
