"""Messaging hub client: connection lifecycle and dispatch."""

from __future__ import annotations

import asyncio
import functools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

from messaginghub.authentication import (
    AuthenticationStrategy,
    GuestAuthentication,
    select_authentication,
)
from messaginghub.commands import CommandCorrelator
from messaginghub.config import HubConfig
from messaginghub.negotiation import SessionNegotiator
from messaginghub.protocol.channel import ChannelFactory, ProtocolChannel
from messaginghub.protocol.envelopes import (
    Command,
    Message,
    Notification,
    Session,
    SessionCompression,
    SessionEncryption,
)
from messaginghub.protocol.errors import HandshakeFailure, InvalidArgument
from messaginghub.protocol.state import ConnectionState, ConnectionStateMachine
from messaginghub.receivers import ReceiverRegistry, Unsubscribe
from messaginghub.transport.base import Transport

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], Transport]


@dataclass(frozen=True)
class ConnectionAttempt:
    """
    Parameters of the last explicit connect call.

    Replayed verbatim whenever the client reconnects after the transport
    closes.
    """

    identifier: str
    authentication: AuthenticationStrategy
    routing_rule: str
    instance: str = ""


class MessagingHubClient:
    """
    Client for the messaging hub.

    Connects with guest, password or key credentials, negotiates presence
    and delivery receipts, routes inbound messages and notifications to
    registered receivers, and correlates command responses. When the
    transport closes, the client rebuilds it after ``reconnect_delay`` and
    replays the last connect call.
    """

    def __init__(
        self,
        uri: str | None,
        transport_factory: TransportFactory | Transport,
        channel_factory: ChannelFactory,
        config: HubConfig | None = None,
    ):
        """
        Initialize the client.

        Args:
            uri: Hub URI (defaults to ``config.uri``).
            transport_factory: Callable building a new transport, or a
                single transport instance reused on reconnect.
            channel_factory: Callable building a channel over a transport.
            config: Client settings.
        """
        self.config = config or HubConfig()
        self._uri = uri or self.config.uri
        if callable(transport_factory):
            self._transport_factory = transport_factory
        else:
            self._transport_factory = lambda: transport_factory
        self._channel_factory = channel_factory
        self._routing_rule = self.config.routing_rule

        self._state = ConnectionStateMachine()
        self._correlator = CommandCorrelator(self._send_command_envelope)
        self._receivers = ReceiverRegistry(
            self.send_notification,
            notify_consumed=self.config.notify_consumed,
        )
        self._negotiator = SessionNegotiator(
            self._correlator,
            presence_status=self.config.presence_status,
            receipt_events=self.config.receipt_events,
        )

        self._attempt: ConnectionAttempt | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._reconnect_task: asyncio.Task | None = None
        self._handshake: asyncio.Task | None = None
        self._reconnect_suppressed = False

        self._transport = self._transport_factory()
        self._channel: ProtocolChannel
        self._initialize_channel()

    @property
    def uri(self) -> str:
        return self._uri

    @property
    def transport(self) -> Transport:
        """Current transport; replaced on every reconnect."""
        return self._transport

    @property
    def channel(self) -> ProtocolChannel:
        return self._channel

    @property
    def listening(self) -> bool:
        """True while the session is established and negotiated."""
        return self._state.is_listening

    @property
    def state(self) -> ConnectionState:
        """Current connection state."""
        return self._state.state

    @property
    def attempt(self) -> ConnectionAttempt | None:
        """Connect call that will be replayed on reconnect."""
        return self._attempt

    @property
    def routing_rule(self) -> str:
        return self._routing_rule

    def on_state_change(
        self,
        callback: Callable[[ConnectionState, ConnectionState], None],
    ) -> None:
        """Register callback for state changes."""
        self._state.on_transition(callback)

    def connect_with_guest(self, identifier: str) -> Awaitable[Session]:
        """
        Connect as a guest.

        Arguments are checked before the returned coroutine is awaited.

        Raises:
            InvalidArgument: If identifier is empty.
            HandshakeFailure: If the transport or session handshake fails.
            CommandFailure: If presence or receipt negotiation fails.
        """
        if not identifier:
            raise InvalidArgument("The identifier is required")
        return self._connect(
            ConnectionAttempt(
                identifier=identifier,
                authentication=GuestAuthentication(),
                routing_rule=self._routing_rule,
                instance=self.config.instance,
            )
        )

    def connect_with_password(
        self,
        identifier: str,
        password: str,
        routing_rule: str | None = None,
    ) -> Awaitable[Session]:
        """
        Connect with a password.

        ``routing_rule`` replaces the client's routing rule for this and
        every later connect call and reconnect. Arguments are checked before
        the returned coroutine is awaited.

        Raises:
            InvalidArgument: If identifier or password is empty.
            HandshakeFailure: If the transport or session handshake fails.
            CommandFailure: If presence or receipt negotiation fails.
        """
        if not identifier:
            raise InvalidArgument("The identifier is required")
        if not password:
            raise InvalidArgument("The password is required")
        return self._connect(
            ConnectionAttempt(
                identifier=identifier,
                authentication=select_authentication(password=password),
                routing_rule=routing_rule or self._routing_rule,
                instance=self.config.instance,
            )
        )

    def connect_with_key(
        self,
        identifier: str,
        key: str,
        routing_rule: str | None = None,
    ) -> Awaitable[Session]:
        """
        Connect with an access key.

        Raises:
            InvalidArgument: If identifier or key is empty.
            HandshakeFailure: If the transport or session handshake fails.
            CommandFailure: If presence or receipt negotiation fails.
        """
        if not identifier:
            raise InvalidArgument("The identifier is required")
        if not key:
            raise InvalidArgument("The key is required")
        return self._connect(
            ConnectionAttempt(
                identifier=identifier,
                authentication=select_authentication(key=key),
                routing_rule=routing_rule or self._routing_rule,
                instance=self.config.instance,
            )
        )

    async def close(self) -> None:
        """
        Finish the session.

        Automatic reconnection stays off until the next connect call.
        """
        self._reconnect_suppressed = True
        self._cancel_reconnect_timer()
        await self._channel.send_finishing_session()

    async def aclose(self) -> None:
        """Finish the session if any, fail pending commands and close the transport."""
        if self.listening:
            await self.close()
        self._reconnect_suppressed = True
        self._cancel_reconnect_timer()

        if self._reconnect_task and not self._reconnect_task.done():
            self._reconnect_task.cancel()
            try:
                await self._reconnect_task
            except asyncio.CancelledError:
                pass
            self._reconnect_task = None

        self._correlator.cancel_all()
        await self._transport.close()

    def send_message(self, message: Message) -> None:
        self._channel.send_message(message)

    def send_notification(self, notification: Notification) -> None:
        self._channel.send_notification(notification)

    async def send_command(
        self,
        command: Command,
        timeout: float | None = None,
    ) -> Command:
        """
        Send a command and wait for its response.

        Args:
            command: Command to send; ``command.id`` must not be pending.
            timeout: Response timeout (defaults to ``config.command_timeout``).

        Returns:
            The successful response.

        Raises:
            CommandFailure: If the response status is not success.
        """
        if timeout is None:
            timeout = self.config.command_timeout
        return await self._correlator.send(command, timeout=timeout)

    def add_message_receiver(
        self,
        predicate: Any,
        callback: Callable[[Message], Any],
    ) -> Unsubscribe:
        return self._receivers.add_message_receiver(predicate, callback)

    def add_notification_receiver(
        self,
        predicate: Any,
        callback: Callable[[Notification], Any],
    ) -> Unsubscribe:
        return self._receivers.add_notification_receiver(predicate, callback)

    def clear_message_receivers(self) -> None:
        self._receivers.clear_message_receivers()

    def clear_notification_receivers(self) -> None:
        self._receivers.clear_notification_receivers()

    async def _connect(self, attempt: ConnectionAttempt) -> Session:
        self._attempt = attempt
        self._routing_rule = attempt.routing_rule
        self._reconnect_suppressed = False

        if self._state.is_disconnected:
            return await self._start_handshake(attempt)

        logger.info(
            f"Connect as {attempt.identifier} while {self._state.state}; "
            "it will be replayed on the next reconnect"
        )
        return await asyncio.shield(self._handshake)

    def _start_handshake(self, attempt: ConnectionAttempt) -> asyncio.Task:
        self._state.transition(ConnectionState.CONNECTING)
        self._handshake = asyncio.create_task(self._run(attempt), name="hub-handshake")
        return self._handshake

    async def _run(self, attempt: ConnectionAttempt) -> Session:
        """Open, authenticate and negotiate, ending in LISTENING."""
        transport, channel = self._transport, self._channel
        identity = f"{attempt.identifier}@{self.config.domain}"

        try:
            await transport.open(self._uri)
            self._advance(channel, ConnectionState.AUTHENTICATING)
            session = await channel.establish_session(
                SessionEncryption.NONE,
                SessionCompression.NONE,
                identity,
                attempt.authentication,
                attempt.instance,
            )
            self._advance(channel, ConnectionState.NEGOTIATING)
        except Exception as e:
            self._drop(channel)
            raise HandshakeFailure(
                f"Failed to establish session as {identity}: {e}",
                cause=e,
            ) from e

        logger.info(f"Session {session.id} established as {identity}")

        try:
            await self._negotiator.negotiate(
                attempt.routing_rule,
                timeout=self.config.command_timeout,
            )
            self._advance(channel, ConnectionState.LISTENING)
        except Exception:
            self._drop(channel)
            raise

        return session

    def _advance(self, channel: ProtocolChannel, state: ConnectionState) -> None:
        if channel is not self._channel:
            raise HandshakeFailure("Connection was replaced by a reconnect")
        self._state.transition(state)

    def _initialize_channel(self) -> None:
        """Hook the client to the current transport through a new channel."""
        transport = self._transport
        transport.on_error = functools.partial(self._on_transport_error, transport)
        transport.on_close = functools.partial(self._on_transport_close, transport)

        channel = self._channel_factory(transport, True, False)
        channel.on_message = self._receivers.dispatch_message
        channel.on_notification = self._receivers.dispatch_notification
        channel.on_command = self._on_command
        self._channel = channel

    def _on_command(self, command: Command) -> None:
        self._correlator.resolve(command)

    def _send_command_envelope(self, command: Command) -> None:
        self._channel.send_command(command)

    def _drop(self, channel: ProtocolChannel | None = None) -> None:
        # A handshake superseded by a reconnect must not touch the new state
        if channel is not None and channel is not self._channel:
            return
        if not self._state.is_disconnected:
            self._state.transition(ConnectionState.DISCONNECTED)

    def _lose(self) -> None:
        self._drop()
        self._correlator.cancel_all("Transport lost")

    def _on_transport_error(self, transport: Transport, error: Exception | None = None) -> None:
        if transport is not self._transport:
            return
        logger.warning(f"Transport error on {self._uri}: {error}")
        self._lose()

    def _on_transport_close(self, transport: Transport) -> None:
        if transport is not self._transport:
            logger.debug("Ignoring close of a replaced transport")
            return

        self._lose()
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if not self.config.auto_reconnect or self._reconnect_suppressed:
            logger.info(f"Not reconnecting to {self._uri}")
            return

        self._cancel_reconnect_timer()
        delay = self.config.reconnect_delay
        logger.info(f"Reconnecting to {self._uri} in {delay}s")
        self._reconnect_handle = asyncio.get_running_loop().call_later(
            delay, self._start_reconnect
        )

    def _cancel_reconnect_timer(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _start_reconnect(self) -> None:
        self._reconnect_handle = None
        self._reconnect_task = asyncio.create_task(
            self._reconnect(),
            name="hub-reconnect",
        )

    async def _reconnect(self) -> None:
        """Rebuild transport and channel, then replay the last connect call."""
        if not self._state.is_disconnected:
            logger.debug(f"Skipping reconnect while {self._state.state}")
            return

        self._transport = self._transport_factory()
        self._initialize_channel()

        attempt = self._attempt
        if attempt is None:
            return

        try:
            session = await self._start_handshake(attempt)
        except Exception as e:
            logger.error(f"Reconnect as {attempt.identifier} failed: {e}")
            if self._state.is_disconnected:
                self._schedule_reconnect()
            return
        logger.info(f"Reconnected with session {session.id}")

    async def __aenter__(self) -> "MessagingHubClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()
