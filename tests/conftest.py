"""Pytest configuration and fixtures."""

import asyncio
from dataclasses import dataclass, field

import pytest

from messaginghub.client import MessagingHubClient
from messaginghub.config import HubConfig
from messaginghub.protocol.channel import ProtocolChannel
from messaginghub.protocol.envelopes import (
    Command,
    CommandStatus,
    Message,
    Notification,
    Reason,
    Session,
)
from messaginghub.transport.base import ConnectionError, Transport

# Async test support
pytest_plugins = ["pytest_asyncio"]

HUB_URI = "wss://hub.example.com:443"


class FakeTransport(Transport):
    """In-memory transport recording what the client does with it."""

    def __init__(self):
        super().__init__()
        self.opened: list[str] = []
        self.sent: list[dict] = []
        self.open_error: Exception | None = None
        self.open_gate: asyncio.Event | None = None
        self.closed = False
        self._connected = False

    async def open(self, uri: str) -> None:
        self.opened.append(uri)
        if self.open_gate is not None:
            await self.open_gate.wait()
        if self.open_error is not None:
            raise self.open_error
        self._connected = True

    async def close(self) -> None:
        if not self._connected:
            return
        self._connected = False
        self.closed = True
        self.on_close()

    async def send(self, envelope: dict) -> None:
        self.sent.append(envelope)

    def is_connected(self) -> bool:
        return self._connected

    def lose(self) -> None:
        """Simulate the hub dropping the connection."""
        self._connected = False
        self.on_error(ConnectionError("connection reset"))
        self.on_close()


@dataclass
class ChannelScript:
    """How fake channels answer the client."""

    session_error: Exception | None = None
    failing_uris: set[str] = field(default_factory=set)
    auto_respond: bool = True


class FakeChannel(ProtocolChannel):
    """Channel that answers handshakes and commands from a script."""

    sessions = 0

    def __init__(self, transport, auto_reply_pings, auto_fill_envelopes, script=None):
        super().__init__(transport, auto_reply_pings, auto_fill_envelopes)
        self.script = script or ChannelScript()
        self.handshakes: list[tuple] = []
        self.messages: list[Message] = []
        self.notifications: list[Notification] = []
        self.commands: list[Command] = []
        self.finished = False

    async def establish_session(self, encryption, compression, identity, authentication, instance):
        self.handshakes.append((encryption, compression, identity, authentication, instance))
        if self.script.session_error is not None:
            raise self.script.session_error
        FakeChannel.sessions += 1
        return Session(id=f"S{FakeChannel.sessions}")

    def send_message(self, message):
        self.messages.append(message)

    def send_notification(self, notification):
        self.notifications.append(notification)

    def send_command(self, command):
        self.commands.append(command)
        if not self.script.auto_respond:
            return
        if command.uri in self.script.failing_uris:
            response = Command(
                id=command.id,
                method=command.method,
                status=CommandStatus.FAILURE,
                reason=Reason(code=67, description="Refused"),
            )
        else:
            response = Command(id=command.id, method=command.method, status=CommandStatus.SUCCESS)
        asyncio.get_running_loop().call_soon(self.on_command, response)

    async def send_finishing_session(self):
        self.finished = True

    def events_for(self, message_id):
        return [str(n.event) for n in self.notifications if n.id == message_id]


@pytest.fixture(autouse=True)
def reset_sessions():
    FakeChannel.sessions = 0


@pytest.fixture
def script():
    return ChannelScript()


@pytest.fixture
def transports():
    return []


@pytest.fixture
def channels():
    return []


@pytest.fixture
def hub_config():
    return HubConfig(uri=HUB_URI, reconnect_delay=0.01)


@pytest.fixture
def make_client(transports, channels, script, hub_config):
    """Build clients wired to fake transports and channels."""

    def transport_factory():
        transport = FakeTransport()
        transports.append(transport)
        return transport

    def channel_factory(transport, auto_reply_pings, auto_fill_envelopes):
        channel = FakeChannel(transport, auto_reply_pings, auto_fill_envelopes, script)
        channels.append(channel)
        return channel

    def make(uri=HUB_URI, config=None, shared_transport=False):
        factory = transport_factory() if shared_transport else transport_factory
        return MessagingHubClient(uri, factory, channel_factory, config or hub_config)

    return make


@pytest.fixture
def client(make_client):
    return make_client()
