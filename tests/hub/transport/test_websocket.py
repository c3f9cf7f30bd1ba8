"""Tests for the websocket transport."""

import asyncio
import json
from unittest.mock import AsyncMock, patch

import pytest
from websockets.exceptions import ConnectionClosedError

from messaginghub.transport import (
    ConnectionError,
    SessionError,
    TimeoutError as TransportTimeoutError,
    TransportConfig,
    TransportEventType,
    WebSocketTransport,
    validate_uri,
)

URI = "wss://hub.example.com:443"


class FakeWebSocket:
    """Stands in for a websockets client connection."""

    def __init__(self):
        self.frames: asyncio.Queue = asyncio.Queue()
        self.sent: list[str] = []
        self.closed = False

    def __aiter__(self):
        return self

    async def __anext__(self):
        item = await self.frames.get()
        if item is None:
            raise StopAsyncIteration
        if isinstance(item, Exception):
            raise item
        return item

    async def send(self, data):
        self.sent.append(data)

    async def close(self):
        self.closed = True
        await self.frames.put(None)


async def settle():
    for _ in range(5):
        await asyncio.sleep(0)


class TestTransportConfig:
    """Tests for TransportConfig validation."""

    def test_defaults(self):
        config = TransportConfig()
        assert config.subprotocols == ["lime"]
        assert config.open_timeout == 10.0

    def test_invalid_open_timeout_rejected(self):
        with pytest.raises(ValueError, match="open_timeout must be positive"):
            TransportConfig(open_timeout=0)

    def test_invalid_ping_interval_rejected(self):
        with pytest.raises(ValueError, match="ping_interval"):
            TransportConfig(ping_interval=-1)

    def test_ping_can_be_disabled(self):
        assert TransportConfig(ping_interval=None).ping_interval is None

    def test_invalid_max_size_rejected(self):
        with pytest.raises(ValueError, match="max_size"):
            TransportConfig(max_size=0)


class TestValidateUri:
    """Tests for hub URI validation."""

    def test_wss_allowed(self):
        assert validate_uri(URI) == URI

    def test_localhost_ws_allowed(self):
        assert validate_uri("ws://localhost:8080") == "ws://localhost:8080"
        assert validate_uri("ws://127.0.0.1:8080") == "ws://127.0.0.1:8080"

    def test_remote_ws_rejected(self):
        with pytest.raises(ValueError, match="must use wss"):
            validate_uri("ws://hub.example.com")

    def test_empty_rejected(self):
        with pytest.raises(ValueError, match="uri is required"):
            validate_uri("")

    def test_other_scheme_rejected(self):
        with pytest.raises(ValueError, match="Unsupported"):
            validate_uri("https://hub.example.com")


class TestWebSocketTransport:
    """Tests for WebSocketTransport."""

    @pytest.fixture
    def websocket(self):
        return FakeWebSocket()

    @pytest.fixture
    def connect(self, websocket):
        with patch(
            "messaginghub.transport.websocket.connect",
            new=AsyncMock(return_value=websocket),
        ) as mock:
            yield mock

    @pytest.fixture
    def transport(self):
        return WebSocketTransport(TransportConfig(headers={"X-Client": "tests"}))

    @pytest.mark.asyncio
    async def test_open(self, transport, connect):
        await transport.open(URI)

        assert transport.is_connected()
        assert transport.uri == URI
        connect.assert_awaited_once()
        args, kwargs = connect.call_args
        assert args == (URI,)
        assert kwargs["subprotocols"] == ["lime"]
        assert kwargs["additional_headers"] == {"X-Client": "tests"}

        await transport.close()

    @pytest.mark.asyncio
    async def test_open_twice_rejected(self, transport, connect):
        await transport.open(URI)

        with pytest.raises(ConnectionError, match="already open"):
            await transport.open(URI)

        await transport.close()

    @pytest.mark.asyncio
    async def test_invalid_uri_rejected_before_connecting(self, transport, connect):
        with pytest.raises(ConnectionError, match="Invalid hub uri"):
            await transport.open("ws://hub.example.com")
        connect.assert_not_called()

    @pytest.mark.asyncio
    async def test_connect_failure(self, transport):
        with patch(
            "messaginghub.transport.websocket.connect",
            new=AsyncMock(side_effect=OSError("refused")),
        ):
            with pytest.raises(ConnectionError) as exc_info:
                await transport.open(URI)

        assert isinstance(exc_info.value.cause, OSError)
        assert not transport.is_connected()

    @pytest.mark.asyncio
    async def test_connect_timeout(self, transport):
        with patch(
            "messaginghub.transport.websocket.connect",
            new=AsyncMock(side_effect=asyncio.TimeoutError()),
        ):
            with pytest.raises(TransportTimeoutError):
                await transport.open(URI)

    @pytest.mark.asyncio
    async def test_inbound_frames_reach_hook(self, transport, connect, websocket):
        envelopes = []
        transport.on_envelope = envelopes.append
        await transport.open(URI)

        await websocket.frames.put('{"id": "1", "type": "text/plain", "content": "hi"}')
        await websocket.frames.put("not json")
        await websocket.frames.put('{"id": "2", "event": "received"}')
        await settle()

        assert [e["id"] for e in envelopes] == ["1", "2"]
        await transport.close()

    @pytest.mark.asyncio
    async def test_send_encodes_json_text(self, transport, connect, websocket):
        await transport.open(URI)

        await transport.send({"id": "1", "method": "get", "uri": "/ping"})

        assert json.loads(websocket.sent[0]) == {"id": "1", "method": "get", "uri": "/ping"}
        assert isinstance(websocket.sent[0], str)
        await transport.close()

    @pytest.mark.asyncio
    async def test_send_requires_connection(self, transport):
        with pytest.raises(SessionError, match="not open"):
            await transport.send({"id": "1"})

    @pytest.mark.asyncio
    async def test_close_fires_on_close_once(self, transport, connect, websocket):
        closes, errors = [], []
        transport.on_close = lambda: closes.append(True)
        transport.on_error = errors.append
        await transport.open(URI)

        await transport.close()
        await transport.close()

        assert websocket.closed
        assert closes == [True]
        assert errors == []
        assert not transport.is_connected()

    @pytest.mark.asyncio
    async def test_connection_loss_fires_error_then_close(self, transport, connect, websocket):
        calls = []
        transport.on_error = lambda e: calls.append(("error", e))
        transport.on_close = lambda: calls.append(("close", None))
        await transport.open(URI)

        lost = ConnectionClosedError(None, None)
        await websocket.frames.put(lost)
        await settle()

        assert calls == [("error", lost), ("close", None)]
        assert not transport.is_connected()

    @pytest.mark.asyncio
    async def test_hook_errors_are_contained(self, transport, connect, websocket):
        def broken(envelope):
            raise RuntimeError("bad hook")

        envelopes = []
        transport.on_envelope = broken
        await transport.open(URI)
        await websocket.frames.put('{"id": "1"}')
        await settle()

        transport.on_envelope = envelopes.append
        await websocket.frames.put('{"id": "2"}')
        await settle()

        assert [e["id"] for e in envelopes] == ["2"]
        await transport.close()

    @pytest.mark.asyncio
    async def test_event_emission(self, transport, connect):
        events = []
        transport.on_event(lambda e: events.append(e))

        await transport.open(URI)
        await transport.send({"id": "1"})
        await transport.close()

        event_types = [e.type for e in events]
        assert event_types == [
            TransportEventType.OPENING,
            TransportEventType.OPENED,
            TransportEventType.ENVELOPE_SENT,
            TransportEventType.CLOSING,
            TransportEventType.CLOSED,
        ]
