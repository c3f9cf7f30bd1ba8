"""Websocket transport to the messaging hub."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, WebSocketException

from messaginghub.lib import oj
from messaginghub.transport.base import (
    Transport,
    TransportError,
    ConnectionError,
    TimeoutError,
    SessionError,
)
from messaginghub.transport.types import (
    TransportConfig,
    TransportEvent,
    TransportEventType,
    validate_uri,
)

logger = logging.getLogger(__name__)


class WebSocketTransport(Transport):
    """
    Websocket transport carrying JSON envelopes in text frames.

    A background reader task decodes every inbound frame and hands it to
    ``on_envelope``. When the socket ends, for any reason, the reader fires
    ``on_close`` once; an abnormal end fires ``on_error`` first.
    """

    def __init__(self, config: TransportConfig | None = None):
        super().__init__(config)
        self._websocket: Any = None
        self._reader_task: asyncio.Task | None = None
        self._uri: str | None = None
        self._closing: bool = False

    @property
    def uri(self) -> str | None:
        """URI of the current or last connection."""
        return self._uri

    async def open(self, uri: str) -> None:
        """Open the websocket and start the reader task."""
        if self._websocket is not None:
            raise ConnectionError("Transport already open")

        try:
            validate_uri(uri)
        except ValueError as e:
            raise ConnectionError(f"Invalid hub uri: {e}", cause=e)

        self._emit_event(
            TransportEvent(
                type=TransportEventType.OPENING,
                timestamp=time.time(),
                data={"uri": uri},
            )
        )

        try:
            websocket = await connect(
                uri,
                subprotocols=self.config.subprotocols,
                additional_headers=self.config.headers or None,
                open_timeout=self.config.open_timeout,
                ping_interval=self.config.ping_interval,
                close_timeout=self.config.close_timeout,
                max_size=self.config.max_size,
            )
        except asyncio.TimeoutError as e:
            raise TimeoutError(f"Opening {uri} timed out", cause=e)
        except (OSError, WebSocketException) as e:
            raise ConnectionError(f"Failed to open {uri}: {e}", cause=e)

        self._websocket = websocket
        self._uri = uri
        self._closing = False
        self._reader_task = asyncio.create_task(
            self._read_loop(websocket),
            name="hub-transport-reader",
        )

        self._emit_event(
            TransportEvent(
                type=TransportEventType.OPENED,
                timestamp=time.time(),
                data={"uri": uri},
            )
        )

    async def close(self) -> None:
        """Close the websocket and wait for the reader to finish."""
        websocket = self._websocket
        if websocket is None:
            return

        self._closing = True
        self._emit_event(
            TransportEvent(
                type=TransportEventType.CLOSING,
                timestamp=time.time(),
            )
        )

        await websocket.close()

        task = self._reader_task
        if task is not None and task is not asyncio.current_task():
            await task

    async def send(self, envelope: dict) -> None:
        """Encode an envelope and send it as a text frame."""
        if self._websocket is None or self._closing:
            raise SessionError("Transport not open")

        try:
            await self._websocket.send(oj.dumps_str(envelope))
        except ConnectionClosed as e:
            raise TransportError(f"Connection closed while sending: {e}", cause=e)

        self._emit_event(
            TransportEvent(
                type=TransportEventType.ENVELOPE_SENT,
                timestamp=time.time(),
                data={"id": envelope.get("id")},
            )
        )

    def is_connected(self) -> bool:
        """Check if the websocket is open."""
        return self._websocket is not None and not self._closing

    async def _read_loop(self, websocket: Any) -> None:
        """Background task delivering inbound envelopes."""
        try:
            async for frame in websocket:
                try:
                    envelope = oj.loads(frame)
                except ValueError as e:
                    logger.warning(f"Dropping malformed frame: {e}")
                    continue

                self._emit_event(
                    TransportEvent(
                        type=TransportEventType.ENVELOPE_RECEIVED,
                        timestamp=time.time(),
                        data={"id": envelope.get("id") if isinstance(envelope, dict) else None},
                    )
                )
                self._call_hook(self.on_envelope, envelope)
        except ConnectionClosed as e:
            if not self._closing:
                logger.warning(f"Connection to {self._uri} lost: {e}")
                self._report_error(e)
        except Exception as e:
            logger.error(f"Transport reader error: {e}")
            self._report_error(e)
        finally:
            if self._websocket is websocket:
                self._websocket = None
            self._reader_task = None
            self._emit_event(
                TransportEvent(
                    type=TransportEventType.CLOSED,
                    timestamp=time.time(),
                )
            )
            self._call_hook(self.on_close)

    def _report_error(self, error: Exception) -> None:
        self._emit_event(
            TransportEvent(
                type=TransportEventType.ERROR,
                timestamp=time.time(),
                error=error,
            )
        )
        self._call_hook(self.on_error, error)

    @staticmethod
    def _call_hook(hook: Callable[..., None], *args: Any) -> None:
        try:
            hook(*args)
        except Exception:
            logger.exception("Transport hook failed")
