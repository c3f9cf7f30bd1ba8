"""Command request/response correlation."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Callable

from messaginghub.protocol.envelopes import Command
from messaginghub.protocol.errors import CommandFailure, CommandTimeout

logger = logging.getLogger(__name__)


@dataclass
class PendingCommand:
    """A sent command waiting for its response."""

    command: Command
    future: asyncio.Future[Command]


class CommandCorrelator:
    """
    Matches inbound command responses to the commands that caused them.

    Each sent command parks a future under its ``id`` until a response with
    the same ``id`` arrives. Identifiers are chosen by the caller and must be
    unique among pending commands: sending a second command with a pending
    ``id`` replaces the first entry, and the first caller is never resolved
    (unless it set a timeout).
    """

    def __init__(self, send_command: Callable[[Command], None]):
        """
        Initialize the correlator.

        Args:
            send_command: Fire-and-forget send of a command envelope.
        """
        self._send_command = send_command
        self._pending: dict[str, PendingCommand] = {}

    @property
    def pending(self) -> int:
        """Number of commands awaiting a response."""
        return len(self._pending)

    async def send(self, command: Command, timeout: float | None = None) -> Command:
        """
        Send a command and wait for its response.

        Args:
            command: The command to send; its ``id`` keys the response.
            timeout: Seconds to wait for the response (None waits forever).

        Returns:
            The response command, when its status is success.

        Raises:
            CommandFailure: The response status is not success.
            CommandTimeout: No response arrived within ``timeout``.
        """
        entry = self._register(command)

        try:
            self._send_command(command)
            if timeout is None:
                return await entry.future
            return await asyncio.wait_for(entry.future, timeout=timeout)
        except asyncio.TimeoutError:
            raise CommandTimeout(command, timeout) from None
        finally:
            # Drop the entry only if it still belongs to this call
            if self._pending.get(command.id) is entry:
                del self._pending[command.id]

    def resolve(self, command: Command) -> bool:
        """
        Complete the pending command matching an inbound command.

        The entry is removed before the waiting caller is woken, so a
        response can resolve its command at most once.

        Returns:
            True if a pending command was resolved, False if none matched.
        """
        entry = self._pending.pop(command.id, None) if command.id is not None else None
        if entry is None:
            logger.debug(f"No pending command for {command}")
            return False

        if entry.future.done():
            return False

        if command.is_success:
            entry.future.set_result(command)
        else:
            entry.future.set_exception(CommandFailure(command))
        return True

    def cancel_all(self, reason: str = "Client closing") -> None:
        """Fail every pending command with ``CommandFailure``."""
        pending, self._pending = self._pending, {}
        for entry in pending.values():
            if not entry.future.done():
                entry.future.set_exception(CommandFailure(entry.command, reason))

    def _register(self, command: Command) -> PendingCommand:
        if command.id in self._pending:
            logger.warning(
                f"Command id {command.id} reused while pending; "
                "the earlier command will not be resolved"
            )
        entry = PendingCommand(
            command=command,
            future=asyncio.get_running_loop().create_future(),
        )
        self._pending[command.id] = entry
        return entry
