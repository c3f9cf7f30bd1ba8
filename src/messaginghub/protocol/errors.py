"""Client error types and reason codes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from messaginghub.protocol.envelopes import Command, Reason

# Reason code sent in a `failed` notification when a message receiver raises
RECEIVER_FAILURE_CODE = 101


class HubError(Exception):
    """Base exception for messaging hub client errors."""

    pass


class InvalidArgument(HubError, ValueError):
    """A required connect argument (identifier, password, key) is missing."""

    pass


class HandshakeFailure(HubError):
    """Transport open or session establishment was rejected."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class CommandFailure(HubError):
    """
    A command response arrived with a non-success status.

    The response envelope is kept on ``command`` so callers can inspect
    the status and reason the hub returned.
    """

    def __init__(self, command: "Command", message: str | None = None):
        self.command = command
        super().__init__(message or self._describe(command))

    @property
    def reason(self) -> "Reason | None":
        """Reason carried by the response, if any."""
        return self.command.reason

    @staticmethod
    def _describe(command: "Command") -> str:
        base = f"Command {command.id} failed with status {command.status}"
        if command.reason is not None:
            base += f" ({command.reason.code}: {command.reason.description})"
        return base


class CommandTimeout(CommandFailure):
    """No response arrived for a command within its timeout."""

    def __init__(self, command: "Command", timeout_seconds: float):
        self.timeout = timeout_seconds
        super().__init__(
            command,
            f"Command {command.id} timed out after {timeout_seconds}s",
        )
