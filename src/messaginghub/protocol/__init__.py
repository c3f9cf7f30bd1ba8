"""
Hub Protocol Core.

Envelope types, the client channel contract, the connection state
machine and error types.
"""

from messaginghub.protocol.envelopes import (
    Command,
    CommandMethod,
    CommandStatus,
    Message,
    Notification,
    NotificationEvent,
    Reason,
    Session,
    SessionCompression,
    SessionEncryption,
    SessionState,
    new_id,
)
from messaginghub.protocol.errors import (
    HubError,
    InvalidArgument,
    HandshakeFailure,
    CommandFailure,
    CommandTimeout,
    RECEIVER_FAILURE_CODE,
)
from messaginghub.protocol.state import (
    ConnectionState,
    ConnectionStateMachine,
    InvalidStateTransition,
)
from messaginghub.protocol.channel import ProtocolChannel, ChannelFactory

__all__ = [
    # Envelopes
    "Command",
    "CommandMethod",
    "CommandStatus",
    "Message",
    "Notification",
    "NotificationEvent",
    "Reason",
    "Session",
    "SessionCompression",
    "SessionEncryption",
    "SessionState",
    "new_id",
    # Errors
    "HubError",
    "InvalidArgument",
    "HandshakeFailure",
    "CommandFailure",
    "CommandTimeout",
    "RECEIVER_FAILURE_CODE",
    # State
    "ConnectionState",
    "ConnectionStateMachine",
    "InvalidStateTransition",
    # Channel
    "ProtocolChannel",
    "ChannelFactory",
]
