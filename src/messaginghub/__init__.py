"""
Messaging hub client.

Connects to a LIME messaging hub over a persistent transport, negotiates
presence and delivery receipts, routes inbound messages and notifications
to receivers, correlates command responses, and reconnects automatically
when the transport closes.

Submodules:
- transport: transport contract and websocket transport
- protocol: envelopes, channel contract, state machine, errors
- authentication: guest/plain/key authentication strategies
- negotiation: presence and receipt negotiation
- receivers: message and notification routing
- commands: command response correlation
- client: the connection manager tying it together
"""

from messaginghub.transport import (
    Transport,
    TransportConfig,
    TransportError,
    WebSocketTransport,
)
from messaginghub.protocol import (
    Command,
    CommandMethod,
    CommandStatus,
    Message,
    Notification,
    NotificationEvent,
    Reason,
    Session,
    ProtocolChannel,
    ConnectionState,
    HubError,
    InvalidArgument,
    HandshakeFailure,
    CommandFailure,
    CommandTimeout,
)
from messaginghub.authentication import (
    GuestAuthentication,
    PlainAuthentication,
    KeyAuthentication,
    select_authentication,
)
from messaginghub.config import HubConfig, load_hub_config
from messaginghub.receivers import ReceiverRegistry
from messaginghub.commands import CommandCorrelator
from messaginghub.negotiation import SessionNegotiator
from messaginghub.client import MessagingHubClient, ConnectionAttempt

__all__ = [
    # Transport
    "Transport",
    "TransportConfig",
    "TransportError",
    "WebSocketTransport",
    # Protocol
    "Command",
    "CommandMethod",
    "CommandStatus",
    "Message",
    "Notification",
    "NotificationEvent",
    "Reason",
    "Session",
    "ProtocolChannel",
    "ConnectionState",
    # Errors
    "HubError",
    "InvalidArgument",
    "HandshakeFailure",
    "CommandFailure",
    "CommandTimeout",
    # Authentication
    "GuestAuthentication",
    "PlainAuthentication",
    "KeyAuthentication",
    "select_authentication",
    # Client
    "HubConfig",
    "load_hub_config",
    "ReceiverRegistry",
    "CommandCorrelator",
    "SessionNegotiator",
    "MessagingHubClient",
    "ConnectionAttempt",
]
