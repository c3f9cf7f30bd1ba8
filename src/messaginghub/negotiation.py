"""Post-handshake presence and receipt negotiation."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from messaginghub.commands import CommandCorrelator
from messaginghub.protocol.envelopes import (
    Command,
    CommandMethod,
    NotificationEvent,
    new_id,
)

logger = logging.getLogger(__name__)

PRESENCE_URI = "/presence"
PRESENCE_TYPE = "application/vnd.lime.presence+json"

RECEIPT_URI = "/receipt"
RECEIPT_TYPE = "application/vnd.lime.receipt+json"

DEFAULT_RECEIPT_EVENTS = (
    NotificationEvent.FAILED,
    NotificationEvent.ACCEPTED,
    NotificationEvent.DISPATCHED,
    NotificationEvent.RECEIVED,
    NotificationEvent.CONSUMED,
)


def presence_command(routing_rule: str, status: str = "available") -> Command:
    """Build the command announcing this instance's presence."""
    return Command(
        id=new_id(),
        method=CommandMethod.SET,
        uri=PRESENCE_URI,
        type=PRESENCE_TYPE,
        resource={"status": status, "routingRule": routing_rule},
    )


def receipt_command(events: Iterable[NotificationEvent | str] = DEFAULT_RECEIPT_EVENTS) -> Command:
    """Build the command subscribing to delivery receipts."""
    return Command(
        id=new_id(),
        method=CommandMethod.SET,
        uri=RECEIPT_URI,
        type=RECEIPT_TYPE,
        resource={"events": [str(event) for event in events]},
    )


@dataclass
class NegotiationResult:
    """Responses to the negotiation commands."""

    presence: Command
    receipt: Command


class SessionNegotiator:
    """
    Runs the one-shot commands that follow a successful handshake.

    Presence is set first, then receipts are subscribed. Both must
    succeed before the session is considered listening.
    """

    def __init__(
        self,
        correlator: CommandCorrelator,
        presence_status: str = "available",
        receipt_events: Iterable[NotificationEvent | str] = DEFAULT_RECEIPT_EVENTS,
    ):
        self.correlator = correlator
        self.presence_status = presence_status
        self.receipt_events = tuple(receipt_events)

    async def negotiate(
        self,
        routing_rule: str,
        timeout: float | None = None,
    ) -> NegotiationResult:
        """
        Send presence and receipt commands in order.

        Args:
            routing_rule: Routing rule announced with the presence.
            timeout: Per-command response timeout.

        Raises:
            CommandFailure: If either command is refused or times out.
        """
        logger.debug(f"Setting presence with routing rule {routing_rule!r}")
        presence = await self.correlator.send(
            presence_command(routing_rule, self.presence_status),
            timeout=timeout,
        )

        logger.debug("Subscribing to delivery receipts")
        receipt = await self.correlator.send(
            receipt_command(self.receipt_events),
            timeout=timeout,
        )

        return NegotiationResult(presence=presence, receipt=receipt)
