"""Predicate-based routing of inbound messages and notifications."""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Callable, Generic, TypeVar

from messaginghub.protocol.envelopes import (
    Message,
    Notification,
    NotificationEvent,
    Reason,
)
from messaginghub.protocol.errors import RECEIVER_FAILURE_CODE, InvalidArgument

logger = logging.getLogger(__name__)

T = TypeVar("T")

Predicate = Callable[[Any], bool]
Unsubscribe = Callable[[], None]


class MatcherKind(Enum):
    """How a receiver decides whether an envelope is for it."""

    ANY = auto()
    VALUE = auto()
    FUNCTION = auto()


@dataclass(frozen=True)
class Matcher:
    """
    Receiver predicate, resolved once at registration.

    ANY matches everything, VALUE compares one envelope attribute against
    a literal, FUNCTION calls a user predicate.
    """

    kind: MatcherKind
    value: Any = None
    attribute: str | None = None

    @classmethod
    def build(cls, predicate: Any, attribute: str) -> "Matcher":
        """
        Build a matcher from what the caller passed.

        Args:
            predicate: A callable, a literal, or ``True``/``None``/falsy
                for match-all.
            attribute: Envelope attribute compared against a literal.
        """
        if callable(predicate):
            return cls(MatcherKind.FUNCTION, value=predicate)
        if predicate is True or not predicate:
            return cls(MatcherKind.ANY)
        return cls(MatcherKind.VALUE, value=predicate, attribute=attribute)

    def matches(self, envelope: Any) -> bool:
        if self.kind is MatcherKind.ANY:
            return True
        if self.kind is MatcherKind.FUNCTION:
            return bool(self.value(envelope))
        return getattr(envelope, self.attribute, None) == self.value


@dataclass(frozen=True, eq=False)
class Receiver(Generic[T]):
    """A matcher and the callback it guards. Compared by identity."""

    matcher: Matcher
    callback: Callable[[T], Any]


def _check_callback(callback: Callable[..., Any]) -> None:
    # Receivers run inline so acknowledgments follow the handling
    if inspect.iscoroutinefunction(callback):
        raise InvalidArgument(
            f"Receiver callbacks must be synchronous, got coroutine function {callback!r}"
        )


class ReceiverRegistry:
    """
    Holds message and notification receivers and dispatches to them.

    Receiver lists are never mutated in place: adding or removing a
    receiver rebinds a new list, so a dispatch already iterating the old
    list is unaffected by receivers that unsubscribe themselves.
    """

    def __init__(
        self,
        send_notification: Callable[[Notification], None],
        notify_consumed: bool = True,
    ):
        """
        Initialize the registry.

        Args:
            send_notification: Fire-and-forget send used for acknowledgments.
            notify_consumed: Send ``consumed`` once a message is handled.
        """
        self._send_notification = send_notification
        self.notify_consumed = notify_consumed
        self._message_receivers: list[Receiver[Message]] = []
        self._notification_receivers: list[Receiver[Notification]] = []

    @property
    def message_receivers(self) -> tuple[Receiver[Message], ...]:
        return tuple(self._message_receivers)

    @property
    def notification_receivers(self) -> tuple[Receiver[Notification], ...]:
        return tuple(self._notification_receivers)

    def add_message_receiver(
        self,
        predicate: Any,
        callback: Callable[[Message], Any],
    ) -> Unsubscribe:
        """
        Register a message receiver.

        Args:
            predicate: Callable on the message, a content type string
                compared to ``message.type``, or ``True``/``None`` for all.
            callback: Called with each matching message.

        Returns:
            Function removing this receiver.

        Raises:
            InvalidArgument: If callback is a coroutine function.
        """
        _check_callback(callback)
        receiver: Receiver[Message] = Receiver(Matcher.build(predicate, "type"), callback)
        self._message_receivers = [*self._message_receivers, receiver]

        def unsubscribe() -> None:
            self._message_receivers = [
                r for r in self._message_receivers if r is not receiver
            ]

        return unsubscribe

    def add_notification_receiver(
        self,
        predicate: Any,
        callback: Callable[[Notification], Any],
    ) -> Unsubscribe:
        """
        Register a notification receiver.

        Args:
            predicate: Callable on the notification, an event compared to
                ``notification.event``, or ``True``/``None`` for all.
            callback: Called with each matching notification.

        Returns:
            Function removing this receiver.

        Raises:
            InvalidArgument: If callback is a coroutine function.
        """
        _check_callback(callback)
        receiver: Receiver[Notification] = Receiver(
            Matcher.build(predicate, "event"), callback
        )
        self._notification_receivers = [*self._notification_receivers, receiver]

        def unsubscribe() -> None:
            self._notification_receivers = [
                r for r in self._notification_receivers if r is not receiver
            ]

        return unsubscribe

    def clear_message_receivers(self) -> None:
        self._message_receivers = []

    def clear_notification_receivers(self) -> None:
        self._notification_receivers = []

    def dispatch_message(self, message: Message) -> None:
        """
        Deliver an inbound message and acknowledge it.

        ``received`` is sent first. Matching receivers then run in
        registration order. The first one that raises stops the dispatch
        and produces a single ``failed`` notification; otherwise a single
        ``consumed`` notification follows.
        """
        self._acknowledge(message, NotificationEvent.RECEIVED)

        for receiver in self._message_receivers:
            if not receiver.matcher.matches(message):
                continue
            try:
                receiver.callback(message)
            except Exception as e:
                logger.exception(f"Message receiver failed for {message}")
                self._acknowledge(
                    message,
                    NotificationEvent.FAILED,
                    Reason(code=RECEIVER_FAILURE_CODE, description=str(e)),
                )
                return

        if self.notify_consumed:
            self._acknowledge(message, NotificationEvent.CONSUMED)

    def dispatch_notification(self, notification: Notification) -> None:
        """
        Deliver an inbound notification to every matching receiver.

        A raising receiver is logged and the remaining receivers still run.
        """
        for receiver in self._notification_receivers:
            if not receiver.matcher.matches(notification):
                continue
            try:
                receiver.callback(notification)
            except Exception:
                logger.exception(f"Notification receiver failed for {notification}")

    def _acknowledge(
        self,
        message: Message,
        event: NotificationEvent,
        reason: Reason | None = None,
    ) -> None:
        self._send_notification(
            Notification(event=event, id=message.id, to=message.from_, reason=reason)
        )
