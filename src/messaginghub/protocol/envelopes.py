"""LIME envelope types exchanged with the messaging hub."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
import uuid


def new_id() -> str:
    """Generate a fresh envelope identifier."""
    return str(uuid.uuid4())


class NotificationEvent(str, Enum):
    """Delivery events reported about a message."""

    ACCEPTED = "accepted"
    DISPATCHED = "dispatched"
    RECEIVED = "received"
    CONSUMED = "consumed"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


class CommandMethod(str, Enum):
    """Methods a command can apply to a resource."""

    GET = "get"
    SET = "set"
    DELETE = "delete"
    OBSERVE = "observe"

    def __str__(self) -> str:
        return self.value


class CommandStatus(str, Enum):
    """Status carried by command responses."""

    SUCCESS = "success"
    FAILURE = "failure"

    def __str__(self) -> str:
        return self.value


class SessionEncryption(str, Enum):
    NONE = "none"
    TLS = "tls"


class SessionCompression(str, Enum):
    NONE = "none"
    GZIP = "gzip"


class SessionState(str, Enum):
    NEW = "new"
    NEGOTIATING = "negotiating"
    AUTHENTICATING = "authenticating"
    ESTABLISHED = "established"
    FINISHING = "finishing"
    FINISHED = "finished"
    FAILED = "failed"


def _put(data: dict[str, Any], key: str, value: Any) -> None:
    if value is not None:
        data[key] = value.value if isinstance(value, Enum) else value


@dataclass
class Reason:
    """Code and description explaining a failure."""

    code: int
    description: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire dict."""
        data: dict[str, Any] = {"code": self.code}
        _put(data, "description", self.description)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "Reason | None":
        """Create from wire dict, tolerating a missing reason."""
        if not data:
            return None
        return cls(code=data.get("code", 0), description=data.get("description"))


@dataclass
class Message:
    """
    Content delivered between two identities.

    Inbound messages are acknowledged with notifications addressed to
    ``from_``.
    """

    type: str
    content: Any = None
    to: str | None = None
    from_: str | None = None
    id: str | None = field(default_factory=new_id)

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire dict."""
        data: dict[str, Any] = {}
        _put(data, "id", self.id)
        _put(data, "from", self.from_)
        _put(data, "to", self.to)
        data["type"] = self.type
        data["content"] = self.content
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Create from wire dict."""
        return cls(
            id=data.get("id"),
            from_=data.get("from"),
            to=data.get("to"),
            type=data["type"],
            content=data.get("content"),
        )

    def __str__(self) -> str:
        return f"Message({self.type}, id={self.id}, from={self.from_})"


@dataclass
class Notification:
    """Delivery status signal about a message."""

    event: NotificationEvent | str
    id: str | None = None
    to: str | None = None
    from_: str | None = None
    reason: Reason | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire dict."""
        data: dict[str, Any] = {}
        _put(data, "id", self.id)
        _put(data, "from", self.from_)
        _put(data, "to", self.to)
        _put(data, "event", self.event)
        if self.reason is not None:
            data["reason"] = self.reason.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Notification":
        """Create from wire dict."""
        event = data["event"]
        try:
            event = NotificationEvent(event)
        except ValueError:
            pass
        return cls(
            id=data.get("id"),
            from_=data.get("from"),
            to=data.get("to"),
            event=event,
            reason=Reason.from_dict(data.get("reason")),
        )

    def __str__(self) -> str:
        return f"Notification({self.event}, id={self.id})"


@dataclass
class Command:
    """
    Request or response against a named resource.

    Requests carry ``method``/``uri``; responses carry the same ``id`` and a
    ``status``.
    """

    method: CommandMethod | str
    uri: str | None = None
    type: str | None = None
    resource: Any = None
    id: str | None = field(default_factory=new_id)
    to: str | None = None
    from_: str | None = None
    status: CommandStatus | str | None = None
    reason: Reason | None = None

    @property
    def is_success(self) -> bool:
        """Check if this is a successful response."""
        return self.status == CommandStatus.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire dict."""
        data: dict[str, Any] = {}
        _put(data, "id", self.id)
        _put(data, "from", self.from_)
        _put(data, "to", self.to)
        _put(data, "method", self.method)
        _put(data, "uri", self.uri)
        _put(data, "type", self.type)
        _put(data, "resource", self.resource)
        _put(data, "status", self.status)
        if self.reason is not None:
            data["reason"] = self.reason.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Command":
        """Create from wire dict."""
        status = data.get("status")
        if status is not None:
            try:
                status = CommandStatus(status)
            except ValueError:
                pass
        return cls(
            id=data.get("id"),
            from_=data.get("from"),
            to=data.get("to"),
            method=data["method"],
            uri=data.get("uri"),
            type=data.get("type"),
            resource=data.get("resource"),
            status=status,
            reason=Reason.from_dict(data.get("reason")),
        )

    def __str__(self) -> str:
        if self.status is not None:
            return f"Command({self.method} {self.uri}, id={self.id}, {self.status})"
        return f"Command({self.method} {self.uri}, id={self.id})"


@dataclass
class Session:
    """Result of a successful session establishment."""

    id: str
    state: SessionState = SessionState.ESTABLISHED
    from_: str | None = None
    to: str | None = None
    reason: Reason | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        """Create from wire dict."""
        return cls(
            id=data["id"],
            state=SessionState(data.get("state", SessionState.ESTABLISHED.value)),
            from_=data.get("from"),
            to=data.get("to"),
            reason=Reason.from_dict(data.get("reason")),
        )

    def __str__(self) -> str:
        return f"Session({self.id}, {self.state.value})"
