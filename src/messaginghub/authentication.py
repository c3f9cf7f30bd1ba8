"""Authentication strategies used during the session handshake."""

from __future__ import annotations

import base64
from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class GuestAuthentication:
    """Anonymous guest access; carries no credentials."""

    scheme = "guest"

    def to_dict(self) -> dict[str, Any]:
        return {}


@dataclass(frozen=True)
class PlainAuthentication:
    """
    Password authentication.

    ``password`` holds the base64-encoded password as sent on the wire.
    This is an encoding required by the protocol, not a protection.
    """

    password: str
    scheme = "plain"

    @classmethod
    def from_password(cls, password: str) -> "PlainAuthentication":
        """Build from a clear-text password."""
        encoded = base64.b64encode(password.encode("utf-8")).decode("ascii")
        return cls(password=encoded)

    def to_dict(self) -> dict[str, Any]:
        return {"password": self.password}


@dataclass(frozen=True)
class KeyAuthentication:
    """Pre-shared access key authentication."""

    key: str
    scheme = "key"

    def to_dict(self) -> dict[str, Any]:
        return {"key": self.key}


AuthenticationStrategy = Union[GuestAuthentication, PlainAuthentication, KeyAuthentication]


def select_authentication(
    password: str | None = None,
    key: str | None = None,
) -> AuthenticationStrategy:
    """
    Build the authentication strategy matching the given credentials.

    A password selects plain authentication, a key selects key
    authentication, and neither selects guest access. Inputs are expected
    to be validated by the caller.

    Args:
        password: Clear-text password.
        key: Access key.

    Returns:
        The strategy to hand to the channel handshake.
    """
    if password:
        return PlainAuthentication.from_password(password)
    if key:
        return KeyAuthentication(key=key)
    return GuestAuthentication()
