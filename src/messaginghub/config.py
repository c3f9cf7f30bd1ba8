"""Hub client configuration loading."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from messaginghub.lib import oj
from messaginghub.negotiation import DEFAULT_RECEIPT_EVENTS

logger = logging.getLogger(__name__)

# Config file locations
HUB_CONFIG_FILENAME = "hub.json"
GLOBAL_HUB_CONFIG = Path.home() / ".messaginghub" / HUB_CONFIG_FILENAME
LOCAL_HUB_CONFIG_DIR = ".messaginghub"

DEFAULT_URI = "wss://ws.msging.net:443"


@dataclass
class HubConfig:
    """Connection settings for the messaging hub client."""

    uri: str = DEFAULT_URI
    domain: str = "msging.net"
    instance: str = ""
    routing_rule: str = "identity"
    presence_status: str = "available"
    receipt_events: list[str] = field(
        default_factory=lambda: [str(event) for event in DEFAULT_RECEIPT_EVENTS]
    )
    reconnect_delay: float = 5.0
    auto_reconnect: bool = True
    notify_consumed: bool = True
    command_timeout: float | None = None

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.domain:
            raise ValueError("domain is required")
        if self.reconnect_delay < 0:
            raise ValueError("reconnect_delay must not be negative")
        if self.command_timeout is not None and self.command_timeout <= 0:
            raise ValueError("command_timeout must be positive")

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HubConfig":
        """Create from a config dict using the file's camelCase keys."""
        defaults = cls()
        return cls(
            uri=data.get("uri", defaults.uri),
            domain=data.get("domain", defaults.domain),
            instance=data.get("instance", defaults.instance),
            routing_rule=data.get("routingRule", defaults.routing_rule),
            presence_status=data.get("presenceStatus", defaults.presence_status),
            receipt_events=data.get("receiptEvents", defaults.receipt_events),
            reconnect_delay=data.get("reconnectDelay", defaults.reconnect_delay),
            auto_reconnect=data.get("autoReconnect", defaults.auto_reconnect),
            notify_consumed=data.get("notifyConsumed", defaults.notify_consumed),
            command_timeout=data.get("commandTimeout", defaults.command_timeout),
        )


def _read_config_file(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        data = oj.loads(path.read_bytes())
    except (OSError, ValueError) as e:
        logger.warning(f"Ignoring unreadable hub config {path}: {e}")
        return {}
    hub = data.get("hub", {}) if isinstance(data, dict) else {}
    return hub if isinstance(hub, dict) else {}


def load_hub_config(working_dir: Path | None = None) -> HubConfig:
    """Load hub settings from global and local config files.

    Global config (~/.messaginghub/hub.json) is loaded first.
    Local config ({working_dir}/.messaginghub/hub.json) overrides it key by key.

    Returns:
        The merged configuration.
    """
    merged = _read_config_file(GLOBAL_HUB_CONFIG)

    if working_dir:
        local_config = working_dir / LOCAL_HUB_CONFIG_DIR / HUB_CONFIG_FILENAME
        merged.update(_read_config_file(local_config))

    return HubConfig.from_dict(merged)
