"""Thin orjson wrapper used for frames and config files."""

from typing import Any

import orjson


def loads(data: bytes | str) -> Any:
    """Decode JSON from bytes or str."""
    return orjson.loads(data)


def dumps_str(obj: Any) -> str:
    """Encode an object to a JSON text string (for websocket text frames)."""
    return orjson.dumps(obj).decode("utf-8")
