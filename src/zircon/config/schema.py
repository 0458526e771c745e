"""Config schema and accessor."""

from __future__ import annotations

from typing import Any

from loguru import logger

from zircon.config.loader import _deep_update, parse_bool
from zircon.core.constants import EVENT_QUEUE_SIZE, WRITE_QUEUE_SIZE
from zircon.core.errors import ZirconConfigurationError

_DEFAULTS: dict[str, Any] = {
    "connections": [],
    "event_queue_size": EVENT_QUEUE_SIZE,
    "write_queue_size": WRITE_QUEUE_SIZE,
    "tls_verify": True,
}


def _validate(data: dict[str, Any]) -> None:
    """Raise ZirconConfigurationError if data is not a usable config."""
    connections = data.get("connections")
    if not isinstance(connections, list):
        raise ZirconConfigurationError(
            "connections must be a list",
            code="invalid_connections",
            details={"type": type(connections).__name__},
        )
    for i, item in enumerate(connections):
        if not isinstance(item, dict):
            raise ZirconConfigurationError(
                f"connections[{i}] must be a dict",
                code="invalid_connection_item",
                details={"index": i},
            )
        if not item.get("server"):
            raise ZirconConfigurationError(
                f"connections[{i}] missing server",
                code="missing_server",
                details={"index": i},
            )
    for key in ("event_queue_size", "write_queue_size"):
        value = data.get(key)
        if not isinstance(value, int) or isinstance(value, bool) or value < 1:
            raise ZirconConfigurationError(
                f"{key} must be a positive integer",
                code="invalid_queue_size",
                details={"key": key, "value": value},
            )
    if parse_bool(data.get("tls_verify")) is None:
        raise ZirconConfigurationError(
            "tls_verify must be a boolean",
            code="invalid_tls_verify",
            details={"value": data.get("tls_verify")},
        )


class Config:
    """Validated settings for one run. Env overrides are applied at load time."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data = _deep_update(_DEFAULTS, data or {})

    def reload(self, data: dict[str, Any], *, validate: bool = True) -> None:
        """Replace config data. On a validation error the old data is kept."""
        merged = _deep_update(_DEFAULTS, data or {})
        if validate:
            _validate(merged)
        self._data = merged
        logger.debug("Config loaded: {} connections", len(self.connections))

    @property
    def connections(self) -> list[dict[str, Any]]:
        """Copies of the connection entries, for HostAPI.connect."""
        raw = self._data.get("connections")
        if not isinstance(raw, list):
            return []
        return [dict(item) for item in raw if isinstance(item, dict)]

    @property
    def event_queue_size(self) -> int:
        return int(self._data.get("event_queue_size", EVENT_QUEUE_SIZE))

    @property
    def write_queue_size(self) -> int:
        return int(self._data.get("write_queue_size", WRITE_QUEUE_SIZE))

    @property
    def tls_verify(self) -> bool:
        parsed = parse_bool(self._data.get("tls_verify", True))
        return True if parsed is None else parsed

    @property
    def log_file(self) -> str | None:
        val = self._data.get("log_file")
        if val and isinstance(val, str) and val.strip():
            return val.strip()
        return None


cfg: Config = Config({})
