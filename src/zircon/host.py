"""Capabilities offered to the configuration/scripting collaborator.

Only two operations cross this boundary: connect(cfg) and log(message).
"""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from loguru import logger

from zircon.config import parse_bool
from zircon.connection import ConnectionConfig
from zircon.core.constants import DEFAULT_PORT
from zircon.errors import ZirconConfigurationError
from zircon.events import connect_requested

if TYPE_CHECKING:
    from zircon.app import App

REQUIRED_FIELDS = ("server", "user", "nick", "password", "real_name")


def config_from_mapping(data: Mapping[str, Any]) -> ConnectionConfig:
    """Build a ConnectionConfig from a plain mapping, validating required keys."""
    if not isinstance(data, Mapping):
        raise ZirconConfigurationError(
            "connection config must be a mapping",
            code="invalid_connection",
            details={"type": type(data).__name__},
        )
    missing = [k for k in REQUIRED_FIELDS if not data.get(k)]
    if missing:
        raise ZirconConfigurationError(
            f"connection config missing {', '.join(missing)}",
            code="missing_connection_field",
            details={"missing": missing},
        )
    try:
        port = int(data.get("port", DEFAULT_PORT))
    except (TypeError, ValueError) as exc:
        raise ZirconConfigurationError(
            "port must be an integer",
            code="invalid_port",
            details={"port": data.get("port")},
            original_error=exc,
        ) from exc
    tls = parse_bool(data.get("tls", True))
    if tls is None:
        raise ZirconConfigurationError(
            "tls must be a boolean",
            code="invalid_tls",
            details={"tls": data.get("tls")},
        )
    return ConnectionConfig(
        server=str(data["server"]),
        user=str(data["user"]),
        nick=str(data["nick"]),
        password=str(data["password"]),
        real_name=str(data["real_name"]),
        port=port,
        tls=tls,
    )


def _running_loop() -> asyncio.AbstractEventLoop | None:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class HostAPI:
    """connect/log for the collaborator. connect may be called from any thread."""

    def __init__(self, app: App, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._app = app
        self._loop = loop

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        """Attach to the loop running the dispatch loop."""
        self._loop = loop

    def connect(self, cfg: Mapping[str, Any]) -> ConnectionConfig:
        """Validate cfg and post a connect intent to the dispatch loop.

        From another thread this blocks while the event queue is full. On the
        loop's own thread it cannot block, so a full queue hands the intent to
        the loop's pending connects, which run before the next event.
        """
        config = config_from_mapping(cfg)
        _, evt = connect_requested(config)
        loop = self._loop
        if loop is None or _running_loop() is loop:
            try:
                self._app.events.put_nowait(evt)
            except asyncio.QueueFull:
                logger.debug("Event queue full, deferring connect for {}", config.display_name)
                self._app.request_connect(config)
        else:
            asyncio.run_coroutine_threadsafe(self._app.events.put(evt), loop).result()
        logger.debug("Connect requested for {}", config.display_name)
        return config

    def log(self, message: str) -> None:
        logger.opt(depth=1).info("{}", message)
