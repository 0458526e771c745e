"""Connections: configuration, byte stream, reader task and session state."""

from __future__ import annotations

import asyncio
import contextlib
import dataclasses
import ssl
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Protocol

from loguru import logger

from zircon.core.constants import (
    CAP_AWAY_NOTIFY,
    CAP_BOUNCER_NETWORKS,
    CAP_BOUNCER_NETWORKS_NOTIFY,
    CAP_SASL,
    DEFAULT_PORT,
)
from zircon.events import connection_lost, message_received
from zircon.irc.message import parse_message
from zircon.state import Session


@dataclass(frozen=True)
class ConnectionConfig:
    """Immutable settings for one connection."""

    server: str
    user: str
    nick: str
    password: str = field(repr=False)
    real_name: str
    network_id: str | None = None
    name: str | None = None
    port: int = DEFAULT_PORT
    tls: bool = True

    @property
    def display_name(self) -> str:
        return self.name or self.server

    def for_network(self, network_id: str, name: str | None) -> ConnectionConfig:
        """Clone bound to a bouncer network."""
        return dataclasses.replace(self, network_id=network_id, name=name)


class HandshakeState(Enum):
    REGISTERING = auto()
    CAPABILITY_ACK = auto()
    AUTHENTICATING = auto()
    AUTH_COMPLETE = auto()


class StreamWriter(Protocol):
    """The subset of asyncio.StreamWriter a Connection uses."""

    def write(self, data: bytes) -> None: ...

    async def drain(self) -> None: ...

    def close(self) -> None: ...

    async def wait_closed(self) -> None: ...


def registration_lines(config: ConnectionConfig) -> list[str]:
    """Lines sent right after the stream opens.

    Each capability is requested on its own line so a NAK for an optional
    one does not take sasl down with it.
    """
    lines = [f"CAP REQ :{CAP_SASL}", f"CAP REQ :{CAP_AWAY_NOTIFY}"]
    if config.network_id is None:
        lines.append(f"CAP REQ :{CAP_BOUNCER_NETWORKS}")
        lines.append(f"CAP REQ :{CAP_BOUNCER_NETWORKS_NOTIFY}")
    lines.append(f"NICK {config.nick}")
    lines.append(f"USER {config.user} 0 * :{config.real_name}")
    return lines


async def open_connection(
    config: ConnectionConfig, *, tls_verify: bool = True
) -> tuple[asyncio.StreamReader, asyncio.StreamWriter]:
    """Open the byte stream for config (TLS unless config.tls is False)."""
    ssl_ctx: ssl.SSLContext | None = None
    if config.tls:
        ssl_ctx = ssl.create_default_context()
        if not tls_verify:
            ssl_ctx.check_hostname = False
            ssl_ctx.verify_mode = ssl.CERT_NONE
    return await asyncio.open_connection(config.server, config.port, ssl=ssl_ctx)


class Connection:
    """An open stream plus its config, handshake state and session."""

    def __init__(
        self,
        config: ConnectionConfig,
        reader: asyncio.StreamReader,
        writer: StreamWriter,
    ) -> None:
        self.config = config
        self.session = Session()
        self.state = HandshakeState.REGISTERING
        self.caps: set[str] = set()
        self.closed = False
        self._reader = reader
        self._writer = writer
        self._reader_task: asyncio.Task[None] | None = None

    def __repr__(self) -> str:
        return f"<Connection {self.label}>"

    @property
    def label(self) -> str:
        if self.config.network_id:
            return f"{self.config.display_name} ({self.config.network_id})"
        return self.config.display_name

    @property
    def reader_task(self) -> asyncio.Task[None] | None:
        return self._reader_task

    def start(self, events: asyncio.Queue) -> None:
        """Spawn the reader task feeding events. Exactly one per connection."""
        if self._reader_task is not None:
            raise RuntimeError(f"{self!r} already started")
        self._reader_task = asyncio.create_task(
            self._read_loop(events), name=f"reader:{self.label}"
        )

    async def _read_loop(self, events: asyncio.Queue) -> None:
        reason = "eof"
        while True:
            try:
                line = await self._reader.readline()
            except ValueError:
                # Line exceeded the stream limit; drop it and keep reading
                logger.warning("{}: oversized line dropped", self.label)
                continue
            except OSError as exc:
                reason = str(exc) or type(exc).__name__
                break
            if not line:
                break
            text = line.decode("utf-8", errors="replace").rstrip("\r\n")
            _, evt = message_received(self, parse_message(text))
            await events.put(evt)

        logger.info("{}: connection lost ({})", self.label, reason)
        _, evt = connection_lost(self, reason=reason)
        await events.put(evt)

    async def write(self, data: bytes) -> None:
        """Write data and wait until it is flushed to the transport."""
        self._writer.write(data)
        await self._writer.drain()

    async def close(self) -> None:
        """Stop the reader, close the stream and release session state."""
        if self.closed:
            return
        self.closed = True
        task = self._reader_task
        if task is not None and not task.done():
            task.cancel()
        self._writer.close()
        with contextlib.suppress(OSError):
            await self._writer.wait_closed()
        if task is not None:
            await asyncio.wait({task})
        self.session.clear()
        logger.debug("{}: closed", self.label)
