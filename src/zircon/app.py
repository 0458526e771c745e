"""The dispatch loop and the context it owns.

App is the only code that touches the active connection list or any
connection's session state. Reader tasks and the host API reach it solely
through the event queue; it reaches sockets solely through the write
serializer.
"""

from __future__ import annotations

import asyncio
import contextlib
import functools
from collections import deque
from collections.abc import Awaitable, Callable, Iterable

from loguru import logger

from zircon.connection import (
    Connection,
    ConnectionConfig,
    StreamWriter,
    open_connection,
    registration_lines,
)
from zircon.core.constants import EVENT_QUEUE_SIZE, WRITE_QUEUE_SIZE
from zircon.core.errors import ProtocolError, ZirconError
from zircon.events import ConnectionLost, ConnectRequested, Event, MessageReceived
from zircon.handlers.bouncer import handle_bouncer
from zircon.handlers.channels import handle_away, handle_names, handle_topic
from zircon.handlers.handshake import (
    handle_authenticate,
    handle_cap,
    handle_ping,
    handle_registration,
    handle_sasl_result,
)
from zircon.irc.commands import REGISTRATION_REPLIES, Command
from zircon.irc.message import Message
from zircon.writer import WriteSerializer

Opener = Callable[[ConnectionConfig], Awaitable[tuple[asyncio.StreamReader, StreamWriter]]]
Handler = Callable[["App", Connection, Message], Awaitable[None]]


class App:
    """Owns the active connections, both queues and the dispatch loop."""

    def __init__(
        self,
        *,
        opener: Opener | None = None,
        event_queue_size: int = EVENT_QUEUE_SIZE,
        write_queue_size: int = WRITE_QUEUE_SIZE,
        tls_verify: bool = True,
    ) -> None:
        self.connections: list[Connection] = []
        self.events: asyncio.Queue[Event | None] = asyncio.Queue(maxsize=event_queue_size)
        self.writer = WriteSerializer(write_queue_size)
        self._opener: Opener = opener or functools.partial(open_connection, tls_verify=tls_verify)
        self._pending_connects: deque[ConnectionConfig] = deque()
        self._writer_task: asyncio.Task[None] | None = None
        self._writer_error: BaseException | None = None
        self._run_task: asyncio.Task | None = None
        self._stopping = False

    # -- context used by handlers -------------------------------------------

    async def queue_write(self, connection: Connection, line: str | bytes) -> None:
        await self.writer.queue_write(connection, line)

    def request_connect(self, config: ConnectionConfig) -> None:
        """Queue a connect intent; processed before the next event."""
        self._pending_connects.append(config)

    def find_network(self, network_id: str) -> Connection | None:
        for conn in self.connections:
            if conn.config.network_id == network_id:
                return conn
        return None

    async def destroy_connection(self, connection: Connection) -> None:
        if connection in self.connections:
            self.connections.remove(connection)
        await connection.close()
        logger.info("{}: removed", connection.label)

    # -- lifecycle ----------------------------------------------------------

    async def run(self, configs: Iterable[ConnectionConfig] = ()) -> None:
        """Start the writer, connect configs and dispatch events until stopped.

        Raises ZirconError (code "writer_failed") if the write serializer dies.
        """
        self._stopping = False
        self._writer_error = None
        self._run_task = asyncio.current_task()
        self._writer_task = asyncio.create_task(self.writer.run(), name="writer")
        self._writer_task.add_done_callback(self._on_writer_done)
        for config in configs:
            self.request_connect(config)
        try:
            while not self._stopping:
                await self._drain_connects()
                evt = await self.events.get()
                if evt is None:
                    continue
                await self.handle_event(evt)
        except asyncio.CancelledError:
            if self._writer_error is None:
                raise
            # Cancelled by _on_writer_done, not from outside
            self._run_task.uncancel()
        finally:
            self._run_task = None
            await self.shutdown()

        if self._writer_error is not None:
            raise ZirconError(
                "write serializer stopped",
                code="writer_failed",
                original_error=self._writer_error,
            ) from self._writer_error

    def _on_writer_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is None:
            return
        logger.opt(exception=exc).error("Write serializer failed: {}", exc)
        if self._stopping:
            return
        self._writer_error = exc
        self._stopping = True
        # The loop may be parked on a full write queue; stop() alone cannot wake it
        if self._run_task is not None:
            self._run_task.cancel()

    def stop(self) -> None:
        """Make run() return after the event being handled, if any."""
        self._stopping = True
        with contextlib.suppress(asyncio.QueueFull):
            self.events.put_nowait(None)

    async def shutdown(self) -> None:
        """Close every connection and stop the writer."""
        for conn in list(self.connections):
            await self.destroy_connection(conn)
        task = self._writer_task
        self._writer_task = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.wait({task})

    async def _drain_connects(self) -> None:
        while self._pending_connects:
            await self.connect(self._pending_connects.popleft())

    async def connect(self, config: ConnectionConfig) -> Connection | None:
        """Open a connection for config and start its reader."""
        if config.network_id and self.find_network(config.network_id):
            logger.debug("Network {} already has a connection", config.network_id)
            return None
        logger.info("Connecting to {}:{} as {}", config.server, config.port, config.nick)
        try:
            reader, writer = await self._opener(config)
        except OSError as exc:
            logger.error("Failed to connect to {}: {}", config.display_name, exc)
            return None

        conn = Connection(config, reader, writer)
        self.connections.append(conn)
        conn.start(self.events)
        for line in registration_lines(config):
            await self.queue_write(conn, line)
        return conn

    # -- dispatch -----------------------------------------------------------

    async def handle_event(self, evt: Event) -> None:
        match evt:
            case ConnectRequested(config=config):
                await self.connect(config)
            case ConnectionLost(connection=conn, reason=reason):
                if conn in self.connections:
                    logger.warning("{}: disconnected ({})", conn.label, reason or "eof")
                    await self.destroy_connection(conn)
            case MessageReceived(connection=conn, message=msg):
                await self.dispatch(conn, msg)
            case _:
                logger.warning("Unknown event {!r}", evt)

    async def dispatch(self, conn: Connection, msg: Message) -> None:
        """Apply one message from conn."""
        if conn.closed or conn not in self.connections:
            logger.trace("Dropping message for removed connection {!r}", conn)
            return
        logger.trace("{} -> {}", conn.label, msg.raw)

        handler: Handler
        match msg.command:
            case Command.CAP:
                handler = handle_cap
            case Command.AUTHENTICATE:
                handler = handle_authenticate
            case command if command in REGISTRATION_REPLIES:
                handler = handle_registration
            case (
                Command.RPL_LOGGEDIN
                | Command.RPL_SASLSUCCESS
                | Command.ERR_SASLFAIL
                | Command.ERR_SASLABORTED
            ):
                handler = handle_sasl_result
            case Command.RPL_TOPIC:
                handler = handle_topic
            case Command.RPL_NAMREPLY:
                handler = handle_names
            case Command.BOUNCER:
                handler = handle_bouncer
            case Command.AWAY:
                handler = handle_away
            case Command.PING:
                handler = handle_ping
            case _:
                logger.trace("{}: unhandled {}", conn.label, msg.token or "<empty>")
                return

        try:
            await handler(self, conn, msg)
        except ProtocolError as exc:
            logger.debug("{}: dropped {}: {}", conn.label, msg.token, exc)
