"""Write serializer: one consumer draining all outbound writes in FIFO order."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from zircon.core.constants import CRLF, WRITE_QUEUE_SIZE

if TYPE_CHECKING:
    from zircon.connection import Connection


@dataclass
class WriteRequest:
    """Bytes (CRLF included) bound for one connection."""

    connection: Connection
    data: bytes


def encode_line(line: str | bytes) -> bytes:
    """Encode line and terminate it with CRLF if it is not already."""
    data = line.encode("utf-8") if isinstance(line, str) else bytes(line)
    if not data.endswith(b"\r\n"):
        data += CRLF.encode()
    return data


def _redact(data: bytes) -> bytes:
    if data.startswith(b"AUTHENTICATE ") and data != b"AUTHENTICATE PLAIN\r\n":
        return b"AUTHENTICATE <redacted>"
    return data


class WriteSerializer:
    """Bounded FIFO of WriteRequests with a single writing consumer.

    Ordering is global across connections: a request is written only after
    every request queued before it, whatever its target.
    """

    def __init__(self, maxsize: int = WRITE_QUEUE_SIZE) -> None:
        self._queue: asyncio.Queue[WriteRequest] = asyncio.Queue(maxsize=maxsize)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def queue_write(self, connection: Connection, line: str | bytes) -> None:
        """Enqueue line for connection; waits while the queue is full."""
        await self._queue.put(WriteRequest(connection, encode_line(line)))

    async def join(self) -> None:
        """Wait until every queued request has been processed."""
        await self._queue.join()

    async def run(self) -> None:
        """Consume requests forever. Cancel the task to stop."""
        logger.debug("Write serializer started")
        while True:
            req = await self._queue.get()
            try:
                await self._write(req)
            finally:
                self._queue.task_done()

    async def _write(self, req: WriteRequest) -> None:
        conn = req.connection
        if conn.closed:
            logger.debug("{}: dropping write for closed connection", conn.label)
            return
        logger.trace("{} <- {!r}", conn.label, _redact(req.data))
        try:
            await conn.write(req.data)
        except OSError as exc:
            # The reader sees the same failure and reports the connection lost
            logger.warning("{}: write failed: {}", conn.label, exc)
