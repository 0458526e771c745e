"""Protocol handlers run by the dispatch loop.

Handlers receive the dispatch context, the connection the message arrived
on and the parsed message. They raise ProtocolError subclasses to abandon a
single message; the loop logs and moves on.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from zircon.connection import Connection, ConnectionConfig


class DispatchContext(Protocol):
    """What handlers may do to the world outside their connection."""

    async def queue_write(self, connection: Connection, line: str | bytes) -> None:
        """Hand a line to the write serializer."""
        ...

    def request_connect(self, config: ConnectionConfig) -> None:
        """Ask the dispatch loop to open a new connection."""
        ...

    def find_network(self, network_id: str) -> Connection | None:
        """Active connection bound to a bouncer network, if any."""
        ...

    async def destroy_connection(self, connection: Connection) -> None:
        """Close connection and drop it from the active set."""
        ...
