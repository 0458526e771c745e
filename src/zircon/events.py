"""Event types consumed by the dispatch loop."""

from __future__ import annotations

import functools
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from zircon.connection import Connection, ConnectionConfig
    from zircon.irc.message import Message


@dataclass
class MessageReceived:
    """A parsed line read from a connection."""

    connection: Connection
    message: Message


@dataclass
class ConnectRequested:
    """Intent to open a new connection (user config or bouncer network)."""

    config: ConnectionConfig


@dataclass
class ConnectionLost:
    """The reader of a connection hit EOF or a transport error."""

    connection: Connection
    reason: str | None = None


def event(type_name: str):
    """Decorator to mark a factory as producing an event with a given type."""

    def decorator(f: Any) -> Any:
        @functools.wraps(f)
        def wrapper(*args: Any, **kwargs: Any) -> tuple[str, object]:
            evt = f(*args, **kwargs)
            return (type_name, evt)

        wrapper.TYPE = type_name
        return wrapper

    return decorator


@event("message")
def message_received(connection: Connection, message: Message) -> MessageReceived:
    return MessageReceived(connection=connection, message=message)


@event("connect")
def connect_requested(config: ConnectionConfig) -> ConnectRequested:
    return ConnectRequested(config=config)


@event("connection_lost")
def connection_lost(connection: Connection, *, reason: str | None = None) -> ConnectionLost:
    return ConnectionLost(connection=connection, reason=reason)


Event = MessageReceived | ConnectRequested | ConnectionLost
