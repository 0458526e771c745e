"""Topic, NAMES and AWAY updates to session state."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from zircon.core.constants import MEMBERSHIP_PREFIXES
from zircon.core.errors import ProtocolError

if TYPE_CHECKING:
    from zircon.connection import Connection
    from zircon.handlers import DispatchContext
    from zircon.irc.message import Message


async def handle_topic(ctx: DispatchContext, conn: Connection, msg: Message) -> None:
    # <client> <channel> :<topic>
    msg.param(0)
    channel_name = msg.param(1)
    topic = msg.param(2)

    channel = conn.session.get_or_create_channel(channel_name)
    channel.topic = topic
    logger.debug("{}: topic for {} set", conn.label, channel_name)


async def handle_names(ctx: DispatchContext, conn: Connection, msg: Message) -> None:
    # <client> <symbol> <channel> :<nicks>
    msg.param(0)
    msg.param(1)
    channel_name = msg.param(2)
    nick_list = msg.param(3)

    session = conn.session
    channel = session.get_or_create_channel(channel_name)
    for entry in nick_list.split(" "):
        nick = entry.lstrip(MEMBERSHIP_PREFIXES)
        if not nick:
            continue
        channel.add_member(session.get_or_create_user(nick))
    channel.sort_members()


async def handle_away(ctx: DispatchContext, conn: Connection, msg: Message) -> None:
    nick = msg.nick
    if not nick:
        raise ProtocolError("AWAY without a source", code="missing_source")
    user = conn.session.get_or_create_user(nick)
    # Any parameter, even an empty one, means away
    user.away = bool(msg.params)
