"""soju.im/bouncer-networks: one connection per bouncer network."""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from zircon.core.constants import NETWORK_DELETED
from zircon.irc.message import unescape_tag_value

if TYPE_CHECKING:
    from zircon.connection import Connection
    from zircon.handlers import DispatchContext
    from zircon.irc.message import Message


def parse_network_attributes(blob: str) -> dict[str, str]:
    """Parse 'key=value;key=value'. Pairs without '=' are skipped."""
    attrs: dict[str, str] = {}
    for pair in blob.split(";"):
        key, sep, value = pair.partition("=")
        if not sep:
            continue
        attrs[key] = unescape_tag_value(value)
    return attrs


async def handle_bouncer(ctx: DispatchContext, conn: Connection, msg: Message) -> None:
    # BOUNCER NETWORK <netid> <attributes>
    try:
        idx = msg.params.index("NETWORK")
    except ValueError:
        logger.debug("{}: BOUNCER {} ignored", conn.label, msg.params)
        return
    network_id = msg.param(idx + 1)
    blob = msg.param(idx + 2)

    existing = ctx.find_network(network_id)
    if existing is not None:
        if blob == NETWORK_DELETED:
            logger.info("{}: network {} deleted", conn.label, network_id)
            await ctx.destroy_connection(existing)
        return

    if blob == NETWORK_DELETED:
        logger.debug("{}: deletion of untracked network {}", conn.label, network_id)
        return

    name = parse_network_attributes(blob).get("name")
    logger.info("{}: new network {} ({})", conn.label, network_id, name or "unnamed")
    ctx.request_connect(conn.config.for_network(network_id, name))
