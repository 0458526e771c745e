"""Capability negotiation, SASL PLAIN and registration replies."""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING

from loguru import logger

from zircon.connection import HandshakeState
from zircon.core.constants import (
    CAP_BOUNCER_NETWORKS,
    CAP_SASL,
    SASL_CHUNK_SIZE,
    SASL_CONTINUE,
)
from zircon.irc.commands import Command

if TYPE_CHECKING:
    from zircon.connection import Connection, ConnectionConfig
    from zircon.handlers import DispatchContext
    from zircon.irc.message import Message


def sasl_plain_payload(config: ConnectionConfig) -> str:
    """base64 of user NUL nick NUL password."""
    raw = "\0".join((config.user, config.nick, config.password)).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def authenticate_lines(encoded: str) -> list[str]:
    """AUTHENTICATE lines for an encoded payload, split into 400-byte chunks.

    A final chunk of exactly 400 bytes must be followed by an empty one ('+').
    """
    chunks = [encoded[i : i + SASL_CHUNK_SIZE] for i in range(0, len(encoded), SASL_CHUNK_SIZE)]
    lines = [f"AUTHENTICATE {chunk}" for chunk in chunks]
    if not chunks or len(chunks[-1]) == SASL_CHUNK_SIZE:
        lines.append(f"AUTHENTICATE {SASL_CONTINUE}")
    return lines


def _cap_list(msg: Message) -> list[str]:
    # CAP <client> <subcommand> [*] :<caps>
    caps = msg.param(2)
    if caps == "*" and len(msg.params) > 3:
        caps = msg.params[3]
    return caps.split()


async def handle_cap(ctx: DispatchContext, conn: Connection, msg: Message) -> None:
    subcommand = msg.param(1).upper()
    if subcommand == "ACK":
        await _on_ack(ctx, conn, _cap_list(msg))
    elif subcommand == "NAK":
        refused = _cap_list(msg)
        if CAP_SASL in refused:
            logger.error("{}: required CAP not supported: {}", conn.label, " ".join(refused))
        else:
            logger.warning("{}: CAP refused: {}", conn.label, " ".join(refused))
    else:
        logger.debug("{}: CAP {} ignored", conn.label, subcommand)


async def _on_ack(ctx: DispatchContext, conn: Connection, caps: list[str]) -> None:
    for cap in caps:
        if cap.startswith("-"):
            conn.caps.discard(cap[1:])
        else:
            conn.caps.add(cap)
    logger.debug("{}: CAP ACK {}", conn.label, " ".join(caps))

    if conn.state is HandshakeState.REGISTERING:
        conn.state = HandshakeState.CAPABILITY_ACK
    if CAP_SASL in caps and conn.state is HandshakeState.CAPABILITY_ACK:
        await ctx.queue_write(conn, "AUTHENTICATE PLAIN")
        conn.state = HandshakeState.AUTHENTICATING


async def handle_authenticate(ctx: DispatchContext, conn: Connection, msg: Message) -> None:
    if msg.param(0) != SASL_CONTINUE or len(msg.params) != 1:
        logger.debug("{}: unexpected AUTHENTICATE {}", conn.label, msg.params)
        return
    if conn.state is not HandshakeState.AUTHENTICATING:
        logger.warning("{}: AUTHENTICATE challenge outside SASL ({})", conn.label, conn.state.name)

    config = conn.config
    for line in authenticate_lines(sasl_plain_payload(config)):
        await ctx.queue_write(conn, line)
    if config.network_id:
        await ctx.queue_write(conn, f"BOUNCER BIND {config.network_id}")
    await ctx.queue_write(conn, "CAP END")
    conn.state = HandshakeState.AUTH_COMPLETE


async def handle_registration(ctx: DispatchContext, conn: Connection, msg: Message) -> None:
    if msg.command is not Command.RPL_WELCOME:
        logger.trace("{}: {} {}", conn.label, msg.command.name, msg.params)
        return
    logger.info("{}: registered as {}", conn.label, msg.params[0] if msg.params else "?")
    if conn.config.network_id is None and CAP_BOUNCER_NETWORKS in conn.caps:
        await ctx.queue_write(conn, "BOUNCER LISTNETWORKS")


async def handle_sasl_result(ctx: DispatchContext, conn: Connection, msg: Message) -> None:
    text = msg.params[-1] if msg.params else ""
    if msg.command is Command.RPL_LOGGEDIN:
        logger.info("{}: {}", conn.label, text or "logged in")
    elif msg.command is Command.RPL_SASLSUCCESS:
        logger.info("{}: SASL authentication successful", conn.label)
    else:
        logger.error("{}: SASL authentication failed: {}", conn.label, text)


async def handle_ping(ctx: DispatchContext, conn: Connection, msg: Message) -> None:
    token = msg.params[-1] if msg.params else ""
    await ctx.queue_write(conn, f"PONG :{token}" if token else "PONG")
