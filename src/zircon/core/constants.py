"""Protocol and runtime constants."""

from __future__ import annotations

CRLF = "\r\n"

# Queue bounds (overridable from config)
EVENT_QUEUE_SIZE = 512
WRITE_QUEUE_SIZE = 128

DEFAULT_PORT = 6697

# Capabilities
CAP_SASL = "sasl"
CAP_AWAY_NOTIFY = "away-notify"
CAP_BOUNCER_NETWORKS = "soju.im/bouncer-networks"
CAP_BOUNCER_NETWORKS_NOTIFY = "soju.im/bouncer-networks-notify"

# SASL: AUTHENTICATE payloads are sent in chunks of at most 400 bytes
SASL_CHUNK_SIZE = 400
SASL_CONTINUE = "+"

# BOUNCER NETWORK attribute value meaning "network deleted"
NETWORK_DELETED = "*"

# NAMES membership prefixes (owner, admin, op, halfop, voice)
MEMBERSHIP_PREFIXES = "~&@%+"

# xterm-256 indices readable on both dark and light backgrounds
NICK_COLORS: tuple[int, ...] = (
    1, 2, 3, 4, 5, 6, 9, 10, 11, 12, 13, 14,
    33, 39, 69, 75, 99, 105, 130, 136, 166, 172, 202, 208,
)
