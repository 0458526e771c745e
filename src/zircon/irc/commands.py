"""Closed set of IRC commands the client acts on."""

from __future__ import annotations

from enum import Enum


class Command(Enum):
    """Recognized commands. Value is the wire token."""

    RPL_WELCOME = "001"
    RPL_YOURHOST = "002"
    RPL_CREATED = "003"
    RPL_MYINFO = "004"
    RPL_ISUPPORT = "005"

    RPL_TOPIC = "332"
    RPL_NAMREPLY = "353"

    RPL_LOGGEDIN = "900"
    RPL_SASLSUCCESS = "903"
    ERR_SASLFAIL = "904"
    ERR_SASLABORTED = "906"

    CAP = "CAP"
    AUTHENTICATE = "AUTHENTICATE"
    BOUNCER = "BOUNCER"
    AWAY = "AWAY"
    PING = "PING"

    UNKNOWN = ""

    @classmethod
    def parse(cls, token: str | None) -> Command:
        """Map a wire token to a Command; anything unrecognized is UNKNOWN."""
        if not token:
            return cls.UNKNOWN
        try:
            return cls(token.upper())
        except ValueError:
            return cls.UNKNOWN

    @property
    def is_numeric(self) -> bool:
        return self.value.isdigit()


REGISTRATION_REPLIES = frozenset(
    {
        Command.RPL_WELCOME,
        Command.RPL_YOURHOST,
        Command.RPL_CREATED,
        Command.RPL_MYINFO,
        Command.RPL_ISUPPORT,
    }
)
