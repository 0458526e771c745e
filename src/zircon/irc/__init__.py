"""IRC wire layer: command classification and line parsing."""

from zircon.irc.commands import REGISTRATION_REPLIES, Command
from zircon.irc.message import Message, parse_message, unescape_tag_value

__all__ = [
    "REGISTRATION_REPLIES",
    "Command",
    "Message",
    "parse_message",
    "unescape_tag_value",
]
