"""Per-connection session state: channels and the user registry.

Mutated only from the dispatch loop. Channels hold references into the
session's user registry, never copies.
"""

from __future__ import annotations

import zlib
from dataclasses import dataclass, field

from zircon.core.constants import NICK_COLORS


def nick_color(nick: str) -> int:
    """Stable palette color for a nick."""
    return NICK_COLORS[zlib.crc32(nick.encode("utf-8")) % len(NICK_COLORS)]


@dataclass(eq=False)
class User:
    """A user known to one connection."""

    nick: str
    away: bool = False
    color: int = -1

    def __post_init__(self) -> None:
        if self.color < 0:
            self.color = nick_color(self.nick)


@dataclass(eq=False)
class Channel:
    """A channel on one connection."""

    name: str
    topic: str | None = None
    members: list[User] = field(default_factory=list)

    def has_member(self, user: User) -> bool:
        return any(m is user for m in self.members)

    def add_member(self, user: User) -> bool:
        """Append user unless already listed. Returns True if appended."""
        if self.has_member(user):
            return False
        self.members.append(user)
        return True

    def sort_members(self) -> None:
        """Order members case-sensitively by nick."""
        self.members.sort(key=lambda u: u.nick)


class Session:
    """Channel collection and user registry for a single connection."""

    def __init__(self) -> None:
        self.channels: dict[str, Channel] = {}
        self.users: dict[str, User] = {}

    def get_or_create_channel(self, name: str) -> Channel:
        channel = self.channels.get(name)
        if channel is None:
            channel = Channel(name)
            self.channels[name] = channel
        return channel

    def get_or_create_user(self, nick: str) -> User:
        user = self.users.get(nick)
        if user is None:
            user = User(nick)
            self.users[nick] = user
        return user

    def clear(self) -> None:
        """Release all channels and users."""
        for channel in self.channels.values():
            channel.members.clear()
        self.channels.clear()
        self.users.clear()
