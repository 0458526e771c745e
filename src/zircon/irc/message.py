"""IRC wire parsing: one line in, one Message out."""

from __future__ import annotations

from dataclasses import dataclass, field

from zircon.core.errors import MissingParameterError
from zircon.irc.commands import Command

_TAG_UNESCAPES = {":": ";", "s": " ", "\\": "\\", "r": "\r", "n": "\n"}


@dataclass
class Message:
    """A parsed protocol line."""

    raw: str
    command: Command
    token: str = ""  # command as received, kept for logging UNKNOWN lines
    source: str | None = None
    params: list[str] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)

    @property
    def nick(self) -> str | None:
        """Nick part of the source (before the first '!')."""
        if self.source is None:
            return None
        return self.source.split("!", 1)[0]

    def param(self, index: int) -> str:
        """Return params[index] or raise MissingParameterError."""
        if index < len(self.params):
            return self.params[index]
        raise MissingParameterError(self.token or self.command.name, index)


def unescape_tag_value(value: str) -> str:
    """Undo IRCv3 message-tag escaping. A trailing lone backslash is dropped."""
    if "\\" not in value:
        return value
    out: list[str] = []
    chars = iter(value)
    for ch in chars:
        if ch != "\\":
            out.append(ch)
            continue
        nxt = next(chars, None)
        if nxt is None:
            break
        out.append(_TAG_UNESCAPES.get(nxt, nxt))
    return "".join(out)


def _parse_tags(raw_tags: str) -> dict[str, str]:
    tags: dict[str, str] = {}
    for tag in raw_tags.split(";"):
        if not tag:
            continue
        if "=" in tag:
            k, v = tag.split("=", 1)
        else:
            k, v = tag, ""
        tags[k] = unescape_tag_value(v)
    return tags


def parse_message(line: str) -> Message:
    """Parse one line (CRLF already stripped). Never raises.

    Lines without a command token come back as Command.UNKNOWN.
    """
    original = line
    tags: dict[str, str] = {}
    source: str | None = None

    if line.startswith("@"):
        tags_part, _, line = line.partition(" ")
        tags = _parse_tags(tags_part[1:])
        line = line.lstrip(" ")

    if line.startswith(":"):
        source, _, line = line[1:].partition(" ")
        line = line.lstrip(" ")

    params: list[str] = []
    token = ""
    rest = line
    while rest:
        if rest.startswith(":") and token:
            # Trailing parameter: rest of line verbatim
            params.append(rest[1:])
            break
        word, _, rest = rest.partition(" ")
        rest = rest.lstrip(" ")
        if not word:
            continue
        if not token:
            token = word
        else:
            params.append(word)

    return Message(
        raw=original,
        command=Command.parse(token),
        token=token,
        source=source,
        params=params,
        tags=tags,
    )
