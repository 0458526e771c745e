"""Test wire parsing and command classification."""

import pytest

from zircon.core.errors import MissingParameterError
from zircon.irc.commands import REGISTRATION_REPLIES, Command
from zircon.irc.message import parse_message, unescape_tag_value


class TestCommandParse:
    """Test Command.parse token mapping."""

    @pytest.mark.parametrize(
        ("token", "expected"),
        [
            ("001", Command.RPL_WELCOME),
            ("002", Command.RPL_YOURHOST),
            ("003", Command.RPL_CREATED),
            ("004", Command.RPL_MYINFO),
            ("005", Command.RPL_ISUPPORT),
            ("332", Command.RPL_TOPIC),
            ("353", Command.RPL_NAMREPLY),
            ("900", Command.RPL_LOGGEDIN),
            ("903", Command.RPL_SASLSUCCESS),
            ("CAP", Command.CAP),
            ("AUTHENTICATE", Command.AUTHENTICATE),
            ("BOUNCER", Command.BOUNCER),
            ("AWAY", Command.AWAY),
        ],
    )
    def test_recognized_tokens(self, token, expected):
        assert Command.parse(token) is expected

    def test_words_are_case_insensitive(self):
        assert Command.parse("cap") is Command.CAP

    @pytest.mark.parametrize("token", ["PRIVMSG", "366", "JOIN", "", None, "01"])
    def test_unrecognized_tokens(self, token):
        assert Command.parse(token) is Command.UNKNOWN

    def test_registration_replies_are_numeric(self):
        assert all(c.is_numeric for c in REGISTRATION_REPLIES)
        assert not Command.CAP.is_numeric


class TestParseMessage:
    """Test parse_message."""

    def test_source_command_params(self):
        # Arrange
        line = ":irc.example.com CAP * ACK :sasl"

        # Act
        msg = parse_message(line)

        # Assert
        assert msg.source == "irc.example.com"
        assert msg.command is Command.CAP
        assert msg.token == "CAP"
        assert msg.params == ["*", "ACK", "sasl"]
        assert msg.raw == line

    def test_no_source(self):
        msg = parse_message("AUTHENTICATE +")
        assert msg.source is None
        assert msg.command is Command.AUTHENTICATE
        assert msg.params == ["+"]

    def test_trailing_keeps_spaces_verbatim(self):
        msg = parse_message(":srv 332 me #general :Welcome  here : friends")
        assert msg.params == ["me", "#general", "Welcome  here : friends"]

    def test_empty_trailing_is_a_parameter(self):
        msg = parse_message(":alice!a@host AWAY :")
        assert msg.params == [""]

    def test_no_params(self):
        msg = parse_message(":alice!a@host AWAY")
        assert msg.params == []

    def test_colon_inside_middle_param_is_not_trailing(self):
        msg = parse_message("BOUNCER NETWORK 42 name=a:b;host=x")
        assert msg.params == ["NETWORK", "42", "name=a:b;host=x"]

    def test_repeated_spaces_between_params(self):
        msg = parse_message(":srv  353  me =  #chan :a b")
        assert msg.command is Command.RPL_NAMREPLY
        assert msg.params == ["me", "=", "#chan", "a b"]

    @pytest.mark.parametrize("line", ["", "   ", ":only.a.source", "@tag=1"])
    def test_no_command_is_unknown(self, line):
        msg = parse_message(line)
        assert msg.command is Command.UNKNOWN
        assert msg.params == []

    def test_unknown_command_keeps_token(self):
        msg = parse_message(":n!u@h PRIVMSG #chan :hi there")
        assert msg.command is Command.UNKNOWN
        assert msg.token == "PRIVMSG"
        assert msg.params == ["#chan", "hi there"]

    def test_tags_are_parsed(self):
        msg = parse_message(r"@batch=abc;label=x\sy;flag :srv BOUNCER NETWORK 1 name=n")
        assert msg.tags == {"batch": "abc", "label": "x y", "flag": ""}
        assert msg.source == "srv"
        assert msg.command is Command.BOUNCER
        assert msg.params == ["NETWORK", "1", "name=n"]


class TestMessageHelpers:
    """Test Message.nick and Message.param."""

    def test_nick_from_full_source(self):
        assert parse_message(":alice!a@host AWAY").nick == "alice"

    def test_nick_without_bang_is_whole_source(self):
        assert parse_message(":alice AWAY").nick == "alice"

    def test_nick_without_source(self):
        assert parse_message("AWAY").nick is None

    def test_param_present(self):
        assert parse_message("CAP * ACK :sasl").param(2) == "sasl"

    def test_param_missing_raises(self):
        msg = parse_message(":srv 332 me #general")
        with pytest.raises(MissingParameterError) as exc_info:
            msg.param(2)
        assert exc_info.value.code == "missing_parameter"
        assert exc_info.value.index == 2
        assert exc_info.value.command == "332"


class TestUnescapeTagValue:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("plain", "plain"),
            (r"a\:b", "a;b"),
            (r"a\sb", "a b"),
            ("a\\\\b", "a\\b"),
            (r"a\rb\n", "a\rb\n"),
            (r"a\xb", "axb"),
            ("trailing\\", "trailing"),
        ],
    )
    def test_unescape(self, raw, expected):
        assert unescape_tag_value(raw) == expected
