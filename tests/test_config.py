"""Test config loading and parsing."""

import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest
import yaml

from zircon.config import (
    Config,
    _deep_update,
    apply_env_overrides,
    load_config,
    load_config_with_env,
    parse_bool,
)
from zircon.core.errors import ZirconConfigurationError


class TestDeepUpdate:
    """Test deep dictionary merge."""

    def test_deep_update_simple(self):
        # Arrange
        base = {"a": 1, "b": 2}
        override = {"b": 3, "c": 4}

        # Act
        result = _deep_update(base, override)

        # Assert
        assert result == {"a": 1, "b": 3, "c": 4}

    def test_deep_update_nested(self):
        base = {"a": {"x": 1, "y": 2}, "b": 3}
        override = {"a": {"y": 99, "z": 100}}

        result = _deep_update(base, override)

        assert result == {"a": {"x": 1, "y": 99, "z": 100}, "b": 3}

    def test_deep_update_preserves_base(self):
        base = {"a": 1}
        _deep_update(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadConfig:
    """Test config file loading."""

    def test_load_config_from_yaml(self):
        # Arrange
        with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
            f.write("connections:\n")
            f.write("  - server: chat.example.com\n")
            f.write("    nick: bar\n")
            path = f.name

        try:
            # Act
            data = load_config(path)

            # Assert
            assert data == {"connections": [{"server": "chat.example.com", "nick": "bar"}]}
        finally:
            Path(path).unlink()

    def test_missing_file_returns_empty(self, tmp_path):
        assert load_config(tmp_path / "nope.yaml") == {}

    def test_empty_file_returns_empty(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        assert load_config(path) == {}

    def test_non_dict_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(ZirconConfigurationError) as exc_info:
            load_config(path)
        assert exc_info.value.code == "invalid_structure"
        assert exc_info.value.details["type"] == "list"

    def test_connections_must_be_list(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("connections:\n  server: chat.example.com\n")
        with pytest.raises(ZirconConfigurationError) as exc_info:
            load_config(path)
        assert exc_info.value.code == "invalid_connections"

    def test_invalid_yaml_raises(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("connections: [unclosed\n")
        with pytest.raises(ZirconConfigurationError) as exc_info:
            load_config(path)
        assert exc_info.value.code == "invalid_yaml"
        assert isinstance(exc_info.value.original_error, yaml.YAMLError)

    def test_load_with_env_loads_dotenv_then_overlays(self, tmp_path, monkeypatch):
        monkeypatch.setenv("ZIRCON_PASSWORD", "from-env")
        monkeypatch.delenv("ZIRCON_TLS_VERIFY", raising=False)
        path = tmp_path / "config.yaml"
        path.write_text("tls_verify: false\nconnections:\n  - server: a\n")

        with patch("dotenv.load_dotenv") as mock_load_dotenv:
            data = load_config_with_env(path)

        mock_load_dotenv.assert_called_once_with()
        assert data == {
            "tls_verify": False,
            "connections": [{"server": "a", "password": "from-env"}],
        }


class TestEnvOverrides:
    """Test the ZIRCON_* overlay."""

    def test_password_fills_missing_only(self):
        data = {"connections": [{"server": "a"}, {"server": "b", "password": "own"}]}

        result = apply_env_overrides(data, {"ZIRCON_PASSWORD": "from-env"})

        assert [c["password"] for c in result["connections"]] == ["from-env", "own"]
        assert "password" not in data["connections"][0]

    @pytest.mark.parametrize(("raw", "expected"), [("no", False), ("0", False), ("TRUE", True)])
    def test_tls_verify_override(self, raw, expected):
        result = apply_env_overrides({"tls_verify": not expected}, {"ZIRCON_TLS_VERIFY": raw})
        assert result["tls_verify"] is expected

    def test_unrecognized_tls_verify_ignored(self):
        result = apply_env_overrides({"tls_verify": True}, {"ZIRCON_TLS_VERIFY": "perhaps"})
        assert result["tls_verify"] is True

    def test_empty_environment_changes_nothing(self):
        data = {"connections": [{"server": "a"}], "tls_verify": False}
        assert apply_env_overrides(data, {}) == data


class TestParseBool:
    @pytest.mark.parametrize("value", [True, "true", "Yes", "1", " on "])
    def test_true(self, value):
        assert parse_bool(value) is True

    @pytest.mark.parametrize("value", [False, "false", "NO", "0", "off"])
    def test_false(self, value):
        assert parse_bool(value) is False

    @pytest.mark.parametrize("value", ["maybe", "", None, 1, 0.0])
    def test_unrecognized(self, value):
        assert parse_bool(value) is None


class TestConfig:
    """Test Config accessor."""

    def test_defaults(self):
        config = Config({})
        assert config.connections == []
        assert config.event_queue_size == 512
        assert config.write_queue_size == 128
        assert config.tls_verify is True
        assert config.log_file is None

    def test_connections_are_copies(self):
        config = Config({"connections": [{"server": "a"}]})

        config.connections[0]["server"] = "changed"

        assert config.connections == [{"server": "a"}]

    @pytest.mark.parametrize(("value", "expected"), [("false", False), ("yes", True), (False, False)])
    def test_tls_verify_reads_strings(self, value, expected):
        assert Config({"tls_verify": value}).tls_verify is expected

    def test_log_file(self):
        assert Config({"log_file": " zircon.log "}).log_file == "zircon.log"
        assert Config({"log_file": ""}).log_file is None

    def test_reload_validates_connections_type(self):
        config = Config()
        with pytest.raises(ZirconConfigurationError) as exc_info:
            config.reload({"connections": {"server": "a"}})
        assert exc_info.value.code == "invalid_connections"

    def test_reload_validates_items(self):
        config = Config()
        with pytest.raises(ZirconConfigurationError) as exc_info:
            config.reload({"connections": ["a"]})
        assert exc_info.value.code == "invalid_connection_item"
        assert exc_info.value.details == {"index": 0}

    def test_reload_requires_server(self):
        config = Config()
        with pytest.raises(ZirconConfigurationError) as exc_info:
            config.reload({"connections": [{"nick": "bar"}]})
        assert exc_info.value.code == "missing_server"

    @pytest.mark.parametrize("value", [0, -1, "big", True])
    def test_reload_validates_queue_sizes(self, value):
        config = Config()
        with pytest.raises(ZirconConfigurationError) as exc_info:
            config.reload({"write_queue_size": value})
        assert exc_info.value.code == "invalid_queue_size"

    def test_reload_validates_tls_verify(self):
        config = Config()
        with pytest.raises(ZirconConfigurationError) as exc_info:
            config.reload({"tls_verify": "sometimes"})
        assert exc_info.value.code == "invalid_tls_verify"

    def test_failed_reload_keeps_previous_data(self):
        config = Config()
        config.reload({"connections": [{"server": "a"}]})

        with pytest.raises(ZirconConfigurationError):
            config.reload({"connections": "nope"})

        assert config.connections == [{"server": "a"}]

    def test_reload_skip_validation(self):
        config = Config()
        config.reload({"connections": "nope"}, validate=False)
        assert config.connections == []
