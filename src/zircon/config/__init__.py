"""Configuration: YAML + env overlay."""

from zircon.config.loader import (
    _deep_update,
    apply_env_overrides,
    load_config,
    load_config_with_env,
    parse_bool,
)
from zircon.config.schema import Config, cfg

__all__ = [
    "Config",
    "_deep_update",
    "apply_env_overrides",
    "cfg",
    "load_config",
    "load_config_with_env",
    "parse_bool",
]
