"""Config loading: YAML file, then .env and the ZIRCON_* environment overlay."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from loguru import logger

from zircon.core.errors import ZirconConfigurationError

ENV_PASSWORD = "ZIRCON_PASSWORD"
ENV_TLS_VERIFY = "ZIRCON_TLS_VERIFY"


def _deep_update(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge override into base."""
    result = dict(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_update(result[key], value)
        else:
            result[key] = value
    return result


def parse_bool(value: Any) -> bool | None:
    """Bool from a YAML, env or scripted value; None if not recognized."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        v = value.strip().lower()
        if v in ("1", "true", "yes", "on"):
            return True
        if v in ("0", "false", "no", "off"):
            return False
    return None


def load_config(path: str | Path) -> dict[str, Any]:
    """Read the YAML config at path.

    A missing or empty file yields {}. Unparseable YAML, a top level that is
    not a mapping, or a ``connections`` key that is not a list raise
    ZirconConfigurationError.
    """
    path = Path(path)
    if not path.exists():
        logger.warning("Config file not found: {}", path)
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        logger.error("Failed to parse config {}: {}", path, exc)
        raise ZirconConfigurationError(
            f"cannot parse {path}",
            code="invalid_yaml",
            details={"path": str(path)},
            original_error=exc,
        ) from exc

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ZirconConfigurationError(
            f"{path}: top level must be a mapping",
            code="invalid_structure",
            details={"path": str(path), "type": type(data).__name__},
        )
    connections = data.get("connections")
    if connections is not None and not isinstance(connections, list):
        raise ZirconConfigurationError(
            f"{path}: connections must be a list",
            code="invalid_connections",
            details={"path": str(path), "type": type(connections).__name__},
        )
    return data


def apply_env_overrides(
    data: dict[str, Any], environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Overlay the ZIRCON_* variables onto loaded config data.

    ZIRCON_PASSWORD fills in every connection that has no password of its
    own. ZIRCON_TLS_VERIFY replaces ``tls_verify`` when it reads as a bool.
    data is not modified.
    """
    env = os.environ if environ is None else environ
    result = dict(data)

    password = env.get(ENV_PASSWORD, "")
    connections = result.get("connections")
    if password and isinstance(connections, list):
        result["connections"] = [
            {**item, "password": password}
            if isinstance(item, dict) and not item.get("password")
            else item
            for item in connections
        ]

    raw_verify = env.get(ENV_TLS_VERIFY, "")
    if raw_verify:
        verify = parse_bool(raw_verify)
        if verify is None:
            logger.warning("Ignoring {}={!r}: not a boolean", ENV_TLS_VERIFY, raw_verify)
        else:
            result["tls_verify"] = verify
    return result


def load_config_with_env(path: str | Path) -> dict[str, Any]:
    """Load .env, then the YAML at path, then apply the ZIRCON_* overlay."""
    from dotenv import load_dotenv

    load_dotenv()
    return apply_env_overrides(load_config(path))
