"""Re-export from core.errors."""

from zircon.core.errors import (
    MissingParameterError,
    ProtocolError,
    ZirconConfigurationError,
    ZirconError,
)

__all__ = [
    "MissingParameterError",
    "ProtocolError",
    "ZirconConfigurationError",
    "ZirconError",
]
