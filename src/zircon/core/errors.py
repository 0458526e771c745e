"""zircon domain exceptions."""

from __future__ import annotations


class ZirconError(Exception):
    """Base for zircon domain errors."""

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, object] | None = None,
        original_error: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.details = details or {}
        self.original_error = original_error


class ZirconConfigurationError(ZirconError):
    """Config validation or load failure."""


class ProtocolError(ZirconError):
    """A single protocol message could not be handled. Never fatal."""


class MissingParameterError(ProtocolError):
    """A handler expected more parameters than the message carries."""

    def __init__(self, command: str, index: int) -> None:
        super().__init__(
            f"{command}: missing parameter {index}",
            code="missing_parameter",
            details={"command": command, "index": index},
        )
        self.command = command
        self.index = index
