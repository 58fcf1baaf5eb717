"""Gateway errors.

Every ``GatewayError`` is recovered at the boundary closest to where it is
raised and reported to the caller as a failure envelope. ``ConfigError`` is
the only fatal one and is raised before any transport binding opens.
"""

from __future__ import annotations

from collections.abc import Sequence


class GatewayError(Exception):
    """Base class for failures surfaced to the calling agent."""


class NameFormatError(GatewayError, ValueError):
    def __init__(self, tool_name: object) -> None:
        self.tool_name = tool_name
        super().__init__(f"Invalid tool name format: {tool_name}")


class UnknownResourceError(GatewayError, LookupError):
    def __init__(self, resource: str, *, reason: str | None = None) -> None:
        self.resource = resource
        message = f"Unknown resource type: {resource}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class UnsupportedOperationError(GatewayError):
    def __init__(self, resource: str, operation: str) -> None:
        self.resource = resource
        self.operation = operation
        super().__init__(f"Resource '{resource}' does not support operation '{operation}'")


class ValidationError(GatewayError, ValueError):
    """Call arguments failed the operation's shape requirements."""

    def __init__(self, tool_name: str, problems: Sequence[tuple[str, str]]) -> None:
        self.tool_name = tool_name
        self.problems = tuple(problems)
        details = "; ".join(f"{field}: {reason}" if field else reason for field, reason in self.problems)
        super().__init__(f"Invalid arguments for {tool_name}: {details}")

    @property
    def fields(self) -> tuple[str, ...]:
        return tuple(field for field, _ in self.problems if field)


class BackendError(GatewayError, RuntimeError):
    def __init__(self, *, tool_name: str, cause: BaseException) -> None:
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(str(cause) or type(cause).__name__)


class ResponseEncodingError(GatewayError, ValueError):
    """Backend returned a value that cannot be written as strict JSON."""

    def __init__(self, tool_name: str, cause: BaseException) -> None:
        self.tool_name = tool_name
        self.cause = cause
        super().__init__(f"Response for {tool_name} is not valid JSON: {cause}")


class TransportDecodeError(GatewayError, ValueError):
    """Inbound message could not be parsed into a call request."""


class ConfigError(ValueError):
    """Startup configuration is missing or invalid."""
