from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from .errors import ConfigError
from .rest import DEFAULT_API_HOST, DEFAULT_TIMEOUT_SECONDS

TRANSPORTS = ("stdio", "sse")
TRANSPORT_ALIASES = {"http": "sse"}

DEFAULT_LISTEN_HOST = "127.0.0.1"
DEFAULT_PORT = 3000

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


@dataclass(frozen=True)
class GatewayConfig:
    """Process configuration for the gateway."""

    api_key: str
    api_host: str = DEFAULT_API_HOST
    transport: str = "stdio"
    host: str = DEFAULT_LISTEN_HOST
    port: int = DEFAULT_PORT
    page_envelope: bool = False
    request_timeout: float = DEFAULT_TIMEOUT_SECONDS

    def __post_init__(self) -> None:
        if not self.api_key:
            raise ConfigError("TELLESCOPE_API_KEY environment variable is required")
        transport = TRANSPORT_ALIASES.get(self.transport, self.transport)
        if transport not in TRANSPORTS:
            raise ConfigError(f"Unsupported transport: {self.transport} (expected one of: stdio, sse, http)")
        object.__setattr__(self, "transport", transport)
        if not 0 < self.port < 65536:
            raise ConfigError(f"Port out of range: {self.port}")
        if self.request_timeout <= 0:
            raise ConfigError(f"Request timeout must be positive: {self.request_timeout}")


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _parse_number(name: str, raw: str, kind: type[int] | type[float]) -> int | float:
    try:
        return kind(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def load_config(environ: Mapping[str, str] | None = None, **overrides: object) -> GatewayConfig:
    """Build a GatewayConfig from environment variables.

    Reads:
        TELLESCOPE_API_KEY (required), TELLESCOPE_HOST, MCP_TRANSPORT,
        HOST, PORT, TELLESCOPE_PAGE_ENVELOPE, TELLESCOPE_TIMEOUT

    Keyword overrides that are not None win over the environment.
    """
    env = os.environ if environ is None else environ

    values: dict[str, object] = {
        "api_key": env.get("TELLESCOPE_API_KEY", "").strip(),
        "api_host": env.get("TELLESCOPE_HOST") or DEFAULT_API_HOST,
        "transport": (env.get("MCP_TRANSPORT") or "stdio").strip().lower(),
        "host": env.get("HOST") or DEFAULT_LISTEN_HOST,
    }
    if env.get("PORT"):
        values["port"] = _parse_number("PORT", env["PORT"], int)
    if env.get("TELLESCOPE_PAGE_ENVELOPE") is not None:
        values["page_envelope"] = _parse_bool("TELLESCOPE_PAGE_ENVELOPE", env["TELLESCOPE_PAGE_ENVELOPE"])
    if env.get("TELLESCOPE_TIMEOUT"):
        values["request_timeout"] = _parse_number("TELLESCOPE_TIMEOUT", env["TELLESCOPE_TIMEOUT"], float)

    values.update({key: value for key, value in overrides.items() if value is not None})
    return GatewayConfig(**values)  # type: ignore[arg-type]
