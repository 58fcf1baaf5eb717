"""MCP gateway exposing Tellescope fetch operations as dynamically named tools."""

from .catalog import DEFAULT_RESOURCES, ResourceType, ToolCatalog, ToolDescriptor, build_catalog
from .dispatcher import CallFailure, CallRequest, CallResult, CallSuccess, Dispatcher, parse_call_request
from .errors import (
    BackendError,
    ConfigError,
    GatewayError,
    NameFormatError,
    ResponseEncodingError,
    TransportDecodeError,
    UnknownResourceError,
    UnsupportedOperationError,
    ValidationError,
)
from .naming import Operation, decode_tool_name, encode_tool_name
from .server import create_gateway

__all__ = [
    "DEFAULT_RESOURCES",
    "BackendError",
    "CallFailure",
    "CallRequest",
    "CallResult",
    "CallSuccess",
    "ConfigError",
    "Dispatcher",
    "GatewayError",
    "NameFormatError",
    "Operation",
    "ResourceType",
    "ResponseEncodingError",
    "ToolCatalog",
    "ToolDescriptor",
    "TransportDecodeError",
    "UnknownResourceError",
    "UnsupportedOperationError",
    "ValidationError",
    "build_catalog",
    "create_gateway",
    "decode_tool_name",
    "encode_tool_name",
    "parse_call_request",
]
