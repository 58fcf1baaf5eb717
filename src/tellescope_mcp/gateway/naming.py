"""Tool name codec: ``<resource>_get_<one|page>``."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from .errors import NameFormatError

SEPARATOR = "_get_"

_TOOL_NAME_RE = re.compile(r"(.+)_get_(one|page)")


class Operation(str, Enum):
    """Backend operation addressed by a tool; the value is the name suffix."""

    FETCH_ONE = "one"
    FETCH_PAGE = "page"


@dataclass(frozen=True)
class ToolName:
    resource: str
    operation: Operation

    def __str__(self) -> str:
        return encode_tool_name(self.resource, self.operation)


def encode_tool_name(resource: str, operation: Operation) -> str:
    if not resource:
        raise ValueError("resource type name must not be empty")
    if SEPARATOR in resource:
        raise ValueError(f"resource type name {resource!r} must not contain {SEPARATOR!r}")
    return f"{resource}{SEPARATOR}{Operation(operation).value}"


def decode_tool_name(name: object) -> ToolName:
    """Split a tool name into its resource type and operation.

    Raises:
        NameFormatError: If ``name`` is not a string matching the convention.
    """
    if not isinstance(name, str):
        raise NameFormatError(name)
    match = _TOOL_NAME_RE.fullmatch(name)
    if match is None:
        raise NameFormatError(name)
    resource, suffix = match.groups()
    if SEPARATOR in resource:
        raise NameFormatError(name)
    return ToolName(resource=resource, operation=Operation(suffix))
