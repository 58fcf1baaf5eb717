"""Route tool calls to backend capabilities and normalize the outcome.

The dispatcher is transport-agnostic: a ``CallRequest`` goes in, a
``CallResult`` comes out. Nothing raised while handling one call escapes
``Dispatcher.call``. That includes a backend value that cannot be written
as strict JSON, so response text is produced here rather than by a binding.
"""

from __future__ import annotations

import json
import time
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from ..logger import get_logger
from .backend import CapabilityTable, SupportsFetchOne, SupportsFetchPage
from .catalog import ToolCatalog
from .errors import (
    BackendError,
    GatewayError,
    ResponseEncodingError,
    TransportDecodeError,
    UnknownResourceError,
    UnsupportedOperationError,
)
from .naming import Operation, decode_tool_name
from .validation import FetchArgs, FetchOneArgs, validate_arguments

_log = get_logger("tellescope_mcp.gateway.dispatcher")

ERROR_PREFIX = "Error: "


# =============================================================================
# Request / Result
# =============================================================================


@dataclass(frozen=True)
class CallRequest:
    tool_name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CallSuccess:
    payload: Any
    text: str

    is_error = False

    @classmethod
    def from_payload(cls, payload: Any) -> CallSuccess:
        """Serialize ``payload`` up front; NaN, infinities and non-JSON types raise."""
        return cls(payload, json.dumps(payload, indent=2, allow_nan=False))

    def to_envelope(self) -> dict[str, Any]:
        return {"isError": False, "content": [{"type": "text", "text": self.text}]}


@dataclass(frozen=True)
class CallFailure:
    message: str

    is_error = True

    @property
    def text(self) -> str:
        return f"{ERROR_PREFIX}{self.message}"

    def to_envelope(self) -> dict[str, Any]:
        return {"isError": True, "content": [{"type": "text", "text": self.text}]}


CallResult = CallSuccess | CallFailure


def parse_call_request(payload: Any) -> CallRequest:
    """Turn a raw ``{name, arguments}`` envelope into a ``CallRequest``.

    Raises:
        TransportDecodeError: If the envelope is structurally invalid.
    """
    if not isinstance(payload, Mapping):
        raise TransportDecodeError(f"call envelope must be an object, got {type(payload).__name__}")
    name = payload.get("name")
    if not isinstance(name, str):
        raise TransportDecodeError("call envelope requires a string 'name'")
    arguments = payload.get("arguments")
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise TransportDecodeError("call envelope 'arguments' must be an object")
    return CallRequest(tool_name=name, arguments=dict(arguments))


def next_cursor(records: Any, limit: int | None = None) -> str | None:
    """Identifier to pass as ``cursor`` for the page after ``records``.

    ``None`` when there is nothing further to fetch: the page is empty or
    shorter than the requested limit.
    """
    if not isinstance(records, Sequence) or isinstance(records, (str, bytes)) or not records:
        return None
    if limit is not None and len(records) < limit:
        return None
    last = records[-1]
    if not isinstance(last, Mapping):
        return None
    cursor = last.get("id", last.get("_id"))
    return str(cursor) if cursor is not None else None


# =============================================================================
# Dispatcher
# =============================================================================


class Dispatcher:
    """Decode, validate, resolve and invoke - one backend round trip per call."""

    def __init__(
        self,
        catalog: ToolCatalog,
        capabilities: CapabilityTable,
        *,
        page_envelope: bool = False,
    ) -> None:
        self._catalog = catalog
        self._capabilities = capabilities
        self._page_envelope = page_envelope

    @property
    def catalog(self) -> ToolCatalog:
        return self._catalog

    def list_tools(self) -> list[dict[str, Any]]:
        return self._catalog.to_list()

    async def handle(self, payload: Any) -> dict[str, Any]:
        """Envelope in, envelope out."""
        try:
            request = parse_call_request(payload)
        except TransportDecodeError as exc:
            _log.warning(
                f"Rejected call envelope: {exc}",
                extra={"event": "call_decode_error", "error_message": str(exc)},
            )
            return CallFailure(str(exc)).to_envelope()
        result = await self.call(request)
        return result.to_envelope()

    async def call(self, request: CallRequest) -> CallResult:
        tool_name = request.tool_name
        _log.info(
            f"Tool: {tool_name}",
            extra={
                "event": "tool_call_start",
                "tool_name": tool_name,
                "input_args": dict(request.arguments),
            },
        )

        start_time = time.perf_counter()
        try:
            payload = await self._dispatch(request)
            try:
                result = CallSuccess.from_payload(payload)
            except (TypeError, ValueError) as exc:
                raise ResponseEncodingError(tool_name, exc) from exc
        except GatewayError as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            _log.error(
                f"Tool: {tool_name} FAILED [Duration: {duration_ms:.2f}ms]",
                extra={
                    "event": "tool_call_error",
                    "tool_name": tool_name,
                    "duration_ms": duration_ms,
                    "error_type": type(exc).__name__,
                    "error_message": str(exc),
                },
                exc_info=isinstance(exc, BackendError),
            )
            return CallFailure(str(exc))

        duration_ms = (time.perf_counter() - start_time) * 1000
        _log.info(
            f"Tool: {tool_name} [Duration: {duration_ms:.2f}ms]",
            extra={
                "event": "tool_call_complete",
                "tool_name": tool_name,
                "duration_ms": duration_ms,
            },
        )
        return result

    async def _dispatch(self, request: CallRequest) -> Any:
        name = decode_tool_name(request.tool_name)
        if not self._catalog.has_resource(name.resource):
            raise UnknownResourceError(name.resource)

        args = validate_arguments(request.tool_name, name.operation, request.arguments)
        capability = self._capabilities.resolve(name.resource)

        try:
            return await self._invoke(name.resource, capability, args)
        except GatewayError:
            raise
        except Exception as exc:
            raise BackendError(tool_name=request.tool_name, cause=exc) from exc

    async def _invoke(self, resource: str, capability: object, args: FetchArgs) -> Any:
        if isinstance(args, FetchOneArgs):
            if not isinstance(capability, SupportsFetchOne):
                raise UnsupportedOperationError(resource, Operation.FETCH_ONE.value)
            return await capability.fetch_one(args.id)

        if not isinstance(capability, SupportsFetchPage):
            raise UnsupportedOperationError(resource, Operation.FETCH_PAGE.value)
        records = await capability.fetch_page(args.to_query())
        if self._page_envelope:
            return {"items": records, "nextCursor": next_cursor(records, args.limit)}
        return records
