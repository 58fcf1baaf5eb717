"""FastMCP tool adapter for catalog entries."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import Any

from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent

from .catalog import ToolDescriptor
from .dispatcher import CallFailure, CallRequest, CallResult, CallSuccess
from .naming import Operation

Dispatch = Callable[[CallRequest], Awaitable[CallResult]]


def to_tool_result(result: CallSuccess | CallFailure) -> ToolResult:
    """Translate a dispatcher result into FastMCP's wire result.

    Failures are raised as ``ToolError`` so the response carries
    ``isError: true`` with the ``Error: ...`` text as its only content.
    """
    if isinstance(result, CallFailure):
        raise ToolError(result.text)
    return ToolResult(content=[TextContent(type="text", text=result.text)])


class ResourceTool(Tool):
    """One ``<resource>_get_<one|page>`` tool, served by the shared dispatcher."""

    resource: str
    operation: Operation
    dispatch: Dispatch

    @classmethod
    def from_descriptor(cls, descriptor: ToolDescriptor, dispatch: Dispatch) -> ResourceTool:
        return cls(
            name=descriptor.name,
            description=descriptor.description,
            parameters=descriptor.inputSchema,
            resource=descriptor.resource,
            operation=descriptor.operation,
            dispatch=dispatch,
        )

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        result = await self.dispatch(CallRequest(tool_name=self.name, arguments=arguments))
        return to_tool_result(result)
