"""Per-peer request ordering for the FastMCP bindings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import anyio
from fastmcp.exceptions import ToolError
from fastmcp.server.middleware import Middleware, MiddlewareContext

from ..logger import get_logger
from .dispatcher import CallFailure, Dispatcher, parse_call_request
from .errors import TransportDecodeError
from .peers import PeerClosedError, PeerRegistry
from .tools import to_tool_result

if TYPE_CHECKING:
    from fastmcp.server.middleware import CallNext

_log = get_logger("tellescope_mcp.gateway.middleware")


class _LocalPeer:
    """Stands in for the session when the request context does not expose one."""


_LOCAL_PEER = _LocalPeer()


def _peer_key(context: MiddlewareContext[Any]) -> object:
    ctx = context.fastmcp_context
    if ctx is None:
        return _LOCAL_PEER
    try:
        session = ctx.session
    except (RuntimeError, ValueError):
        return _LOCAL_PEER
    return session if session is not None else _LOCAL_PEER


class PeerOrderingMiddleware(Middleware):
    """Serve one request at a time per peer; peers run independently.

    Tool names absent from the catalog never reach FastMCP's lookup: they go
    through the dispatcher so the caller gets the same name-format or
    unknown-resource failure as any other transport would produce.
    """

    def __init__(self, dispatcher: Dispatcher, peers: PeerRegistry) -> None:
        self._dispatcher = dispatcher
        self._peers = peers

    async def on_call_tool(self, context: MiddlewareContext[Any], call_next: CallNext[Any, Any]) -> Any:
        # Cancellation ends this one request; the peer and anything queued on
        # its lock stay until the session itself goes away.
        peer = self._peers.attach(_peer_key(context))
        name = context.message.name
        try:
            async with peer.serving():
                if name in self._dispatcher.catalog:
                    return await call_next(context)
                try:
                    request = parse_call_request({"name": name, "arguments": context.message.arguments})
                except TransportDecodeError as exc:
                    raise ToolError(CallFailure(str(exc)).text) from exc
                return to_tool_result(await self._dispatcher.call(request))
        except PeerClosedError as exc:
            raise ToolError(CallFailure(str(exc)).text) from exc
        except anyio.get_cancelled_exc_class():
            _log.warning(
                f"Call {name} on {peer.peer_id} cancelled; response discarded",
                extra={"event": "peer_response_discarded", "peer_id": peer.peer_id, "tool_name": name},
            )
            raise

    async def on_list_tools(self, context: MiddlewareContext[Any], call_next: CallNext[Any, Any]) -> Any:
        peer = self._peers.attach(_peer_key(context))
        async with peer.serving():
            return await call_next(context)
