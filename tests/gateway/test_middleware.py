"""Tests for per-peer ordering and cancellation in the FastMCP middleware."""

from __future__ import annotations

import logging
from types import SimpleNamespace

import anyio
import pytest
from fastmcp.exceptions import ToolError

from tellescope_mcp.gateway.dispatcher import Dispatcher
from tellescope_mcp.gateway.middleware import PeerOrderingMiddleware
from tellescope_mcp.gateway.peers import PeerRegistry, PeerState


class Session:
    """Weak-referenceable stand-in for an MCP session."""


class ChainRecorder:
    """Stands in for the rest of the FastMCP chain.

    ``blocked`` waits until ``release`` is set; every other id answers at once.
    """

    def __init__(self) -> None:
        self.events: list[str] = []
        self.started = anyio.Event()
        self.release = anyio.Event()

    async def __call__(self, context) -> str:
        record_id = context.message.arguments["id"]
        self.events.append(f"start:{record_id}")
        if record_id == "blocked":
            self.started.set()
            await self.release.wait()
        self.events.append(f"end:{record_id}")
        return record_id


class EventRecorder(logging.Handler):
    def __init__(self) -> None:
        super().__init__(level=logging.DEBUG)
        self.events: list[str | None] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.events.append(getattr(record, "event", None))


def _context(session: Session, record_id: str, name: str = "templates_get_one"):
    return SimpleNamespace(
        message=SimpleNamespace(name=name, arguments={"id": record_id}),
        fastmcp_context=SimpleNamespace(session=session),
    )


@pytest.fixture
def registry() -> PeerRegistry:
    return PeerRegistry()


@pytest.fixture
def middleware(catalog, capabilities, registry) -> PeerOrderingMiddleware:
    return PeerOrderingMiddleware(Dispatcher(catalog, capabilities), registry)


@pytest.fixture
def logged_events():
    recorder = EventRecorder()
    logger = logging.getLogger("tellescope_mcp.gateway.middleware")
    logger.addHandler(recorder)
    yield recorder.events
    logger.removeHandler(recorder)


# =============================================================================
# Cancellation
# =============================================================================


class TestCancelledCall:
    """A call cancelled mid-flight is discarded without disturbing its peer."""

    @pytest.mark.anyio
    async def test_session_keeps_order_after_cancel(self, middleware, registry, logged_events) -> None:
        session = Session()
        chain = ChainRecorder()
        results: dict[str, str] = {}
        blocked_scope = anyio.CancelScope()

        async def call(record_id: str) -> None:
            results[record_id] = await middleware.on_call_tool(_context(session, record_id), chain)

        async def blocked_call() -> None:
            with blocked_scope:
                await call("blocked")

        with anyio.fail_after(5):
            async with anyio.create_task_group() as tg:
                tg.start_soon(blocked_call)
                await chain.started.wait()
                peer = registry.get(session)
                tg.start_soon(call, "queued")
                await anyio.sleep(0.02)
                assert chain.events == ["start:blocked"]
                blocked_scope.cancel()

            await call("after-1")
            await call("after-2")

        assert results == {"queued": "queued", "after-1": "after-1", "after-2": "after-2"}
        assert chain.events == [
            "start:blocked",
            "start:queued",
            "end:queued",
            "start:after-1",
            "end:after-1",
            "start:after-2",
            "end:after-2",
        ]
        assert registry.get(session) is peer
        assert peer.state is PeerState.CONNECTED
        assert len(registry) == 1
        assert logged_events == ["peer_response_discarded"]

    @pytest.mark.anyio
    async def test_disconnect_leaves_other_peers_serving(self, middleware, registry, logged_events) -> None:
        gone, live = Session(), Session()
        chain = ChainRecorder()
        results: dict[str, str] = {}

        async def call(session: Session, record_id: str) -> None:
            results[record_id] = await middleware.on_call_tool(_context(session, record_id), chain)

        with anyio.fail_after(5):
            async with anyio.create_task_group() as connection:
                connection.start_soon(call, gone, "blocked")
                await chain.started.wait()
                await call(live, "t1")
                # Dropping the connection cancels its in-flight handler.
                connection.cancel_scope.cancel()

            await call(live, "t2")

        assert results == {"t1": "t1", "t2": "t2"}
        assert "end:blocked" not in chain.events
        assert logged_events == ["peer_response_discarded"]
        assert not registry.get(live).closed
        assert registry.get(live).calls_served == 2


# =============================================================================
# Closed peers
# =============================================================================


class TestClosedPeer:
    @pytest.mark.anyio
    async def test_queued_call_on_closed_peer_is_error_result(self, middleware, registry) -> None:
        session = Session()
        chain = ChainRecorder()
        results: dict[str, str] = {}
        errors: list[str] = []

        async def call(record_id: str) -> None:
            try:
                results[record_id] = await middleware.on_call_tool(_context(session, record_id), chain)
            except ToolError as exc:
                errors.append(str(exc))

        with anyio.fail_after(5):
            async with anyio.create_task_group() as tg:
                tg.start_soon(call, "blocked")
                await chain.started.wait()
                peer_id = registry.get(session).peer_id
                tg.start_soon(call, "queued")
                await anyio.sleep(0.02)
                registry.detach(session)
                chain.release.set()

        assert results == {"blocked": "blocked"}
        assert errors == [f"Error: Peer {peer_id} is closed"]
        assert "start:queued" not in chain.events

    @pytest.mark.anyio
    async def test_names_outside_catalog_fail_with_error_prefix(self, middleware, registry) -> None:
        chain = ChainRecorder()

        with pytest.raises(ToolError, match="^Error: Invalid tool name format: bogus"):
            await middleware.on_call_tool(_context(Session(), "x", name="bogus"), chain)

        assert chain.events == []
