"""Tellescope MCP gateway - follows official SDK patterns."""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastmcp import FastMCP

from ..logger import get_logger
from .backend import CapabilityTable
from .catalog import DEFAULT_RESOURCES, ResourceType, ToolCatalog, build_catalog
from .config import GatewayConfig, load_config
from .dispatcher import Dispatcher
from .middleware import PeerOrderingMiddleware
from .peers import PeerRegistry
from .prompts import QUERY_GUIDE
from .rest import RestClient, build_capability_table
from .tools import ResourceTool

SERVER_NAME = "tellescope-mcp-server"

INSTRUCTIONS = (
    "Read-only access to Tellescope records. Tools are named <resource>_get_one "
    "(fetch by id) and <resource>_get_page (filtered, cursor-paginated list)."
)


@dataclass
class GatewayContext:
    """Lifespan context holding initialized resources."""

    dispatcher: Dispatcher
    peers: PeerRegistry


def create_gateway(
    config: GatewayConfig | None = None,
    *,
    resources: Sequence[ResourceType] = DEFAULT_RESOURCES,
    capabilities: CapabilityTable | None = None,
    catalog: ToolCatalog | None = None,
) -> FastMCP[GatewayContext]:
    """Create the Tellescope MCP gateway server.

    Catalog, capability table and dispatcher are built here, once, and shared
    by every connection the returned server accepts.

    Args:
        config: Process configuration. Loaded from the environment when
            omitted and no ``capabilities`` are given.
        resources: Resource types to advertise.
        capabilities: Backend capability table. Defaults to the REST backend
            built from ``config``.
        catalog: Pre-built catalog; defaults to ``build_catalog(resources)``.

    Returns:
        Configured FastMCP server ready to run

    Raises:
        ConfigError: If the configuration is missing or invalid.
    """
    log = get_logger("tellescope_mcp.gateway")

    if catalog is None:
        catalog = build_catalog(resources)
    if capabilities is None:
        config = config or load_config()
        client = RestClient(config.api_key, config.api_host, timeout=config.request_timeout)
        capabilities = build_capability_table(client, catalog.resource_types())

    dispatcher = Dispatcher(
        catalog,
        capabilities,
        page_envelope=config.page_envelope if config else False,
    )
    peers = PeerRegistry()

    # Runs once per served connection; shared state outlives it and peers
    # leave the registry with their session.
    @asynccontextmanager
    async def gateway_lifespan(_server: FastMCP) -> AsyncIterator[GatewayContext]:
        log.info(
            f"Gateway initialized with {len(catalog)} tools over {len(capabilities)} resource types",
            extra={"event": "gateway_start", "tool_count": len(catalog), "active_peers": len(peers)},
        )
        try:
            yield GatewayContext(dispatcher=dispatcher, peers=peers)
        finally:
            log.info("Gateway session ended", extra={"event": "gateway_stop", "active_peers": len(peers)})

    mcp: FastMCP[GatewayContext] = FastMCP(
        SERVER_NAME,
        instructions=INSTRUCTIONS,
        lifespan=gateway_lifespan,
    )
    mcp.add_middleware(PeerOrderingMiddleware(dispatcher, peers))

    for descriptor in catalog:
        mcp.add_tool(ResourceTool.from_descriptor(descriptor, dispatcher.call))

    @mcp.prompt()
    def query_guide() -> str:
        """How to name, filter and paginate Tellescope tool calls."""
        return QUERY_GUIDE

    @mcp.resource("tellescope://docs/query-guide")
    def query_guide_resource() -> str:
        """Tool naming, filtering and cursor pagination guide."""
        return QUERY_GUIDE

    return mcp
