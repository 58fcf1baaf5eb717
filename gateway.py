"""Hosted entrypoint for the Tellescope gateway.

Runners that import a module-level ``mcp`` object (FastMCP Cloud,
``fastmcp run gateway.py``) serve this instance. Configuration comes from the
environment or a ``.env`` file; TELLESCOPE_API_KEY is required.
"""

from dotenv import load_dotenv

from tellescope_mcp.gateway.server import create_gateway

load_dotenv()

mcp = create_gateway()
