"""
tellescope_mcp - MCP gateway for reading Tellescope records.
"""

__version__ = "0.1.0"
