"""MCP client for remote tool providers.

This package provides the async client used to list and call tools served
by a Model Context Protocol server over HTTP.
"""

from mapchat_server.mcp.client import McpClient, McpError

__all__ = ["McpClient", "McpError"]
