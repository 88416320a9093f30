"""Async MCP client over streamable HTTP.

This module wraps the MCP SDK's streamable HTTP transport and ClientSession
to list and call the tools of a remote Model Context Protocol server. Each
operation opens its own initialized session, so the client holds no
connection state between requests. One attempt is made per call; retries
are left to the caller.
"""

import logging
from contextlib import asynccontextmanager
from datetime import timedelta
from typing import Any, AsyncIterator

from mcp import ClientSession
from mcp.client.streamable_http import streamablehttp_client

logger = logging.getLogger(__name__)


class McpError(Exception):
    """Raised when an MCP tool reports a failure."""


class McpClient:
    """Client for an MCP server's tools.

    The client is created once at startup and shared by every session's tool
    registry.

    Attributes:
        url: The MCP endpoint URL
        timeout: Per-request timeout in seconds
    """

    def __init__(self, url: str, timeout: float = 60.0) -> None:
        """Initialize the MCP client.

        Args:
            url: The MCP endpoint URL
            timeout: Per-request timeout in seconds
        """
        self.url = url
        self.timeout = timeout
        logger.info(f"McpClient initialized with url: {url}")

    @asynccontextmanager
    async def session(self) -> AsyncIterator[ClientSession]:
        """Open an initialized MCP session for the duration of the block."""
        async with streamablehttp_client(self.url, timeout=self.timeout) as (
            read_stream,
            write_stream,
            _,
        ):
            async with ClientSession(
                read_stream,
                write_stream,
                read_timeout_seconds=timedelta(seconds=self.timeout),
            ) as session:
                result = await session.initialize()
                logger.debug(f"Connected to MCP server: {result.serverInfo.name}")
                yield session

    async def list_tools(self) -> list[dict[str, Any]]:
        """List the tools offered by the server.

        Returns:
            list[dict]: Tool descriptors with name, description and inputSchema

        Raises:
            Exception: If the server cannot be reached or returns an error
        """
        async with self.session() as session:
            result = await session.list_tools()

        tools = [tool.model_dump() for tool in result.tools]
        logger.debug(f"Listed {len(tools)} MCP tools")
        return tools

    async def call_tool(self, name: str, args: dict[str, Any]) -> str:
        """Call a tool and return its text content.

        Args:
            name: Tool name
            args: Tool arguments

        Returns:
            str: Text content items of the result, joined by newlines

        Raises:
            McpError: If the tool reports an error
            Exception: If the server cannot be reached or returns an error
        """
        logger.debug(f"Calling MCP tool {name}")
        async with self.session() as session:
            result = await session.call_tool(name, args)

        text = "\n".join(
            item.text for item in result.content if getattr(item, "type", None) == "text"
        )
        if result.isError:
            raise McpError(text or f"Tool {name} reported an error")
        return text
