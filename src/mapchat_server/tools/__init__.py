"""Tool registration, embedded call parsing, and dispatch.

This package unifies local (in-process) and remote (MCP) tools behind one
registry, normalizes their parameter schemas for function calling, extracts
tool calls that models embed in plain text, and executes calls with per-call
error isolation.
"""

from mapchat_server.tools.dispatcher import Dispatcher
from mapchat_server.tools.parser import EmbeddedCallParser
from mapchat_server.tools.registry import (
    DEFAULT_REMOTE_SCHEMA,
    QUERY_TOOL_DESCRIPTOR,
    QUERY_TOOL_NAME,
    ToolRegistry,
    build_registry,
)
from mapchat_server.tools.schema import SchemaNormalizer
from mapchat_server.tools.types import (
    InvocationRequest,
    LocalSource,
    LocalTool,
    RemoteSource,
    RemoteToolClient,
    ToolEntry,
    ToolResult,
)

__all__ = [
    # Core classes
    "Dispatcher",
    "EmbeddedCallParser",
    "SchemaNormalizer",
    "ToolRegistry",
    "build_registry",
    # Data types
    "InvocationRequest",
    "LocalSource",
    "LocalTool",
    "RemoteSource",
    "RemoteToolClient",
    "ToolEntry",
    "ToolResult",
    # Defaults
    "DEFAULT_REMOTE_SCHEMA",
    "QUERY_TOOL_DESCRIPTOR",
    "QUERY_TOOL_NAME",
]
