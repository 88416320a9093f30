"""ToolRegistry: the single source of truth for tools a model may call.

Tools come from two sources:
- local tools, executed in-process by a callable
- remote tools, executed through a borrowed RemoteToolClient (e.g. MCP)

A registry is created per session and is never shared between sessions.
"""

import logging
from typing import Any, Iterable

from mapchat_server.tools.schema import SchemaNormalizer
from mapchat_server.tools.types import (
    LocalSource,
    LocalTool,
    RemoteSource,
    RemoteToolClient,
    ToolEntry,
)

logger = logging.getLogger(__name__)

QUERY_TOOL_NAME = "query"

DEFAULT_REMOTE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {"sql_query": {"type": "string", "description": "SQL query"}},
    "required": ["sql_query"],
}

QUERY_TOOL_DESCRIPTOR: dict[str, Any] = {
    "name": QUERY_TOOL_NAME,
    "description": (
        "Execute a read-only SQL query against a DuckDB database that is "
        "pre-loaded with H3 geospatial extensions, spatial functions, and httpfs "
        "for accessing remote parquet data. The database supports partitioned "
        "hive-style parquet files on S3."
    ),
    "inputSchema": {
        "type": "object",
        "properties": {
            "sql_query": {
                "type": "string",
                "description": "The SQL query to execute. Must be a read-only SELECT statement.",
            }
        },
        "required": ["sql_query"],
    },
}


class ToolRegistry:
    """Registry mapping unique tool names to local or remote tool entries.

    Registering a name that already exists replaces the previous entry,
    regardless of its source. The replacement is logged, never rejected.
    """

    def __init__(self) -> None:
        self._tools: dict[str, ToolEntry] = {}

    def _put(self, entry: ToolEntry) -> None:
        if entry.name in self._tools:
            logger.warning(f"Overwriting tool: {entry.name}")
        self._tools[entry.name] = entry

    def register_local(self, tool: LocalTool) -> None:
        """Register an in-process tool.

        Args:
            tool: The local tool definition

        Raises:
            TypeError: If the tool's executor is not callable
        """
        if not callable(tool.executor):
            raise TypeError(f"Executor for tool '{tool.name}' is not callable")

        self._put(
            ToolEntry(
                name=tool.name,
                description=tool.description,
                input_schema=tool.input_schema,
                source=LocalSource(executor=tool.executor),
            )
        )
        logger.debug(f"Registered local tool: {tool.name}")

    def register_remote(
        self, descriptors: Iterable[dict[str, Any]], client: RemoteToolClient
    ) -> None:
        """Register tools served by a remote provider.

        Descriptors use the MCP shape: `name`, `description`, `inputSchema`.
        A descriptor without an input schema gets a single required
        `sql_query` string parameter. Descriptors without a name are skipped.

        Args:
            descriptors: Tool descriptors as listed by the remote provider
            client: Client used to call these tools (borrowed, not owned)
        """
        count = 0
        for descriptor in descriptors:
            name = descriptor.get("name") if isinstance(descriptor, dict) else None
            if not isinstance(name, str) or not name:
                logger.warning(
                    f"Skipping remote tool descriptor without a name: {descriptor!r}"
                )
                continue
            self._put(
                ToolEntry(
                    name=name,
                    description=descriptor.get("description") or "",
                    input_schema=descriptor.get("inputSchema") or DEFAULT_REMOTE_SCHEMA,
                    source=RemoteSource(client=client),
                )
            )
            count += 1
        logger.info(f"Registered {count} remote tools")

    def get(self, name: str) -> ToolEntry | None:
        return self._tools.get(name)

    def describe_all(self) -> list[dict[str, Any]]:
        """Describe every tool in the function-calling format.

        Returns:
            list[dict]: `{name, description, parameters}` per tool, in
                        registration order, with normalized parameters
        """
        return [
            {
                "name": entry.name,
                "description": entry.description,
                "parameters": SchemaNormalizer.clean(entry.input_schema),
            }
            for entry in self._tools.values()
        ]

    def is_local(self, name: str) -> bool:
        entry = self._tools.get(name)
        return entry is not None and entry.is_local

    def local_names(self) -> set[str]:
        return {name for name, entry in self._tools.items() if entry.is_local}

    def names(self) -> list[str]:
        return list(self._tools.keys())

    def has(self, name: str) -> bool:
        return name in self._tools

    def __len__(self) -> int:
        return len(self._tools)


async def build_registry(
    remote_client: RemoteToolClient | None = None,
    local_tools: Iterable[LocalTool] = (),
    query_tool_name: str = QUERY_TOOL_NAME,
) -> ToolRegistry:
    """Build a session registry from local tools and a remote provider.

    Remote tools are listed once. If listing fails, the built-in query tool
    descriptor is registered so the model always has a query capability.

    Args:
        remote_client: Optional remote tool client
        local_tools: Local tools to register first
        query_tool_name: Name given to the fallback query tool

    Returns:
        ToolRegistry: The populated registry
    """
    registry = ToolRegistry()

    for tool in local_tools:
        registry.register_local(tool)

    if remote_client is not None:
        try:
            descriptors = await remote_client.list_tools()
        except Exception as e:
            logger.warning(f"Could not list remote tools, registering query tool: {e}")
            descriptors = [{**QUERY_TOOL_DESCRIPTOR, "name": query_tool_name}]
        registry.register_remote(descriptors, remote_client)

    logger.info(f"Tool registry ready with {len(registry)} tools")
    return registry
