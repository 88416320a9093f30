"""Tool dispatch with per-call error isolation.

The Dispatcher resolves tool names through a session's ToolRegistry and runs
them. Every failure, including unknown tool names, is returned as a
ToolResult with success=False so that a conversational turn always completes
and the model receives feedback it can act on.
"""

import inspect
import json
import logging
from typing import Any, Iterable

from mapchat_server.tools.registry import ToolRegistry
from mapchat_server.tools.types import (
    InvocationRequest,
    LocalSource,
    RemoteSource,
    ToolResult,
)

logger = logging.getLogger(__name__)

# Argument names under which remote query tools receive their query text
QUERY_ARGUMENT_ALIASES = ("sql_query", "query")


def _to_text(value: Any) -> str:
    """Serialize a tool return value to text."""
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, ensure_ascii=False)
    except (TypeError, ValueError):
        return str(value)


def _echoed_query(args: dict[str, Any]) -> str | None:
    for alias in QUERY_ARGUMENT_ALIASES:
        if args.get(alias):
            return str(args[alias])
    return None


class Dispatcher:
    """Executes invocation requests against a ToolRegistry.

    Attributes:
        registry: The session registry used to resolve tool names
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self.registry = registry

    async def execute(self, name: str, args: dict[str, Any] | None = None) -> ToolResult:
        """Execute a single tool.

        Local executors may be plain functions or coroutine functions. Remote
        tools are called through the entry's client; this is the only place a
        call waits on network I/O. No timeout is applied here.

        Args:
            name: Tool name
            args: Tool arguments

        Returns:
            ToolResult: The outcome; never raises
        """
        args = args if isinstance(args, dict) else {}
        entry = self.registry.get(name)

        if entry is None:
            available = ", ".join(self.registry.names())
            logger.warning(f"Unknown tool requested: {name}")
            return ToolResult(
                success=False,
                name=name,
                result=f"Unknown tool: {name}. Available tools: {available}",
                source="error",
            )

        source = entry.source
        try:
            if isinstance(source, LocalSource):
                value = source.executor(args)
                if inspect.isawaitable(value):
                    value = await value
                result = ToolResult(
                    success=True,
                    name=name,
                    result=_to_text(value),
                    source="local",
                )
            elif isinstance(source, RemoteSource):
                value = await source.client.call_tool(name, args)
                result = ToolResult(
                    success=True,
                    name=name,
                    result=_to_text(value),
                    source="remote",
                    echoed_query=_echoed_query(args),
                )
            else:
                raise TypeError(f"Unsupported tool source: {type(source).__name__}")
        except Exception as e:
            logger.error(f"Error executing {name}: {e}", exc_info=True)
            return ToolResult(
                success=False,
                name=name,
                result=f"Error executing {name}: {e}",
                source="error",
            )

        logger.info(f"Executed {result.source} tool {name}")
        return result

    async def execute_all(
        self, requests: Iterable[InvocationRequest]
    ) -> list[ToolResult]:
        """Execute requests one after another, in order.

        Each request is awaited to completion before the next one starts.
        A failed request never prevents the following ones from running.

        Args:
            requests: Invocation requests in the order the model issued them

        Returns:
            list[ToolResult]: One result per request, in request order
        """
        results: list[ToolResult] = []
        for request in requests:
            results.append(await self.execute(request.name, request.args))
        return results
