"""Data types for the tool-invocation layer.

This module defines tool entries, their source variants, invocation requests,
and execution results, along with the protocol a remote tool provider must
satisfy.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Literal, Protocol, runtime_checkable

# Executors may return text, any JSON-serializable value, or an awaitable of either
ToolExecutor = Callable[[dict[str, Any]], Any | Awaitable[Any]]

ResultSource = Literal["local", "remote", "error"]


@runtime_checkable
class RemoteToolClient(Protocol):
    """Client for a network-served tool provider (e.g. an MCP server)."""

    async def list_tools(self) -> list[dict[str, Any]]: ...

    async def call_tool(self, name: str, args: dict[str, Any]) -> Any: ...


@dataclass(frozen=True)
class LocalSource:
    """An in-process tool executed by calling its executor."""

    executor: ToolExecutor


@dataclass(frozen=True)
class RemoteSource:
    """A tool executed through a borrowed remote client."""

    client: RemoteToolClient


ToolSource = LocalSource | RemoteSource


@dataclass(frozen=True)
class ToolEntry:
    """A named, invocable capability held by the registry."""

    name: str
    description: str
    input_schema: dict[str, Any] | None
    source: ToolSource

    @property
    def is_local(self) -> bool:
        return isinstance(self.source, LocalSource)


@dataclass(frozen=True)
class LocalTool:
    """A local tool definition as supplied by the collaborator that owns it."""

    name: str
    description: str
    executor: ToolExecutor
    input_schema: dict[str, Any] | None = None


@dataclass(frozen=True)
class InvocationRequest:
    """A request to run tool `name` with `args`."""

    name: str
    args: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    """Outcome of one dispatched invocation request.

    Attributes:
        success: Whether the tool ran without failure
        name: The requested tool name
        result: Text result, or the failure message when success is False
        source: "local", "remote", or "error"
        echoed_query: Query text from remote calls, for display purposes
    """

    success: bool
    name: str
    result: str
    source: ResultSource
    echoed_query: str | None = None
