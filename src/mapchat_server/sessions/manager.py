"""SessionManager for in-memory agent sessions.

This module provides the SessionManager class which handles:
- Creating sessions, each with its own tool registry
- Listing sessions
- Retrieving sessions
- Deleting sessions

Sessions live for the lifetime of the server process; nothing is persisted.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Iterable

from mapchat_server.sessions.session import AgentSession
from mapchat_server.tools import (
    QUERY_TOOL_NAME,
    LocalTool,
    RemoteToolClient,
    build_registry,
)

logger = logging.getLogger(__name__)

LocalToolFactory = Callable[[], Iterable[LocalTool]]


@dataclass
class SessionCreationOptions:
    """Options for creating a new session."""

    model: str
    system_prompt: str | None = None
    execution_policy: str | None = None


class SessionNotFoundError(KeyError):
    """Raised when a session ID is not known to the manager."""


class SessionManager:
    """Manages agent sessions held in memory.

    The remote tool client is shared by every session and borrowed by each
    session's registry. Local tools are produced per session by the factory,
    so executors never leak state between sessions.
    """

    def __init__(
        self,
        remote_client: RemoteToolClient | None = None,
        local_tool_factory: LocalToolFactory | None = None,
        query_tool_name: str = QUERY_TOOL_NAME,
        default_execution_policy: str = "auto",
        default_system_prompt: str | None = None,
    ) -> None:
        """Initialize the SessionManager.

        Args:
            remote_client: Optional client for remote (MCP) tools
            local_tool_factory: Optional callable returning local tools
            query_tool_name: Name of the always-available query tool
            default_execution_policy: Policy for sessions that do not set one
            default_system_prompt: System prompt for sessions that do not set one
        """
        self.remote_client = remote_client
        self.local_tool_factory = local_tool_factory
        self.query_tool_name = query_tool_name
        self.default_execution_policy = default_execution_policy
        self.default_system_prompt = default_system_prompt
        self._sessions: dict[str, AgentSession] = {}

    async def create_session(self, options: SessionCreationOptions) -> AgentSession:
        """Create a new session with a freshly built tool registry.

        Args:
            options: Session creation options

        Returns:
            The newly created AgentSession
        """
        local_tools = list(self.local_tool_factory()) if self.local_tool_factory else []
        registry = await build_registry(
            remote_client=self.remote_client,
            local_tools=local_tools,
            query_tool_name=self.query_tool_name,
        )

        session = AgentSession(
            session_id=AgentSession.generate_session_id(),
            model=options.model,
            registry=registry,
            execution_policy=options.execution_policy or self.default_execution_policy,
        )

        system_prompt = options.system_prompt or self.default_system_prompt
        if system_prompt:
            session.add_message({"role": "system", "content": system_prompt})

        self._sessions[session.session_id] = session
        logger.info(
            f"Created new session {session.session_id} with model {options.model} "
            f"and {len(registry)} tools"
        )
        return session

    def list_sessions(self) -> list[AgentSession]:
        """List all sessions, sorted by updated_at descending."""
        sessions = sorted(
            self._sessions.values(),
            key=lambda s: s.updated_at,
            reverse=True,
        )
        logger.debug(f"Listed {len(sessions)} sessions")
        return sessions

    def get_session(self, session_id: str) -> AgentSession:
        """Get a specific session by ID.

        Raises:
            SessionNotFoundError: If session doesn't exist
        """
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(session_id) from None

    def delete_session(self, session_id: str) -> None:
        """Delete a session.

        Raises:
            SessionNotFoundError: If session doesn't exist
        """
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(session_id)
        logger.info(f"Deleted session {session_id}")
