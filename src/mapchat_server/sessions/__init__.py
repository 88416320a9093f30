"""Session management for mapchat-server.

This package provides in-memory agent sessions, each owning its own tool
registry and message history.
"""

from mapchat_server.sessions.manager import (
    SessionCreationOptions,
    SessionManager,
    SessionNotFoundError,
)
from mapchat_server.sessions.session import AgentSession

__all__ = [
    "AgentSession",
    "SessionCreationOptions",
    "SessionManager",
    "SessionNotFoundError",
]
