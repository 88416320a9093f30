"""AgentSession class for in-memory chat sessions.

A session holds the conversation history in Ollama message format, the
session's own tool registry, and any tool calls waiting for user approval.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from mapchat_server.tools import InvocationRequest, ToolRegistry


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class AgentSession:
    """A single conversation with its tool registry.

    Attributes:
        session_id: Unique session identifier (10-char hex)
        model: The LLM model name for this session
        registry: Tools available in this session
        execution_policy: always_confirm | never_confirm | auto
        messages: History as Ollama message dicts
        pending_calls: Tool calls deferred until the user approves them
    """

    session_id: str
    model: str
    registry: ToolRegistry
    execution_policy: str = "auto"
    messages: list[dict[str, Any]] = field(default_factory=list)
    pending_calls: list[InvocationRequest] = field(default_factory=list)
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    @staticmethod
    def generate_session_id() -> str:
        """Generate a new 10-character hex session ID."""
        return uuid.uuid4().hex[:10]

    def add_message(self, message: dict[str, Any]) -> None:
        """Append a message to the history and touch updated_at."""
        self.messages.append(message)
        self.updated_at = _now()

    @property
    def message_count(self) -> int:
        return len(self.messages)
