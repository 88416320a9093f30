"""Pydantic models for session API requests and responses."""

from pydantic import BaseModel, Field

from mapchat_server.config import ExecutionPolicy


class CreateSessionRequest(BaseModel):
    """Request body for creating a new session."""

    model: str | None = Field(
        None, description="The LLM model to use (defaults to the server setting)"
    )
    system_prompt: str | None = Field(
        None, description="Optional system prompt content"
    )
    execution_policy: ExecutionPolicy | None = Field(
        None,
        description="Tool execution policy: auto, never_confirm, or always_confirm",
    )


class SessionResponse(BaseModel):
    """Session summary returned by session endpoints."""

    session_id: str = Field(description="Session identifier")
    model: str = Field(description="Model used by this session")
    created_at: str = Field(description="ISO 8601 creation timestamp")
    updated_at: str = Field(description="ISO 8601 last update timestamp")
    message_count: int = Field(description="Number of messages in the history")
    execution_policy: str = Field(description="Tool execution policy")
    tool_names: list[str] = Field(
        default_factory=list, description="Names of tools available in this session"
    )
    pending_tool_calls: int = Field(
        default=0, description="Number of tool calls awaiting approval"
    )


class SessionListResponse(BaseModel):
    """Response body for listing sessions."""

    sessions: list[SessionResponse] = Field(default_factory=list)
