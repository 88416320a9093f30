"""Pydantic models for chat API requests and responses.

This module defines the request and response schemas for the chat endpoints,
including tool results and tool calls awaiting approval.
"""

from pydantic import BaseModel, ConfigDict, Field

from mapchat_server.models.tools import InvocationRequestModel, ToolResultResponse


class ChatRequest(BaseModel):
    """Request body for chat endpoints.

    Used by both POST /api/v1/chat/{session_id} (non-streaming)
    and POST /api/v1/chat/{session_id}/stream (streaming).
    """

    message: str | None = Field(
        default=None,
        description="The user message to send. If null, continues from the session history.",
    )

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {"message": "Show me the carbon layer"},
                {"message": None},
            ]
        }
    )


class PendingToolCall(InvocationRequestModel):
    """A tool call waiting for user approval."""

    is_local: bool = Field(description="Whether the tool runs in-process")


class MessageResponse(BaseModel):
    """The assistant's final message of a turn."""

    role: str = Field(default="assistant", description="Message role (assistant)")
    content: str = Field(description="Message content with tool call markup removed")
    model: str = Field(description="Model that generated this message")
    eval_count: int | None = Field(
        default=None, description="Number of tokens generated"
    )
    prompt_eval_count: int | None = Field(
        default=None, description="Number of tokens in the prompt"
    )


class ChatResponse(BaseModel):
    """Response body for the non-streaming chat endpoint."""

    session_id: str = Field(description="Session identifier")
    message: MessageResponse = Field(description="The assistant's last message")
    tool_results: list[ToolResultResponse] = Field(
        default_factory=list,
        description="Tools executed during this turn, in execution order",
    )
    pending_tool_calls: list[PendingToolCall] = Field(
        default_factory=list,
        description="Tool calls that need approval before they run",
    )
    rounds: int = Field(default=0, description="Number of model calls in this turn")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "session_id": "a1b2c3d4e5",
                "message": {
                    "role": "assistant",
                    "content": "I've added the carbon layer to the map.",
                    "model": "llama3.2:latest",
                    "eval_count": 45,
                    "prompt_eval_count": 120,
                },
                "tool_results": [
                    {
                        "success": True,
                        "name": "add_layer",
                        "result": "Layer carbon is now visible",
                        "source": "local",
                        "echoed_query": None,
                    }
                ],
                "pending_tool_calls": [],
                "rounds": 2,
            }
        }
    )


class ApproveRequest(BaseModel):
    """Request body for approving pending tool calls."""

    approved: list[int] | None = Field(
        default=None,
        description="Indices of pending calls to run; null approves all, others are declined",
    )


class ApproveResponse(BaseModel):
    """Response body for approving pending tool calls."""

    session_id: str = Field(description="Session identifier")
    tool_results: list[ToolResultResponse] = Field(default_factory=list)


class ContentEvent(BaseModel):
    """SSE event carrying an assistant message."""

    content: str
    tool_calls: list[InvocationRequestModel] = Field(default_factory=list)
    eval_count: int | None = None
    prompt_eval_count: int | None = None


class ErrorEvent(BaseModel):
    """SSE event for errors during streaming."""

    code: str
    message: str
    details: dict = Field(default_factory=dict)


class DoneEvent(BaseModel):
    """SSE event when the turn is complete."""

    session_id: str
    rounds: int = 0


class PendingToolCallsEvent(BaseModel):
    """SSE event listing tool calls that need approval."""

    calls: list[PendingToolCall] = Field(default_factory=list)
