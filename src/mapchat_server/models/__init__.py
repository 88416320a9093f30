"""Pydantic models for API request and response schemas.

This package contains all Pydantic models used for validating and
serializing API requests and responses across all endpoints.
"""

from mapchat_server.models.chat import (
    ApproveRequest,
    ApproveResponse,
    ChatRequest,
    ChatResponse,
    MessageResponse,
    PendingToolCall,
)
from mapchat_server.models.health import HealthResponse
from mapchat_server.models.sessions import (
    CreateSessionRequest,
    SessionListResponse,
    SessionResponse,
)
from mapchat_server.models.tools import (
    ExecuteToolsRequest,
    ExecuteToolsResponse,
    InvocationRequestModel,
    ParseToolCallsRequest,
    ParseToolCallsResponse,
    ToolDescriptionResponse,
    ToolListResponse,
    ToolResultResponse,
)

__all__ = [
    "ApproveRequest",
    "ApproveResponse",
    "ChatRequest",
    "ChatResponse",
    "CreateSessionRequest",
    "ExecuteToolsRequest",
    "ExecuteToolsResponse",
    "HealthResponse",
    "InvocationRequestModel",
    "MessageResponse",
    "ParseToolCallsRequest",
    "ParseToolCallsResponse",
    "PendingToolCall",
    "SessionListResponse",
    "SessionResponse",
    "ToolDescriptionResponse",
    "ToolListResponse",
    "ToolResultResponse",
]
