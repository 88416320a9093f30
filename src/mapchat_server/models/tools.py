"""Pydantic models for tool API requests and responses."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class InvocationRequestModel(BaseModel):
    """A single tool invocation request."""

    name: str = Field(..., description="Tool name")
    args: dict[str, Any] = Field(
        default_factory=dict, description="Tool arguments by parameter name"
    )

    model_config = ConfigDict(from_attributes=True)


class ToolResultResponse(BaseModel):
    """Outcome of one tool invocation."""

    success: bool = Field(description="Whether the tool ran without failure")
    name: str = Field(description="Requested tool name")
    result: str = Field(description="Result text, or the failure message")
    source: Literal["local", "remote", "error"] = Field(
        description="Where the tool ran, or 'error' on failure"
    )
    echoed_query: str | None = Field(
        default=None, description="Query text sent to a remote query tool"
    )

    model_config = ConfigDict(from_attributes=True)


class ToolDescriptionResponse(BaseModel):
    """A tool as described to the model."""

    name: str = Field(description="Tool name")
    description: str = Field(description="Tool description shown to the model")
    parameters: dict[str, Any] = Field(description="Normalized parameter schema")
    is_local: bool = Field(description="Whether the tool runs in-process")


class ToolListResponse(BaseModel):
    """Response body for GET /api/v1/sessions/{session_id}/tools."""

    tools: list[ToolDescriptionResponse] = Field(default_factory=list)


class ExecuteToolsRequest(BaseModel):
    """Request body for executing a batch of tool calls."""

    calls: list[InvocationRequestModel] = Field(
        ..., description="Tool calls, executed sequentially in this order"
    )

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "calls": [
                    {"name": "get_layer_info", "args": {}},
                    {"name": "add_layer", "args": {"layer_id": "carbon"}},
                ]
            }
        }
    )


class ExecuteToolsResponse(BaseModel):
    """Response body for executing a batch of tool calls."""

    results: list[ToolResultResponse] = Field(default_factory=list)


class ParseToolCallsRequest(BaseModel):
    """Request body for extracting embedded tool calls from text."""

    content: str = Field(..., description="Model output text")


class ParseToolCallsResponse(BaseModel):
    """Response body for extracting embedded tool calls from text."""

    calls: list[InvocationRequestModel] = Field(default_factory=list)
    content: str = Field(description="The text with tool call fragments removed")
