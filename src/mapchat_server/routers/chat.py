"""Chat API endpoints.

This module provides endpoints for chat turns with tool calling, including
non-streaming and streaming responses via SSE, and approval of tool calls
the session's execution policy deferred.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request
from sse_starlette.sse import EventSourceResponse

from mapchat_server.dependencies import get_agent_session, get_chat_turn_service
from mapchat_server.models.chat import (
    ApproveRequest,
    ApproveResponse,
    ChatRequest,
    ChatResponse,
    ContentEvent,
    DoneEvent,
    ErrorEvent,
    MessageResponse,
    PendingToolCall,
    PendingToolCallsEvent,
)
from mapchat_server.models.tools import ToolResultResponse
from mapchat_server.services import ChatTurnService, TurnEvent
from mapchat_server.sessions import AgentSession

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/chat", tags=["chat"])


def _require_history(session: AgentSession, message: str | None) -> None:
    if message is None and not session.messages:
        raise HTTPException(
            status_code=400,
            detail={
                "error": {
                    "code": "empty_history",
                    "message": "Session has no messages to process",
                    "details": {},
                }
            },
        )


def _event_payload(event: TurnEvent) -> str:
    """Serialize a turn event's data for SSE."""
    if event.event == "assistant_message":
        return ContentEvent(**event.data).model_dump_json()
    if event.event == "tool_result":
        return ToolResultResponse(**event.data).model_dump_json()
    if event.event == "pending_tool_calls":
        return PendingToolCallsEvent(**event.data).model_dump_json()
    return DoneEvent(**event.data).model_dump_json()


@router.post("/{session_id}", response_model=ChatResponse)
async def chat_non_streaming(
    request_body: ChatRequest,
    session: Annotated[AgentSession, Depends(get_agent_session)],
    service: Annotated[ChatTurnService, Depends(get_chat_turn_service)],
) -> ChatResponse:
    """Run a chat turn and return its complete outcome.

    Tools the model calls are executed during the turn according to the
    session's execution policy. Calls that need approval end the turn and
    are returned in `pending_tool_calls`.

    Args:
        request_body: Chat request containing the user message
        session: The session resolved from the path
        service: Injected ChatTurnService

    Returns:
        ChatResponse with the last assistant message and tool results

    Raises:
        HTTPException: 404 if session not found, 400 if there is nothing to
                       respond to, 502 if Ollama fails
    """
    _require_history(session, request_body.message)

    last_message: dict = {"content": ""}
    tool_results: list[ToolResultResponse] = []
    pending: list[PendingToolCall] = []
    rounds = 0

    try:
        async for event in service.run(session, request_body.message):
            if event.event == "assistant_message":
                last_message = event.data
            elif event.event == "tool_result":
                tool_results.append(ToolResultResponse(**event.data))
            elif event.event == "pending_tool_calls":
                pending = [PendingToolCall(**call) for call in event.data["calls"]]
            elif event.event == "done":
                rounds = event.data["rounds"]
    except Exception as e:
        logger.error(f"Chat turn failed for session {session.session_id}: {e}")
        raise HTTPException(
            status_code=502,
            detail={
                "error": {
                    "code": "ollama_error",
                    "message": f"Failed to get response from Ollama: {str(e)}",
                    "details": {},
                }
            },
        )

    logger.info(
        f"Chat turn complete for session {session.session_id}: "
        f"{len(tool_results)} tools executed, {len(pending)} pending"
    )

    return ChatResponse(
        session_id=session.session_id,
        message=MessageResponse(
            content=last_message.get("content", ""),
            model=session.model,
            eval_count=last_message.get("eval_count"),
            prompt_eval_count=last_message.get("prompt_eval_count"),
        ),
        tool_results=tool_results,
        pending_tool_calls=pending,
        rounds=rounds,
    )


@router.post("/{session_id}/stream")
async def chat_streaming(
    request_body: ChatRequest,
    request: Request,
    session: Annotated[AgentSession, Depends(get_agent_session)],
    service: Annotated[ChatTurnService, Depends(get_chat_turn_service)],
) -> EventSourceResponse:
    """Stream a chat turn via Server-Sent Events (SSE).

    SSE Events:
        - assistant_message: Each model reply, with tool call markup removed
        - tool_result: Each executed tool
        - pending_tool_calls: Tool calls waiting for approval
        - error: If the model request fails
        - done: The turn is complete

    Raises:
        HTTPException: 404 if session not found, 400 if there is nothing to
                       respond to
    """
    _require_history(session, request_body.message)

    async def event_generator():
        """Generate SSE events from the chat turn."""
        try:
            async for event in service.run(session, request_body.message):
                if await request.is_disconnected():
                    logger.warning(
                        f"Client disconnected during streaming for session {session.session_id}"
                    )
                    break
                yield {"event": event.event, "data": _event_payload(event)}
        except Exception as e:
            logger.error(f"Error during streaming for session {session.session_id}: {e}")
            error_event = ErrorEvent(
                code="ollama_error",
                message=f"Failed to generate response: {str(e)}",
                details={"session_id": session.session_id},
            )
            yield {"event": "error", "data": error_event.model_dump_json()}

    return EventSourceResponse(event_generator())


@router.post("/{session_id}/approve", response_model=ApproveResponse)
async def approve_tool_calls(
    request_body: ApproveRequest,
    session: Annotated[AgentSession, Depends(get_agent_session)],
    service: Annotated[ChatTurnService, Depends(get_chat_turn_service)],
) -> ApproveResponse:
    """Run or decline the session's pending tool calls.

    The results are added to the session history; send a chat request with
    a null message afterwards to let the model respond to them.

    Raises:
        HTTPException: 404 if session not found
    """
    results = await service.approve(session, request_body.approved)
    return ApproveResponse(
        session_id=session.session_id,
        tool_results=[
            ToolResultResponse(
                success=r.success,
                name=r.name,
                result=r.result,
                source=r.source,
                echoed_query=r.echoed_query,
            )
            for r in results
        ],
    )
