"""Tools router for a session's tool registry.

This module provides REST API endpoints for:
- Describing the tools available in a session
- Executing a batch of tool calls directly
- Extracting embedded tool calls from model text
"""

import logging
from dataclasses import asdict
from typing import Annotated

from fastapi import APIRouter, Depends

from mapchat_server.dependencies import get_agent_session, get_call_parser
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
from mapchat_server.sessions import AgentSession
from mapchat_server.tools import Dispatcher, EmbeddedCallParser, InvocationRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sessions/{session_id}/tools", tags=["tools"])


@router.get("", response_model=ToolListResponse, summary="Describe session tools")
async def list_tools(
    session: Annotated[AgentSession, Depends(get_agent_session)],
) -> ToolListResponse:
    """Describe every tool in the session as the model sees it.

    Raises:
        HTTPException: 404 if session not found
    """
    return ToolListResponse(
        tools=[
            ToolDescriptionResponse(
                **description,
                is_local=session.registry.is_local(description["name"]),
            )
            for description in session.registry.describe_all()
        ]
    )


@router.post(
    "/execute", response_model=ExecuteToolsResponse, summary="Execute tool calls"
)
async def execute_tools(
    body: ExecuteToolsRequest,
    session: Annotated[AgentSession, Depends(get_agent_session)],
) -> ExecuteToolsResponse:
    """Execute tool calls sequentially, in request order.

    Tool failures and unknown tool names are reported as unsuccessful results,
    never as HTTP errors.

    Raises:
        HTTPException: 404 if session not found
    """
    requests = [InvocationRequest(name=call.name, args=call.args) for call in body.calls]
    logger.info(f"Executing {len(requests)} tool calls in session {session.session_id}")

    results = await Dispatcher(session.registry).execute_all(requests)
    return ExecuteToolsResponse(
        results=[ToolResultResponse(**asdict(result)) for result in results]
    )


@router.post(
    "/parse", response_model=ParseToolCallsResponse, summary="Parse embedded tool calls"
)
async def parse_tool_calls(
    body: ParseToolCallsRequest,
    session: Annotated[AgentSession, Depends(get_agent_session)],
    parser: Annotated[EmbeddedCallParser, Depends(get_call_parser)],
) -> ParseToolCallsResponse:
    """Extract embedded tool calls from text, using the session's local tools.

    Raises:
        HTTPException: 404 if session not found
    """
    requests = parser.parse(body.content, session.registry.local_names())
    return ParseToolCallsResponse(
        calls=[InvocationRequestModel(name=r.name, args=r.args) for r in requests],
        content=parser.strip(body.content),
    )
