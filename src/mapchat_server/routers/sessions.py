"""Sessions router for in-memory agent sessions.

This module provides REST API endpoints for:
- Creating new sessions
- Listing all sessions
- Retrieving session details
- Deleting sessions
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request, status

from mapchat_server.dependencies import get_agent_session, get_session_manager
from mapchat_server.models.sessions import (
    CreateSessionRequest,
    SessionListResponse,
    SessionResponse,
)
from mapchat_server.sessions import (
    AgentSession,
    SessionCreationOptions,
    SessionManager,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sessions", tags=["sessions"])


def _session_response(session: AgentSession) -> SessionResponse:
    return SessionResponse(
        session_id=session.session_id,
        model=session.model,
        created_at=session.created_at,
        updated_at=session.updated_at,
        message_count=session.message_count,
        execution_policy=session.execution_policy,
        tool_names=session.registry.names(),
        pending_tool_calls=len(session.pending_calls),
    )


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new session",
)
async def create_session(
    body: CreateSessionRequest,
    request: Request,
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> SessionResponse:
    """Create a new agent session.

    The session's tool registry is built from the configured local tools and
    the remote tool server. If the remote server cannot list its tools, the
    query tool is registered so the model can still query data.

    Args:
        body: Session creation parameters
        request: FastAPI request object
        session_manager: Injected SessionManager

    Returns:
        Created session summary
    """
    options = SessionCreationOptions(
        model=body.model or request.app.state.settings.default_model,
        system_prompt=body.system_prompt,
        execution_policy=body.execution_policy,
    )
    session = await session_manager.create_session(options)
    return _session_response(session)


@router.get("", response_model=SessionListResponse, summary="List sessions")
async def list_sessions(
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> SessionListResponse:
    """List all sessions, newest first."""
    return SessionListResponse(
        sessions=[_session_response(s) for s in session_manager.list_sessions()]
    )


@router.get("/{session_id}", response_model=SessionResponse, summary="Get a session")
async def get_session(
    session: Annotated[AgentSession, Depends(get_agent_session)],
) -> SessionResponse:
    """Get a session summary.

    Raises:
        HTTPException: 404 if session not found
    """
    return _session_response(session)


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a session",
)
async def delete_session(
    session: Annotated[AgentSession, Depends(get_agent_session)],
    session_manager: Annotated[SessionManager, Depends(get_session_manager)],
) -> None:
    """Delete a session and its tool registry.

    Raises:
        HTTPException: 404 if session not found
    """
    session_manager.delete_session(session.session_id)
