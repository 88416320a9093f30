"""Dependency injection providers for FastAPI endpoints.

This module provides FastAPI dependency functions that are used across
multiple routers to inject common dependencies like settings and services.
"""

from functools import lru_cache

from fastapi import HTTPException, Request

from mapchat_server.config import MapchatServerSettings
from mapchat_server.ollama import OllamaClient
from mapchat_server.services import ChatTurnService
from mapchat_server.sessions import AgentSession, SessionManager, SessionNotFoundError
from mapchat_server.tools import EmbeddedCallParser


@lru_cache
def get_settings() -> MapchatServerSettings:
    """Get the application settings instance.

    This function is cached so that the same settings instance is reused
    across all requests. Settings are loaded from environment variables
    with the MAPCHAT_ prefix.

    Returns:
        MapchatServerSettings: The application configuration settings.
    """
    return MapchatServerSettings()


def get_ollama_client(request: Request) -> OllamaClient:
    """Get the Ollama client from app state.

    Args:
        request: The FastAPI request object.

    Returns:
        OllamaClient: The Ollama client instance.

    Raises:
        HTTPException: If the Ollama client is not initialized (503 Service Unavailable).
    """
    if not hasattr(request.app.state, "ollama_client"):
        raise HTTPException(
            status_code=503,
            detail="Ollama client not initialized",
        )
    return request.app.state.ollama_client


def get_session_manager(request: Request) -> SessionManager:
    """Get the SessionManager from app state.

    Sessions live in memory, so a single manager is created at startup and
    shared by all requests.

    Args:
        request: The FastAPI request object.

    Returns:
        SessionManager: The shared SessionManager instance.

    Raises:
        HTTPException: If the session manager is not initialized (503 Service Unavailable).
    """
    if not hasattr(request.app.state, "session_manager"):
        raise HTTPException(
            status_code=503,
            detail="Session manager not initialized",
        )
    return request.app.state.session_manager


def get_call_parser(request: Request) -> EmbeddedCallParser:
    """Get an EmbeddedCallParser configured with the app's tool call markers.

    Args:
        request: The FastAPI request object.

    Returns:
        EmbeddedCallParser: A new parser instance.
    """
    # Use settings from app.state so tests can use their own isolated settings
    settings: MapchatServerSettings = request.app.state.settings
    return EmbeddedCallParser(
        start_marker=settings.tool_call_start,
        end_marker=settings.tool_call_end,
        query_tool_name=settings.query_tool_name,
    )


def get_chat_turn_service(request: Request) -> ChatTurnService:
    """Get a ChatTurnService instance with app configuration.

    Args:
        request: The FastAPI request object.

    Returns:
        ChatTurnService: A new ChatTurnService instance.

    Raises:
        HTTPException: If the Ollama client is not initialized (503 Service Unavailable).
    """
    settings: MapchatServerSettings = request.app.state.settings
    return ChatTurnService(
        ollama_client=get_ollama_client(request),
        parser=get_call_parser(request),
        max_tool_rounds=settings.max_tool_rounds,
    )


def get_agent_session(session_id: str, request: Request) -> AgentSession:
    """Resolve the session named by the `session_id` path parameter.

    Args:
        session_id: The session ID from the request path.
        request: The FastAPI request object.

    Returns:
        AgentSession: The requested session.

    Raises:
        HTTPException: 404 if the session does not exist.
    """
    try:
        return get_session_manager(request).get_session(session_id)
    except SessionNotFoundError:
        raise HTTPException(
            status_code=404,
            detail={
                "error": {
                    "code": "session_not_found",
                    "message": f"Session {session_id} not found",
                    "details": {"session_id": session_id},
                }
            },
        )
