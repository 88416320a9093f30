"""FastAPI application factory and lifespan management.

This module contains the create_app() factory function that creates and configures
the FastAPI application instance, including lifespan management for startup/shutdown
and router registration.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mapchat_server.config import MapchatServerSettings
from mapchat_server.mcp import McpClient
from mapchat_server.ollama import OllamaClient
from mapchat_server.routers import chat, health, sessions, tools
from mapchat_server.sessions import SessionManager
from mapchat_server.sessions.manager import LocalToolFactory

logger = logging.getLogger(__name__)


def _load_system_prompt(settings: MapchatServerSettings) -> str | None:
    path = settings.resolved_system_prompt_path
    if not path.is_file():
        logger.info(f"No system prompt file at {path}")
        return None
    logger.info(f"Loaded system prompt from {path}")
    return path.read_text(encoding="utf-8")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan context manager for FastAPI application.

    Expensive objects (the Ollama client, the MCP client and the session
    manager) are created once at startup and stored in app.state for reuse
    across all requests.

    Args:
        app: The FastAPI application instance.

    Yields:
        None: Control is yielded while the app is running.
    """
    settings: MapchatServerSettings = app.state.settings

    app.state.ollama_client = OllamaClient(host=settings.ollama_host)
    logger.info(f"Initialized Ollama client with host: {settings.ollama_host}")

    connected = await app.state.ollama_client.check_connection()
    if connected:
        logger.info("Successfully connected to Ollama")
    else:
        logger.warning("Could not connect to Ollama - check if server is running")

    # Shared by every session registry; each call opens its own MCP session
    app.state.mcp_client = McpClient(url=settings.mcp_url, timeout=settings.mcp_timeout)

    app.state.session_manager = SessionManager(
        remote_client=app.state.mcp_client,
        local_tool_factory=app.state.local_tool_factory,
        query_tool_name=settings.query_tool_name,
        default_execution_policy=settings.execution_policy,
        default_system_prompt=_load_system_prompt(settings),
    )

    yield

    if hasattr(app.state, "ollama_client"):
        await app.state.ollama_client.close()
        logger.info("Ollama client closed")


def create_app(
    settings: MapchatServerSettings | None = None,
    local_tool_factory: LocalToolFactory | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Optional MapchatServerSettings instance. If not provided,
                  settings will be loaded from environment variables.
        local_tool_factory: Optional callable returning the local tools each
                  new session registers.

    Returns:
        FastAPI: Configured FastAPI application instance.
    """
    if settings is None:
        from mapchat_server.dependencies import get_settings

        settings = get_settings()

    app = FastAPI(
        title="mapchat-server",
        description="Headless FastAPI server for map-assistant LLM conversations with tool calling",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Store settings in app.state for lifespan access
    app.state.settings = settings
    app.state.local_tool_factory = local_tool_factory

    # Note: FastAPI's type hints for add_middleware are overly strict
    app.add_middleware(
        CORSMiddleware,  # type: ignore[arg-type]
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router)
    app.include_router(sessions.router)
    app.include_router(tools.router)
    app.include_router(chat.router)

    return app
