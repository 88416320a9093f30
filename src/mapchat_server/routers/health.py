"""Health check endpoint router."""

import logging

from fastapi import APIRouter, Request

from mapchat_server.models.health import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["health"])


async def _ollama_status(request: Request) -> tuple[bool | None, str | None]:
    """Probe the Ollama client, if the lifespan created one."""
    ollama_client = getattr(request.app.state, "ollama_client", None)
    if ollama_client is None:
        return None, None

    try:
        connected = await ollama_client.check_connection()
    except Exception as e:
        logger.warning(f"Ollama connectivity check failed: {e}")
        connected = False
    return connected, ollama_client.host


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Report server status, Ollama connectivity and the remote tool server.

    The remote tool server is not contacted; its tools are listed when a
    session is created.
    """
    ollama_connected, ollama_host = await _ollama_status(request)
    mcp_client = getattr(request.app.state, "mcp_client", None)

    return HealthResponse(
        status="ok",
        version="0.1.0",
        ollama_connected=ollama_connected,
        ollama_host=ollama_host,
        mcp_url=mcp_client.url if mcp_client is not None else None,
    )
