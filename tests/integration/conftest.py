"""Pytest configuration for integration tests.

This module provides integration-test-specific fixtures that replace the
Ollama and MCP clients the lifespan creates with mocks.
"""

import json
from unittest.mock import AsyncMock, patch

import pytest
import pytest_asyncio

REMOTE_TOOLS = [
    {
        "name": "query",
        "description": "Run read-only DuckDB SQL against the parquet datasets",
        "inputSchema": {
            "type": "object",
            "properties": {"sql_query": {"type": "string"}},
            "required": ["sql_query"],
        },
    }
]


@pytest.fixture(autouse=True)
def mock_ollama_client():
    """Mock OllamaClient for all integration tests.

    This fixture patches the OllamaClient class before the app is created,
    ensuring the lifespan uses our mock instead of creating a real client.
    """
    with patch("mapchat_server.app.OllamaClient") as mock_client_class:
        mock_instance = AsyncMock()
        mock_instance.host = "http://localhost:11434"
        mock_instance.check_connection.return_value = True
        mock_instance.chat.return_value = {
            "message": {"role": "assistant", "content": "Hello!"},
            "done": True,
        }
        mock_client_class.return_value = mock_instance
        yield mock_instance


@pytest.fixture(autouse=True)
def mock_mcp_client():
    """Mock McpClient for all integration tests."""
    with patch("mapchat_server.app.McpClient") as mock_client_class:
        mock_instance = AsyncMock()
        mock_instance.url = "http://mcp.test/mcp"
        mock_instance.list_tools.return_value = REMOTE_TOOLS
        mock_instance.call_tool.return_value = "n\n42"
        mock_client_class.return_value = mock_instance
        yield mock_instance


@pytest_asyncio.fixture
async def session_id(async_client):
    """Create a session and return its ID."""
    response = await async_client.post(
        "/api/v1/sessions", json={"model": "llama3.2:latest"}
    )
    assert response.status_code == 201
    return response.json()["session_id"]


def _parse_sse(text: str) -> list[dict]:
    events = []
    normalized_text = text.replace("\r\n", "\n")
    for block in normalized_text.strip().split("\n\n"):
        event_type = None
        event_data = None
        for part in block.split("\n"):
            if part.startswith("event:"):
                event_type = part.split(":", 1)[1].strip()
            elif part.startswith("data:"):
                event_data = part.split(":", 1)[1].strip()
        if event_type and event_data:
            events.append({"event": event_type, "data": json.loads(event_data)})
    return events


@pytest.fixture
def parse_sse():
    """Provide a parser for SSE response bodies."""
    return _parse_sse

