"""Pytest configuration and shared fixtures for mapchat-server tests.

This module provides common fixtures used across all test modules,
including test app creation, async client setup, and sample map tools.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from mapchat_server import create_app
from mapchat_server.config import MapchatServerSettings
from mapchat_server.tools import LocalTool


class FakeMapController:
    """Stand-in for the map UI controller that owns the local map tools."""

    def __init__(self):
        self.visible: list[str] = []
        self.filters: dict[str, list] = {}

    def add_layer(self, args):
        self.visible.append(args["layer_id"])
        return f"Layer {args['layer_id']} is now visible"

    def get_layer_info(self, args):
        return {"available": ["carbon", "cpad"], "visible": list(self.visible)}

    def filter_layer(self, args):
        self.filters[args["layer_id"]] = args["filter"]
        return {"success": True, "layerId": args["layer_id"], "filter": args["filter"]}


def make_map_tools(controller: FakeMapController) -> list[LocalTool]:
    """Build local map tools backed by a controller."""
    return [
        LocalTool(
            name="add_layer",
            description="Show a layer on the map",
            executor=controller.add_layer,
            input_schema={
                "type": "object",
                "properties": {"layer_id": {"type": "string"}},
                "required": ["layer_id"],
            },
        ),
        LocalTool(
            name="get_layer_info",
            description="List available and visible layers",
            executor=controller.get_layer_info,
        ),
        LocalTool(
            name="filter_layer",
            description="Apply a MapLibre filter expression to a vector layer",
            executor=controller.filter_layer,
            input_schema={
                "type": "object",
                "properties": {
                    "layer_id": {"type": "string"},
                    "filter": {"type": "array", "description": "Filter expression"},
                },
                "required": ["layer_id", "filter"],
            },
        ),
    ]


@pytest.fixture
def map_controller():
    """Create a fresh fake map controller."""
    return FakeMapController()


@pytest.fixture
def map_tools(map_controller):
    """Create local map tools bound to the fake controller."""
    return make_map_tools(map_controller)


@pytest.fixture
def map_tool_factory():
    """Create a factory producing map tools with a fresh controller per call."""
    return lambda: make_map_tools(FakeMapController())


@pytest.fixture
def test_settings(tmp_path):
    """Create test settings with an isolated data directory.

    Args:
        tmp_path: Pytest fixture providing a temporary directory.

    Returns:
        MapchatServerSettings: Settings instance configured for testing.
    """
    return MapchatServerSettings(
        host="127.0.0.1",
        port=8000,
        ollama_host="http://localhost:11434",
        mcp_url="http://mcp.test/mcp",
        data_dir=str(tmp_path),
        log_level="DEBUG",
        cors_origins=["*"],
    )


@pytest.fixture
def test_app(test_settings, map_tool_factory):
    """Create a FastAPI test application whose sessions get fresh map tools.

    Args:
        test_settings: Test settings fixture.

    Returns:
        FastAPI: Configured test application.
    """
    return create_app(
        settings=test_settings,
        local_tool_factory=map_tool_factory,
    )


@pytest_asyncio.fixture
async def async_client(test_app):
    """Create an async HTTP client for testing FastAPI endpoints.

    Args:
        test_app: Test application fixture.

    Yields:
        AsyncClient: Async HTTP client for making test requests.
    """
    # Trigger the lifespan startup manually for tests
    async with test_app.router.lifespan_context(test_app):
        transport = ASGITransport(app=test_app)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            yield client
