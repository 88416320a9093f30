"""mapchat-server: Headless FastAPI server for map-assistant LLM conversations.

This package provides a REST API and SSE streaming interface for chat sessions
whose model can call local and remote (MCP) tools through one unified
tool-invocation layer.
"""

from mapchat_server.app import create_app

__version__ = "0.1.0"

__all__ = ["create_app", "__version__"]
