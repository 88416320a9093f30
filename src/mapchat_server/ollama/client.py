"""Async Ollama client wrapper.

This module provides an async wrapper around the ollama.AsyncClient for
communicating with the Ollama API. The client is designed to be created once
at startup and reused.
"""

import logging
from typing import Any

import ollama

logger = logging.getLogger(__name__)


def _to_dict(response: Any) -> dict[str, Any]:
    """Convert an ollama response object to a plain dict."""
    if hasattr(response, "model_dump"):
        return response.model_dump()
    if isinstance(response, dict):
        return response
    return vars(response)


class OllamaClient:
    """Async client for interacting with Ollama API.

    Attributes:
        host: The Ollama server URL (e.g., "http://localhost:11434")
        _client: The underlying ollama.AsyncClient instance
    """

    def __init__(self, host: str) -> None:
        """Initialize the Ollama client.

        Args:
            host: The Ollama server URL
        """
        self.host = host
        self._client = ollama.AsyncClient(host=host)
        logger.info(f"OllamaClient initialized with host: {host}")

    async def check_connection(self) -> bool:
        """Check if the Ollama server is reachable.

        Returns:
            bool: True if connection is successful, False otherwise
        """
        try:
            await self._client.list()
            logger.debug("Ollama connection check: successful")
            return True
        except Exception as e:
            logger.warning(f"Ollama connection check failed: {e}")
            return False

    async def chat(
        self,
        model: str,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a chat request and return the complete response.

        Args:
            model: The model name to use for the chat
            messages: List of message dicts in Ollama format
            tools: Optional tool definitions in function-calling format:
                   [{"type": "function", "function": {...}}, ...]
            options: Optional model parameters (temperature, etc.)

        Returns:
            dict: The response. `message` holds `role`, `content` and, when the
                  model used structured tool calling, `tool_calls`.

        Raises:
            Exception: If the Ollama API request fails
        """
        try:
            logger.debug(
                f"Chat request: model={model}, messages={len(messages)}, "
                f"tools={len(tools or [])}"
            )
            response = await self._client.chat(
                model=model,
                messages=messages,
                tools=tools or None,
                stream=False,
                options=options,
            )
            return _to_dict(response)
        except Exception as e:
            logger.error(f"Chat request failed: {e}")
            raise

    async def close(self) -> None:
        """Close the client and clean up resources.

        ollama.AsyncClient uses httpx internally which handles cleanup.
        """
        logger.debug("OllamaClient closed")
