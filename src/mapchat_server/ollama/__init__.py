"""Ollama client wrapper and integration layer.

This package provides the async client wrapper for communicating with the
Ollama API.
"""

from mapchat_server.ollama.client import OllamaClient

__all__ = ["OllamaClient"]
