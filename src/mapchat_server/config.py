"""Configuration module for mapchat-server using pydantic-settings."""

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

ExecutionPolicy = Literal["auto", "never_confirm", "always_confirm"]


class MapchatServerSettings(BaseSettings):
    """Main configuration settings for mapchat-server.

    All settings can be overridden via environment variables with the MAPCHAT_ prefix.
    For example, MAPCHAT_MCP_URL will override the mcp_url setting.
    """

    # Server
    host: str = "127.0.0.1"
    port: int = 8000

    # Ollama
    ollama_host: str = "http://localhost:11434"
    default_model: str = "llama3.2:latest"

    # Remote tools (MCP)
    mcp_url: str = "https://duckdb-mcp.nrp-nautilus.io/mcp"
    mcp_timeout: float = 60.0
    query_tool_name: str = "query"

    # Embedded tool call markers
    tool_call_start: str = "<tool_call>"
    tool_call_end: str = "</tool_call>"

    # Tool execution
    max_tool_rounds: int = 5
    # auto: run local tools, ask before remote ones
    execution_policy: ExecutionPolicy = "auto"

    # Data
    data_dir: str = "."
    system_prompt_path: str = "system-prompt.md"

    # CORS
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_prefix="MAPCHAT_")

    @property
    def resolved_system_prompt_path(self) -> Path:
        """Get the full path to the default system prompt file."""
        return Path(self.data_dir) / self.system_prompt_path
