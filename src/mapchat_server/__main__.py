"""CLI entry point for mapchat-server.

This module provides the command-line interface for starting the mapchat-server.
It can be invoked as `mapchat-server` (via the script entry point) or
`python -m mapchat_server`.
"""

import argparse
import sys

import uvicorn

from mapchat_server import __version__, create_app
from mapchat_server.config import MapchatServerSettings


def main() -> None:
    """Main entry point for the mapchat-server CLI.

    Parses command-line arguments and starts the uvicorn server with the
    FastAPI application.
    """
    parser = argparse.ArgumentParser(
        prog="mapchat-server",
        description="Headless FastAPI server for map-assistant LLM conversations with tool calling",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"mapchat-server {__version__}",
    )

    parser.add_argument(
        "--host",
        type=str,
        default=None,
        help="Host to bind the server to (default: 127.0.0.1, can be set via MAPCHAT_HOST)",
    )

    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to bind the server to (default: 8000, can be set via MAPCHAT_PORT)",
    )

    parser.add_argument(
        "--ollama-host",
        type=str,
        default=None,
        help="Ollama server URL (default: http://localhost:11434, can be set via MAPCHAT_OLLAMA_HOST)",
    )

    parser.add_argument(
        "--mcp-url",
        type=str,
        default=None,
        help="Remote tool (MCP) server URL (can be set via MAPCHAT_MCP_URL)",
    )

    parser.add_argument(
        "--execution-policy",
        type=str,
        default=None,
        choices=["auto", "never_confirm", "always_confirm"],
        help="Default tool execution policy (default: auto, can be set via MAPCHAT_EXECUTION_POLICY)",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help="Base directory for data files (default: ., can be set via MAPCHAT_DATA_DIR)",
    )

    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: INFO, can be set via MAPCHAT_LOG_LEVEL)",
    )

    args = parser.parse_args()

    # Build settings, CLI args override environment variables
    settings_kwargs = {}
    if args.host is not None:
        settings_kwargs["host"] = args.host
    if args.port is not None:
        settings_kwargs["port"] = args.port
    if args.ollama_host is not None:
        settings_kwargs["ollama_host"] = args.ollama_host
    if args.mcp_url is not None:
        settings_kwargs["mcp_url"] = args.mcp_url
    if args.execution_policy is not None:
        settings_kwargs["execution_policy"] = args.execution_policy
    if args.data_dir is not None:
        settings_kwargs["data_dir"] = args.data_dir
    if args.log_level is not None:
        settings_kwargs["log_level"] = args.log_level

    settings = MapchatServerSettings(**settings_kwargs)

    app = create_app(settings=settings)

    uvicorn.run(
        app,
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    sys.exit(main())
