"""Server bootstrap for the Bitbucket MCP service.

Loads settings, resolves authentication, wires the Bitbucket client into
the tool registry and serves the tools over the MCP stdio transport.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import List, Optional

import mcp.types as types
from mcp.server.lowlevel import Server
from mcp.server.stdio import stdio_server

from clients.bitbucket import BitbucketClient
from config import VERSION, Settings, configure_logging, load_settings
from core.auth import resolve_auth
from core.errors import ConfigurationError
from core.retry import RetryPolicy
from server.dispatch import Dispatcher
from tools.registry import build_tools

SERVER_NAME = "bitbucket-mcp-server"

logger = logging.getLogger(__name__)


def create_server(dispatcher: Dispatcher) -> Server:
    server = Server(SERVER_NAME, version=VERSION)

    @server.list_tools()
    async def list_tools() -> List[types.Tool]:
        return dispatcher.list_tools()

    # Arguments are validated per tool, so unknown tools and bad input still produce "Error: ..." text
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: Optional[dict]) -> types.CallToolResult:
        return await dispatcher.handle_tool_call(name, arguments)

    return server


def build_dispatcher(settings: Settings) -> Dispatcher:
    auth = resolve_auth(settings)
    logger.info("Bitbucket API %s (auth: %s, retry attempts: %d)", settings.api_base, auth.scheme, settings.retry_attempts)
    client = BitbucketClient(
        base_url=settings.api_base,
        auth=auth,
        timeout=settings.request_timeout,
        retry_policy=RetryPolicy(attempts=settings.retry_attempts),
    )
    return Dispatcher(build_tools(client), default_format=settings.default_format)


async def serve(server: Server) -> None:
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def main() -> None:
    try:
        settings = load_settings()
    except ConfigurationError as e:
        print(str(e), file=sys.stderr)
        sys.exit(1)

    configure_logging(settings.debug)
    dispatcher = build_dispatcher(settings)
    logger.info("Bitbucket MCP server %s running on stdio (%d tools)", VERSION, len(dispatcher.tool_names))
    asyncio.run(serve(create_server(dispatcher)))


if __name__ == "__main__":
    main()
