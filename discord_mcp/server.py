"""
MCP server wiring.

Uses the official ``mcp`` Python SDK over stdio: ``tools/list`` advertises every
registered tool with its generated schema, ``tools/call`` goes through the
``ToolRouter``.
"""

from __future__ import annotations

from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from discord_mcp.config.logging import get_logger
from discord_mcp.config.settings import Settings
from discord_mcp.config.store import JsonFileConfigStore
from discord_mcp.gateway import GatewayClient
from discord_mcp.router import ToolRouter
from discord_mcp.tools import ToolContext

logger = get_logger(__name__)

SERVER_NAME = "discord-mcp"


class ToolCallFailed(Exception):
    """Raised to the MCP SDK, which turns it into an ``isError`` result."""


def create_mcp_server(router: ToolRouter) -> Server:
    """Create and configure the MCP server with all tool handlers."""
    server = Server(SERVER_NAME)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        return [tool.to_mcp() for tool in router.registry]

    # Arguments are validated by the router after the gateway is ready
    @server.call_tool(validate_input=False)
    async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
        response = await router.call(name, arguments)
        if response.is_error:
            raise ToolCallFailed(response.text)
        return [TextContent(type="text", text=response.text)]

    return server


async def serve(settings: Settings) -> None:
    """
    Start Discord login in the background and serve MCP on stdio until the
    client disconnects.
    """
    gateway = GatewayClient(settings.discord)
    ready = gateway.start_in_background(settings.discord.bot_token)

    context = ToolContext(
        client=gateway,
        store=JsonFileConfigStore(settings.state_file),
        batch_limit=settings.batch_concurrency,
    )
    router = ToolRouter(context, ready)
    server = create_mcp_server(router)

    logger.info(f"Serving {len(router.registry)} tools over stdio")
    try:
        async with stdio_server() as (read_stream, write_stream):
            await server.run(read_stream, write_stream, server.create_initialization_options())
    finally:
        logger.info("Shutting down Discord connection...")
        await gateway.close()
