"""
Tool Layer.

Importing this package registers every tool with ``registry``. Each module
groups the tools for one area of the Discord API:

- guilds:   default guild, guild listing, server analysis
- channels: channel/category creation and deletion, channel analysis
- members:  bans, kicks, timeouts, roles, user analysis
- messages: sending, history, reactions, threads
"""

from discord_mcp.tools import channels, guilds, members, messages  # noqa: F401  (registers tools)
from discord_mcp.tools.base import Tool, ToolContext, ToolRegistry, registry

__all__ = ["Tool", "ToolContext", "ToolRegistry", "registry"]
