"""
discord-mcp - Discord guild administration exposed as MCP tools.

This package provides a Model Context Protocol server that maps named,
schema-validated tool calls onto the Discord API via discord.py.
"""

__version__ = "1.0.0"
