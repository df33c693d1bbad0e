"""
GatewayClient — discord.py client whose login runs in the background.

The MCP server starts answering immediately; tool calls wait on ``ready``
until the first gateway READY event. If login or connection fails before
that, ``ready`` carries the exception instead.
"""

from __future__ import annotations

import asyncio

import discord

from discord_mcp.config.logging import get_logger
from discord_mcp.config.settings import DiscordSettings
from discord_mcp.errors import RemoteFailure

logger = get_logger(__name__)


def build_intents(settings: DiscordSettings) -> discord.Intents:
    """Guilds, members, guild messages, message content, moderation and (optionally) presences."""
    intents = discord.Intents.default()
    intents.members = True
    intents.message_content = True
    intents.moderation = True
    intents.presences = settings.presence_intent
    return intents


class GatewayClient(discord.Client):
    """
    Discord client used by the tool handlers.

    Members are not chunked at startup; tools that need the full roster
    request it on demand.
    """

    def __init__(self, settings: DiscordSettings) -> None:
        super().__init__(intents=build_intents(settings), chunk_guilds_at_startup=False)
        self.ready: asyncio.Future | None = None
        self._task: asyncio.Task | None = None

    def start_in_background(self, token: str) -> asyncio.Future:
        """
        Begin login + gateway connection without awaiting it.

        Must be called from inside the running event loop.

        Returns:
            The ``ready`` future
        """
        self.ready = asyncio.get_running_loop().create_future()
        self._task = asyncio.create_task(self.start(token), name="discord-gateway")
        self._task.add_done_callback(self._on_gateway_stopped)
        return self.ready

    def _on_gateway_stopped(self, task: asyncio.Task) -> None:
        error = None if task.cancelled() else task.exception()

        if self.ready.done():
            if error is not None:
                logger.error(f"Discord gateway stopped: {error}")
            return

        if error is not None:
            logger.error(f"Discord connection failed: {error}")
            self.ready.set_exception(error)
        else:
            self.ready.set_exception(
                RemoteFailure("Discord connection closed before becoming ready")
            )

    async def on_ready(self) -> None:
        """Called on every (re)connect; only the first one resolves ``ready``."""
        logger.info(f"Logged in as {self.user} (id: {self.user.id})")
        logger.info(f"Connected to {len(self.guilds)} guild(s)")
        if self.ready is not None and not self.ready.done():
            self.ready.set_result(None)
