"""
Base classes for tools.

A tool is a name, a description, a pydantic model describing its arguments and
an async handler. The MCP ``inputSchema`` is generated from the arguments
model, so the schema advertised to clients and the validation applied to
incoming calls can never drift apart.

Handlers receive a ``ToolContext`` holding everything they may touch: the
Discord client, the default-guild store and batch settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable

import discord
from mcp import types
from pydantic import BaseModel, ConfigDict, Field

from discord_mcp.config.store import ConfigStore
from discord_mcp.errors import InvalidArgument, NotFound, UnknownTool


class ToolArguments(BaseModel):
    """Base for every tool's argument model."""

    model_config = ConfigDict(extra="ignore")


class GuildArguments(ToolArguments):
    """Arguments shared by every guild-scoped tool."""

    guild_id: str | None = Field(
        None, description="Discord server ID (optional if default is set)"
    )


Handler = Callable[["ToolContext", Any], Awaitable[Any]]


@dataclass
class ToolContext:
    """
    Per-server context threaded into every handler.

    Args:
        client: Connected discord.py client
        store: Where the default guild id is persisted
        batch_limit: Cap on concurrent Discord calls inside one batch tool
    """

    client: discord.Client
    store: ConfigStore
    batch_limit: int | None = None

    def default_guild_id(self) -> str | None:
        return self.store.load().default_guild_id

    def get_guild(self, guild_id: str) -> discord.Guild:
        """Look up a guild the bot is a member of."""
        try:
            snowflake = int(guild_id)
        except (TypeError, ValueError):
            raise InvalidArgument(f"Invalid guild_id: {guild_id!r}", guild_id=guild_id)

        guild = self.client.get_guild(snowflake)
        if guild is None:
            raise NotFound(
                f"Guild {guild_id} not found or bot is not in this server", guild_id=guild_id
            )
        return guild

    def guild_for(self, args: GuildArguments) -> discord.Guild:
        """
        Resolve the guild a call targets: the explicit ``guild_id`` argument,
        else the stored default.

        Raises:
            InvalidArgument: If neither is available. No remote call is made.
        """
        guild_id = args.guild_id or self.default_guild_id()
        if not guild_id:
            raise InvalidArgument(
                "No guild_id provided and no default guild set. Use set_guild first."
            )
        return self.get_guild(guild_id)


@dataclass(frozen=True)
class Tool:
    """A registered tool."""

    name: str
    description: str
    arguments: type[ToolArguments]
    handler: Handler

    def input_schema(self) -> dict[str, Any]:
        return self.arguments.model_json_schema()

    def to_mcp(self) -> types.Tool:
        return types.Tool(
            name=self.name,
            description=self.description,
            inputSchema=self.input_schema(),
        )


class ToolRegistry:
    """Name → ``Tool`` mapping, populated by the ``register`` decorator."""

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(
        self, name: str, description: str, arguments: type[ToolArguments] = ToolArguments
    ) -> Callable[[Handler], Handler]:
        """
        Decorator registering an async handler as a tool.

        Raises:
            ValueError: If a tool with the same name is already registered
        """
        def decorator(handler: Handler) -> Handler:
            if name in self._tools:
                raise ValueError(f"Tool '{name}' is already registered")
            self._tools[name] = Tool(name, description, arguments, handler)
            return handler

        return decorator

    def get(self, name: str) -> Tool:
        try:
            return self._tools[name]
        except KeyError:
            raise UnknownTool(name)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def __iter__(self):
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def names(self) -> list[str]:
        return list(self._tools)


# Populated by the tool modules imported in discord_mcp.tools
registry = ToolRegistry()
