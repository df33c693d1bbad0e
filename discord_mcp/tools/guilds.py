"""
Guild tools: default-guild management, guild listing and server analysis.
"""

from __future__ import annotations

from typing import Any

import discord
from pydantic import Field

from discord_mcp.config.logging import get_logger
from discord_mcp.errors import ToolError
from discord_mcp.tools.base import GuildArguments, ToolArguments, ToolContext, registry

logger = get_logger(__name__)


class SetGuildArguments(ToolArguments):
    guild_id: str = Field(description="The Discord server ID to set as default")


@registry.register(
    "set_guild",
    "Set the default guild (server) ID so you don't need to specify it every time",
    SetGuildArguments,
)
async def set_guild(ctx: ToolContext, args: SetGuildArguments) -> dict[str, Any]:
    guild = ctx.get_guild(args.guild_id)
    guild_id = str(guild.id)
    config = ctx.store.load()
    config.default_guild_id = guild_id
    ctx.store.save(config)
    logger.info(f"Default guild set to {guild.name} ({guild_id})")
    return {"success": True, "default_guild_id": guild_id, "guild_name": guild.name}


@registry.register("get_guild", "Get the currently set default guild ID")
async def get_guild(ctx: ToolContext, args: ToolArguments) -> dict[str, Any]:
    guild_id = ctx.default_guild_id()
    if not guild_id:
        return {"default_guild_id": None, "message": "No default guild set. Use set_guild."}
    try:
        guild = ctx.get_guild(guild_id)
    except ToolError:
        return {
            "default_guild_id": guild_id,
            "message": "Saved but bot may no longer be in this server",
        }
    return {
        "default_guild_id": guild_id,
        "guild_name": guild.name,
        "member_count": guild.member_count,
    }


@registry.register("list_guilds", "List all Discord servers the bot is currently in")
async def list_guilds(ctx: ToolContext, args: ToolArguments) -> dict[str, Any]:
    default_id = ctx.default_guild_id()
    return {
        "guilds": [
            {
                "id": str(g.id),
                "name": g.name,
                "member_count": g.member_count,
                "is_default": str(g.id) == default_id,
            }
            for g in ctx.client.guilds
        ],
        "default_guild_id": default_id or None,
    }


def _is_online(member: discord.Member) -> bool:
    return member.status is not discord.Status.offline


@registry.register("server_analysis", "Complete analysis of a Discord server", GuildArguments)
async def server_analysis(ctx: ToolContext, args: GuildArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    if not guild.chunked:
        await guild.chunk()

    members = guild.members
    channels = guild.channels
    roles = [r for r in guild.roles if not r.is_default()]

    return {
        "id": str(guild.id),
        "name": guild.name,
        "description": guild.description,
        "owner_id": str(guild.owner_id),
        "created_at": guild.created_at,
        "verification_level": str(guild.verification_level),
        "member_count": guild.member_count,
        "humans": sum(1 for m in members if not m.bot),
        "bots": sum(1 for m in members if m.bot),
        "online_members": sum(1 for m in members if _is_online(m)),
        "boost_level": guild.premium_tier,
        "boost_count": guild.premium_subscription_count,
        "channels": {
            "total": len(channels),
            "text": sum(1 for c in channels if isinstance(c, discord.TextChannel)),
            "voice": sum(1 for c in channels if isinstance(c, discord.VoiceChannel)),
            "categories": sum(1 for c in channels if isinstance(c, discord.CategoryChannel)),
            "list": [{"id": str(c.id), "name": c.name, "type": str(c.type)} for c in channels],
        },
        "roles": {
            "total": len(guild.roles),
            "list": [
                {"id": str(r.id), "name": r.name, "members": len(r.members), "color": str(r.color)}
                for r in roles
            ],
        },
        "features": list(guild.features),
        "icon_url": guild.icon.url if guild.icon else None,
        "banner_url": guild.banner.url if guild.banner else None,
    }
