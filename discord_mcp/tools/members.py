"""
Member tools: moderation (ban, kick, timeout, roles), singly or in batches,
and per-user activity analysis.

User arguments accept either an id or a display name; see
``discord_mcp.tools.resolve``.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Any

import discord
from pydantic import Field

from discord_mcp.config.logging import get_logger
from discord_mcp.tools.base import GuildArguments, ToolContext, registry
from discord_mcp.tools.batch import gather_settled, shape_outcomes
from discord_mcp.tools.resolve import is_snowflake, resolve_member, resolve_role
from discord_mcp.tools.text_stats import average, count_words, split_words, top_words

logger = get_logger(__name__)

NO_REASON = "No reason provided"
ANALYSIS_DEFAULT_LIMIT = 100
ANALYSIS_MAX_LIMIT = 200
RECENT_MESSAGES = 5
MAX_TIMEOUT_MINUTES = 28 * 24 * 60  # Discord caps timeouts at 28 days
SECONDS_PER_DAY = 24 * 60 * 60


class UserArguments(GuildArguments):
    user_id: str = Field(description="User ID or display name")


class BanArguments(UserArguments):
    reason: str | None = Field(None, description="Audit log reason")
    delete_message_days: int | None = Field(
        None, ge=0, le=7, description="Days of the user's messages to delete (0-7)"
    )


class KickArguments(UserArguments):
    reason: str | None = Field(None, description="Audit log reason")


class TimeoutArguments(UserArguments):
    duration_minutes: int = Field(ge=1, le=MAX_TIMEOUT_MINUTES, description="Timeout length in minutes")
    reason: str | None = Field(None, description="Audit log reason")


class MassBanArguments(GuildArguments):
    user_ids: list[str] = Field(description="User IDs (or display names) to ban")
    reason: str | None = Field(None, description="Audit log reason")
    delete_message_days: int | None = Field(None, ge=0, le=7)


class MassTimeoutArguments(GuildArguments):
    user_ids: list[str] = Field(description="User IDs (or display names) to time out")
    duration_minutes: int = Field(ge=1, le=MAX_TIMEOUT_MINUTES, description="Timeout length in minutes")
    reason: str | None = Field(None, description="Audit log reason")


class RoleArguments(UserArguments):
    role: str = Field(description="Role ID or name")
    reason: str | None = Field(None, description="Audit log reason")


class UserAnalysisArguments(UserArguments):
    limit: int | None = Field(
        None, ge=1,
        description=f"Messages scanned per channel (default {ANALYSIS_DEFAULT_LIMIT}, max {ANALYSIS_MAX_LIMIT})",
    )


# ---------------------------------------------------------------------------
# Single-item operations
# ---------------------------------------------------------------------------

async def _ban_target(guild: discord.Guild, token: str) -> discord.abc.Snowflake:
    """
    Ids are banned directly, so users who already left can still be banned.
    Names must resolve to a current member.
    """
    if is_snowflake(token):
        user_id = int(token.strip())
        return guild.get_member(user_id) or discord.Object(id=user_id)
    return await resolve_member(guild, token)


async def _ban(guild: discord.Guild, token: str, reason: str, days: int | None) -> discord.abc.Snowflake:
    target = await _ban_target(guild, token)
    await guild.ban(target, reason=reason, delete_message_seconds=(days or 0) * SECONDS_PER_DAY)
    return target


async def _timeout(guild: discord.Guild, token: str, until: datetime, reason: str) -> discord.Member:
    member = await resolve_member(guild, token)
    await member.timeout(until, reason=reason)
    return member


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

@registry.register("ban_user", "Ban a single user from a guild", BanArguments)
async def ban_user(ctx: ToolContext, args: BanArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    reason = args.reason or NO_REASON
    target = await _ban(guild, args.user_id, reason, args.delete_message_days)
    logger.info(f"Banned {target.id} from {guild.name}: {reason}")
    return {"banned": str(target.id), "username": getattr(target, "name", None), "reason": reason}


@registry.register("kick_user", "Kick a single member from a guild", KickArguments)
async def kick_user(ctx: ToolContext, args: KickArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    reason = args.reason or NO_REASON
    member = await resolve_member(guild, args.user_id)
    await member.kick(reason=reason)
    logger.info(f"Kicked {member.id} from {guild.name}: {reason}")
    return {"kicked": str(member.id), "username": member.name, "reason": reason}


@registry.register("time_out_user", "Timeout a single user", TimeoutArguments)
async def time_out_user(ctx: ToolContext, args: TimeoutArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    reason = args.reason or NO_REASON
    until = discord.utils.utcnow() + timedelta(minutes=args.duration_minutes)
    member = await _timeout(guild, args.user_id, until, reason)
    return {
        "timed_out": str(member.id),
        "username": member.name,
        "duration_minutes": args.duration_minutes,
        "until": until,
        "reason": reason,
    }


@registry.register("mass_ban", "Ban multiple users in parallel", MassBanArguments)
async def mass_ban(ctx: ToolContext, args: MassBanArguments) -> list[dict[str, Any]]:
    guild = ctx.guild_for(args)
    reason = args.reason or "Mass ban"
    settled = await gather_settled(
        args.user_ids,
        lambda token: _ban(guild, token, reason, args.delete_message_days),
        limit=ctx.batch_limit,
    )
    return shape_outcomes(settled, lambda token: {"user_id": token}, "banned")


@registry.register("mass_time_out", "Timeout multiple users in parallel", MassTimeoutArguments)
async def mass_time_out(ctx: ToolContext, args: MassTimeoutArguments) -> list[dict[str, Any]]:
    guild = ctx.guild_for(args)
    reason = args.reason or "Mass timeout"
    until = discord.utils.utcnow() + timedelta(minutes=args.duration_minutes)
    settled = await gather_settled(
        args.user_ids,
        lambda token: _timeout(guild, token, until, reason),
        limit=ctx.batch_limit,
    )
    return shape_outcomes(
        settled,
        lambda token: {"user_id": token},
        "timed_out",
        lambda member: {"username": member.name, "until": until},
    )


@registry.register("add_role", "Give a role to a member", RoleArguments)
async def add_role(ctx: ToolContext, args: RoleArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    member = await resolve_member(guild, args.user_id)
    role = resolve_role(guild, args.role)
    await member.add_roles(role, reason=args.reason)
    return _role_result(member, role, "added")


@registry.register("remove_role", "Remove a role from a member", RoleArguments)
async def remove_role(ctx: ToolContext, args: RoleArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    member = await resolve_member(guild, args.user_id)
    role = resolve_role(guild, args.role)
    await member.remove_roles(role, reason=args.reason)
    return _role_result(member, role, "removed")


def _role_result(member: discord.Member, role: discord.Role, action: str) -> dict[str, Any]:
    return {
        "user_id": str(member.id),
        "username": member.name,
        "role_id": str(role.id),
        "role_name": role.name,
        "action": action,
    }


def _readable_text_channels(guild: discord.Guild) -> list[discord.TextChannel]:
    channels = []
    for channel in guild.text_channels:
        perms = channel.permissions_for(guild.me)
        if perms.view_channel and perms.read_message_history:
            channels.append(channel)
    return channels


@registry.register("user_analysis", "Analyze a user in a server", UserAnalysisArguments)
async def user_analysis(ctx: ToolContext, args: UserAnalysisArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    member = await resolve_member(guild, args.user_id)
    limit = min(args.limit or ANALYSIS_DEFAULT_LIMIT, ANALYSIS_MAX_LIMIT)

    async def scan(channel: discord.TextChannel) -> list[discord.Message]:
        return [m async for m in channel.history(limit=limit) if m.author.id == member.id]

    settled = await gather_settled(_readable_text_channels(guild), scan, limit=ctx.batch_limit)

    words: Counter = Counter()
    channel_stats: list[dict[str, Any]] = []
    found: list[tuple[discord.Message, discord.TextChannel]] = []
    total_messages = total_words = 0

    for s in settled:
        if not s.ok:
            logger.debug(f"Skipping #{s.item.name} in user_analysis: {s.error.message}")
            continue
        if not s.value:
            continue

        channel_words = 0
        for message in s.value:
            message_words = split_words(message.content)
            channel_words += len(message_words)
            count_words(message_words, words)
            found.append((message, s.item))
        total_messages += len(s.value)
        total_words += channel_words
        channel_stats.append({
            "channel_name": s.item.name,
            "channel_id": str(s.item.id),
            "message_count": len(s.value),
            "words": channel_words,
        })

    # Newest first across every scanned channel
    found.sort(key=lambda pair: pair[0].created_at, reverse=True)
    recent = [
        {"content": message.content[:200], "channel": channel.name, "timestamp": message.created_at}
        for message, channel in found[:RECENT_MESSAGES]
    ]

    return {
        "user_id": str(member.id),
        "username": member.name,
        "display_name": member.display_name,
        "joined_at": member.joined_at,
        "account_created_at": member.created_at,
        "is_bot": member.bot,
        "nickname": member.nick,
        "boosting_since": member.premium_since,
        "roles": [
            {"id": str(r.id), "name": r.name} for r in member.roles if not r.is_default()
        ],
        "total_messages_found": total_messages,
        "total_words": total_words,
        "avg_words_per_message": average(total_words, total_messages),
        "top_words": top_words(words),
        "recent_messages": recent,
        "activity_by_channel": sorted(
            channel_stats, key=lambda stat: stat["message_count"], reverse=True
        ),
    }
