"""
Channel tools: create / delete channels and categories (singly or in batches)
and per-channel message analysis.
"""

from __future__ import annotations

from collections import Counter
from typing import Any

import discord
from pydantic import BaseModel, Field

from discord_mcp.config.logging import get_logger
from discord_mcp.tools.base import GuildArguments, ToolContext, registry
from discord_mcp.tools.batch import gather_settled, shape_outcomes
from discord_mcp.tools.resolve import resolve_category, resolve_channel, resolve_guild_channel
from discord_mcp.tools.text_stats import average, count_words, split_words, top_words

logger = get_logger(__name__)

ANALYSIS_DEFAULT_LIMIT = 100
ANALYSIS_MAX_LIMIT = 500


class TextChannelSpec(BaseModel):
    name: str = Field(min_length=1, max_length=100, description="Channel name")
    category_id: str | None = Field(None, description="Parent category ID")
    topic: str | None = Field(None, description="Channel topic")


class VoiceChannelSpec(BaseModel):
    name: str = Field(min_length=1, max_length=100, description="Channel name")
    category_id: str | None = Field(None, description="Parent category ID")
    user_limit: int | None = Field(None, ge=0, le=99, description="0 means unlimited")


class CreateChannelArguments(GuildArguments, TextChannelSpec):
    pass


class CreateVoiceChannelArguments(GuildArguments, VoiceChannelSpec):
    pass


class CreateCategoryArguments(GuildArguments):
    name: str = Field(min_length=1, max_length=100, description="Category name")


class MassChannelsArguments(GuildArguments):
    channels: list[TextChannelSpec] = Field(description="Text channels to create")


class MassVoiceChannelsArguments(GuildArguments):
    channels: list[VoiceChannelSpec] = Field(description="Voice channels to create")


class MassCategoriesArguments(GuildArguments):
    names: list[str] = Field(description="Category names to create")


class DeleteArguments(GuildArguments):
    channel_id: str = Field(description="ID of the channel or category to delete")


class MassDeleteArguments(GuildArguments):
    channel_ids: list[str] = Field(description="IDs of the channels/categories to delete")


class ChannelAnalysisArguments(GuildArguments):
    channel_id: str = Field(description="Channel or thread ID (or name)")
    limit: int | None = Field(
        None, ge=1, description=f"Messages to analyse (default {ANALYSIS_DEFAULT_LIMIT}, max {ANALYSIS_MAX_LIMIT})"
    )


# ---------------------------------------------------------------------------
# Single-item operations, shared by the single and batch tools
# ---------------------------------------------------------------------------

async def _create_text(guild: discord.Guild, spec: TextChannelSpec) -> discord.TextChannel:
    kwargs: dict[str, Any] = {"category": resolve_category(guild, spec.category_id)}
    if spec.topic:
        kwargs["topic"] = spec.topic
    return await guild.create_text_channel(spec.name, **kwargs)


async def _create_voice(guild: discord.Guild, spec: VoiceChannelSpec) -> discord.VoiceChannel:
    return await guild.create_voice_channel(
        spec.name,
        category=resolve_category(guild, spec.category_id),
        user_limit=spec.user_limit or 0,
    )


async def _delete(guild: discord.Guild, channel_id: str) -> str:
    channel = resolve_guild_channel(guild, channel_id)
    name = channel.name
    await channel.delete()
    return name


def _created(channel) -> dict[str, Any]:
    return {"id": str(channel.id)}


# ---------------------------------------------------------------------------
# Tools
# ---------------------------------------------------------------------------

@registry.register("create_channel", "Create a single text channel in a guild", CreateChannelArguments)
async def create_channel(ctx: ToolContext, args: CreateChannelArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    channel = await _create_text(guild, args)
    return {"id": str(channel.id), "name": channel.name, "type": "text"}


@registry.register("create_category", "Create a single category in a guild", CreateCategoryArguments)
async def create_category(ctx: ToolContext, args: CreateCategoryArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    category = await guild.create_category(args.name)
    return {"id": str(category.id), "name": category.name, "type": "category"}


@registry.register(
    "create_voice_channel", "Create a single voice channel in a guild", CreateVoiceChannelArguments
)
async def create_voice_channel(ctx: ToolContext, args: CreateVoiceChannelArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    channel = await _create_voice(guild, args)
    return {"id": str(channel.id), "name": channel.name, "type": "voice"}


@registry.register("mass_channels", "Create multiple text channels in parallel", MassChannelsArguments)
async def mass_channels(ctx: ToolContext, args: MassChannelsArguments) -> list[dict[str, Any]]:
    guild = ctx.guild_for(args)
    settled = await gather_settled(
        args.channels, lambda spec: _create_text(guild, spec), limit=ctx.batch_limit
    )
    return shape_outcomes(settled, lambda spec: {"name": spec.name}, "created", _created)


@registry.register("mass_categories", "Create multiple categories in parallel", MassCategoriesArguments)
async def mass_categories(ctx: ToolContext, args: MassCategoriesArguments) -> list[dict[str, Any]]:
    guild = ctx.guild_for(args)
    settled = await gather_settled(args.names, guild.create_category, limit=ctx.batch_limit)
    return shape_outcomes(settled, lambda name: {"name": name}, "created", _created)


@registry.register(
    "mass_voice_channels", "Create multiple voice channels in parallel", MassVoiceChannelsArguments
)
async def mass_voice_channels(ctx: ToolContext, args: MassVoiceChannelsArguments) -> list[dict[str, Any]]:
    guild = ctx.guild_for(args)
    settled = await gather_settled(
        args.channels, lambda spec: _create_voice(guild, spec), limit=ctx.batch_limit
    )
    return shape_outcomes(settled, lambda spec: {"name": spec.name}, "created", _created)


@registry.register("delete", "Delete a single channel or category by ID", DeleteArguments)
async def delete(ctx: ToolContext, args: DeleteArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    name = await _delete(guild, args.channel_id)
    logger.info(f"Deleted channel {name} ({args.channel_id}) in {guild.name}")
    return {"deleted": args.channel_id, "name": name}


@registry.register("mass_delete", "Delete multiple channels/categories in parallel", MassDeleteArguments)
async def mass_delete(ctx: ToolContext, args: MassDeleteArguments) -> list[dict[str, Any]]:
    guild = ctx.guild_for(args)
    settled = await gather_settled(
        args.channel_ids, lambda channel_id: _delete(guild, channel_id), limit=ctx.batch_limit
    )
    return shape_outcomes(
        settled, lambda channel_id: {"id": channel_id}, "deleted", lambda name: {"name": name}
    )


@registry.register("channel_analysis", "Analyze a specific text channel", ChannelAnalysisArguments)
async def channel_analysis(ctx: ToolContext, args: ChannelAnalysisArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    channel = await resolve_channel(ctx.client, guild, args.channel_id)
    limit = min(args.limit or ANALYSIS_DEFAULT_LIMIT, ANALYSIS_MAX_LIMIT)

    # Newest first
    messages = [m async for m in channel.history(limit=limit)]

    authors: Counter = Counter()
    words: Counter = Counter()
    total_words = total_chars = with_attachments = with_embeds = bot_messages = 0

    for message in messages:
        if message.author.bot:
            bot_messages += 1
            continue
        authors[message.author.name] += 1
        message_words = split_words(message.content)
        total_words += len(message_words)
        total_chars += len(message.content)
        count_words(message_words, words)
        if message.attachments:
            with_attachments += 1
        if message.embeds:
            with_embeds += 1

    human_messages = len(messages) - bot_messages
    return {
        "channel_id": str(channel.id),
        "channel_name": channel.name,
        "topic": getattr(channel, "topic", None),
        "messages_analyzed": len(messages),
        "human_messages": human_messages,
        "bot_messages": bot_messages,
        "date_range": {
            "from": messages[-1].created_at if messages else None,
            "to": messages[0].created_at if messages else None,
        },
        "total_words": total_words,
        "total_characters": total_chars,
        "avg_words_per_message": average(total_words, human_messages),
        "messages_with_attachments": with_attachments,
        "messages_with_embeds": with_embeds,
        "top_users": [{"user": user, "messages": n} for user, n in authors.most_common(10)],
        "top_words": top_words(words),
    }
