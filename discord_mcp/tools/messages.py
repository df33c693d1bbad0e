"""
Message tools: send (singly or in batches), read history with a cursor, react,
and open threads.
"""

from __future__ import annotations

from typing import Any, Literal

import discord
from pydantic import BaseModel, Field

from discord_mcp.config.logging import get_logger
from discord_mcp.errors import InvalidArgument
from discord_mcp.tools.base import GuildArguments, ToolContext, registry
from discord_mcp.tools.batch import gather_settled, shape_outcomes
from discord_mcp.tools.resolve import is_numeric_id, resolve_channel

logger = get_logger(__name__)

READ_DEFAULT_LIMIT = 50
READ_MAX_LIMIT = 100


class MessageSpec(BaseModel):
    channel_id: str = Field(description="Channel or thread ID (or name)")
    content: str = Field(min_length=1, max_length=2000, description="Message text")


class SendMessageArguments(GuildArguments, MessageSpec):
    pass


class MassSendArguments(GuildArguments):
    messages: list[MessageSpec] = Field(description="Messages to send")


class ReadMessagesArguments(GuildArguments):
    channel_id: str = Field(description="Channel or thread ID (or name)")
    limit: int | None = Field(
        None, ge=1, le=READ_MAX_LIMIT, description=f"Messages to return (default {READ_DEFAULT_LIMIT})"
    )
    before: str | None = Field(None, description="Only return messages older than this message ID")


class ReactionArguments(GuildArguments):
    channel_id: str = Field(description="Channel or thread ID (or name)")
    message_id: str = Field(description="ID of the message to react to")
    emoji: str = Field(min_length=1, description="Unicode emoji or custom emoji as <:name:id>")


class CreateThreadArguments(GuildArguments):
    channel_id: str = Field(description="Parent text channel ID (or name)")
    name: str = Field(min_length=1, max_length=100, description="Thread name")
    message_id: str | None = Field(None, description="Start the thread from this message")
    auto_archive_minutes: Literal[60, 1440, 4320, 10080] | None = Field(
        None, description="Inactivity before the thread is archived"
    )


def _message_id(value: str, field: str) -> int:
    if not is_numeric_id(value):
        raise InvalidArgument(f"Invalid {field}: {value!r}", **{field: value})
    return int(value)


def serialize_message(message: discord.Message) -> dict[str, Any]:
    return {
        "id": str(message.id),
        "author": message.author.name,
        "author_id": str(message.author.id),
        "content": message.content,
        "timestamp": message.created_at,
        "attachments": [a.url for a in message.attachments],
        "reactions": [{"emoji": str(r.emoji), "count": r.count} for r in message.reactions],
    }


async def _send(ctx: ToolContext, guild: discord.Guild, spec: MessageSpec) -> discord.Message:
    channel = await resolve_channel(ctx.client, guild, spec.channel_id)
    return await channel.send(spec.content)


@registry.register("send_message", "Send a message to a channel or thread", SendMessageArguments)
async def send_message(ctx: ToolContext, args: SendMessageArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    message = await _send(ctx, guild, args)
    return {"id": str(message.id), "channel_id": str(message.channel.id), "content": message.content}


@registry.register("mass_send", "Send multiple messages in parallel", MassSendArguments)
async def mass_send(ctx: ToolContext, args: MassSendArguments) -> list[dict[str, Any]]:
    guild = ctx.guild_for(args)
    settled = await gather_settled(
        args.messages, lambda spec: _send(ctx, guild, spec), limit=ctx.batch_limit
    )
    return shape_outcomes(
        settled,
        lambda spec: {"channel_id": spec.channel_id},
        "sent",
        lambda message: {"id": str(message.id)},
    )


@registry.register(
    "read_messages",
    "Read recent messages from a channel or thread, newest first. "
    "Pass the oldest returned id as 'before' to page further back.",
    ReadMessagesArguments,
)
async def read_messages(ctx: ToolContext, args: ReadMessagesArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    channel = await resolve_channel(ctx.client, guild, args.channel_id)
    before = discord.Object(id=_message_id(args.before, "before")) if args.before else None

    messages = [
        m async for m in channel.history(limit=args.limit or READ_DEFAULT_LIMIT, before=before)
    ]
    return {
        "channel_id": str(channel.id),
        "count": len(messages),
        "messages": [serialize_message(m) for m in messages],
    }


@registry.register("add_reaction", "Add a reaction to a message", ReactionArguments)
async def add_reaction(ctx: ToolContext, args: ReactionArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    channel = await resolve_channel(ctx.client, guild, args.channel_id)
    message = channel.get_partial_message(_message_id(args.message_id, "message_id"))
    await message.add_reaction(args.emoji)
    return {"channel_id": str(channel.id), "message_id": args.message_id, "emoji": args.emoji}


@registry.register("create_thread", "Create a thread in a text channel", CreateThreadArguments)
async def create_thread(ctx: ToolContext, args: CreateThreadArguments) -> dict[str, Any]:
    guild = ctx.guild_for(args)
    channel = await resolve_channel(ctx.client, guild, args.channel_id)
    if not isinstance(channel, discord.TextChannel):
        raise InvalidArgument("Threads can only be created in text channels", channel_id=args.channel_id)

    kwargs: dict[str, Any] = {"name": args.name}
    if args.auto_archive_minutes:
        kwargs["auto_archive_duration"] = args.auto_archive_minutes

    if args.message_id:
        message = channel.get_partial_message(_message_id(args.message_id, "message_id"))
        thread = await message.create_thread(**kwargs)
    else:
        thread = await channel.create_thread(type=discord.ChannelType.public_thread, **kwargs)

    logger.info(f"Created thread {thread.name} ({thread.id}) in #{channel.name}")
    return {"id": str(thread.id), "name": thread.name, "parent_id": str(channel.id)}
