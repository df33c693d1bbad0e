"""
Tests for channel tools.

Covers:
- Single create / delete
- Batch create with a partial failure (outcome order and shape)
- Batch delete
- channel_analysis statistics
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from itertools import count
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from discord_mcp.config.store import InMemoryConfigStore, StoredConfig
from discord_mcp.errors import NotFound
from discord_mcp.tools.base import ToolContext
from discord_mcp.tools.channels import (
    ChannelAnalysisArguments,
    CreateCategoryArguments,
    CreateChannelArguments,
    CreateVoiceChannelArguments,
    DeleteArguments,
    MassCategoriesArguments,
    MassChannelsArguments,
    MassDeleteArguments,
    channel_analysis,
    create_category,
    create_channel,
    create_voice_channel,
    delete,
    mass_categories,
    mass_channels,
    mass_delete,
)

GUILD_ID = 111111111111111111
CHANNEL_ID = 123456789012345677


def _forbidden(text="Missing Permissions"):
    return discord.Forbidden(MagicMock(status=403, reason="Forbidden"), text)


def _created_channel(channel_id: int, name: str):
    channel = MagicMock()
    channel.id = channel_id
    channel.name = name
    return channel


def _make_guild(channels=()):
    ids = count(500)
    guild = MagicMock(spec=discord.Guild)
    guild.id = GUILD_ID
    guild.name = "Alpha"
    guild.channels = list(channels)
    guild.threads = []
    guild.get_channel = MagicMock(side_effect=lambda cid: next((c for c in channels if c.id == cid), None))
    guild.get_channel_or_thread = MagicMock(
        side_effect=lambda cid: next((c for c in channels if c.id == cid), None)
    )

    async def create(name, **kwargs):
        return _created_channel(next(ids), name)

    guild.create_text_channel = AsyncMock(side_effect=create)
    guild.create_voice_channel = AsyncMock(side_effect=create)
    guild.create_category = AsyncMock(side_effect=create)
    return guild


def _make_ctx(guild) -> ToolContext:
    client = MagicMock(spec=discord.Client)
    client.get_guild = MagicMock(side_effect=lambda gid: guild if gid == guild.id else None)
    client.fetch_channel = AsyncMock(side_effect=discord.NotFound(MagicMock(status=404, reason=""), "Unknown Channel"))
    store = InMemoryConfigStore(StoredConfig(default_guild_id=str(guild.id)))
    return ToolContext(client=client, store=store)


def _category(channel_id: int, name: str):
    category = MagicMock(spec=discord.CategoryChannel)
    category.id = channel_id
    category.name = name
    return category


class TestCreate:
    @pytest.mark.asyncio
    async def test_create_channel_in_category(self):
        category = _category(42, "Info")
        guild = _make_guild([category])

        result = await create_channel(
            _make_ctx(guild), CreateChannelArguments(name="rules", category_id="42", topic="Read me")
        )

        assert result == {"id": "500", "name": "rules", "type": "text"}
        guild.create_text_channel.assert_awaited_once_with("rules", category=category, topic="Read me")

    @pytest.mark.asyncio
    async def test_create_channel_unknown_category(self):
        guild = _make_guild()
        with pytest.raises(NotFound, match="Category 42 not found"):
            await create_channel(_make_ctx(guild), CreateChannelArguments(name="rules", category_id="42"))
        guild.create_text_channel.assert_not_called()

    @pytest.mark.asyncio
    async def test_create_category(self):
        result = await create_category(_make_ctx(_make_guild()), CreateCategoryArguments(name="Games"))
        assert result == {"id": "500", "name": "Games", "type": "category"}

    @pytest.mark.asyncio
    async def test_create_voice_channel_defaults_to_unlimited(self):
        guild = _make_guild()
        result = await create_voice_channel(_make_ctx(guild), CreateVoiceChannelArguments(name="Lounge"))
        assert result["type"] == "voice"
        guild.create_voice_channel.assert_awaited_once_with("Lounge", category=None, user_limit=0)


class TestMassCreate:
    @pytest.mark.asyncio
    async def test_mass_channels_partial_failure(self):
        """Creation of "b" is rejected; "a" and "c" are still created, in order."""
        guild = _make_guild()
        ids = iter([501, 503])

        async def create(name, **kwargs):
            if name == "b":
                raise _forbidden()
            return _created_channel(next(ids), name)

        guild.create_text_channel = AsyncMock(side_effect=create)

        result = await mass_channels(
            _make_ctx(guild),
            MassChannelsArguments(channels=[{"name": "a"}, {"name": "b"}, {"name": "c"}]),
        )

        assert result == [
            {"name": "a", "id": "501", "status": "created"},
            {"name": "b", "status": "failed", "error": "Missing Permissions", "error_kind": "permission_denied"},
            {"name": "c", "id": "503", "status": "created"},
        ]
        assert guild.create_text_channel.await_count == 3

    @pytest.mark.asyncio
    async def test_mass_channels_bad_category_only_fails_that_item(self):
        guild = _make_guild()
        result = await mass_channels(
            _make_ctx(guild),
            MassChannelsArguments(channels=[{"name": "a", "category_id": "9"}, {"name": "b"}]),
        )
        assert [r["status"] for r in result] == ["failed", "created"]
        assert result[0]["error_kind"] == "not_found"

    @pytest.mark.asyncio
    async def test_mass_categories(self):
        result = await mass_categories(
            _make_ctx(_make_guild()), MassCategoriesArguments(names=["One", "Two"])
        )
        assert [(r["name"], r["status"]) for r in result] == [("One", "created"), ("Two", "created")]


class TestDelete:
    @pytest.mark.asyncio
    async def test_delete(self):
        channel = _category(42, "old")
        channel.delete = AsyncMock()
        guild = _make_guild([channel])

        result = await delete(_make_ctx(guild), DeleteArguments(channel_id="42"))

        assert result == {"deleted": "42", "name": "old"}
        channel.delete.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_delete_unknown(self):
        with pytest.raises(NotFound, match="Channel 42 not found"):
            await delete(_make_ctx(_make_guild()), DeleteArguments(channel_id="42"))

    @pytest.mark.asyncio
    async def test_mass_delete_mixed(self):
        first = _category(1, "one")
        first.delete = AsyncMock()
        guild = _make_guild([first])

        result = await mass_delete(_make_ctx(guild), MassDeleteArguments(channel_ids=["1", "2"]))

        assert result == [
            {"id": "1", "name": "one", "status": "deleted"},
            {"id": "2", "status": "failed", "error": "Channel 2 not found", "error_kind": "not_found"},
        ]


def _message(author: str, content: str, *, bot=False, minutes=0, attachments=(), embeds=()):
    message = MagicMock(spec=discord.Message)
    message.author = MagicMock(bot=bot)
    message.author.name = author
    message.content = content
    message.attachments = list(attachments)
    message.embeds = list(embeds)
    message.created_at = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(minutes=minutes)
    return message


def _history(messages):
    seen = {}

    def history(limit=None, before=None):
        seen["limit"] = limit

        async def gen():
            for m in messages[:limit]:
                yield m

        return gen()

    return history, seen


class TestChannelAnalysis:
    @pytest.mark.asyncio
    async def test_statistics(self):
        messages = [  # newest first, like channel.history
            _message("alice", "Hello hello world!", minutes=3, attachments=[MagicMock()]),
            _message("deploybot", "Deployed", bot=True, minutes=2),
            _message("bob", "hi there world", minutes=1, embeds=[MagicMock()]),
            _message("alice", "World peace", minutes=0),
        ]
        channel = MagicMock(spec=discord.TextChannel)
        channel.id = CHANNEL_ID
        channel.name = "general"
        channel.topic = "chat"
        channel.history, seen = _history(messages)
        guild = _make_guild([channel])

        result = await channel_analysis(_make_ctx(guild), ChannelAnalysisArguments(channel_id=str(CHANNEL_ID)))

        assert seen["limit"] == 100
        assert result["messages_analyzed"] == 4
        assert result["human_messages"] == 3
        assert result["bot_messages"] == 1
        assert result["date_range"] == {"from": messages[-1].created_at, "to": messages[0].created_at}
        assert result["total_words"] == 8
        assert result["total_characters"] == len("Hello hello world!") + len("hi there world") + len("World peace")
        assert result["avg_words_per_message"] == "2.67"
        assert result["messages_with_attachments"] == 1
        assert result["messages_with_embeds"] == 1
        assert result["top_users"] == [{"user": "alice", "messages": 2}, {"user": "bob", "messages": 1}]
        assert result["top_words"][0] == {"word": "world", "count": 3}
        assert {"word": "hello", "count": 2} in result["top_words"]
        assert all(w["word"] != "hi" for w in result["top_words"])

    @pytest.mark.asyncio
    async def test_limit_is_capped(self):
        channel = MagicMock(spec=discord.TextChannel)
        channel.id = CHANNEL_ID
        channel.name = "general"
        channel.history, seen = _history([])
        guild = _make_guild([channel])

        result = await channel_analysis(
            _make_ctx(guild), ChannelAnalysisArguments(channel_id=str(CHANNEL_ID), limit=5000)
        )

        assert seen["limit"] == 500
        assert result["messages_analyzed"] == 0
        assert result["avg_words_per_message"] == "0.00"
        assert result["date_range"] == {"from": None, "to": None}
