"""
Tests for GatewayClient's background login and ready future.
"""

import asyncio
from unittest.mock import MagicMock, patch

import discord
import pytest

from discord_mcp.config.settings import DiscordSettings
from discord_mcp.errors import RemoteFailure
from discord_mcp.gateway import GatewayClient, build_intents


class TestIntents:
    def test_privileged_intents(self):
        intents = build_intents(DiscordSettings(bot_token="x"))
        assert intents.guilds
        assert intents.members
        assert intents.guild_messages
        assert intents.message_content
        assert intents.moderation
        assert intents.presences

    def test_presence_intent_optional(self):
        assert build_intents(DiscordSettings(bot_token="x", presence_intent=False)).presences is False


class TestReadyFuture:
    @pytest.mark.asyncio
    async def test_first_on_ready_resolves(self):
        client = GatewayClient(DiscordSettings(bot_token="x"))

        async def start_forever(token):
            await asyncio.Event().wait()

        with patch.object(GatewayClient, "start", side_effect=start_forever), \
             patch.object(GatewayClient, "user", new=MagicMock(id=1)):
            ready = client.start_in_background("x")
            await asyncio.sleep(0)
            assert not ready.done()

            await client.on_ready()
            assert ready.done()
            await ready

            # A reconnect fires on_ready again without error
            await client.on_ready()

            client._task.cancel()
            await asyncio.sleep(0)

    @pytest.mark.asyncio
    async def test_login_failure_rejects_ready(self):
        client = GatewayClient(DiscordSettings(bot_token="bad"))

        async def fail(token):
            raise discord.LoginFailure("Improper token has been passed.")

        with patch.object(GatewayClient, "start", side_effect=fail):
            ready = client.start_in_background("bad")
            with pytest.raises(discord.LoginFailure):
                await ready

    @pytest.mark.asyncio
    async def test_clean_exit_before_ready_rejects_ready(self):
        client = GatewayClient(DiscordSettings(bot_token="x"))

        async def stop(token):
            return None

        with patch.object(GatewayClient, "start", side_effect=stop):
            ready = client.start_in_background("x")
            with pytest.raises(RemoteFailure, match="closed before becoming ready"):
                await ready
