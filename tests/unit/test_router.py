"""
Tests for ToolRouter.

Covers:
- Calls wait for the Discord connection before dispatching
- Login failure surfaces on every call
- Unknown tool / invalid arguments / missing guild → error responses
- Successful results serialised as JSON (datetimes as ISO strings)
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from unittest.mock import MagicMock

import discord
import pytest
from pydantic import Field

from discord_mcp.config.store import InMemoryConfigStore
from discord_mcp.errors import NotFound, UnknownTool
from discord_mcp.router import ToolRouter, to_json
from discord_mcp.tools import registry
from discord_mcp.tools.base import ToolArguments, ToolContext, ToolRegistry


def _ready_future(result=None, exception=None) -> asyncio.Future:
    future = asyncio.get_running_loop().create_future()
    if exception is not None:
        future.set_exception(exception)
    else:
        future.set_result(result)
    return future


def _make_router(ready, tools: ToolRegistry | None = None) -> ToolRouter:
    client = MagicMock(spec=discord.Client)
    client.get_guild.return_value = None
    client.guilds = []
    context = ToolContext(client=client, store=InMemoryConfigStore())
    return ToolRouter(context, ready, tools)


class EchoArguments(ToolArguments):
    text: str = Field(description="Text to echo")


def _echo_registry(calls: list) -> ToolRegistry:
    tools = ToolRegistry()

    @tools.register("echo", "Echo text back", EchoArguments)
    async def echo(ctx, args):
        calls.append(args.text)
        return {"echo": args.text, "at": datetime(2024, 5, 1, tzinfo=timezone.utc)}

    @tools.register("explode", "Always fails")
    async def explode(ctx, args):
        raise discord.Forbidden(MagicMock(status=403, reason="Forbidden"), "Missing Permissions")

    return tools


class TestReadiness:
    @pytest.mark.asyncio
    async def test_waits_for_connection(self):
        calls = []
        ready = asyncio.get_running_loop().create_future()
        router = _make_router(ready, _echo_registry(calls))

        task = asyncio.create_task(router.call("echo", {"text": "hi"}))
        await asyncio.sleep(0.01)
        assert not task.done()
        assert calls == []

        ready.set_result(None)
        response = await task
        assert response.is_error is False
        assert calls == ["hi"]

    @pytest.mark.asyncio
    async def test_login_failure_fails_every_call(self):
        router = _make_router(
            _ready_future(exception=discord.LoginFailure("Improper token has been passed."))
        )
        for _ in range(2):
            response = await router.call("list_guilds", {})
            assert response.is_error is True
            assert response.text == "Error: Discord login failed: Improper token has been passed."


class TestDispatch:
    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        router = _make_router(_ready_future())
        with pytest.raises(UnknownTool):
            await router.dispatch("does_not_exist", {})

        response = await router.call("does_not_exist", {})
        assert response.is_error is True
        assert response.text == "Error: Unknown tool: does_not_exist"

    @pytest.mark.asyncio
    async def test_missing_required_argument(self):
        router = _make_router(_ready_future(), _echo_registry([]))
        response = await router.call("echo", {})
        assert response.is_error is True
        assert response.text.startswith("Error: Invalid arguments - text:")

    @pytest.mark.asyncio
    async def test_none_arguments_treated_as_empty(self):
        router = _make_router(_ready_future())
        response = await router.call("get_guild", None)
        assert response.is_error is False
        assert json.loads(response.text)["default_guild_id"] is None

    @pytest.mark.asyncio
    async def test_success_is_indented_json(self):
        router = _make_router(_ready_future(), _echo_registry([]))
        response = await router.call("echo", {"text": "hi"})
        assert response.text == '{\n  "echo": "hi",\n  "at": "2024-05-01T00:00:00Z"\n}'

    @pytest.mark.asyncio
    async def test_discord_errors_are_classified(self):
        router = _make_router(_ready_future(), _echo_registry([]))
        response = await router.call("explode", {})
        assert response.is_error is True
        assert response.text == "Error: Missing Permissions"

    @pytest.mark.asyncio
    async def test_guild_scoped_tool_without_guild_fails_before_remote_calls(self):
        router = _make_router(_ready_future())
        response = await router.call("create_channel", {"name": "general"})

        assert response.is_error is True
        assert response.text == (
            "Error: No guild_id provided and no default guild set. Use set_guild first."
        )
        router.context.client.get_guild.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_guild(self):
        router = _make_router(_ready_future())
        with pytest.raises(NotFound):
            await router.dispatch("server_analysis", {"guild_id": "123456789012345678"})


class TestRegistry:
    def test_every_tool_registered(self):
        assert set(registry.names()) >= {
            "set_guild", "get_guild", "list_guilds",
            "create_channel", "create_category", "create_voice_channel",
            "mass_channels", "mass_categories", "mass_voice_channels",
            "delete", "mass_delete",
            "server_analysis", "channel_analysis", "user_analysis",
            "ban_user", "time_out_user", "mass_ban", "mass_time_out",
            "kick_user", "add_role", "remove_role",
            "send_message", "mass_send", "read_messages", "add_reaction", "create_thread",
        }

    def test_duplicate_registration_rejected(self):
        tools = ToolRegistry()

        @tools.register("x", "first")
        async def first(ctx, args):
            return None

        with pytest.raises(ValueError, match="already registered"):
            @tools.register("x", "second")
            async def second(ctx, args):
                return None

    def test_schema_marks_required_fields(self):
        schema = registry.get("time_out_user").input_schema()
        assert schema["type"] == "object"
        assert set(schema["required"]) == {"user_id", "duration_minutes"}
        assert "guild_id" in schema["properties"]


class TestToJson:
    def test_nested_datetimes(self):
        text = to_json([{"until": datetime(2024, 1, 1, 0, 10, tzinfo=timezone.utc)}])
        assert json.loads(text) == [{"until": "2024-01-01T00:10:00Z"}]
