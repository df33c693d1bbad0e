"""
Dispatch router — tool name + arguments → handler → JSON text.

The router has two states: awaiting the Discord connection, and ready. Every
call first awaits the connection future (a no-op once it has resolved), so no
handler ever runs before the gateway handshake has completed. If the login
failed, every call fails with that error instead.

After that, the call is matched by exact tool name, its arguments are
validated against the tool's pydantic model, and the handler runs with the
router's ``ToolContext``. Failures of any kind come back as an error response
(``"Error: <message>"``), never as a raised exception.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass
from typing import Any

import discord
from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from discord_mcp.config.logging import get_logger
from discord_mcp.errors import InvalidArgument, ToolError, from_discord_error
from discord_mcp.tools import ToolContext, ToolRegistry, registry as default_registry

logger = get_logger(__name__)


@dataclass
class ToolResponse:
    """What goes back over the invocation boundary."""

    text: str
    is_error: bool = False


def _describe_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"]) or "arguments"
        problems.append(f"{location}: {item['msg']}")
    return "Invalid arguments - " + "; ".join(problems)


def to_json(result: Any) -> str:
    """Serialise a handler result; datetimes become ISO-8601 strings."""
    return json.dumps(to_jsonable_python(result), indent=2, ensure_ascii=False)


class ToolRouter:
    """
    Routes tool calls to registered handlers.

    Args:
        context: Passed to every handler (client, config store, batch limit)
        ready: Future resolved once the Discord client is connected
        registry: Tools to dispatch to (defaults to every built-in tool)
    """

    def __init__(
        self,
        context: ToolContext,
        ready: asyncio.Future,
        registry: ToolRegistry | None = None,
    ):
        self.context = context
        self.registry = registry if registry is not None else default_registry
        self._ready = ready

    async def _wait_ready(self) -> None:
        try:
            await asyncio.shield(self._ready)
        except ToolError:
            raise
        except Exception as e:
            raise from_discord_error(e)

    async def dispatch(self, name: str, arguments: dict[str, Any] | None) -> Any:
        """
        Run a tool and return its raw result.

        Raises:
            ToolError: Any failure, including UnknownTool and InvalidArgument
        """
        await self._wait_ready()

        tool = self.registry.get(name)
        try:
            args = tool.arguments.model_validate(arguments or {})
        except ValidationError as e:
            raise InvalidArgument(_describe_validation_error(e), tool=name)

        logger.debug(f"Dispatching {name}")
        try:
            return await tool.handler(self.context, args)
        except discord.DiscordException as e:
            raise from_discord_error(e)

    async def call(self, name: str, arguments: dict[str, Any] | None) -> ToolResponse:
        """Run a tool and format the outcome for the invocation boundary."""
        try:
            result = await self.dispatch(name, arguments)
        except ToolError as e:
            logger.warning(f"Tool '{name}' failed ({e.kind}): {e.message}")
            return ToolResponse(f"Error: {e.message}", is_error=True)
        except Exception as e:
            logger.error(f"Tool '{name}' raised unexpectedly: {e}", exc_info=True)
            return ToolResponse(f"Error: {e}", is_error=True)

        return ToolResponse(to_json(result))
