"""
Error kinds raised by tool handlers.

Every failure a tool can produce is one of a closed set of ``ToolError``
subclasses. Each carries a human-readable message plus a machine-readable
``kind`` and a ``context`` dict, so callers (and the batch collector) can tell
"rate limited" apart from "permission denied" without parsing text.
"""

from __future__ import annotations

from typing import Any

import discord


class ToolError(Exception):
    """Base class for all tool failures."""

    kind = "error"

    def __init__(self, message: str, *, cause: Exception | None = None, **context: Any):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.context = context

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "message": self.message, **self.context}


class InvalidArgument(ToolError):
    """A required argument is missing or malformed."""

    kind = "invalid_argument"


class UnknownTool(InvalidArgument):
    """No tool is registered under the requested name."""

    def __init__(self, name: str):
        super().__init__(f"Unknown tool: {name}", tool=name)


class NotFound(ToolError):
    """A guild, channel, member, role or message does not exist."""

    kind = "not_found"


class Unresolvable(ToolError):
    """A display name matched no entity, or matched more than one."""

    kind = "unresolvable"


class PermissionDenied(ToolError):
    """Discord refused the action (HTTP 403)."""

    kind = "permission_denied"


class RemoteFailure(ToolError):
    """Any other Discord or gateway failure, including rate limits."""

    kind = "remote_failure"


def from_discord_error(exc: Exception) -> ToolError:
    """
    Map a discord.py exception onto the closed set of tool errors.

    ``ToolError`` instances pass through unchanged; anything that isn't a
    discord.py error becomes a ``RemoteFailure``.
    """
    if isinstance(exc, ToolError):
        return exc

    if isinstance(exc, discord.HTTPException):
        context = {"status": exc.status, "code": exc.code}
        message = exc.text or str(exc)
        if isinstance(exc, discord.NotFound):
            return NotFound(message, cause=exc, **context)
        if isinstance(exc, discord.Forbidden):
            return PermissionDenied(message, cause=exc, **context)
        if exc.status == 429:
            return RemoteFailure(f"Rate limited: {message}", cause=exc, rate_limited=True, **context)
        return RemoteFailure(message, cause=exc, **context)

    if isinstance(exc, discord.LoginFailure):
        return RemoteFailure(f"Discord login failed: {exc}", cause=exc)

    return RemoteFailure(str(exc) or type(exc).__name__, cause=exc)
