"""
Entity resolution: user-supplied token → discord.py object.

Tokens that look like a snowflake (17-20 decimal digits) are treated as ids and
looked up directly. Anything else is treated as a display name and matched
case-insensitively.

A name that matches several entities is an error (``Unresolvable`` listing the
candidate ids) rather than an arbitrary pick.
"""

from __future__ import annotations

import re
from typing import Iterable, TypeVar

import discord

from discord_mcp.config.logging import get_logger
from discord_mcp.errors import InvalidArgument, NotFound, Unresolvable, from_discord_error

logger = get_logger(__name__)

SNOWFLAKE_PATTERN = re.compile(r"^[0-9]{17,20}$")
NUMERIC_ID_PATTERN = re.compile(r"^[0-9]+$")

E = TypeVar("E")


def is_snowflake(token: str) -> bool:
    """True if ``token`` has the shape of a Discord id."""
    return bool(SNOWFLAKE_PATTERN.match(token.strip()))


def is_numeric_id(token: str) -> bool:
    """True if ``token`` is a plain ASCII decimal id of any length."""
    return bool(NUMERIC_ID_PATTERN.match(token.strip()))


def _unique(token: str, what: str, matches: list[E]) -> E:
    if not matches:
        raise Unresolvable(f"No {what} named '{token}' found", token=token)
    if len(matches) > 1:
        ids = sorted(str(m.id) for m in matches)
        raise Unresolvable(
            f"'{token}' matches {len(matches)} {what}s ({', '.join(ids)}); use an id instead",
            token=token,
            candidates=ids,
        )
    return matches[0]


def member_names(member: discord.Member) -> Iterable[str]:
    """Account name, server nickname and global display name, where set."""
    for name in (member.name, member.nick, member.global_name):
        if name:
            yield name


async def resolve_member(guild: discord.Guild, token: str) -> discord.Member:
    """
    Resolve a member by id or display name.

    The name path needs the full roster, so it forces a member chunk request
    first when the guild hasn't been chunked yet.

    Raises:
        NotFound: The id is not a member of this guild
        Unresolvable: The name matched nobody, or more than one member
    """
    token = token.strip()
    if is_snowflake(token):
        try:
            return await guild.fetch_member(int(token))
        except discord.NotFound as e:
            raise NotFound(f"User {token} not found", cause=e, user_id=token)
        except discord.HTTPException as e:
            raise from_discord_error(e)

    if not guild.chunked:
        logger.debug(f"Chunking members of guild {guild.id} for name lookup")
        await guild.chunk()

    wanted = token.lower()
    matches = [
        m for m in guild.members
        if any(name.lower() == wanted for name in member_names(m))
    ]
    return _unique(token, "member", matches)


def resolve_role(guild: discord.Guild, token: str) -> discord.Role:
    """
    Resolve a role by id or name. Roles are always cached, so no fetch is made.

    Raises:
        NotFound: No role with this id
        Unresolvable: The name matched no role, or more than one
    """
    token = token.strip()
    if is_snowflake(token):
        role = guild.get_role(int(token))
        if role is None:
            raise NotFound(f"Role {token} not found", role_id=token)
        return role

    wanted = token.lstrip("@").lower()
    matches = [r for r in guild.roles if r.name.lower() == wanted]
    return _unique(token, "role", matches)


def _require_text(channel, token: str):
    if not isinstance(channel, discord.abc.Messageable):
        raise InvalidArgument("Channel is not text-based", channel_id=token)
    return channel


async def resolve_channel(client: discord.Client, guild: discord.Guild, token: str):
    """
    Resolve a text-capable channel or thread by id or name.

    Id lookups try, in order: the local cache, a remote fetch by id, then the
    guild's active-thread listing (threads are often absent from the cache).

    Raises:
        NotFound: No channel with this id in the guild
        Unresolvable: The name matched no channel, or more than one
        InvalidArgument: The channel exists but can't hold messages
    """
    token = token.strip()
    if not is_snowflake(token):
        wanted = token.lstrip("#").lower()
        candidates = [*guild.channels, *guild.threads]
        matches = [
            c for c in candidates
            if c.name.lower() == wanted and isinstance(c, discord.abc.Messageable)
        ]
        return _unique(token, "channel", matches)

    channel_id = int(token)

    channel = guild.get_channel_or_thread(channel_id)
    if channel is not None:
        return _require_text(channel, token)

    try:
        channel = await client.fetch_channel(channel_id)
    except (discord.NotFound, discord.Forbidden) as e:
        logger.debug(f"fetch_channel({channel_id}) failed: {e}")
        channel = None
    if channel is not None and getattr(getattr(channel, "guild", None), "id", None) == guild.id:
        return _require_text(channel, token)

    for thread in await guild.active_threads():
        if thread.id == channel_id:
            return thread

    raise NotFound(f"Channel {token} not found", channel_id=token)


def resolve_category(guild: discord.Guild, category_id: str | None) -> discord.CategoryChannel | None:
    """Look up a category by id in the cache. ``None`` in, ``None`` out."""
    if not category_id:
        return None
    if not is_numeric_id(category_id):
        raise InvalidArgument(f"Invalid category_id: {category_id!r}", category_id=category_id)

    category = guild.get_channel(int(category_id))
    if not isinstance(category, discord.CategoryChannel):
        raise NotFound(f"Category {category_id} not found", category_id=category_id)
    return category


def resolve_guild_channel(guild: discord.Guild, channel_id: str):
    """Cache lookup of any guild channel (text, voice or category) by id."""
    if not is_numeric_id(channel_id):
        raise InvalidArgument(f"Invalid channel_id: {channel_id!r}", channel_id=channel_id)
    channel = guild.get_channel_or_thread(int(channel_id))
    if channel is None:
        raise NotFound(f"Channel {channel_id} not found", channel_id=channel_id)
    return channel
