"""
Fan-out primitive shared by every batch tool.

``gather_settled`` applies one async operation to each input concurrently and
waits for all of them to settle. A failing item never cancels or undoes its
siblings, and results come back in input order regardless of which call
finished first. There is no retry and no timeout.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Iterable, Sequence, TypeVar

from discord_mcp.config.logging import get_logger
from discord_mcp.errors import ToolError, from_discord_error

logger = get_logger(__name__)

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class Settled(Generic[T, R]):
    """Outcome of one item: exactly one of ``value`` / ``error`` is meaningful."""

    item: T
    value: R | None = None
    error: ToolError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def gather_settled(
    items: Iterable[T],
    operation: Callable[[T], Awaitable[R]],
    *,
    limit: int | None = None,
) -> list[Settled[T, R]]:
    """
    Run ``operation(item)`` for every item concurrently.

    Args:
        items: Inputs, in the order results should be returned
        operation: Async function applied to each input
        limit: Maximum number of operations in flight; None means all at once

    Returns:
        One ``Settled`` per input, same length and order as ``items``.
        Failures are converted to ``ToolError`` via ``from_discord_error``.
    """
    items = list(items)
    semaphore = asyncio.Semaphore(limit) if limit else None

    async def run(item: T) -> R:
        if semaphore is None:
            return await operation(item)
        async with semaphore:
            return await operation(item)

    results = await asyncio.gather(*(run(item) for item in items), return_exceptions=True)

    settled: list[Settled[T, R]] = []
    for item, result in zip(items, results):
        if isinstance(result, Exception):
            settled.append(Settled(item, error=from_discord_error(result)))
        elif isinstance(result, BaseException):
            # CancelledError / KeyboardInterrupt must not be folded into an outcome
            raise result
        else:
            settled.append(Settled(item, value=result))

    failed = sum(1 for s in settled if not s.ok)
    if failed:
        logger.info(f"Batch finished: {len(settled) - failed} ok, {failed} failed")
    return settled


def shape_outcomes(
    settled: Sequence[Settled[T, R]],
    echo: Callable[[T], dict[str, Any]],
    status: str,
    success: Callable[[R], dict[str, Any]] | None = None,
) -> list[dict[str, Any]]:
    """
    Turn settled results into the flat outcome dicts returned to the caller.

    Args:
        settled: Output of ``gather_settled``
        echo: Identifying fields of the input (e.g. ``{"name": ...}``)
        status: Status string for successful items ("created", "banned", ...)
        success: Extra fields taken from a successful result
    """
    outcomes = []
    for s in settled:
        outcome = echo(s.item)
        if s.ok:
            if success is not None:
                outcome.update(success(s.value))
            outcome["status"] = status
        else:
            outcome["status"] = "failed"
            outcome["error"] = s.error.message
            outcome["error_kind"] = s.error.kind
        outcomes.append(outcome)
    return outcomes
