"""Word statistics shared by channel_analysis and user_analysis."""

from __future__ import annotations

import re
from collections import Counter

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def split_words(content: str) -> list[str]:
    return content.split()


def count_words(words: list[str], counter: Counter) -> None:
    """Add normalised words (lower-case, alphanumerics only, >2 chars) to ``counter``."""
    for word in words:
        normalised = _NON_ALNUM.sub("", word.lower())
        if len(normalised) > 2:
            counter[normalised] += 1


def top_words(counter: Counter, n: int = 20) -> list[dict]:
    return [{"word": word, "count": count} for word, count in counter.most_common(n)]


def average(total: int, count: int) -> str:
    """Mean formatted with two decimals; an empty sample divides by one."""
    return f"{total / (count or 1):.2f}"
