"""Prompt builders: pure functions from an AnalysisContext to one prompt string.

Each stage has its own builder in :mod:`.app` or :mod:`.idea`.  Only the
sentiment builders read the raw corpus; every later builder reads parsed
sections only, and long upstream text is cut to a fixed character budget.
"""

from __future__ import annotations

from typing import Any, Iterable

# Character budgets for upstream text interpolated into later prompts
SHORT_BUDGET = 500
MEDIUM_BUDGET = 1000
LONG_BUDGET = 1500
SIMILAR_APP_DESCRIPTION_BUDGET = 200


def truncate(text: str, limit: int) -> str:
    """Cut *text* to *limit* characters, appending ``...`` when cut."""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


def join(items: Iterable[Any], sep: str = ", ") -> str:
    return sep.join(str(item) for item in items)


def backlog_text(items: Iterable[Any], sep: str = ", ") -> str:
    """Backlog contents only (priorities are not repeated into prompts)."""
    return sep.join(
        item["content"] if isinstance(item, dict) else item.content
        for item in items
    )
