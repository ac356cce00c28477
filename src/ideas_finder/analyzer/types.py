"""Shared types for the multi-stage analysis pipeline.

Defines section statuses, backlog priorities, parse results, and per-call
token usage records used across the parser, cost accumulator, and
orchestrator modules.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class StageStatus(Enum):
    """Observable progress of one section.  PENDING is implicit (no entry)."""

    RESEARCH_UNDERWAY = "RESEARCH UNDERWAY"
    DONE = "DONE"


class Priority(Enum):
    """Backlog item priority tag."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class RecommendationTier(Enum):
    """Recommendation tags, declared in display order."""

    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"


@dataclass(frozen=True)
class BacklogItem:
    """One prioritized backlog task parsed from ``N. [Priority] text``."""

    content: str
    priority: Priority = Priority.MEDIUM

    def __post_init__(self) -> None:
        if not self.content.strip():
            raise ValueError("BacklogItem content must be non-empty")

    def to_dict(self) -> dict[str, str]:
        return {"priority": self.priority.value, "content": self.content}


@dataclass
class ParseResult(Generic[T]):
    """Outcome of parsing one model completion.

    Attributes:
        value: The parsed value (possibly an empty default).
        fallback_used: True when a heuristic path produced the value because
            the model did not follow the requested format.
        failure: Why nothing usable was produced, or None on success.
    """

    value: T
    fallback_used: bool = False
    failure: str | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


@dataclass(frozen=True)
class TokenUsageRecord:
    """Token counts and cost for one completed model call.

    Attributes:
        call_number: 1-based, monotonic within a run.
        input_tokens: Prompt tokens reported by the provider.
        output_tokens: Completion tokens reported by the provider.
        system_tokens: ``total - input - output`` (overhead the provider
            bills at the output rate; may be 0).
        total_tokens: Total reported by the provider.
        cost: Call cost in USD, rounded to 10 decimal places.
        timestamp: ISO 8601 UTC time the call completed.
        stage: Stage key that issued the call.
    """

    call_number: int
    input_tokens: int
    output_tokens: int
    system_tokens: int
    total_tokens: int
    cost: float
    timestamp: str
    stage: str = ""


@dataclass
class SentimentSplit:
    """Likes/dislikes parsed from the first-stage completion.

    ``label`` is computed from the real item counts, before any placeholder
    is substituted for an empty side.
    """

    likes: list[str] = field(default_factory=list)
    dislikes: list[str] = field(default_factory=list)
    summary: str = ""
    label: str = "Mixed"
