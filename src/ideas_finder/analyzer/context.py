"""Mutable per-run accumulator threaded through every pipeline stage.

One AnalysisContext is created per run and owned by that run alone; it is
never shared between runs, so it needs no locking.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from ideas_finder.analyzer.cost import CostAccumulator
from ideas_finder.analyzer.types import StageStatus
from ideas_finder.fetcher.models import AppMeta, IdeaSubject

logger = logging.getLogger(__name__)

APP_DOMAIN = "app"
IDEA_DOMAIN = "idea"


@dataclass
class AnalysisContext:
    """Subject, corpus, parsed sections, statuses and running cost of one run.

    Attributes:
        domain: ``"app"`` or ``"idea"``.
        subject: The resolved app or the submitted business idea.
        raw_corpus: Review/idea text, consumed only by the sentiment stage.
        cost: Running cost and per-call records.
        review_count: Number of reviews in the corpus (0 for ideas).
        sections: Section key -> parsed value, in the order stages finished.
        statuses: Section key -> status.  Keys absent here are pending.
        notes: Section key -> parser note (fallback engaged or failure reason).
        sentiment_label: "Mostly Positive", "Mostly Negative" or "Mixed".
    """

    domain: str
    subject: AppMeta | IdeaSubject
    raw_corpus: str
    cost: CostAccumulator
    review_count: int = 0
    sections: dict[str, Any] = field(default_factory=dict)
    statuses: dict[str, StageStatus] = field(default_factory=dict)
    notes: dict[str, str] = field(default_factory=dict)
    sentiment_label: str = ""

    @property
    def subject_id(self) -> str:
        if isinstance(self.subject, AppMeta):
            return str(self.subject.track_id)
        return self.subject.subject_id

    @property
    def subject_name(self) -> str:
        if isinstance(self.subject, AppMeta):
            return self.subject.name
        return self.subject.display_name

    def section(self, key: str, default: Any = None) -> Any:
        """Parsed value for *key*, or *default* when the section never finished."""
        return self.sections.get(key, default)

    def begin(self, key: str) -> None:
        """Move *key* to RESEARCH UNDERWAY unless it is already DONE."""
        if self.statuses.get(key) is StageStatus.DONE:
            return
        self.statuses[key] = StageStatus.RESEARCH_UNDERWAY

    def mark_done(self, key: str, value: Any) -> None:
        """Store *value* for *key* and mark it DONE.

        DONE is terminal: a second completion for the same key is ignored.
        """
        if self.statuses.get(key) is StageStatus.DONE:
            logger.warning("Section %s is already DONE; ignoring new value", key)
            return
        self.sections[key] = value
        self.statuses[key] = StageStatus.DONE

    def status(self, key: str) -> StageStatus | None:
        return self.statuses.get(key)

    @property
    def done_keys(self) -> list[str]:
        return [k for k, s in self.statuses.items() if s is StageStatus.DONE]

    @property
    def stuck_keys(self) -> list[str]:
        """Sections that started but never reached DONE."""
        return [
            k for k, s in self.statuses.items()
            if s is StageStatus.RESEARCH_UNDERWAY
        ]
