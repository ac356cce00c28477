"""Collaborator interfaces consumed by the run service.

The SQLite implementations live in :mod:`ideas_finder.db.collaborators`;
tests pass in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol

from ideas_finder.analyzer.schemas import AnalysisRecord
from ideas_finder.db.state import SavedAnalysis


class EntitlementChecker(Protocol):
    def can_start_run(self, user_id: str) -> bool: ...


class UsageRecorder(Protocol):
    def increment_usage(self, user_id: str) -> None: ...


class ResultCache(Protocol):
    def get_cached_result(self, domain: str, subject_id: str) -> AnalysisRecord | None: ...


class ResultStore(Protocol):
    def save_result(self, record: AnalysisRecord) -> SavedAnalysis: ...
