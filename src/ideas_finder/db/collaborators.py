"""SQLite-backed implementations of the run service's collaborators.

Each class opens a short-lived session per call so a run never holds a
session open across slow model calls.
"""

from __future__ import annotations

import logging

from sqlalchemy.orm import Session, sessionmaker

from ideas_finder.analyzer.schemas import AnalysisRecord

from . import state
from .state import SavedAnalysis

logger = logging.getLogger(__name__)


class SqlEntitlementChecker:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._sessions = session_factory

    def can_start_run(self, user_id: str) -> bool:
        with self._sessions() as session:
            return state.can_start_run(session, user_id)


class SqlUsageRecorder:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._sessions = session_factory

    def increment_usage(self, user_id: str) -> None:
        with self._sessions() as session:
            state.increment_usage(session, user_id)


class SqlResultCache:
    """Analyses younger than ``max_age_days`` are served instead of re-running."""

    def __init__(
        self, session_factory: sessionmaker[Session], max_age_days: int = 14
    ) -> None:
        self._sessions = session_factory
        self.max_age_days = max_age_days

    def get_cached_result(self, domain: str, subject_id: str) -> AnalysisRecord | None:
        with self._sessions() as session:
            return state.get_cached_analysis(
                session, domain, subject_id, self.max_age_days
            )


class SqlResultStore:
    def __init__(self, session_factory: sessionmaker[Session]) -> None:
        self._sessions = session_factory

    def save_result(self, record: AnalysisRecord) -> SavedAnalysis:
        with self._sessions() as session:
            return state.save_analysis(session, record)
