"""Database layer -- ORM models, engine factory, session management, and state store."""

from .collaborators import (
    SqlEntitlementChecker,
    SqlResultCache,
    SqlResultStore,
    SqlUsageRecorder,
)
from .engine import get_engine, get_session_factory, init_db
from .models import Analysis, ApiCall, Base, MonthlyUsage, Subscription
from .state import (
    SavedAnalysis,
    can_start_run,
    get_analysis_by_slug,
    get_cached_analysis,
    increment_usage,
    save_analysis,
)

__all__ = [
    "Analysis",
    "ApiCall",
    "Base",
    "MonthlyUsage",
    "SavedAnalysis",
    "SqlEntitlementChecker",
    "SqlResultCache",
    "SqlResultStore",
    "SqlUsageRecorder",
    "Subscription",
    "can_start_run",
    "get_analysis_by_slug",
    "get_cached_analysis",
    "get_engine",
    "get_session_factory",
    "increment_usage",
    "init_db",
    "save_analysis",
]
