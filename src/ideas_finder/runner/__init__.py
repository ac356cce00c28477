"""Run service -- one analysis per call, against injected collaborators."""

from .protocols import EntitlementChecker, ResultCache, ResultStore, UsageRecorder
from .service import AnalysisService, manual_task_hours

__all__ = [
    "AnalysisService",
    "EntitlementChecker",
    "ResultCache",
    "ResultStore",
    "UsageRecorder",
    "manual_task_hours",
]
