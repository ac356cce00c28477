"""Multi-stage model analysis: prompts, model calls, cost and parsing.

Public API:
    new_context(domain, subject, raw_corpus, settings, review_count)
        -> AnalysisContext
    AnalysisPipeline(client, stages_for(domain), services).run(ctx)
        -> AnalysisContext (raises AnalysisAbortedError on a fatal stage)
    context_to_record(ctx, ...) -> AnalysisRecord
"""

from __future__ import annotations

import logging
from typing import Any

from ideas_finder.analyzer.client import CompletionResult, ModelClient
from ideas_finder.analyzer.context import APP_DOMAIN, IDEA_DOMAIN, AnalysisContext
from ideas_finder.analyzer.cost import CostAccumulator
from ideas_finder.analyzer.pipeline import AnalysisPipeline
from ideas_finder.analyzer.schemas import AnalysisRecord
from ideas_finder.analyzer.stages import (
    APP_STAGES,
    IDEA_STAGES,
    StageServices,
    StageSpec,
    stages_for,
)
from ideas_finder.analyzer.types import BacklogItem, StageStatus, TokenUsageRecord
from ideas_finder.config.settings import ModelSettings
from ideas_finder.fetcher.models import AppMeta, IdeaSubject

logger = logging.getLogger(__name__)

__all__ = [
    "APP_DOMAIN",
    "APP_STAGES",
    "AnalysisContext",
    "AnalysisPipeline",
    "AnalysisRecord",
    "CompletionResult",
    "CostAccumulator",
    "IDEA_DOMAIN",
    "IDEA_STAGES",
    "ModelClient",
    "StageServices",
    "StageSpec",
    "StageStatus",
    "context_to_record",
    "new_context",
    "stages_for",
]


def new_context(
    domain: str,
    subject: AppMeta | IdeaSubject,
    raw_corpus: str,
    settings: ModelSettings,
    review_count: int = 0,
) -> AnalysisContext:
    """Fresh context with an empty cost accumulator using the configured rates."""
    return AnalysisContext(
        domain=domain,
        subject=subject,
        raw_corpus=raw_corpus,
        cost=CostAccumulator(
            settings.input_rate_per_token, settings.output_rate_per_token
        ),
        review_count=review_count,
    )


def _jsonable(value: Any) -> Any:
    if isinstance(value, list):
        return [_jsonable(v) for v in value]
    if isinstance(value, BacklogItem):
        return value.to_dict()
    return value


def _call_dict(record: TokenUsageRecord) -> dict[str, Any]:
    return {
        "call_number": record.call_number,
        "stage": record.stage,
        "input_tokens": record.input_tokens,
        "output_tokens": record.output_tokens,
        "system_tokens": record.system_tokens,
        "total_tokens": record.total_tokens,
        "cost": record.cost,
        "timestamp": record.timestamp,
    }


def context_to_record(
    ctx: AnalysisContext,
    analysis_time_seconds: float = 0.0,
    manual_task_hours: float = 0.0,
    user_id: str | None = None,
) -> AnalysisRecord:
    """Flatten *ctx* into a record: DONE sections only, all statuses."""
    return AnalysisRecord(
        domain=ctx.domain,
        subject_id=ctx.subject_id,
        subject_name=ctx.subject_name,
        user_id=user_id,
        sections={k: _jsonable(v) for k, v in ctx.sections.items()},
        statuses={k: s.value for k, s in ctx.statuses.items()},
        review_count=ctx.review_count,
        analysis_time_seconds=round(analysis_time_seconds, 3),
        api_cost=ctx.cost.total,
        call_count=ctx.cost.call_count,
        manual_task_hours=manual_task_hours,
        sentiment=ctx.sentiment_label,
        calls=[_call_dict(r) for r in ctx.cost.records],
    )
