"""Run service: wires entitlement, cache, fetcher, pipeline and persistence.

One call to :meth:`AnalysisService.run_app` or :meth:`AnalysisService.run_idea`
is one analysis run:

    entitlement check -> cache lookup -> fetch -> pipeline -> persist
    -> increment usage

A cache hit returns the cached record without fetching or calling the
model.  Fatal errors (unknown subject, refused entitlement, failed first
stage) propagate to the caller.  Once the pipeline has run to its end,
usage is counted exactly once whether or not persistence succeeded.
"""

from __future__ import annotations

import logging
import time

import httpx
from pydantic import ValidationError

from ideas_finder.analyzer import (
    APP_DOMAIN,
    IDEA_DOMAIN,
    AnalysisContext,
    AnalysisPipeline,
    AnalysisRecord,
    ModelClient,
    StageServices,
    context_to_record,
    new_context,
    stages_for,
)
from ideas_finder.analyzer.pipeline import StatusListener
from ideas_finder.config.settings import ModelSettings, StoreSettings
from ideas_finder.errors import EntitlementError, SubjectNotFoundError
from ideas_finder.fetcher import (
    AppMeta,
    IdeaSubject,
    extract_app_id,
    fetch_app,
    find_similar_apps,
    idea_corpus,
)
from ideas_finder.runner.protocols import (
    EntitlementChecker,
    ResultCache,
    ResultStore,
    UsageRecorder,
)

logger = logging.getLogger(__name__)

# Hours a skilled analyst would need for each section by hand
APP_MINUTES_PER_REVIEW = 0.5
APP_MANUAL_HOURS = {
    "keywords": 2.0,
    "features": 1.5,
    "backlog": 2.0,
    "description": 1.0,
    "naming": 3.0,
    "prp": 2.0,
    "similar_apps": 1.5,
    "pricing": 1.5,
}
IDEA_MANUAL_HOURS = {
    "analysis": 2.0,
    "keywords": 2.0,
    "features": 1.5,
    "backlog": 2.0,
    "description": 1.0,
    "naming": 3.0,
    "prp": 2.0,
    "competitors": 1.5,
    "pricing": 1.5,
    "viability": 2.0,
}


def manual_task_hours(domain: str, review_count: int = 0) -> float:
    """Estimated hours the same analysis would take by hand."""
    if domain == APP_DOMAIN:
        reading = review_count * APP_MINUTES_PER_REVIEW / 60
        return reading + sum(APP_MANUAL_HOURS.values())
    return sum(IDEA_MANUAL_HOURS.values())


class AnalysisService:
    """Runs analyses end to end against injected collaborators.

    Args:
        model_client: Model caller shared by the runs of this service.
        model_settings: Token rates for each run's cost accumulator.
        store_settings: App Store endpoints and limits.
        http_client: Client for App Store lookup, reviews and search.
        entitlement: Pre-flight check; None means every run is allowed.
        usage: Post-run usage counter; None means usage is not counted.
        cache: Result cache; None disables the cache short-circuit.
        store: Result persister; None skips persistence.
        status_listener: Receives ``(section_key, status)`` updates.
    """

    def __init__(
        self,
        model_client: ModelClient,
        model_settings: ModelSettings,
        store_settings: StoreSettings,
        http_client: httpx.Client,
        entitlement: EntitlementChecker | None = None,
        usage: UsageRecorder | None = None,
        cache: ResultCache | None = None,
        store: ResultStore | None = None,
        status_listener: StatusListener | None = None,
    ) -> None:
        self.model_client = model_client
        self.model_settings = model_settings
        self.store_settings = store_settings
        self.http_client = http_client
        self.entitlement = entitlement
        self.usage = usage
        self.cache = cache
        self.store = store
        self.status_listener = status_listener

    # -- steps ----------------------------------------------------------------

    def _check_entitlement(self, user_id: str | None) -> None:
        if self.entitlement is None or user_id is None:
            return
        if not self.entitlement.can_start_run(user_id):
            raise EntitlementError(user_id)

    def _cached(self, domain: str, subject_id: str) -> AnalysisRecord | None:
        if self.cache is None:
            return None
        record = self.cache.get_cached_result(domain, subject_id)
        if record is None:
            return None
        logger.info(
            "Cache hit for %s %s (analysed %s); skipping pipeline",
            domain, subject_id, record.created_at,
        )
        return record.model_copy(update={"cached": True})

    def _find_similar(self, subject: AppMeta) -> list[AppMeta]:
        return find_similar_apps(self.http_client, subject, self.store_settings)

    def _persist(self, record: AnalysisRecord) -> AnalysisRecord:
        if self.store is None:
            return record
        try:
            saved = self.store.save_result(record)
        except Exception:
            logger.exception(
                "Failed to save %s analysis of %s; returning unsaved result",
                record.domain, record.subject_name,
            )
            return record
        return record.model_copy(update={"id": saved.id, "share_slug": saved.share_slug})

    def _record_usage(self, user_id: str | None) -> None:
        if self.usage is None or user_id is None:
            return
        try:
            self.usage.increment_usage(user_id)
        except Exception:
            logger.exception("Failed to record usage for user %s", user_id)

    def _execute(
        self, ctx: AnalysisContext, user_id: str | None, started: float
    ) -> AnalysisRecord:
        """Pipeline -> record -> persist -> usage.  Fatal stage errors propagate."""
        pipeline = AnalysisPipeline(
            self.model_client,
            stages_for(ctx.domain),
            StageServices(find_similar_apps=self._find_similar),
            self.status_listener,
        )
        pipeline.run(ctx)

        elapsed = time.monotonic() - started
        record = context_to_record(
            ctx,
            analysis_time_seconds=elapsed,
            manual_task_hours=manual_task_hours(ctx.domain, ctx.review_count),
            user_id=user_id,
        )
        record = self._persist(record)
        self._record_usage(user_id)

        logger.info(
            "%s analysis of %s complete in %.1fs: %d/%d sections, %d calls, $%.6f",
            ctx.domain,
            ctx.subject_name,
            elapsed,
            len(ctx.done_keys),
            len(ctx.statuses),
            record.call_count,
            record.api_cost,
        )
        return record

    # -- public API -------------------------------------------------------------

    def run_app(self, app_input: str, user_id: str | None = None) -> AnalysisRecord:
        """Analyse an App Store app given its id or store URL.

        Raises:
            SubjectNotFoundError: Bad id, unknown app, or no reviews.
            EntitlementError: The user may not start a run.
            AnalysisAbortedError: The sentiment stage failed.
        """
        app_id = extract_app_id(app_input)
        if not app_id:
            raise SubjectNotFoundError(app_input, "not an App Store id or URL")

        self._check_entitlement(user_id)
        cached = self._cached(APP_DOMAIN, app_id)
        if cached is not None:
            return cached

        started = time.monotonic()
        fetched = fetch_app(self.http_client, app_id, self.store_settings)
        if fetched is None:
            raise SubjectNotFoundError(app_id, "app metadata not found via lookup")
        if not fetched.reviews:
            raise SubjectNotFoundError(app_id, "no reviews found for this app")

        ctx = new_context(
            APP_DOMAIN,
            fetched.meta,
            fetched.corpus,
            self.model_settings,
            review_count=len(fetched.reviews),
        )
        return self._execute(ctx, user_id, started)

    def run_idea(
        self, idea: str, name: str | None = None, user_id: str | None = None
    ) -> AnalysisRecord:
        """Analyse a free-text business idea.

        Raises:
            SubjectNotFoundError: The idea text is empty.
            EntitlementError: The user may not start a run.
            AnalysisAbortedError: The sentiment stage failed.
        """
        try:
            subject = IdeaSubject(idea=idea, name=name or None)
        except ValidationError as exc:
            raise SubjectNotFoundError("business idea", "idea text is empty") from exc

        self._check_entitlement(user_id)
        cached = self._cached(IDEA_DOMAIN, subject.subject_id)
        if cached is not None:
            return cached

        started = time.monotonic()
        ctx = new_context(
            IDEA_DOMAIN, subject, idea_corpus(subject), self.model_settings
        )
        return self._execute(ctx, user_id, started)
