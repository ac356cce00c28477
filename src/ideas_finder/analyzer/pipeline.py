"""Stage orchestrator: runs one domain's stages in order against a context.

For every stage the orchestrator marks its sections RESEARCH UNDERWAY,
builds the prompt from earlier sections, calls the model, records the
call's cost, parses the completion, and marks the sections DONE only when
the parse produced a usable non-empty value.

Failure policy:
    * The sentiment stage is fatal: a model call failure raises
      AnalysisAbortedError carrying the partial context.
    * Any later stage failure is logged and the run continues; its sections
      stay RESEARCH UNDERWAY and are simply absent from the result.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterable

from ideas_finder.analyzer.client import ModelClient
from ideas_finder.analyzer.context import AnalysisContext
from ideas_finder.analyzer.stages import StageServices, StageSpec
from ideas_finder.analyzer.types import ParseResult, StageStatus
from ideas_finder.errors import AnalysisAbortedError

logger = logging.getLogger(__name__)

StatusListener = Callable[[str, StageStatus], None]


def _is_empty(value: Any) -> bool:
    return value is None or (hasattr(value, "__len__") and len(value) == 0)


class AnalysisPipeline:
    """Sequential multi-stage pipeline over one ordered list of stages.

    Args:
        client: Model caller.  Anything with ``complete(prompt)`` works.
        stages: Stage descriptors in dependency order.
        services: Collaborators for local stages.
        status_listener: Called with ``(section_key, status)`` on every
            status change, so a caller can render progress.
    """

    def __init__(
        self,
        client: ModelClient,
        stages: Iterable[StageSpec],
        services: StageServices | None = None,
        status_listener: StatusListener | None = None,
    ) -> None:
        self.client = client
        self.stages = tuple(stages)
        self.services = services or StageServices()
        self.status_listener = status_listener

    def _notify(self, ctx: AnalysisContext, keys: Iterable[str]) -> None:
        if self.status_listener is None:
            return
        for key in keys:
            status = ctx.status(key)
            if status is None:
                continue
            try:
                self.status_listener(key, status)
            except Exception:
                logger.warning("Status listener failed for %s", key, exc_info=True)

    def _run_model_stage(
        self, stage: StageSpec, ctx: AnalysisContext
    ) -> ParseResult[Any] | None:
        """Call the model for *stage*; None when the call failed (non-fatal)."""
        prompt = stage.build_prompt(ctx)
        try:
            completion = self.client.complete(prompt)
        except Exception as exc:
            if stage.fatal:
                logger.error(
                    "Stage %s failed for %s, aborting run: %s",
                    stage.key, ctx.subject_name, exc,
                )
                raise AnalysisAbortedError(
                    f"{stage.label or stage.key} failed: {exc}", ctx
                ) from exc
            logger.warning(
                "Stage %s failed for %s, continuing without it",
                stage.key, ctx.subject_name, exc_info=True,
            )
            return None

        ctx.cost.record(completion.usage, stage.key)
        return stage.parse(completion.text)

    def _run_stage(self, stage: StageSpec, ctx: AnalysisContext) -> None:
        for key in stage.keys:
            ctx.begin(key)
        self._notify(ctx, stage.keys)
        logger.info("%s (%s)", stage.label or stage.key, ctx.subject_name)

        if stage.is_local:
            try:
                result = stage.run_local(ctx, self.services)
            except Exception:
                logger.warning(
                    "Local stage %s failed for %s, continuing without it",
                    stage.key, ctx.subject_name, exc_info=True,
                )
                return
        else:
            result = self._run_model_stage(stage, ctx)
            if result is None:
                return

        if not result.ok or _is_empty(result.value):
            reason = result.failure or "empty result"
            ctx.notes[stage.key] = reason
            logger.warning(
                "Stage %s produced nothing usable for %s: %s",
                stage.key, ctx.subject_name, reason,
            )
            return

        if result.fallback_used:
            ctx.notes[stage.key] = "heuristic fallback"
            logger.info(
                "Stage %s: model ignored the requested format, heuristic fallback used",
                stage.key,
            )

        if stage.store is not None:
            stage.store(ctx, result)
        else:
            ctx.mark_done(stage.key, result.value)
        self._notify(ctx, stage.keys)

    def run(self, ctx: AnalysisContext) -> AnalysisContext:
        """Run every stage in order and return the (mutated) context.

        Raises:
            AnalysisAbortedError: A fatal stage's model call failed.
        """
        logger.info(
            "Starting %s analysis of %s (%d stages)",
            ctx.domain, ctx.subject_name, len(self.stages),
        )
        for stage in self.stages:
            self._run_stage(stage, ctx)

        logger.info(
            "Finished %s analysis of %s: %d sections done, %d stuck, "
            "%d calls, $%.6f",
            ctx.domain,
            ctx.subject_name,
            len(ctx.done_keys),
            len(ctx.stuck_keys),
            ctx.cost.call_count,
            ctx.cost.total,
        )
        return ctx
