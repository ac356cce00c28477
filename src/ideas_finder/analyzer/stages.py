"""Stage descriptors for the two analysis domains.

A stage is either a model stage (prompt builder + parser) or a local stage
(a callable that produces its value without a model call).  The order of
each list is the dependency order: a stage's prompt only reads sections
produced by stages before it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from ideas_finder.analyzer import parsing
from ideas_finder.analyzer.context import AnalysisContext
from ideas_finder.analyzer.prompts import app as app_prompts
from ideas_finder.analyzer.prompts import idea as idea_prompts
from ideas_finder.analyzer.types import ParseResult, SentimentSplit
from ideas_finder.fetcher.models import AppMeta

logger = logging.getLogger(__name__)

SimilarAppFinder = Callable[[AppMeta], list[AppMeta]]


@dataclass
class StageServices:
    """Collaborators available to local stages."""

    find_similar_apps: SimilarAppFinder | None = None


@dataclass(frozen=True)
class StageSpec:
    """One pipeline stage.

    Attributes:
        key: Stage name (also the section key unless ``section_keys`` is set).
        section_keys: Sections this stage fills; defaults to ``(key,)``.
        build_prompt: Prompt builder (model stages).
        parse: Completion parser (model stages).
        run_local: Value producer for stages that make no model call.
        store: Writes a successful result into the context; defaults to
            ``mark_done(key, result.value)``.
        fatal: A model call failure aborts the whole run.
        label: Human-readable progress text.
    """

    key: str
    build_prompt: Callable[[AnalysisContext], str] | None = None
    parse: Callable[[str], ParseResult[Any]] | None = None
    run_local: Callable[[AnalysisContext, StageServices], ParseResult[Any]] | None = None
    store: Callable[[AnalysisContext, ParseResult[Any]], None] | None = None
    fatal: bool = False
    label: str = ""
    section_keys: tuple[str, ...] = field(default=())

    @property
    def keys(self) -> tuple[str, ...]:
        return self.section_keys or (self.key,)

    @property
    def is_local(self) -> bool:
        return self.run_local is not None


# ---------------------------------------------------------------------------
# Sentiment storage (one stage, two sections)
# ---------------------------------------------------------------------------

def _store_sentiment(ctx: AnalysisContext, result: ParseResult[SentimentSplit]) -> None:
    split = result.value
    ctx.mark_done("likes", split.likes)
    ctx.mark_done("dislikes", split.dislikes)
    ctx.sentiment_label = split.label


def _parse_app_sentiment(text: str) -> ParseResult[SentimentSplit]:
    return parsing.parse_sentiment(text, parsing.APP_SENTIMENT)


def _parse_idea_sentiment(text: str) -> ParseResult[SentimentSplit]:
    return parsing.parse_sentiment(text, parsing.IDEA_SENTIMENT)


# ---------------------------------------------------------------------------
# Local stages
# ---------------------------------------------------------------------------

def derive_app_recommendations(
    ctx: AnalysisContext, services: StageServices
) -> ParseResult[list[str]]:
    """Keyword-rule recommendations from the parsed dislikes."""
    return ParseResult(parsing.derive_recommendations(ctx.section("dislikes", [])))


def search_similar_apps(
    ctx: AnalysisContext, services: StageServices
) -> ParseResult[list[dict]]:
    """App Store search for apps like the subject, as JSON-ready dicts."""
    if services.find_similar_apps is None:
        return ParseResult([], failure="no similar-app finder configured")
    if not isinstance(ctx.subject, AppMeta):
        return ParseResult([], failure="similar-app search needs an app subject")

    apps = services.find_similar_apps(ctx.subject)
    if not apps:
        return ParseResult([], failure="no similar apps found")
    return ParseResult([a.model_dump(mode="json") for a in apps])


# ---------------------------------------------------------------------------
# Stage lists
# ---------------------------------------------------------------------------

APP_STAGES: tuple[StageSpec, ...] = (
    StageSpec(
        key="sentiment",
        section_keys=("likes", "dislikes"),
        build_prompt=app_prompts.build_sentiment_prompt,
        parse=_parse_app_sentiment,
        store=_store_sentiment,
        fatal=True,
        label="Summarizing reviews",
    ),
    StageSpec(
        key="recommendations",
        run_local=derive_app_recommendations,
        label="Deriving recommendations",
    ),
    StageSpec(
        key="keywords",
        build_prompt=app_prompts.build_keywords_prompt,
        parse=parsing.parse_comma_list,
        label="Generating keywords for ASO",
    ),
    StageSpec(
        key="definitely_include",
        build_prompt=app_prompts.build_definitely_include_prompt,
        parse=parsing.parse_bullet_list,
        label="Generating features to definitely include",
    ),
    StageSpec(
        key="backlog",
        build_prompt=app_prompts.build_backlog_prompt,
        parse=parsing.parse_backlog,
        label="Generating backlog",
    ),
    StageSpec(
        key="description",
        build_prompt=app_prompts.build_description_prompt,
        parse=parsing.parse_free_text,
        label="Generating app description",
    ),
    StageSpec(
        key="app_names",
        build_prompt=app_prompts.build_app_names_prompt,
        parse=parsing.parse_name_lines,
        label="Generating app names",
    ),
    StageSpec(
        key="prp",
        build_prompt=app_prompts.build_prp_prompt,
        parse=parsing.parse_free_text,
        label="Generating product requirements prompt",
    ),
    StageSpec(
        key="similar_apps",
        run_local=search_similar_apps,
        label="Searching for similar apps",
    ),
    StageSpec(
        key="pricing_model",
        build_prompt=app_prompts.build_pricing_prompt,
        parse=parsing.parse_free_text,
        label="Analyzing pricing models",
    ),
)

IDEA_STAGES: tuple[StageSpec, ...] = (
    StageSpec(
        key="sentiment",
        section_keys=("likes", "dislikes"),
        build_prompt=idea_prompts.build_sentiment_prompt,
        parse=_parse_idea_sentiment,
        store=_store_sentiment,
        fatal=True,
        label="Analyzing business idea",
    ),
    StageSpec(
        key="keywords",
        build_prompt=idea_prompts.build_keywords_prompt,
        parse=parsing.parse_comma_list,
        label="Generating keywords",
    ),
    StageSpec(
        key="definitely_include",
        build_prompt=idea_prompts.build_definitely_include_prompt,
        parse=parsing.parse_bullet_list,
        label="Generating core features",
    ),
    StageSpec(
        key="backlog",
        build_prompt=idea_prompts.build_backlog_prompt,
        parse=parsing.parse_backlog,
        label="Generating additional features",
    ),
    StageSpec(
        key="recommendations",
        build_prompt=idea_prompts.build_recommendations_prompt,
        parse=parsing.parse_recommendations,
        label="Generating strategic recommendations",
    ),
    StageSpec(
        key="description",
        build_prompt=idea_prompts.build_description_prompt,
        parse=parsing.parse_free_text,
        label="Generating product description",
    ),
    StageSpec(
        key="app_names",
        build_prompt=idea_prompts.build_app_names_prompt,
        parse=parsing.parse_name_lines,
        label="Generating business names",
    ),
    StageSpec(
        key="prp",
        build_prompt=idea_prompts.build_prp_prompt,
        parse=parsing.parse_free_text,
        label="Generating product requirements prompt",
    ),
    StageSpec(
        key="competitors",
        build_prompt=idea_prompts.build_competitors_prompt,
        parse=parsing.parse_free_text,
        label="Analyzing competitors",
    ),
    StageSpec(
        key="pricing_model",
        build_prompt=idea_prompts.build_pricing_prompt,
        parse=parsing.parse_free_text,
        label="Analyzing pricing strategy",
    ),
    StageSpec(
        key="market_viability",
        build_prompt=idea_prompts.build_market_viability_prompt,
        parse=parsing.parse_free_text,
        label="Generating market viability analysis",
    ),
)


def stages_for(domain: str) -> tuple[StageSpec, ...]:
    """Stage list for ``"app"`` or ``"idea"``."""
    if domain == "app":
        return APP_STAGES
    if domain == "idea":
        return IDEA_STAGES
    raise ValueError(f"Unknown analysis domain: {domain!r}")
