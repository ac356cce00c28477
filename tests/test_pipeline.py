"""Tests for the stage orchestrator and analysis context."""

from decimal import Decimal

import pytest

APP_RESPONSES_AFTER_SENTIMENT = [
    "notes, sync, productivity",                                  # keywords
    "• Fast sync\n• Offline mode",                               # definitely_include
    "1. [High] Fix startup crash\n2. Add export",                 # backlog
    "This new app keeps notes in sync.",                          # description
    "Notely\nSyncPad",                                            # app_names
    "Build a notes app.",                                         # prp
    "Freemium with a $2.99 USD monthly tier.",                    # pricing_model
]

IDEA_RESPONSES_AFTER_SENTIMENT = [
    "meal kits, local food",                                      # keywords
    "• Weekly boxes",                                             # definitely_include
    "1. [Low] Gift cards",                                        # backlog
    "Intro\n[MEDIUM] Add referrals\n[CRITICAL] Validate demand",  # recommendations
    "This new service delivers farm meals.",                      # description
    "FarmBox\nHarvest Crate",                                     # app_names
    "Build the ordering site.",                                   # prp
    "Competitor A: HelloFresh",                                   # competitors
    "Subscription at $49 USD per box.",                           # pricing_model
    "Viable in regional markets.",                                # market_viability
]


def _app_ctx(model_settings, sample_app):
    from ideas_finder.analyzer import new_context

    return new_context("app", sample_app, "review corpus", model_settings, review_count=2)


def _similar(subject):
    from ideas_finder.fetcher.models import AppMeta

    return [AppMeta(trackId=2, trackName="Other Notes", formattedPrice="$1.99",
                    averageUserRating=4.5, description="Another notes app")]


# ---------------------------------------------------------------------------
# AnalysisContext
# ---------------------------------------------------------------------------

def test_status_never_regresses_from_done(model_settings, sample_app):
    from ideas_finder.analyzer.types import StageStatus

    ctx = _app_ctx(model_settings, sample_app)
    assert ctx.status("keywords") is None

    ctx.begin("keywords")
    assert ctx.status("keywords") is StageStatus.RESEARCH_UNDERWAY

    ctx.mark_done("keywords", ["a"])
    ctx.begin("keywords")
    ctx.mark_done("keywords", ["b"])

    assert ctx.status("keywords") is StageStatus.DONE
    assert ctx.section("keywords") == ["a"]


def test_context_subject_identity(model_settings, sample_app):
    from ideas_finder.analyzer import new_context
    from ideas_finder.fetcher.models import IdeaSubject

    app_ctx = _app_ctx(model_settings, sample_app)
    idea = IdeaSubject(idea="Meal kits", name="FarmBox")
    idea_ctx = new_context("idea", idea, idea.idea, model_settings)

    assert app_ctx.subject_id == "1234"
    assert app_ctx.subject_name == "Sync Notes"
    assert idea_ctx.subject_id == idea.subject_id
    assert idea_ctx.subject_name == "FarmBox"


# ---------------------------------------------------------------------------
# App pipeline
# ---------------------------------------------------------------------------

def test_app_pipeline_end_to_end(model_settings, sample_app, fake_client, app_sentiment_text):
    from ideas_finder.analyzer import APP_STAGES, AnalysisPipeline, StageServices
    from ideas_finder.analyzer.types import StageStatus

    client = fake_client([app_sentiment_text] + APP_RESPONSES_AFTER_SENTIMENT)
    ctx = _app_ctx(model_settings, sample_app)

    AnalysisPipeline(client, APP_STAGES, StageServices(find_similar_apps=_similar)).run(ctx)

    assert set(ctx.statuses) == {
        "likes", "dislikes", "recommendations", "keywords", "definitely_include",
        "backlog", "description", "app_names", "prp", "similar_apps", "pricing_model",
    }
    assert all(s is StageStatus.DONE for s in ctx.statuses.values())
    assert ctx.sentiment_label == "Mixed"
    assert ctx.section("keywords") == ["notes", "sync", "productivity"]
    assert ctx.section("recommendations")[0] == (
        "[HIGH] Stability: Fix bugs and improve app stability."
    )
    assert ctx.section("similar_apps")[0]["track_name"] == "Other Notes"

    # Only the sentiment prompt sees the corpus; the next prompt sees its output
    assert "review corpus" in client.prompts[0]
    assert "review corpus" not in client.prompts[1]
    assert "Fast sync across devices" in client.prompts[1]
    assert "Other Notes - $1.99 - 4.5★" in client.prompts[-1]

    # 8 model stages, 2 local stages
    assert len(client.prompts) == 8
    assert ctx.cost.call_count == 8
    assert [r.stage for r in ctx.cost.records][:2] == ["sentiment", "keywords"]
    assert ctx.cost.total_decimal == Decimal("0.00022") * 8
    assert ctx.cost.reconciles()


def test_failed_stage_is_skipped_and_run_continues(model_settings, sample_app, fake_client,
                                                   app_sentiment_text):
    from ideas_finder.analyzer import APP_STAGES, AnalysisPipeline
    from ideas_finder.analyzer.types import StageStatus
    from ideas_finder.errors import ModelCallError

    responses = [app_sentiment_text] + APP_RESPONSES_AFTER_SENTIMENT
    responses[1] = ModelCallError(500, "upstream exploded")
    client = fake_client(responses)
    ctx = _app_ctx(model_settings, sample_app)

    AnalysisPipeline(client, APP_STAGES).run(ctx)

    assert ctx.status("keywords") is StageStatus.RESEARCH_UNDERWAY
    assert "keywords" not in ctx.sections
    assert ctx.status("pricing_model") is StageStatus.DONE
    assert ctx.stuck_keys == ["keywords", "similar_apps"]
    assert ctx.notes["similar_apps"] == "no similar-app finder configured"
    assert ctx.cost.call_count == 7


def test_empty_completion_leaves_section_underway_but_is_billed(
    model_settings, sample_app, fake_client, app_sentiment_text
):
    from ideas_finder.analyzer import APP_STAGES, AnalysisPipeline
    from ideas_finder.analyzer.types import StageStatus

    responses = [app_sentiment_text] + APP_RESPONSES_AFTER_SENTIMENT
    responses[4] = "   "
    client = fake_client(responses)
    ctx = _app_ctx(model_settings, sample_app)

    AnalysisPipeline(client, APP_STAGES).run(ctx)

    assert ctx.status("description") is StageStatus.RESEARCH_UNDERWAY
    assert ctx.notes["description"] == "empty completion"
    assert ctx.cost.call_count == 8


def test_sentiment_failure_aborts_with_partial_context(model_settings, sample_app, fake_client):
    from ideas_finder.analyzer import APP_STAGES, AnalysisPipeline
    from ideas_finder.errors import AnalysisAbortedError, ModelCallError

    client = fake_client([ModelCallError(401, "bad key")])
    ctx = _app_ctx(model_settings, sample_app)

    with pytest.raises(AnalysisAbortedError) as exc_info:
        AnalysisPipeline(client, APP_STAGES).run(ctx)

    assert exc_info.value.context is ctx
    assert isinstance(exc_info.value.__cause__, ModelCallError)
    assert len(client.prompts) == 1
    assert ctx.cost.call_count == 0
    assert ctx.sections == {}


def test_status_listener_sees_underway_then_done(model_settings, sample_app, fake_client,
                                                 app_sentiment_text):
    from ideas_finder.analyzer import APP_STAGES, AnalysisPipeline
    from ideas_finder.analyzer.types import StageStatus

    events = []
    client = fake_client([app_sentiment_text] + APP_RESPONSES_AFTER_SENTIMENT)

    AnalysisPipeline(
        client, APP_STAGES[:2], status_listener=lambda k, s: events.append((k, s))
    ).run(_app_ctx(model_settings, sample_app))

    assert events == [
        ("likes", StageStatus.RESEARCH_UNDERWAY),
        ("dislikes", StageStatus.RESEARCH_UNDERWAY),
        ("likes", StageStatus.DONE),
        ("dislikes", StageStatus.DONE),
        ("recommendations", StageStatus.RESEARCH_UNDERWAY),
        ("recommendations", StageStatus.DONE),
    ]


def test_listener_errors_do_not_stop_the_run(model_settings, sample_app, fake_client,
                                            app_sentiment_text):
    from ideas_finder.analyzer import APP_STAGES, AnalysisPipeline

    def broken_listener(key, status):
        raise RuntimeError("display gone")

    ctx = _app_ctx(model_settings, sample_app)
    AnalysisPipeline(
        fake_client([app_sentiment_text]), APP_STAGES[:1], status_listener=broken_listener
    ).run(ctx)

    assert ctx.section("likes") == ["Fast sync across devices", "Clean layout"]


# ---------------------------------------------------------------------------
# Idea pipeline
# ---------------------------------------------------------------------------

def test_idea_pipeline_end_to_end(model_settings, fake_client, idea_sentiment_text):
    from ideas_finder.analyzer import IDEA_STAGES, AnalysisPipeline, new_context
    from ideas_finder.analyzer.types import BacklogItem, Priority
    from ideas_finder.fetcher.models import IdeaSubject

    subject = IdeaSubject(idea="Meal kits from local farms", name="FarmBox")
    ctx = new_context("idea", subject, subject.idea, model_settings)
    client = fake_client([idea_sentiment_text] + IDEA_RESPONSES_AFTER_SENTIMENT)

    AnalysisPipeline(client, IDEA_STAGES).run(ctx)

    assert len(ctx.done_keys) == 12
    assert ctx.section("backlog") == [BacklogItem("Gift cards", Priority.LOW)]
    assert ctx.section("recommendations") == [
        "[CRITICAL] Validate demand", "[MEDIUM] Add referrals",
    ]
    assert "[CRITICAL] Validate demand\n[MEDIUM] Add referrals" in client.prompts[7]
    assert "Competitor A: HelloFresh" in client.prompts[-1]
    assert ctx.cost.call_count == 11


def test_stages_for_unknown_domain():
    from ideas_finder.analyzer import stages_for

    with pytest.raises(ValueError):
        stages_for("podcast")


def test_context_to_record_keeps_done_sections_only(model_settings, sample_app):
    from ideas_finder.analyzer import context_to_record
    from ideas_finder.analyzer.types import BacklogItem, Priority

    ctx = _app_ctx(model_settings, sample_app)
    ctx.mark_done("backlog", [BacklogItem("Fix crash", Priority.HIGH)])
    ctx.begin("keywords")

    record = context_to_record(ctx, analysis_time_seconds=1.23456, user_id="u1")

    assert record.sections == {"backlog": [{"priority": "High", "content": "Fix crash"}]}
    assert record.statuses == {"backlog": "DONE", "keywords": "RESEARCH UNDERWAY"}
    assert record.analysis_time_seconds == 1.235
    assert record.subject_id == "1234"
    assert record.user_id == "u1"
