"""State store operations for analyses, the result cache, and usage limits.

Provides the functions the run service needs around one analysis:
    can_start_run -- Whether a user's plan allows another analysis now.
    increment_usage -- Count one analysis against the current period.
    get_cached_analysis -- Newest analysis of a subject within the cache window.
    save_analysis -- Persist a finished record and its per-call costs.
    get_analysis_by_slug -- Look up a shared analysis.

Every mutation calls session.commit() explicitly -- SQLAlchemy does NOT auto-commit
when the session closes, so changes would be silently lost without it.

All datetimes are naive UTC, matching SQLite's CURRENT_TIMESTAMP.
"""

from __future__ import annotations

import datetime
import json
import logging
import secrets
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from ideas_finder.analyzer.schemas import AnalysisRecord

from .models import Analysis, ApiCall, MonthlyUsage, Subscription

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ("trial", "active", "free_unlimited")
UNLIMITED_STATUS = "free_unlimited"


@dataclass(frozen=True)
class SavedAnalysis:
    """Identifiers of a persisted analysis."""

    id: int
    share_slug: str


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc).replace(tzinfo=None)


def current_period(
    now: datetime.datetime | None = None,
) -> tuple[datetime.datetime, datetime.datetime]:
    """Calendar-month billing period ``[start, end)`` containing *now*."""
    now = now or utcnow()
    start = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)
    if start.month == 12:
        end = start.replace(year=start.year + 1, month=1)
    else:
        end = start.replace(month=start.month + 1)
    return start, end


# ---------------------------------------------------------------------------
# Entitlement and usage
# ---------------------------------------------------------------------------

def get_subscription(session: Session, user_id: str) -> Subscription | None:
    stmt = select(Subscription).where(Subscription.user_id == user_id)
    return session.scalars(stmt).first()


def get_current_usage(
    session: Session, user_id: str, now: datetime.datetime | None = None
) -> MonthlyUsage | None:
    """Usage row whose period contains *now*, or None."""
    now = now or utcnow()
    stmt = select(MonthlyUsage).where(
        MonthlyUsage.user_id == user_id,
        MonthlyUsage.period_start <= now,
        MonthlyUsage.period_end > now,
    )
    return session.scalars(stmt).first()


def can_start_run(
    session: Session, user_id: str, now: datetime.datetime | None = None
) -> bool:
    """Return True when *user_id* may start another analysis.

    The plan must be trial, active or free_unlimited.  Limited plans also
    need a remaining search this period: the period row's limit (or the
    plan's monthly allowance when no row exists yet) minus searches used.
    """
    subscription = get_subscription(session, user_id)
    if subscription is None or subscription.status not in ACTIVE_STATUSES:
        logger.info("User %s has no active subscription", user_id)
        return False

    if subscription.status == UNLIMITED_STATUS:
        return True

    usage = get_current_usage(session, user_id, now)
    limit = usage.searches_limit if usage else subscription.searches_per_month
    used = usage.searches_used if usage else 0
    remaining = limit - used
    logger.debug("User %s: %d of %d searches remaining", user_id, remaining, limit)
    return remaining > 0


def increment_usage(
    session: Session, user_id: str, now: datetime.datetime | None = None
) -> int | None:
    """Count one analysis for *user_id* in the current period.

    Unlimited plans are not counted.  The period row is created on first
    use with the plan's monthly allowance as its limit.

    Returns:
        Searches used this period after the increment, or None when the
        user is not counted.
    """
    subscription = get_subscription(session, user_id)
    if subscription is not None and subscription.status == UNLIMITED_STATUS:
        logger.debug("User %s is unlimited, usage not counted", user_id)
        return None

    usage = get_current_usage(session, user_id, now)
    if usage is None:
        start, end = current_period(now)
        usage = MonthlyUsage(
            user_id=user_id,
            period_start=start,
            period_end=end,
            searches_used=0,
            searches_limit=subscription.searches_per_month if subscription else 0,
        )
        session.add(usage)

    usage.searches_used += 1
    session.commit()
    logger.info(
        "User %s usage: %d/%d searches",
        user_id,
        usage.searches_used,
        usage.searches_limit,
    )
    return usage.searches_used


# ---------------------------------------------------------------------------
# Analyses
# ---------------------------------------------------------------------------

def _new_share_slug(session: Session) -> str:
    while True:
        slug = secrets.token_urlsafe(9)
        exists = session.scalars(
            select(Analysis.id).where(Analysis.share_slug == slug)
        ).first()
        if exists is None:
            return slug


def _to_record(row: Analysis) -> AnalysisRecord:
    return AnalysisRecord(
        id=row.id,
        share_slug=row.share_slug,
        domain=row.domain,
        subject_id=row.subject_id,
        subject_name=row.subject_name,
        user_id=row.user_id,
        sections=json.loads(row.sections or "{}"),
        statuses=json.loads(row.statuses or "{}"),
        review_count=row.review_count,
        analysis_time_seconds=row.analysis_time_seconds,
        api_cost=row.api_cost,
        call_count=row.call_count,
        manual_task_hours=row.manual_task_hours,
        sentiment=row.sentiment or "",
        calls=[
            {
                "call_number": c.call_number,
                "stage": c.stage,
                "input_tokens": c.input_tokens,
                "output_tokens": c.output_tokens,
                "system_tokens": c.system_tokens,
                "total_tokens": c.total_tokens,
                "cost": c.cost,
                "timestamp": c.timestamp,
            }
            for c in row.calls
        ],
        created_at=row.created_at,
    )


def save_analysis(session: Session, record: AnalysisRecord) -> SavedAnalysis:
    """Insert *record* (and one ApiCall row per model call) and commit."""
    row = Analysis(
        domain=record.domain,
        subject_id=record.subject_id,
        subject_name=record.subject_name,
        user_id=record.user_id,
        share_slug=_new_share_slug(session),
        sections=json.dumps(record.sections, ensure_ascii=False),
        statuses=json.dumps(record.statuses, ensure_ascii=False),
        review_count=record.review_count,
        analysis_time_seconds=record.analysis_time_seconds,
        api_cost=record.api_cost,
        call_count=record.call_count,
        manual_task_hours=record.manual_task_hours,
        sentiment=record.sentiment or None,
        created_at=record.created_at or utcnow(),
    )
    row.calls = [
        ApiCall(
            call_number=c["call_number"],
            stage=c.get("stage"),
            input_tokens=c.get("input_tokens", 0),
            output_tokens=c.get("output_tokens", 0),
            system_tokens=c.get("system_tokens", 0),
            total_tokens=c.get("total_tokens", 0),
            cost=c.get("cost", 0.0),
            timestamp=c.get("timestamp"),
        )
        for c in record.calls
    ]
    session.add(row)
    session.commit()
    logger.info(
        "Saved %s analysis of %s as #%d (slug %s)",
        record.domain, record.subject_name, row.id, row.share_slug,
    )
    return SavedAnalysis(id=row.id, share_slug=row.share_slug)


def get_cached_analysis(
    session: Session,
    domain: str,
    subject_id: str,
    max_age_days: int = 14,
    now: datetime.datetime | None = None,
) -> AnalysisRecord | None:
    """Newest analysis of *subject_id* younger than *max_age_days*, any user."""
    cutoff = (now or utcnow()) - datetime.timedelta(days=max_age_days)
    stmt = (
        select(Analysis)
        .where(
            Analysis.domain == domain,
            Analysis.subject_id == subject_id,
            Analysis.created_at > cutoff,
        )
        .order_by(Analysis.created_at.desc(), Analysis.id.desc())
        .options(selectinload(Analysis.calls))
        .limit(1)
    )
    row = session.scalars(stmt).first()
    return _to_record(row) if row is not None else None


def get_analysis_by_slug(session: Session, share_slug: str) -> AnalysisRecord | None:
    """Look up an analysis by its share slug."""
    stmt = (
        select(Analysis)
        .where(Analysis.share_slug == share_slug)
        .options(selectinload(Analysis.calls))
    )
    row = session.scalars(stmt).first()
    return _to_record(row) if row is not None else None
