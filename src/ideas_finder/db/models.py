"""SQLAlchemy 2.0 ORM models for analyses, model calls, and usage entitlement.

Models:
    Analysis -- One finished (or partially finished) analysis run.
    ApiCall -- Token usage and cost of one model call, linked to an analysis.
    Subscription -- A user's plan status and monthly search allowance.
    MonthlyUsage -- Searches used by a user within one billing period.
"""

import datetime
from typing import Optional

from sqlalchemy import ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all ORM models."""

    pass


class Analysis(Base):
    """A persisted analysis: flattened sections plus run metadata."""

    __tablename__ = "analyses"

    id: Mapped[int] = mapped_column(primary_key=True)
    domain: Mapped[str] = mapped_column(String(10), index=True)  # "app" | "idea"
    subject_id: Mapped[str] = mapped_column(String(100), index=True)
    subject_name: Mapped[str] = mapped_column(String(500))
    user_id: Mapped[Optional[str]] = mapped_column(String(100), index=True, default=None)
    share_slug: Mapped[str] = mapped_column(String(32), unique=True, index=True)

    # JSON-encoded section values and statuses
    sections: Mapped[str] = mapped_column(Text, default="{}")
    statuses: Mapped[str] = mapped_column(Text, default="{}")

    # Run metadata
    review_count: Mapped[int] = mapped_column(default=0)
    analysis_time_seconds: Mapped[float] = mapped_column(default=0.0)
    api_cost: Mapped[float] = mapped_column(default=0.0)
    call_count: Mapped[int] = mapped_column(default=0)
    manual_task_hours: Mapped[float] = mapped_column(default=0.0)
    sentiment: Mapped[Optional[str]] = mapped_column(String(50), default=None)

    created_at: Mapped[datetime.datetime] = mapped_column(
        server_default=func.now(), index=True
    )

    calls: Mapped[list["ApiCall"]] = relationship(
        back_populates="analysis",
        cascade="all, delete-orphan",
        order_by="ApiCall.call_number",
    )

    def __repr__(self) -> str:
        return (
            f"<Analysis(domain={self.domain!r}, subject_id={self.subject_id!r}, "
            f"slug={self.share_slug!r})>"
        )


class ApiCall(Base):
    """Token usage and cost of one model call."""

    __tablename__ = "api_calls"

    id: Mapped[int] = mapped_column(primary_key=True)
    analysis_id: Mapped[int] = mapped_column(ForeignKey("analyses.id"))
    call_number: Mapped[int] = mapped_column()
    stage: Mapped[Optional[str]] = mapped_column(String(50), default=None)
    input_tokens: Mapped[int] = mapped_column(default=0)
    output_tokens: Mapped[int] = mapped_column(default=0)
    system_tokens: Mapped[int] = mapped_column(default=0)
    total_tokens: Mapped[int] = mapped_column(default=0)
    cost: Mapped[float] = mapped_column(default=0.0)
    timestamp: Mapped[Optional[str]] = mapped_column(String(40), default=None)

    analysis: Mapped["Analysis"] = relationship(back_populates="calls")

    def __repr__(self) -> str:
        return f"<ApiCall(#{self.call_number}, stage={self.stage!r}, cost={self.cost})>"


class Subscription(Base):
    """A user's plan.

    ``status`` is one of trial, active, free_unlimited, cancelled, expired.
    """

    __tablename__ = "subscriptions"

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    status: Mapped[str] = mapped_column(String(20), default="trial")
    searches_per_month: Mapped[int] = mapped_column(default=0)

    created_at: Mapped[datetime.datetime] = mapped_column(
        server_default=func.now()
    )
    updated_at: Mapped[Optional[datetime.datetime]] = mapped_column(
        onupdate=func.now(), default=None
    )

    def __repr__(self) -> str:
        return f"<Subscription(user_id={self.user_id!r}, status={self.status!r})>"


class MonthlyUsage(Base):
    """Searches used by one user within ``[period_start, period_end)``."""

    __tablename__ = "monthly_usage"
    __table_args__ = (UniqueConstraint("user_id", "period_start"),)

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(String(100), index=True)
    period_start: Mapped[datetime.datetime] = mapped_column()
    period_end: Mapped[datetime.datetime] = mapped_column()
    searches_used: Mapped[int] = mapped_column(default=0)
    searches_limit: Mapped[int] = mapped_column(default=0)

    def __repr__(self) -> str:
        return (
            f"<MonthlyUsage(user_id={self.user_id!r}, "
            f"used={self.searches_used}/{self.searches_limit})>"
        )
