"""LiftLog and LiftSet models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Float, ForeignKey, Index, Integer, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prledger.db.base import Base
from prledger.db.types import UTCDateTime, utcnow


class LiftLog(Base):
    """One completed entry for an exercise at logged_at, with its sets and PR flags."""

    __tablename__ = "lift_logs"
    __table_args__ = (Index("ix_lift_logs_scope_logged_at", "user_id", "exercise_id", "logged_at"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    exercise_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False)
    logged_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, nullable=False)
    comments: Mapped[str | None] = mapped_column(Text, nullable=True)
    bodyweight: Mapped[float | None] = mapped_column(Float, nullable=True)  # snapshot for bodyweight 1RM
    is_pr: Mapped[bool] = mapped_column(default=False, nullable=False)
    pr_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow, onupdate=utcnow)

    user: Mapped["User"] = relationship("User", back_populates="lift_logs")
    exercise: Mapped["Exercise"] = relationship("Exercise", back_populates="lift_logs")
    sets: Mapped[list["LiftSet"]] = relationship(
        "LiftSet",
        back_populates="lift_log",
        cascade="all, delete-orphan",
        order_by="LiftSet.set_order",
        passive_deletes=True,
    )
    personal_records: Mapped[list["PersonalRecord"]] = relationship(
        "PersonalRecord", back_populates="lift_log", cascade="all, delete-orphan", passive_deletes=True
    )


class LiftSet(Base):
    """One set: weight/reps plus modality-specific extras (band color, time)."""

    __tablename__ = "lift_sets"
    __table_args__ = (Index("ix_lift_sets_lift_log_id", "lift_log_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    lift_log_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("lift_logs.id", ondelete="CASCADE"), nullable=False)
    set_order: Mapped[int] = mapped_column(Integer, default=0)
    weight: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    reps: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    notes: Mapped[str | None] = mapped_column(String(500), nullable=True)
    band_color: Mapped[str | None] = mapped_column(String(20), nullable=True)
    time_seconds: Mapped[int | None] = mapped_column(Integer, nullable=True)

    lift_log: Mapped["LiftLog"] = relationship("LiftLog", back_populates="sets")
