"""PersonalRecord model - one link in a (user, exercise, pr_type[, rep_count | weight]) chain."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Enum, Float, ForeignKey, Index, Integer, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prledger.core.enums import PRType
from prledger.db.base import Base
from prledger.db.types import UTCDateTime, utcnow


class PersonalRecord(Base):
    """Snapshot of the best known performance of one kind as of achieved_at.

    previous_pr_id caches the achieved_at order of the chain; it is rebuilt from
    that order on recalculation. Rows are soft-deletable (deleted_at).
    """

    __tablename__ = "personal_records"
    __table_args__ = (
        Index("ix_personal_records_scope", "user_id", "exercise_id", "pr_type", "rep_count", "achieved_at"),
        Index("ix_personal_records_lift_log_id", "lift_log_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    exercise_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("exercises.id", ondelete="CASCADE"), nullable=False)
    lift_log_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("lift_logs.id", ondelete="CASCADE"), nullable=False)
    pr_type: Mapped[PRType] = mapped_column(Enum(PRType), nullable=False)
    rep_count: Mapped[int | None] = mapped_column(Integer, nullable=True)  # rep_specific only
    weight: Mapped[float | None] = mapped_column(Float, nullable=True)  # chain key for hypertrophy
    value: Mapped[float] = mapped_column(Float, nullable=False)
    previous_pr_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("personal_records.id", ondelete="SET NULL"), nullable=True
    )
    previous_value: Mapped[float | None] = mapped_column(Float, nullable=True)
    achieved_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)
    deleted_at: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)

    user: Mapped["User"] = relationship("User", back_populates="personal_records")
    lift_log: Mapped["LiftLog"] = relationship("LiftLog", back_populates="personal_records")
    previous_pr: Mapped["PersonalRecord | None"] = relationship(
        "PersonalRecord", remote_side=[id], foreign_keys=[previous_pr_id]
    )

    @property
    def scope_key(self) -> tuple[PRType, int | None, float | None]:
        return self.pr_type, self.rep_count, self.weight if self.pr_type == PRType.HYPERTROPHY else None

    def soft_delete(self) -> None:
        self.deleted_at = utcnow()
