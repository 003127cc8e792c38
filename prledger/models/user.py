"""User model - owner of lift logs and personal records."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prledger.db.base import Base
from prledger.db.types import UTCDateTime, utcnow


class User(Base):
    """Minimal user row; authentication lives outside this service."""

    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utcnow)

    lift_logs: Mapped[list["LiftLog"]] = relationship(
        "LiftLog", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
    personal_records: Mapped[list["PersonalRecord"]] = relationship(
        "PersonalRecord", back_populates="user", cascade="all, delete-orphan", passive_deletes=True
    )
