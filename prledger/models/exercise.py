"""Exercise model - trackable exercise with its loading modality."""

from __future__ import annotations

import uuid

from sqlalchemy import Enum, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from prledger.core.enums import BandType, ExerciseModality, ProgressionModelName
from prledger.db.base import Base


class Exercise(Base):
    """Exercise definition. modality picks the capability strategy; progression_model
    overrides the per-modality default when set."""

    __tablename__ = "exercises"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    unit: Mapped[str] = mapped_column(String(20), default="kg")
    modality: Mapped[ExerciseModality] = mapped_column(
        Enum(ExerciseModality), default=ExerciseModality.FREE_WEIGHT, nullable=False
    )
    progression_model: Mapped[ProgressionModelName | None] = mapped_column(
        Enum(ProgressionModelName), nullable=True
    )
    band_type: Mapped[BandType | None] = mapped_column(Enum(BandType), nullable=True)  # banded only

    lift_logs: Mapped[list["LiftLog"]] = relationship(
        "LiftLog", back_populates="exercise", cascade="all, delete-orphan", passive_deletes=True
    )
