"""SQLAlchemy declarative base shared by every ledger model."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base for User, Exercise, LiftLog, LiftSet and PersonalRecord."""
