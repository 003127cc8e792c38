"""Initial schema: users, exercises, lift_logs, lift_sets, personal_records.

Revision ID: 001
Revises:
Create Date: 2026-10-17

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MODALITIES = ("FREE_WEIGHT", "BODYWEIGHT", "BANDED", "CARDIO", "TIMED_HOLD")
PROGRESSION_MODELS = ("LINEAR", "DOUBLE", "BANDED")
BAND_TYPES = ("RESISTANCE", "ASSISTANCE")
PR_TYPES = ("ONE_RM", "REP_SPECIFIC", "VOLUME", "HYPERTROPHY")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "exercises",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("unit", sa.String(length=20), nullable=True),
        sa.Column("modality", sa.Enum(*MODALITIES, name="exercisemodality"), nullable=False),
        sa.Column("progression_model", sa.Enum(*PROGRESSION_MODELS, name="progressionmodelname"), nullable=True),
        sa.Column("band_type", sa.Enum(*BAND_TYPES, name="bandtype"), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_exercises_name"), "exercises", ["name"], unique=False)

    op.create_table(
        "lift_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("exercise_id", sa.Uuid(), nullable=False),
        sa.Column("logged_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("comments", sa.Text(), nullable=True),
        sa.Column("bodyweight", sa.Float(), nullable=True),
        sa.Column("is_pr", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("pr_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["exercise_id"], ["exercises.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_lift_logs_scope_logged_at", "lift_logs", ["user_id", "exercise_id", "logged_at"], unique=False
    )

    op.create_table(
        "lift_sets",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("lift_log_id", sa.Uuid(), nullable=False),
        sa.Column("set_order", sa.Integer(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=False, server_default="0"),
        sa.Column("reps", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("notes", sa.String(length=500), nullable=True),
        sa.Column("band_color", sa.String(length=20), nullable=True),
        sa.Column("time_seconds", sa.Integer(), nullable=True),
        sa.ForeignKeyConstraint(["lift_log_id"], ["lift_logs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_lift_sets_lift_log_id", "lift_sets", ["lift_log_id"], unique=False)

    op.create_table(
        "personal_records",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("exercise_id", sa.Uuid(), nullable=False),
        sa.Column("lift_log_id", sa.Uuid(), nullable=False),
        sa.Column("pr_type", sa.Enum(*PR_TYPES, name="prtype"), nullable=False),
        sa.Column("rep_count", sa.Integer(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("value", sa.Float(), nullable=False),
        sa.Column("previous_pr_id", sa.Uuid(), nullable=True),
        sa.Column("previous_value", sa.Float(), nullable=True),
        sa.Column("achieved_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["exercise_id"], ["exercises.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["lift_log_id"], ["lift_logs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["previous_pr_id"], ["personal_records.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_personal_records_scope",
        "personal_records",
        ["user_id", "exercise_id", "pr_type", "rep_count", "achieved_at"],
        unique=False,
    )
    op.create_index("ix_personal_records_lift_log_id", "personal_records", ["lift_log_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_personal_records_lift_log_id", table_name="personal_records")
    op.drop_index("ix_personal_records_scope", table_name="personal_records")
    op.drop_table("personal_records")
    op.drop_index("ix_lift_sets_lift_log_id", table_name="lift_sets")
    op.drop_table("lift_sets")
    op.drop_index("ix_lift_logs_scope_logged_at", table_name="lift_logs")
    op.drop_table("lift_logs")
    op.drop_index(op.f("ix_exercises_name"), table_name="exercises")
    op.drop_table("exercises")
    op.drop_table("users")
    sa.Enum(name="prtype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="bandtype").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="progressionmodelname").drop(op.get_bind(), checkfirst=True)
    sa.Enum(name="exercisemodality").drop(op.get_bind(), checkfirst=True)
