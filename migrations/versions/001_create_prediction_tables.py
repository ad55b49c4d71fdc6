"""Create prediction_settings and treatment_entries tables.

prediction_settings holds one row of prediction parameters per user.
treatment_entries is the log of meals and doses the predictions read.

Revision ID: 001_prediction_tables
Revises:
"""

import sqlalchemy as sa
from alembic import op

revision = "001_prediction_tables"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
            nullable=False,
        ),
    ]


def upgrade() -> None:
    op.create_table(
        "prediction_settings",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "user_id",
            sa.dialects.postgresql.UUID(as_uuid=True),
            nullable=False,
            unique=True,
        ),
        sa.Column("carb_ratio", sa.Float, nullable=False, server_default="2.0"),
        sa.Column("isf", sa.Float, nullable=False, server_default="1.0"),
        sa.Column(
            "carb_half_life_minutes", sa.Float, nullable=False, server_default="45.0"
        ),
        sa.Column(
            "max_carb_duration_minutes", sa.Float, nullable=False, server_default="240.0"
        ),
        sa.Column(
            "insulin_half_life_minutes", sa.Float, nullable=False, server_default="42.0"
        ),
        sa.Column(
            "max_insulin_duration_minutes",
            sa.Float,
            nullable=False,
            server_default="240.0",
        ),
        *_timestamps(),
        sa.CheckConstraint(
            "carb_half_life_minutes <= max_carb_duration_minutes",
            name="ck_prediction_settings_carb_half_life",
        ),
        sa.CheckConstraint(
            "insulin_half_life_minutes <= max_insulin_duration_minutes",
            name="ck_prediction_settings_insulin_half_life",
        ),
    )
    op.create_index(
        "ix_prediction_settings_user_id", "prediction_settings", ["user_id"]
    )

    op.create_table(
        "treatment_entries",
        sa.Column("id", sa.dialects.postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.dialects.postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("carbs", sa.Float, nullable=False, server_default="0"),
        sa.Column("insulin", sa.Float, nullable=False, server_default="0"),
        sa.Column("meal", sa.String(100), nullable=True),
        sa.Column("comment", sa.Text, nullable=True),
        sa.Column("glucose_value", sa.Float, nullable=True),
        sa.Column("dose_type", sa.String(20), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_treatment_entries_user_timestamp",
        "treatment_entries",
        ["user_id", "timestamp"],
    )


def downgrade() -> None:
    op.drop_index("ix_treatment_entries_user_timestamp", table_name="treatment_entries")
    op.drop_table("treatment_entries")
    op.drop_index("ix_prediction_settings_user_id", table_name="prediction_settings")
    op.drop_table("prediction_settings")
