"""Per-user prediction parameters.

Stores the carb ratio, insulin sensitivity factor and the half-life and
duration cap of both decay curves used by the glucose prediction engine.
"""

import uuid

from sqlalchemy import CheckConstraint, Float
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from glucopredict.core.prediction.constants import (
    DEFAULT_CARB_HALF_LIFE_MINUTES,
    DEFAULT_CARB_RATIO,
    DEFAULT_INSULIN_HALF_LIFE_MINUTES,
    DEFAULT_ISF,
    DEFAULT_MAX_CARB_DURATION_MINUTES,
    DEFAULT_MAX_INSULIN_DURATION_MINUTES,
)
from glucopredict.models.base import Base, TimestampMixin


class PredictionSettings(Base, TimestampMixin):
    """One row per user.

    user_id is the identity supplied by the upstream auth layer, so there
    is no foreign key to a local users table.
    """

    __tablename__ = "prediction_settings"
    __table_args__ = (
        CheckConstraint(
            "carb_half_life_minutes <= max_carb_duration_minutes",
            name="ck_prediction_settings_carb_half_life",
        ),
        CheckConstraint(
            "insulin_half_life_minutes <= max_insulin_duration_minutes",
            name="ck_prediction_settings_insulin_half_life",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
        unique=True,
        index=True,
    )

    # mmol/L per 10 g
    carb_ratio: Mapped[float] = mapped_column(
        Float, nullable=False, default=DEFAULT_CARB_RATIO
    )
    # mmol/L per unit
    isf: Mapped[float] = mapped_column(Float, nullable=False, default=DEFAULT_ISF)

    carb_half_life_minutes: Mapped[float] = mapped_column(
        Float, nullable=False, default=DEFAULT_CARB_HALF_LIFE_MINUTES
    )
    max_carb_duration_minutes: Mapped[float] = mapped_column(
        Float, nullable=False, default=DEFAULT_MAX_CARB_DURATION_MINUTES
    )
    insulin_half_life_minutes: Mapped[float] = mapped_column(
        Float, nullable=False, default=DEFAULT_INSULIN_HALF_LIFE_MINUTES
    )
    max_insulin_duration_minutes: Mapped[float] = mapped_column(
        Float, nullable=False, default=DEFAULT_MAX_INSULIN_DURATION_MINUTES
    )

    def __repr__(self) -> str:
        return (
            f"<PredictionSettings(user_id={self.user_id}, "
            f"carb_ratio={self.carb_ratio}, isf={self.isf})>"
        )
