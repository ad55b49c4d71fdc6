"""Treatment log entries.

A single logged event may carry carbs, insulin, or both. The prediction
service reads recent entries and splits them into dose and carb events.
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, Float, Index, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from glucopredict.models.base import Base, TimestampMixin


class TreatmentEntry(Base, TimestampMixin):
    """A logged meal, bolus, or correction."""

    __tablename__ = "treatment_entries"
    __table_args__ = (
        Index("ix_treatment_entries_user_timestamp", "user_id", "timestamp"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )

    user_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        nullable=False,
    )

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    carbs: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    insulin: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)

    # Free text, e.g. "Breakfast" or "Correction"
    meal: Mapped[str | None] = mapped_column(String(100), nullable=True)
    comment: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Glucose reading at the time of the entry (mmol/L)
    glucose_value: Mapped[float | None] = mapped_column(Float, nullable=True)

    # Explicit dose type; inferred from meal/carbs when null
    dose_type: Mapped[str | None] = mapped_column(String(20), nullable=True)

    def __repr__(self) -> str:
        return (
            f"<TreatmentEntry(user_id={self.user_id}, timestamp={self.timestamp}, "
            f"carbs={self.carbs}, insulin={self.insulin})>"
        )
