"""Recent treatment events for prediction.

Reads the user's treatment log over a trailing window and splits each
entry into the dose and carb events the prediction engine consumes.
"""

import uuid
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from glucopredict.core.prediction import CarbEvent, DoseEvent, DoseType
from glucopredict.logging_config import get_logger
from glucopredict.models.treatment_entry import TreatmentEntry

logger = get_logger(__name__)

CORRECTION_MEAL = "correction"


@dataclass(frozen=True)
class RecentEvents:
    """Dose and carb events from the trailing window, oldest first."""

    dose_events: tuple[DoseEvent, ...] = ()
    carb_events: tuple[CarbEvent, ...] = ()


def _as_aware(ts: datetime) -> datetime:
    # Rows written without a zone are stored in UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts


def determine_dose_type(entry: TreatmentEntry) -> DoseType:
    """Classify the insulin on an entry.

    A recognised explicit dose_type wins. Otherwise an entry labelled
    "Correction" or one without carbs is a correction, and anything else is
    a meal bolus.
    """
    if entry.dose_type:
        try:
            return DoseType(entry.dose_type.strip().lower())
        except ValueError:
            logger.warning(
                "Unknown dose type on treatment entry; inferring from meal",
                entry_id=str(entry.id),
                dose_type=entry.dose_type,
            )
    meal = (entry.meal or "").strip().lower()
    if meal == CORRECTION_MEAL or not entry.carbs:
        return DoseType.correction
    return DoseType.bolus


def entry_to_events(entry: TreatmentEntry) -> tuple[DoseEvent | None, CarbEvent | None]:
    """Split one log entry into its dose and carb events (either may be None)."""
    timestamp = _as_aware(entry.timestamp)

    dose = None
    if entry.insulin and entry.insulin > 0:
        dose = DoseEvent(
            timestamp=timestamp,
            units=entry.insulin,
            dose_type=determine_dose_type(entry),
        )

    carb = None
    if entry.carbs and entry.carbs > 0:
        carb = CarbEvent(
            timestamp=timestamp,
            grams=entry.carbs,
            meal_type=entry.meal,
            glucose_value=(
                entry.glucose_value
                if entry.glucose_value and entry.glucose_value > 0
                else None
            ),
        )

    return dose, carb


async def get_recent_events(
    user_id: uuid.UUID,
    db: AsyncSession,
    reference_time: datetime,
    window_hours: float = 6.0,
) -> RecentEvents:
    """Load the user's events in ``[reference_time - window, reference_time]``.

    Args:
        user_id: User's UUID.
        db: Database session.
        reference_time: Upper bound of the window (timezone-aware).
        window_hours: How far back to look.

    Returns:
        RecentEvents. Entries carrying neither carbs nor insulin are dropped,
        as are entries whose values fail event validation.
    """
    window_start = reference_time - timedelta(hours=window_hours)

    result = await db.execute(
        select(TreatmentEntry)
        .where(
            TreatmentEntry.user_id == user_id,
            TreatmentEntry.timestamp >= window_start,
            TreatmentEntry.timestamp <= reference_time,
        )
        .order_by(TreatmentEntry.timestamp)
    )
    entries = result.scalars().all()

    doses: list[DoseEvent] = []
    carbs: list[CarbEvent] = []
    skipped = 0
    for entry in entries:
        try:
            dose, carb = entry_to_events(entry)
        except ValidationError as e:
            # One malformed row must not block predictions for the user
            skipped += 1
            logger.warning(
                "Skipping treatment entry that cannot be converted",
                entry_id=str(entry.id),
                error=str(e),
            )
            continue
        if dose is not None:
            doses.append(dose)
        if carb is not None:
            carbs.append(carb)

    logger.debug(
        "Loaded recent treatment events",
        user_id=str(user_id),
        entries=len(entries),
        dose_events=len(doses),
        carb_events=len(carbs),
        skipped=skipped,
        window_hours=window_hours,
    )

    return RecentEvents(dose_events=tuple(doses), carb_events=tuple(carbs))
