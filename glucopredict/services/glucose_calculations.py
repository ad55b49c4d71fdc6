"""Glucose calculations service.

Glues the database edge to the pure prediction engine: loads the user's
recent treatment events and stored parameters, then asks the engine for
a prediction or summarizes carbs and insulin on board.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from glucopredict.config import settings
from glucopredict.core.prediction import (
    CarbAbsorptionModel,
    InsulinActivityModel,
    PredictionEngine,
    PredictionResult,
    TimelinePoint,
    UserParameters,
    round_half_up,
)
from glucopredict.logging_config import get_logger
from glucopredict.schemas.glucose_calculations import (
    CarbEntrySummary,
    CarbsOnBoardResponse,
    DoseSummary,
    GlucoseCalculationsData,
    InsulinOnBoardResponse,
    PredictionFactorsSchema,
    TimelinePointSchema,
)
from glucopredict.services.prediction_settings import lookup_user_parameters
from glucopredict.services.treatment_log import get_recent_events

logger = get_logger(__name__)

DEFAULT_PARAMETERS = UserParameters(insulin_sensitivity_factor=settings.default_isf)

engine = PredictionEngine(default_parameters=DEFAULT_PARAMETERS)


async def resolve_user_parameters(
    user_id: uuid.UUID, db: AsyncSession
) -> UserParameters:
    """Stored parameters for the user, or the defaults if none are stored."""
    parameters = await lookup_user_parameters(user_id, db)
    if parameters is None:
        logger.warning(
            "No stored prediction settings; using defaults",
            user_id=str(user_id),
        )
        return DEFAULT_PARAMETERS
    return parameters


def event_window_hours(parameters: UserParameters) -> float:
    """Trailing window that covers every event the user's curves can still see.

    The configured window, widened to the longer of the two duration caps.
    """
    longest_cap = max(
        parameters.max_carb_duration_minutes,
        parameters.max_insulin_duration_minutes,
    )
    return max(settings.event_window_hours, longest_cap / 60.0)


async def calculate_glucose_data(
    user_id: uuid.UUID,
    current_glucose: float,
    db: AsyncSession,
    reference_time: datetime | None = None,
    horizon_minutes: int | None = None,
    glucose_trend_per_minute: float = 0.0,
) -> PredictionResult:
    """Predict the user's glucose ``horizon_minutes`` ahead.

    Args:
        user_id: User's UUID.
        current_glucose: Current reading in mmol/L.
        db: Database session.
        reference_time: Evaluation time; defaults to now (UTC).
        horizon_minutes: Defaults to the configured prediction horizon.
        glucose_trend_per_minute: Recent slope in mmol/L per minute.

    Returns:
        The engine's PredictionResult.

    Raises:
        InvalidPredictionInputError: The reading or horizon is unusable.
    """
    now = reference_time or datetime.now(UTC)
    horizon = (
        settings.prediction_horizon_minutes
        if horizon_minutes is None
        else horizon_minutes
    )

    parameters = await resolve_user_parameters(user_id, db)
    events = await get_recent_events(
        user_id, db, now, window_hours=event_window_hours(parameters)
    )

    result = engine.predict_glucose(
        current_glucose=current_glucose,
        reference_time=now,
        horizon_minutes=horizon,
        dose_events=events.dose_events,
        carb_events=events.carb_events,
        user_parameters=parameters,
        glucose_trend_per_minute=glucose_trend_per_minute,
    )

    logger.debug(
        "Glucose prediction calculated",
        user_id=str(user_id),
        current_glucose=current_glucose,
        predicted_glucose=result.predicted_glucose,
        trend=result.trend.value,
        confidence=result.confidence,
        horizon_minutes=horizon,
        dose_events=len(events.dose_events),
        carb_events=len(events.carb_events),
    )

    return result


def to_calculations_data(
    result: PredictionResult,
    current_glucose: float,
    include_factors: bool = True,
) -> GlucoseCalculationsData:
    """Shape a prediction for the wire, rounding for display."""
    factors = None
    if include_factors:
        factors = PredictionFactorsSchema(
            carb_contribution=result.factors.carb_contribution,
            insulin_contribution=result.factors.insulin_contribution,
            baseline_contribution=result.factors.baseline_contribution,
            trend_contribution=result.factors.trend_contribution,
        )

    return GlucoseCalculationsData(
        active_carbs_on_board=round_half_up(result.active_carbs_on_board, 1),
        active_insulin_on_board=round_half_up(result.active_insulin_on_board, 2),
        two_hour_prediction=result.predicted_glucose,
        prediction_trend=result.trend,
        prediction_horizon_minutes=result.horizon_minutes,
        current_glucose=current_glucose,
        calculated_at=result.reference_time,
        confidence=result.confidence,
        factors=factors,
        carbs_on_board_at_horizon=round_half_up(result.carbs_on_board_at_horizon, 1),
        insulin_on_board_at_horizon=round_half_up(
            result.insulin_on_board_at_horizon, 2
        ),
    )


def _timeline_schema(points: list[TimelinePoint]) -> list[TimelinePointSchema]:
    return [
        TimelinePointSchema(
            timestamp=p.timestamp,
            remaining=round_half_up(p.remaining, 2),
            percentage_remaining=round_half_up(p.percentage_remaining, 1),
            is_peak=p.is_peak,
        )
        for p in points
    ]


async def carbs_on_board_summary(
    user_id: uuid.UUID,
    db: AsyncSession,
    reference_time: datetime | None = None,
) -> CarbsOnBoardResponse:
    """Current carbs on board with each recent meal's absorption curve."""
    now = reference_time or datetime.now(UTC)
    parameters = await resolve_user_parameters(user_id, db)
    events = await get_recent_events(
        user_id, db, now, window_hours=event_window_hours(parameters)
    )
    model = CarbAbsorptionModel.for_user(parameters)

    status = model.status(events.carb_events, now)
    entries = [
        CarbEntrySummary(
            timestamp=entry.timestamp,
            grams=entry.grams,
            remaining_grams=round_half_up(model.remaining(entry, now), 1),
            meal_type=entry.meal_type,
            timeline=_timeline_schema(model.timeline(entry)),
        )
        for entry in events.carb_events
    ]

    return CarbsOnBoardResponse(
        total_carbs_on_board=round_half_up(model.total_active(events.carb_events, now), 1),
        status=status,
        description=model.describe_status(status),
        calculated_at=now,
        entries=entries,
    )


async def insulin_on_board_summary(
    user_id: uuid.UUID,
    db: AsyncSession,
    reference_time: datetime | None = None,
) -> InsulinOnBoardResponse:
    """Current insulin on board with each recent dose's activity curve."""
    now = reference_time or datetime.now(UTC)
    parameters = await resolve_user_parameters(user_id, db)
    events = await get_recent_events(
        user_id, db, now, window_hours=event_window_hours(parameters)
    )
    model = InsulinActivityModel.for_user(parameters)

    doses = [
        DoseSummary(
            timestamp=dose.timestamp,
            units=dose.units,
            dose_type=dose.dose_type,
            remaining_units=round_half_up(model.remaining(dose, now), 2),
            timeline=_timeline_schema(model.timeline(dose)),
        )
        for dose in events.dose_events
    ]

    return InsulinOnBoardResponse(
        total_insulin_on_board=round_half_up(model.total_active(events.dose_events, now), 2),
        activity_status=model.activity_status(events.dose_events, now),
        description=model.describe(events.dose_events, now),
        calculated_at=now,
        doses=doses,
    )
