"""Glucose calculations router.

Prediction, carbs-on-board and insulin-on-board endpoints. The caller's
identity is resolved upstream and passed as ``user_id``.
"""

import uuid

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from glucopredict.core.prediction import InvalidPredictionInputError
from glucopredict.database import get_db
from glucopredict.schemas.glucose_calculations import (
    CarbsOnBoardResponse,
    GlucoseCalculationsRequest,
    GlucoseCalculationsResponse,
    InsulinOnBoardResponse,
)
from glucopredict.services.glucose_calculations import (
    calculate_glucose_data,
    carbs_on_board_summary,
    insulin_on_board_summary,
    to_calculations_data,
)

router = APIRouter(prefix="/api/glucose-calculations", tags=["glucose-calculations"])


async def _calculate(
    user_id: uuid.UUID,
    body: GlucoseCalculationsRequest,
    db: AsyncSession,
) -> GlucoseCalculationsResponse:
    try:
        result = await calculate_glucose_data(
            user_id,
            body.current_glucose,
            db,
            reference_time=body.reference_time,
            horizon_minutes=body.prediction_horizon_minutes,
            glucose_trend_per_minute=body.glucose_trend_per_minute,
        )
    except InvalidPredictionInputError as e:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(e),
        ) from e

    return GlucoseCalculationsResponse(
        data=to_calculations_data(
            result,
            body.current_glucose,
            include_factors=body.include_prediction_factors,
        ),
    )


@router.get("", response_model=GlucoseCalculationsResponse)
async def get_glucose_calculations(
    user_id: uuid.UUID,
    current_glucose: float = Query(gt=0, le=50.0, alias="currentGlucose"),
    prediction_horizon_minutes: int | None = Query(
        default=None, ge=0, le=720, alias="predictionHorizonMinutes"
    ),
    include_prediction_factors: bool = Query(
        default=True, alias="includePredictionFactors"
    ),
    db: AsyncSession = Depends(get_db),
) -> GlucoseCalculationsResponse:
    """Predict glucose from the current reading and recent treatments."""
    body = GlucoseCalculationsRequest(
        current_glucose=current_glucose,
        prediction_horizon_minutes=prediction_horizon_minutes,
        include_prediction_factors=include_prediction_factors,
    )
    return await _calculate(user_id, body, db)


@router.post("", response_model=GlucoseCalculationsResponse)
async def post_glucose_calculations(
    body: GlucoseCalculationsRequest,
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> GlucoseCalculationsResponse:
    """Predict glucose; the body may also set reference time and trend."""
    return await _calculate(user_id, body, db)


@router.get("/carbs-on-board", response_model=CarbsOnBoardResponse)
async def get_carbs_on_board(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> CarbsOnBoardResponse:
    """Current carbs on board and each recent meal's absorption timeline."""
    return await carbs_on_board_summary(user_id, db)


@router.get("/insulin-on-board", response_model=InsulinOnBoardResponse)
async def get_insulin_on_board(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> InsulinOnBoardResponse:
    """Current insulin on board and each recent dose's activity timeline."""
    return await insulin_on_board_summary(user_id, db)
