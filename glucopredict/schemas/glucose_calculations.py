"""Glucose calculation schemas.

These models are serialized in camelCase (``activeCarbsOnBoard``,
``twoHourPrediction``, ...) to match the wire format dashboard clients
already consume. Python code uses the snake_case field names.
"""

from datetime import datetime
from typing import Literal

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from glucopredict.core.prediction import (
    CarbsOnBoardStatus,
    DoseType,
    InsulinActivityStatus,
    PredictionTrend,
)


class CamelModel(BaseModel):
    """Base for wire models: camelCase aliases, snake_case accepted on input."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GlucoseCalculationsRequest(CamelModel):
    """Request body for ``POST /api/glucose-calculations``."""

    current_glucose: float = Field(
        gt=0,
        le=50.0,
        allow_inf_nan=False,
        description="Current glucose reading in mmol/L.",
    )
    prediction_horizon_minutes: int | None = Field(
        default=None,
        ge=0,
        le=720,
        description="Minutes ahead to predict. Defaults to the configured horizon.",
    )
    reference_time: AwareDatetime | None = Field(
        default=None,
        description="Evaluation time. Defaults to now.",
    )
    glucose_trend_per_minute: float = Field(
        default=0.0,
        ge=-1.0,
        le=1.0,
        description="Recent glucose slope in mmol/L per minute.",
    )
    include_prediction_factors: bool = True


class PredictionFactorsSchema(CamelModel):
    carb_contribution: float
    insulin_contribution: float
    baseline_contribution: float
    trend_contribution: float


class GlucoseCalculationsData(CamelModel):
    """Prediction payload.

    ``two_hour_prediction`` keeps its historical name even when a
    different horizon was requested; ``prediction_horizon_minutes`` says
    which horizon it is.
    """

    active_carbs_on_board: float
    active_carbs_unit: Literal["g"] = "g"
    active_insulin_on_board: float
    active_insulin_unit: Literal["units"] = "units"
    two_hour_prediction: float
    prediction_trend: PredictionTrend
    prediction_unit: Literal["mmol/L"] = "mmol/L"
    prediction_horizon_minutes: int
    current_glucose: float
    current_glucose_unit: Literal["mmol/L"] = "mmol/L"
    calculated_at: datetime
    confidence: float
    factors: PredictionFactorsSchema | None = None
    carbs_on_board_at_horizon: float
    insulin_on_board_at_horizon: float


class GlucoseCalculationsResponse(CamelModel):
    data: GlucoseCalculationsData
    message: str = "Glucose calculations completed"


class TimelinePointSchema(CamelModel):
    timestamp: datetime
    remaining: float
    percentage_remaining: float
    is_peak: bool


class CarbEntrySummary(CamelModel):
    """One recent meal and its absorption curve."""

    timestamp: datetime
    grams: float
    remaining_grams: float
    meal_type: str | None = None
    timeline: list[TimelinePointSchema]


class CarbsOnBoardResponse(CamelModel):
    total_carbs_on_board: float
    unit: Literal["g"] = "g"
    status: CarbsOnBoardStatus
    description: str
    calculated_at: datetime
    entries: list[CarbEntrySummary]


class DoseSummary(CamelModel):
    """One recent dose and its activity curve."""

    timestamp: datetime
    units: float
    dose_type: DoseType
    remaining_units: float
    timeline: list[TimelinePointSchema]


class InsulinOnBoardResponse(CamelModel):
    total_insulin_on_board: float
    unit: Literal["units"] = "units"
    activity_status: InsulinActivityStatus
    description: str
    calculated_at: datetime
    doses: list[DoseSummary]
