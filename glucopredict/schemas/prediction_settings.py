"""Prediction settings schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, model_validator

from glucopredict.core.prediction.constants import (
    DEFAULT_CARB_HALF_LIFE_MINUTES,
    DEFAULT_CARB_RATIO,
    DEFAULT_INSULIN_HALF_LIFE_MINUTES,
    DEFAULT_ISF,
    DEFAULT_MAX_CARB_DURATION_MINUTES,
    DEFAULT_MAX_INSULIN_DURATION_MINUTES,
)

# Longest curve a user may configure (12 hours)
MAX_DURATION_MINUTES = 720.0


class PredictionSettingsResponse(BaseModel):
    """Response schema for a user's stored prediction parameters."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    user_id: uuid.UUID
    carb_ratio: float
    isf: float
    carb_half_life_minutes: float
    max_carb_duration_minutes: float
    insulin_half_life_minutes: float
    max_insulin_duration_minutes: float
    updated_at: datetime


class PredictionSettingsUpdate(BaseModel):
    """Request schema for updating prediction parameters.

    All fields are optional -- only provided fields are updated. When a
    half-life and its duration cap arrive together the pair is checked
    here. A lone half-life or cap is checked against the stored row by the
    service.
    """

    carb_ratio: float | None = Field(
        default=None,
        gt=0,
        le=20.0,
        description="Glucose rise in mmol/L per 10 g of carbohydrate.",
    )
    isf: float | None = Field(
        default=None,
        gt=0,
        le=20.0,
        description="Glucose drop in mmol/L per unit of insulin.",
    )
    carb_half_life_minutes: float | None = Field(
        default=None,
        gt=0,
        le=MAX_DURATION_MINUTES,
        description="Minutes for unabsorbed carbohydrate to halve.",
    )
    max_carb_duration_minutes: float | None = Field(
        default=None,
        gt=0,
        le=MAX_DURATION_MINUTES,
        description="Minutes after which a meal no longer counts as on board.",
    )
    insulin_half_life_minutes: float | None = Field(
        default=None,
        gt=0,
        le=MAX_DURATION_MINUTES,
        description="Minutes for active insulin to halve.",
    )
    max_insulin_duration_minutes: float | None = Field(
        default=None,
        gt=0,
        le=MAX_DURATION_MINUTES,
        description="Minutes after which a dose no longer counts as on board.",
    )

    @model_validator(mode="after")
    def _half_lives_within_caps(self) -> "PredictionSettingsUpdate":
        pairs = (
            (self.carb_half_life_minutes, self.max_carb_duration_minutes, "carb"),
            (self.insulin_half_life_minutes, self.max_insulin_duration_minutes, "insulin"),
        )
        for half_life, cap, name in pairs:
            if half_life is not None and cap is not None and half_life > cap:
                raise ValueError(
                    f"{name}_half_life_minutes must not exceed max_{name}_duration_minutes"
                )
        return self


class PredictionSettingsDefaults(BaseModel):
    """Default prediction parameters for reference."""

    carb_ratio: float = DEFAULT_CARB_RATIO
    isf: float = DEFAULT_ISF
    carb_half_life_minutes: float = DEFAULT_CARB_HALF_LIFE_MINUTES
    max_carb_duration_minutes: float = DEFAULT_MAX_CARB_DURATION_MINUTES
    insulin_half_life_minutes: float = DEFAULT_INSULIN_HALF_LIFE_MINUTES
    max_insulin_duration_minutes: float = DEFAULT_MAX_INSULIN_DURATION_MINUTES


class PredictionSettingsExists(BaseModel):
    exists: bool
