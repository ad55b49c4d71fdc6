"""Glucose prediction.

Projects a user's glucose forward from recorded insulin doses and
carbohydrate intake using half-life decay curves. Four pieces, leaves
first:

1. InsulinActivityModel -- insulin on board from dose events
2. CarbAbsorptionModel -- carbs on board from intake events
3. ContributionCalculator -- IOB/COB into signed mmol/L factors
4. PredictionEngine -- sum, clamp, trend label, confidence score

Everything in this package is pure: no database, no HTTP, no logging,
no module-level mutable state. Callers fetch events and the parameter
snapshot, then hand them in.

This is a projection, not a controller. Nothing here recommends or
schedules a dose.
"""

from glucopredict.core.prediction.contributions import (
    ContributionCalculator,
    round_half_up,
)
from glucopredict.core.prediction.decay import (
    CarbAbsorptionModel,
    InsulinActivityModel,
)
from glucopredict.core.prediction.engine import (
    InvalidPredictionInputError,
    PredictionEngine,
)
from glucopredict.core.prediction.enums import (
    CarbsOnBoardStatus,
    DoseType,
    InsulinActivityStatus,
    PredictionTrend,
)
from glucopredict.core.prediction.models import (
    CarbEvent,
    DoseEvent,
    PredictionFactors,
    PredictionRequest,
    PredictionResult,
    TimelinePoint,
    UserParameters,
)

__all__ = [
    "CarbAbsorptionModel",
    "CarbEvent",
    "CarbsOnBoardStatus",
    "ContributionCalculator",
    "DoseEvent",
    "DoseType",
    "InsulinActivityModel",
    "InsulinActivityStatus",
    "InvalidPredictionInputError",
    "PredictionEngine",
    "PredictionFactors",
    "PredictionRequest",
    "PredictionResult",
    "PredictionTrend",
    "TimelinePoint",
    "UserParameters",
    "round_half_up",
]
