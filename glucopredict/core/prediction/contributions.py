"""Conversion of active insulin/carbohydrate into glucose deltas.

Contributions are computed from the quantities active *now* (at the
reference time), not from what will remain once the horizon has
elapsed: the prediction answers "how much effect is still in the
pipeline". Horizon-decayed quantities produce materially different
numbers and must not be substituted here.
"""

import math

from glucopredict.core.prediction.constants import CARB_RATIO_GRAMS
from glucopredict.core.prediction.models import PredictionFactors, UserParameters


def round_half_up(value: float, ndigits: int) -> float:
    """Round to ``ndigits`` places with ties toward positive infinity.

    Python's ``round`` uses banker's rounding; factor values must be
    reproducible against the published reference cases, which round
    0.125 to 0.13 and -0.125 to -0.12.
    """
    scale = 10**ndigits
    return math.floor(value * scale + 0.5) / scale


class ContributionCalculator:
    """Turns aggregated IOB/COB into signed mmol/L factors.

    Stateless and safe to use as a singleton.
    """

    def compute_factors(
        self,
        active_carbs_now: float,
        active_insulin_now: float,
        horizon_minutes: float,
        user_parameters: UserParameters,
        glucose_trend_per_minute: float = 0.0,
    ) -> PredictionFactors:
        """Compute the four prediction factors, each rounded to 2 dp.

        Args:
            active_carbs_now: Carbs on board (g) at the reference time.
            active_insulin_now: Insulin on board (U) at the reference time.
            horizon_minutes: How far ahead the prediction looks.
            user_parameters: Snapshot supplying carb ratio and ISF.
            glucose_trend_per_minute: Observed trend (mmol/L/min); 0 when unknown.

        Returns:
            PredictionFactors with carb >= 0 and insulin <= 0.
        """
        carbs = max(0.0, active_carbs_now)
        insulin = max(0.0, active_insulin_now)

        carb_contribution = (carbs / CARB_RATIO_GRAMS) * user_parameters.carb_ratio
        insulin_contribution = -(insulin * user_parameters.insulin_sensitivity_factor)
        # No drift model yet; the field is kept so consumers see all four terms.
        baseline_contribution = 0.0
        trend_contribution = glucose_trend_per_minute * (horizon_minutes / 60.0)

        return PredictionFactors(
            carb_contribution=round_half_up(carb_contribution, 2),
            insulin_contribution=round_half_up(insulin_contribution, 2),
            baseline_contribution=round_half_up(baseline_contribution, 2),
            trend_contribution=round_half_up(trend_contribution, 2),
        )
