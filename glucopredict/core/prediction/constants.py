"""Glucose prediction constants.

Defaults for the per-user parameter snapshot and the fixed thresholds
used by the prediction engine. User-configurable values (carb ratio,
ISF, half-lives, duration caps) come from the prediction_settings row
when one exists; these are the fallbacks.
"""

from typing import Final

# Carb ratio: mmol/L glucose rise per 10 g of active carbohydrate.
DEFAULT_CARB_RATIO: Final[float] = 2.0

# Insulin sensitivity factor: mmol/L glucose drop per unit of active
# insulin. Stored settings default to 1.0; deployments may raise it
# up to 2.0 through configuration.
DEFAULT_ISF: Final[float] = 1.0

# Half-lives in minutes. 42 min matches Fiasp; 45 min is the
# absorption half-life for a mixed meal.
DEFAULT_CARB_HALF_LIFE_MINUTES: Final[float] = 45.0
DEFAULT_INSULIN_HALF_LIFE_MINUTES: Final[float] = 42.0

# Duration caps in minutes. Past these, the remaining quantity is 0.
DEFAULT_MAX_CARB_DURATION_MINUTES: Final[float] = 240.0
DEFAULT_MAX_INSULIN_DURATION_MINUTES: Final[float] = 240.0

# Default prediction horizon (the "two hour prediction").
DEFAULT_HORIZON_MINUTES: Final[int] = 120

# Carb ratio is expressed per this many grams.
CARB_RATIO_GRAMS: Final[float] = 10.0

# Predicted glucose is clamped into this range (mmol/L).
MIN_PREDICTED_GLUCOSE: Final[float] = 1.0
MAX_PREDICTED_GLUCOSE: Final[float] = 25.0

# Net effect (mmol/L) beyond which the trend is rising/falling.
TREND_THRESHOLD: Final[float] = 0.5

# Confidence levels and the event count above which data is "dense".
CONFIDENCE_HIGH: Final[float] = 0.9
CONFIDENCE_MEDIUM: Final[float] = 0.7
CONFIDENCE_LOW: Final[float] = 0.5
HIGH_CONFIDENCE_EVENT_COUNT: Final[int] = 3

# Extreme glucose values are less predictable; confidence is scaled
# down outside this range (mmol/L).
EXTREME_LOW_GLUCOSE: Final[float] = 3.0
EXTREME_HIGH_GLUCOSE: Final[float] = 15.0
EXTREME_GLUCOSE_PENALTY: Final[float] = 0.8

# Rapid-acting insulin peaks ~75 min after the dose (60-90 min).
# Activity is "at peak" within +/- the window.
INSULIN_PEAK_MINUTES: Final[float] = 75.0
INSULIN_PEAK_WINDOW_MINUTES: Final[float] = 15.0

# COB status boundaries in grams.
COB_LOW_GRAMS: Final[float] = 5.0
COB_MODERATE_GRAMS: Final[float] = 15.0

# Timeline sampling.
TIMELINE_STEP_MINUTES: Final[int] = 15
TIMELINE_DURATION_HOURS: Final[float] = 4.0
