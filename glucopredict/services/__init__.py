# Business Logic Services
from glucopredict.services.glucose_calculations import (
    calculate_glucose_data,
    carbs_on_board_summary,
    insulin_on_board_summary,
)
from glucopredict.services.prediction_settings import (
    get_or_create_settings,
    lookup_user_parameters,
    update_settings,
)
from glucopredict.services.treatment_log import RecentEvents, get_recent_events

__all__ = [
    "RecentEvents",
    "calculate_glucose_data",
    "carbs_on_board_summary",
    "get_or_create_settings",
    "get_recent_events",
    "insulin_on_board_summary",
    "lookup_user_parameters",
    "update_settings",
]
