# Database Models
from glucopredict.models.base import Base, TimestampMixin
from glucopredict.models.prediction_settings import PredictionSettings
from glucopredict.models.treatment_entry import TreatmentEntry

__all__ = [
    "Base",
    "PredictionSettings",
    "TimestampMixin",
    "TreatmentEntry",
]
