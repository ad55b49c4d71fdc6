"""Glucose prediction enums."""

from enum import StrEnum, auto


class DoseType(StrEnum):
    """Kind of insulin dose recorded in the event log."""

    bolus = auto()
    correction = auto()
    basal = auto()


class PredictionTrend(StrEnum):
    """Direction of the net predicted glucose effect."""

    rising = auto()
    falling = auto()
    stable = auto()


class InsulinActivityStatus(StrEnum):
    """Phase of the most recent dose relative to its activity peak."""

    none = auto()
    rising = auto()
    peak = auto()
    falling = auto()


class CarbsOnBoardStatus(StrEnum):
    """Coarse classification of total active carbohydrate."""

    none = auto()
    low = auto()
    moderate = auto()
    high = auto()
