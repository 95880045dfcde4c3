"""
Utilities package for the Sideline Rotation engine.

This package contains utility functions and constants used throughout the application.
"""
from .time_utils import fmt_mmss, now_ts, coerce_seconds, coerce_timestamp, coerce_period, coerce_count
from .constants import (
    APP_TITLE, FORMAT_5V5, FORMAT_7V7, FORMATION_2_2, FORMATION_1_2_1,
    MIN_SQUAD_SIZE, DEFAULT_PERIOD_COUNT
)

__all__ = [
    "fmt_mmss", "now_ts", "coerce_seconds", "coerce_timestamp", "coerce_period", "coerce_count",
    "APP_TITLE", "FORMAT_5V5", "FORMAT_7V7", "FORMATION_2_2", "FORMATION_1_2_1",
    "MIN_SQUAD_SIZE", "DEFAULT_PERIOD_COUNT"
]
