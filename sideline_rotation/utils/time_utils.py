"""
Utility functions for the Sideline Rotation engine.

Time formatting plus coercion helpers that turn untrusted numeric input
(clock timestamps, period numbers, stored accumulators) into safe values.
"""
import logging
import math
import time
from typing import Any, Optional

logger = logging.getLogger(__name__)


def fmt_mmss(seconds: int) -> str:
    """
    Format seconds as MM:SS string.

    Example:
        >>> fmt_mmss(90)
        '01:30'
        >>> fmt_mmss(3661)
        '61:01'
    """
    m = seconds // 60
    s = seconds % 60
    return f"{m:02d}:{s:02d}"


def now_ts() -> float:
    """Get current timestamp in epoch seconds."""
    return time.time()


def _as_finite_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_seconds(value: Any, default: int = 0, field_name: str = "seconds") -> int:
    """
    Coerce a time accumulator to a non-negative integer.

    Non-numeric, NaN and negative values fall back to ``default`` and are
    logged as warnings rather than raised.
    """
    number = _as_finite_float(value)
    if number is None or number < 0:
        if value is not None:
            logger.warning("Invalid %s value %r, using %s", field_name, value, default)
        return default
    return int(number)


def coerce_timestamp(value: Any, fallback: Optional[float] = None) -> Optional[float]:
    """
    Coerce a clock timestamp (epoch seconds).

    Returns ``fallback`` for missing, non-numeric, NaN or negative input.
    """
    number = _as_finite_float(value)
    if number is None or number < 0:
        logger.warning("Invalid timestamp %r, using %r", value, fallback)
        return fallback
    return number


def coerce_period(value: Any, default: int = 1, maximum: Optional[int] = None) -> int:
    """Coerce a period number to an integer in ``1..maximum``."""
    number = _as_finite_float(value)
    if number is None or number < 1:
        logger.warning("Invalid period number %r, using %s", value, default)
        return default
    period = int(number)
    if maximum is not None and period > maximum:
        logger.warning("Period %s exceeds period count %s, clamping", period, maximum)
        return maximum
    return period


def coerce_count(value: Any, default: int = 1) -> int:
    """Coerce a player count (e.g. players per substitution) to an integer >= 1."""
    number = _as_finite_float(value)
    if number is None or number < 1:
        logger.warning("Invalid count %r, using %s", value, default)
        return default
    return int(number)
