from __future__ import annotations

import math
from typing import Any, Optional


def _as_int(value: Any) -> Optional[int]:
    if value is None or value == "":
        return None
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(x):
        return None
    return int(x)


def clamp_weeks(value: Any, min_weeks: int = 14, max_weeks: int = 41) -> Optional[int]:
    """Clamp a weeks field to the charted range. Non-numeric input is left as None."""
    x = _as_int(value)
    if x is None:
        return None
    return max(min_weeks, min(max_weeks, x))


def clamp_days(value: Any, max_days: int = 6) -> Optional[int]:
    x = _as_int(value)
    if x is None:
        return None
    return max(0, min(max_days, x))


def gestational_age_weeks(weeks: Optional[float], days: Optional[float]) -> float:
    """Decimal GA in weeks; blank fields count as 0."""
    w = float(weeks) if weeks is not None else 0.0
    d = float(days) if days is not None else 0.0
    return w + d / 7.0
