from __future__ import annotations

from typing import Optional

import numpy as np


def _entered(efw: Optional[float]) -> bool:
    # zero / blank means "not entered" for a twin, never a real weight
    return efw is not None and not np.isnan(efw) and efw > 0


def discordancy(efw_a: Optional[float], efw_b: Optional[float]) -> Optional[float]:
    """
    Inter-twin EFW discordancy as a percentage of the larger twin:
      |a - b| / max(a, b) * 100

    Returns None unless both weights are entered. Not rounded.
    """
    if not (_entered(efw_a) and _entered(efw_b)):
        return None
    a, b = float(efw_a), float(efw_b)
    return abs(a - b) / max(a, b) * 100.0


def format_percent(value: Optional[float]) -> str:
    """Display form used for percentiles and discordancy: one decimal + '%', blank for no result."""
    if value is None or np.isnan(value):
        return ""
    return f"{value:.1f}%"
