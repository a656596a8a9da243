from __future__ import annotations

from typing import Iterable, Optional, Sequence

import numpy as np

from src.models.growth.twin_reference import CircumferenceReferenceTable, WeightReferenceTable


def _is_positive_number(x: Optional[float]) -> bool:
    if x is None:
        return False
    x = float(x)
    return not np.isnan(x) and x > 0


def _nearest(candidates: Iterable[float], target: float) -> Optional[int]:
    """Index of the candidate closest to target; first one wins on ties."""
    best_idx: Optional[int] = None
    best_diff = 0.0
    for i, c in enumerate(candidates):
        diff = abs(c - target)
        if best_idx is None or diff < best_diff:
            best_idx, best_diff = i, diff
    return best_idx


def nearest_week_index(
    table: Optional[WeightReferenceTable], gestational_age_weeks: float
) -> Optional[int]:
    if table is None or table.is_empty:
        return None
    return _nearest(table.weeks, gestational_age_weeks)


def nearest_ga_key(
    table: Optional[CircumferenceReferenceTable], gestational_age_weeks: float
) -> Optional[float]:
    if not table:
        return None
    keys = sorted(table.keys())
    idx = _nearest(keys, gestational_age_weeks)
    return None if idx is None else keys[idx]


def _interpolate(
    measurement: float, percentiles: Sequence[float], values: Sequence[float]
) -> Optional[float]:
    """
    Piecewise-linear percentile from parallel (percentile, value) sequences.

    Clamped to the first/last percentile outside the tabulated value range;
    otherwise the first adjacent pair that brackets the measurement is used.
    """
    if not values:
        return None
    if measurement <= values[0]:
        return float(percentiles[0])
    if measurement >= values[-1]:
        return float(percentiles[-1])

    for i in range(len(values) - 1):
        v1, v2 = values[i], values[i + 1]
        if measurement == v1:
            return float(percentiles[i])
        if v1 < measurement < v2:
            frac = (measurement - v1) / (v2 - v1)
            return float(percentiles[i] + frac * (percentiles[i + 1] - percentiles[i]))
    return None


def percentile_for_weight(
    table: Optional[WeightReferenceTable],
    gestational_age_weeks: float,
    measurement: Optional[float],
) -> Optional[float]:
    """
    EFW percentile against the twin weight curves.

    Uses the row nearest in GA (no interpolation across weeks), then
    interpolates linearly between the bracketing percentile curves after
    sorting that row's values ascending.
    """
    if not _is_positive_number(measurement):
        return None
    row = nearest_week_index(table, gestational_age_weeks)
    if row is None:
        return None

    pairs = [
        (p, col[row])
        for p, col in zip(table.percentiles, table.data)
        if not (np.isnan(p) or np.isnan(col[row]))
    ]
    if not pairs:
        return None

    pairs.sort(key=lambda pv: pv[1])
    return _interpolate(float(measurement), [p for p, _ in pairs], [v for _, v in pairs])


def percentile_for_circumference(
    table: Optional[CircumferenceReferenceTable],
    gestational_age_weeks: float,
    measurement: Optional[float],
) -> Optional[float]:
    """
    AC percentile against the twin circumference table.

    Rows are ordered by percentile and the stored values are trusted to be
    monotonic; they are not re-sorted.
    """
    if not _is_positive_number(measurement):
        return None
    key = nearest_ga_key(table, gestational_age_weeks)
    if key is None:
        return None

    row = table[key]
    percentiles = sorted(row.keys())
    values = [row[p] for p in percentiles]
    return _interpolate(float(measurement), percentiles, values)
