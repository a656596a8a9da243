from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Sequence

import numpy as np
import pandas as pd

from app.schemas.twin import ChartPoint
from src.models.growth.twin_reference import WeightReferenceTable


@dataclass(frozen=True)
class PercentileCurve:
    percentile: int
    label: str
    weeks: tuple[float, ...]
    values: tuple[float, ...]


@dataclass(frozen=True)
class TwinTrajectory:
    twin: int
    weeks: tuple[float, ...]
    efw_g: tuple[float, ...]


def percentile_curves(
    table: Optional[WeightReferenceTable], displayed: Sequence[int]
) -> List[PercentileCurve]:
    """Reference EFW curves for the displayed percentiles, in display order.

    Columns are matched on their label rounded to the nearest integer;
    displayed percentiles with no matching column are skipped.
    """
    if table is None or table.is_empty:
        return []

    column_for: Dict[int, int] = {}
    for idx, p in enumerate(table.percentiles):
        if not np.isnan(p):
            # half-up, so a 2.5 label is drawn as the 3rd percentile
            column_for[int(np.floor(p + 0.5))] = idx

    curves: List[PercentileCurve] = []
    for p in displayed:
        idx = column_for.get(int(p))
        if idx is None:
            continue
        curves.append(
            PercentileCurve(
                percentile=int(p),
                label=f"{int(p)}th percentile",
                weeks=table.weeks,
                values=table.data[idx],
            )
        )
    return curves


def twin_trajectories(points: Iterable[ChartPoint]) -> Dict[int, TwinTrajectory]:
    """Group chart points by twin, each sorted by gestational age."""
    grouped: Dict[int, list[ChartPoint]] = defaultdict(list)
    for pt in points:
        grouped[pt.twin].append(pt)

    out: Dict[int, TwinTrajectory] = {}
    for twin in sorted(grouped):
        pts = sorted(grouped[twin], key=lambda p: p.gestational_age_weeks)
        out[twin] = TwinTrajectory(
            twin=twin,
            weeks=tuple(p.gestational_age_weeks for p in pts),
            efw_g=tuple(p.efw_g for p in pts),
        )
    return out


def curves_frame(curves: Sequence[PercentileCurve]) -> pd.DataFrame:
    rows = [
        {"series": c.label, "gestational_age_weeks": w, "value": v}
        for c in curves
        for w, v in zip(c.weeks, c.values)
    ]
    return pd.DataFrame(rows, columns=["series", "gestational_age_weeks", "value"])
