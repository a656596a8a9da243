from __future__ import annotations

from typing import Dict, List, Optional

from app.config import CalculatorSettings
from app.schemas.twin import ChartPoint, ScanInput, ScanResult, TwinPercentiles
from app.services.reference_store import ReferenceBundle
from app.utils.gestational_age import gestational_age_weeks
from src.models.growth.discordancy import discordancy
from src.models.growth.twin_percentiles import (
    percentile_for_circumference,
    percentile_for_weight,
)


def _positive(x: Optional[float]) -> Optional[float]:
    return float(x) if x is not None and x > 0 else None


def evaluate_scan(
    references: Optional[ReferenceBundle],
    scan: ScanInput,
    settings: Optional[CalculatorSettings] = None,
) -> ScanResult:
    """Percentiles, discordancy and chart points for one measurement block.

    Missing references (still loading, or failed) give empty results rather
    than an error, so the UI can render before the tables arrive.
    """
    settings = settings or CalculatorSettings()
    ga = gestational_age_weeks(scan.ga_weeks, scan.ga_days)
    charted = settings.min_weeks <= ga <= settings.max_weeks
    efw_table = references.efw if references is not None else None
    ac_table = references.ac if references is not None else None

    twins: List[TwinPercentiles] = []
    efw_by_twin: Dict[int, float] = {}
    points: List[ChartPoint] = []

    for m in scan.twins:
        efw = _positive(m.efw_g)
        ac = _positive(m.ac_mm)
        efw_pct = None
        ac_pct = None
        if ga >= settings.min_weeks:
            if efw is not None:
                efw_pct = percentile_for_weight(efw_table, ga, efw)
            if ac is not None:
                ac_pct = percentile_for_circumference(ac_table, ga, ac)

        if efw is not None:
            efw_by_twin[m.twin] = efw
            if charted:
                points.append(ChartPoint(twin=m.twin, gestational_age_weeks=ga, efw_g=efw))

        twins.append(
            TwinPercentiles(
                twin=m.twin,
                efw_g=m.efw_g,
                ac_mm=m.ac_mm,
                efw_percentile=efw_pct,
                ac_percentile=ac_pct,
            )
        )

    return ScanResult(
        gestational_age_weeks=ga,
        twins=twins,
        discordancy_pct=discordancy(efw_by_twin.get(1), efw_by_twin.get(2)),
        chart_points=points,
    )


def evaluate_scans(
    references: Optional[ReferenceBundle],
    scans: List[ScanInput],
    settings: Optional[CalculatorSettings] = None,
) -> List[ScanResult]:
    return [evaluate_scan(references, s, settings) for s in scans]


def all_chart_points(results: List[ScanResult]) -> List[ChartPoint]:
    return [p for r in results for p in r.chart_points]
