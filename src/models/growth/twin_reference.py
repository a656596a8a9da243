from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import pandas as pd


logger = logging.getLogger(__name__)

QUANTILE_PREFIX = "q"

# leading number of a label or cell: "50th" -> 50, "12.5 mm" -> 12.5
_LEADING_NUMBER = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


class DataLoadError(Exception):
    """Reference dataset is missing, unreadable or has no usable rows."""


@dataclass(frozen=True)
class WeightReferenceTable:
    """
    Twin EFW percentile curves, one row per gestational week.

      - weeks[j]       : GA (weeks) of row j
      - percentiles[i] : percentile (0-100) of column i, NaN if the header was unparseable
      - data[i][j]     : value of percentile i at weeks[j] (NaN for blank/non-numeric cells)
    """

    weeks: tuple[float, ...]
    percentiles: tuple[float, ...]
    data: tuple[tuple[float, ...], ...]

    def __post_init__(self) -> None:
        if len(self.percentiles) != len(self.data):
            raise ValueError(
                f"percentiles/data length mismatch: {len(self.percentiles)} != {len(self.data)}"
            )
        for i, col in enumerate(self.data):
            if len(col) != len(self.weeks):
                raise ValueError(f"column {i} has {len(col)} values, expected {len(self.weeks)}")

    @property
    def is_empty(self) -> bool:
        return not self.weeks or not self.data

    def value_at(self, percentile: float, week: float) -> float:
        """Exact lookup of a tabulated value (first matching label and week)."""
        col = self.percentiles.index(percentile)
        row = self.weeks.index(week)
        return self.data[col][row]


# GA key -> {percentile: value}
CircumferenceReferenceTable = Mapping[float, Mapping[float, float]]


def parse_percentile_label(label: Any) -> float:
    """
    Normalize a column header to the 0-100 percentile scale.

      "50"    -> 50.0
      "50th"  -> 50.0
      "q0.5"  -> 50.0   (fractional quantile)
      "p50"   -> nan
    """
    if label is None:
        return float("nan")
    text = str(label).strip()
    if text.startswith(QUANTILE_PREFIX):
        num = _to_float(text[len(QUANTILE_PREFIX):])
        return num * 100.0 if math.isfinite(num) else float("nan")
    return _to_float(text)


def _to_float(value: Any) -> float:
    if value is None:
        return float("nan")
    m = _LEADING_NUMBER.match(str(value).strip())
    return float(m.group()) if m else float("nan")


def _read_raw(path: Path) -> pd.DataFrame:
    if not path.exists():
        raise DataLoadError(f"Reference file not found: {path}")
    try:
        raw = pd.read_csv(
            path,
            header=None,
            dtype=str,
            skip_blank_lines=True,
            keep_default_na=False,
        )
    except pd.errors.EmptyDataError as e:
        raise DataLoadError(f"{path.name} is empty") from e
    except (pd.errors.ParserError, UnicodeDecodeError, OSError) as e:
        raise DataLoadError(f"{path.name} could not be parsed: {e}") from e

    if raw.empty or raw.shape[1] < 2:
        raise DataLoadError(f"{path.name} has no percentile columns")
    return raw


def _numeric(col: pd.Series) -> pd.Series:
    return col.map(_to_float).astype(float)


def _split_header(raw: pd.DataFrame, path: Path) -> tuple[list[float], pd.Series, pd.DataFrame]:
    header = raw.iloc[0, 1:].tolist()
    percentiles = [parse_percentile_label(h) for h in header]

    body = raw.iloc[1:]
    ga = _numeric(body.iloc[:, 0])
    skipped = int(ga.isna().sum())
    if skipped:
        logger.debug("%s: skipped %d row(s) with non-numeric gestational age", path.name, skipped)

    keep = ga.notna()
    values = body.loc[keep, body.columns[1:]].apply(_numeric)
    if values.empty:
        raise DataLoadError(f"{path.name} has no data rows with a numeric gestational age")
    return percentiles, ga[keep].astype(float), values.astype(float)


def load_weight_reference(path: str | Path) -> WeightReferenceTable:
    """
    Load the twin EFW curves CSV.

    Expected layout: first column GA in weeks, header row of percentile labels
    ("3", "10", ... or "q0.03", "q0.1", ...), one row per week.
    """
    p = Path(path)
    raw = _read_raw(p)
    percentiles, weeks, values = _split_header(raw, p)

    table = WeightReferenceTable(
        weeks=tuple(float(w) for w in weeks),
        percentiles=tuple(percentiles),
        data=tuple(tuple(float(v) for v in values[c]) for c in values.columns),
    )
    logger.info(
        "Loaded EFW reference %s: %d weeks x %d percentile columns",
        p.name,
        len(table.weeks),
        len(table.percentiles),
    )
    return table


def load_circumference_reference(path: str | Path) -> CircumferenceReferenceTable:
    """
    Load the twin AC percentile CSV into {ga_key: {percentile: value}}.

    Cells with an unparseable label or value are dropped from their row.
    Repeated GA keys or labels: the later one wins.
    """
    p = Path(path)
    raw = _read_raw(p)
    percentiles, ga, values = _split_header(raw, p)

    table: dict[float, Mapping[float, float]] = {}
    for key, (_, row) in zip(ga, values.iterrows()):
        entries: dict[float, float] = {}
        for pct, val in zip(percentiles, row.tolist()):
            if math.isnan(pct) or math.isnan(val):
                continue
            entries[pct] = float(val)
        table[float(key)] = MappingProxyType(entries)

    logger.info("Loaded AC reference %s: %d gestational-age rows", p.name, len(table))
    return MappingProxyType(table)
