from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict

import yaml

PROJECT_ROOT = Path(__file__).resolve().parents[1]
CONFIG_PATH = PROJECT_ROOT / "configs" / "config.yaml"

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"

DEFAULT_DISPLAYED_PERCENTILES = (3, 10, 50, 90, 97)
DEFAULT_CURVE_COLORS = ("#1976d2", "#fb8c00", "#8e24aa", "#00acc1", "#546e7a")
DEFAULT_TWIN_COLORS = {1: "#e53935", 2: "#43a047"}


def load_config(path: str | Path | None = None) -> dict:
    cfg_path = Path(path) if path is not None else CONFIG_PATH
    if not cfg_path.exists():
        raise FileNotFoundError(f"{cfg_path} not found")
    with cfg_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def resolve_path(p: str | Path) -> Path:
    """Relative config paths are anchored at the project root."""
    p = Path(p)
    return p if p.is_absolute() else PROJECT_ROOT / p


def configure_logging(level: str | int = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


@dataclass(frozen=True)
class CalculatorSettings:
    min_weeks: int = 14
    max_weeks: int = 41
    max_days: int = 6
    displayed_percentiles: tuple[int, ...] = DEFAULT_DISPLAYED_PERCENTILES
    curve_colors: tuple[str, ...] = DEFAULT_CURVE_COLORS
    twin_colors: Dict[int, str] = field(default_factory=lambda: dict(DEFAULT_TWIN_COLORS))
    x_title: str = "Gestational Age (weeks)"
    y_title: str = "Estimated Fetal Weight (grams)"

    @classmethod
    def from_config(cls, cfg: Dict[str, Any]) -> "CalculatorSettings":
        ga = cfg.get("gestational_age") or {}
        chart = cfg.get("chart") or {}
        defaults = cls()
        return cls(
            min_weeks=int(ga.get("min_weeks", defaults.min_weeks)),
            max_weeks=int(ga.get("max_weeks", defaults.max_weeks)),
            max_days=int(ga.get("max_days", defaults.max_days)),
            displayed_percentiles=tuple(
                int(p) for p in chart.get("displayed_efw_percentiles", defaults.displayed_percentiles)
            ),
            curve_colors=tuple(chart.get("curve_colors", defaults.curve_colors)),
            twin_colors={
                int(k): str(v) for k, v in (chart.get("twin_colors") or defaults.twin_colors).items()
            },
            x_title=chart.get("x_title", defaults.x_title),
            y_title=chart.get("y_title", defaults.y_title),
        )
