from typing import List, Literal, Optional

from pydantic import BaseModel, Field


TwinId = Literal[1, 2]


class TwinMeasurement(BaseModel):
    twin: TwinId
    efw_g: Optional[float] = Field(None, description="Estimated fetal weight (grams)")
    ac_mm: Optional[float] = Field(None, description="Abdominal circumference (mm)")


class ScanInput(BaseModel):
    """One measurement block: a gestational age and both twins' biometry."""

    ga_weeks: Optional[float] = None
    ga_days: Optional[float] = None
    twins: List[TwinMeasurement] = Field(default_factory=list)


class TwinPercentiles(BaseModel):
    twin: TwinId
    efw_g: Optional[float] = None
    ac_mm: Optional[float] = None
    efw_percentile: Optional[float] = None
    ac_percentile: Optional[float] = None


class ChartPoint(BaseModel):
    twin: TwinId
    gestational_age_weeks: float
    efw_g: float


class ScanResult(BaseModel):
    gestational_age_weeks: float
    twins: List[TwinPercentiles]
    discordancy_pct: Optional[float] = None
    chart_points: List[ChartPoint] = Field(default_factory=list)
