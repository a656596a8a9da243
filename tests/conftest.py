from pathlib import Path

import pytest

from src.models.growth.twin_reference import (
    WeightReferenceTable,
    load_circumference_reference,
    load_weight_reference,
)


EFW_CSV = """\
ga,q0.1,q0.5,q0.9
20,300,350,450
21,340,400,500
22,390,460,560
"""

AC_CSV = """\
ga,10,50,90
20,140,150,165
21,148,158,172
22,156,167,180
"""


@pytest.fixture
def make_csv(tmp_path: Path):
    def _write(name: str, text: str) -> Path:
        p = tmp_path / name
        p.write_text(text, encoding="utf-8")
        return p

    return _write


@pytest.fixture
def efw_path(make_csv) -> Path:
    return make_csv("twin_growth_EFW.csv", EFW_CSV)


@pytest.fixture
def ac_path(make_csv) -> Path:
    return make_csv("twin_growth_AC.csv", AC_CSV)


@pytest.fixture
def efw_table(efw_path: Path) -> WeightReferenceTable:
    return load_weight_reference(efw_path)


@pytest.fixture
def ac_table(ac_path: Path):
    return load_circumference_reference(ac_path)


@pytest.fixture
def week20_table() -> WeightReferenceTable:
    # p50 -> 350 g, p90 -> 450 g at week 20
    return WeightReferenceTable(weeks=(20.0,), percentiles=(50.0, 90.0), data=((350.0,), (450.0,)))
