import math
from types import MappingProxyType

import numpy as np
import pytest

from src.models.growth.twin_percentiles import (
    nearest_ga_key,
    nearest_week_index,
    percentile_for_circumference,
    percentile_for_weight,
)
from src.models.growth.twin_reference import (
    WeightReferenceTable,
    load_circumference_reference,
    load_weight_reference,
)


# ---------- weight curves ----------

def test_weight_interpolates_between_curves(week20_table):
    # 50 + (400-350)/(450-350) * (90-50)
    assert percentile_for_weight(week20_table, 20, 400) == pytest.approx(70.0)


def test_weight_clamps_below_lowest_curve(week20_table):
    assert percentile_for_weight(week20_table, 20, 300) == 50.0
    assert percentile_for_weight(week20_table, 20, 350) == 50.0


def test_weight_clamps_above_highest_curve(week20_table):
    assert percentile_for_weight(week20_table, 20, 450) == 90.0
    assert percentile_for_weight(week20_table, 20, 5000) == 90.0


def test_weight_exact_match_returns_tabulated_percentile(efw_table):
    assert percentile_for_weight(efw_table, 21, 400) == pytest.approx(50.0)
    assert percentile_for_weight(efw_table, 22, 460) == pytest.approx(50.0)


def test_weight_uses_nearest_week_row(efw_table):
    # 21.4 -> week 21 row (340/400/500)
    assert percentile_for_weight(efw_table, 21.4, 450) == pytest.approx(70.0)
    # 21.6 -> week 22 row (390/460/560)
    assert percentile_for_weight(efw_table, 21.6, 460) == pytest.approx(50.0)
    # far outside the table still maps onto the closest row
    assert percentile_for_weight(efw_table, 40, 560) == pytest.approx(90.0)


def test_weight_monotonic_in_measurement(efw_table):
    grams = np.linspace(200, 700, 101)
    pct = [percentile_for_weight(efw_table, 21, g) for g in grams]
    assert all(b >= a for a, b in zip(pct, pct[1:]))
    assert pct[0] == pytest.approx(10.0)
    assert pct[-1] == pytest.approx(90.0)


def test_weight_with_ordinal_headers(make_csv):
    p = make_csv("efw.csv", "ga,10th,50th,90th\n20,300,350,450\n")
    t = load_weight_reference(p)
    assert percentile_for_weight(t, 20, 400) == pytest.approx(70.0)


@pytest.mark.parametrize("measurement", [0, -5, float("nan"), None])
def test_weight_no_result_for_missing_measurement(week20_table, measurement):
    assert percentile_for_weight(week20_table, 20, measurement) is None


def test_weight_no_result_without_table():
    assert percentile_for_weight(None, 20, 400) is None
    empty = WeightReferenceTable(weeks=(), percentiles=(), data=())
    assert percentile_for_weight(empty, 20, 400) is None


def test_weight_no_result_when_row_has_no_valid_pairs():
    t = WeightReferenceTable(
        weeks=(20.0,), percentiles=(float("nan"), 50.0), data=((300.0,), (float("nan"),))
    )
    assert percentile_for_weight(t, 20, 300) is None


def test_weight_ignores_nan_labels_and_cells():
    t = WeightReferenceTable(
        weeks=(20.0,),
        percentiles=(10.0, float("nan"), 50.0, 90.0),
        data=((300.0,), (999.0,), (float("nan"),), (500.0,)),
    )
    # only (10, 300) and (90, 500) remain
    assert percentile_for_weight(t, 20, 400) == pytest.approx(50.0)


def test_weight_resorts_pairs_by_value():
    # columns stored out of order; interpolation follows value order
    t = WeightReferenceTable(
        weeks=(20.0,), percentiles=(90.0, 10.0, 50.0), data=((450.0,), (300.0,), (350.0,))
    )
    assert percentile_for_weight(t, 20, 300) == 10.0
    assert percentile_for_weight(t, 20, 400) == pytest.approx(70.0)


def test_nearest_week_tie_goes_to_first_row():
    t = WeightReferenceTable(
        weeks=(20.0, 21.0), percentiles=(50.0,), data=((100.0, 200.0),)
    )
    assert nearest_week_index(t, 20.5) == 0
    unsorted = WeightReferenceTable(
        weeks=(21.0, 20.0), percentiles=(50.0,), data=((200.0, 100.0),)
    )
    assert nearest_week_index(unsorted, 20.5) == 0
    assert nearest_week_index(unsorted, 20.2) == 1


def test_nearest_week_without_table():
    assert nearest_week_index(None, 20) is None


# ---------- abdominal circumference ----------

def test_circumference_interpolates(ac_table):
    # week 21 row: 10->148, 50->158, 90->172
    assert percentile_for_circumference(ac_table, 21, 153) == pytest.approx(30.0)
    assert percentile_for_circumference(ac_table, 21, 165) == pytest.approx(70.0)


def test_circumference_clamps(ac_table):
    assert percentile_for_circumference(ac_table, 20, 100) == 10.0
    assert percentile_for_circumference(ac_table, 20, 140) == 10.0
    assert percentile_for_circumference(ac_table, 20, 165) == 90.0
    assert percentile_for_circumference(ac_table, 20, 300) == 90.0


def test_circumference_exact_match(ac_table):
    assert percentile_for_circumference(ac_table, 22, 167) == 50.0


def test_circumference_monotonic(ac_table):
    mm = np.linspace(130, 190, 61)
    pct = [percentile_for_circumference(ac_table, 22, x) for x in mm]
    assert all(b >= a for a, b in zip(pct, pct[1:]))


@pytest.mark.parametrize("measurement", [0, -1, float("nan"), None])
def test_circumference_no_result_for_missing_measurement(ac_table, measurement):
    assert percentile_for_circumference(ac_table, 21, measurement) is None


def test_circumference_no_result_without_table():
    assert percentile_for_circumference(None, 21, 150) is None
    assert percentile_for_circumference({}, 21, 150) is None


def test_circumference_empty_row():
    t = MappingProxyType({20.0: MappingProxyType({})})
    assert percentile_for_circumference(t, 20, 150) is None


def test_circumference_sorts_by_percentile_not_value():
    # stored with percentile keys out of order
    t = {20.0: {90.0: 165.0, 10.0: 140.0, 50.0: 150.0}}
    assert percentile_for_circumference(t, 20, 145) == pytest.approx(30.0)


def test_circumference_does_not_resort_non_monotonic_values():
    # values decrease with percentile: first value (10th) is the largest
    t = {20.0: {10.0: 170.0, 50.0: 150.0, 90.0: 160.0}}
    # at/below the 10th-percentile value -> 10, at/above the 90th value -> 90
    assert percentile_for_circumference(t, 20, 165) == 10.0
    # the weight engine would re-sort by value and interpolate; this one does not
    w = WeightReferenceTable(
        weeks=(20.0,), percentiles=(10.0, 50.0, 90.0), data=((170.0,), (150.0,), (160.0,))
    )
    assert percentile_for_weight(w, 20, 165) == pytest.approx(50.0)


def test_circumference_non_monotonic_row_uses_first_bracketing_pair():
    t = {20.0: {10.0: 140.0, 50.0: 180.0, 90.0: 160.0}}
    # 150 < 160 (last) and > 140 (first); bracket 140..180 exists
    assert percentile_for_circumference(t, 20, 150) == pytest.approx(20.0)
    t2 = {20.0: {10.0: 140.0, 50.0: 130.0, 90.0: 160.0}}
    # 150 falls between 130 and 160 -> bracketed by the 50th/90th pair
    assert percentile_for_circumference(t2, 20, 150) == pytest.approx(50 + 20 / 30 * 40)
    t3 = {20.0: {10.0: 140.0, 50.0: 200.0, 90.0: 120.0, 97.0: 210.0}}
    # 205: not <= 140, not >= 210; pairs (140,200) (200,120) (120,210) -> last brackets
    assert percentile_for_circumference(t3, 20, 205) == pytest.approx(90 + 85 / 90 * 7)


def test_nearest_ga_key_ties_go_to_lower_age():
    # rows stored out of order; ties resolve to the smaller GA key
    t = {21.0: {50.0: 1.0}, 20.0: {50.0: 1.0}, 22.0: {50.0: 1.0}}
    assert nearest_ga_key(t, 20.5) == 20.0
    assert nearest_ga_key(t, 21.5) == 21.0
    assert nearest_ga_key(t, 19) == 20.0
    assert nearest_ga_key(t, 30) == 22.0
    assert nearest_ga_key({}, 20) is None


def test_circumference_with_day_keys_uses_same_scale(make_csv):
    p = make_csv("ac_days.csv", "ga_days,50\n140,150\n147,158\n")
    t = load_circumference_reference(p)
    # keys are compared directly with the input age, whatever their unit
    assert nearest_ga_key(t, 145) == 147.0
    assert math.isclose(percentile_for_circumference(t, 145, 158), 50.0)
