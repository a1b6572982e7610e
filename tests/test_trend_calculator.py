"""Growth ranking tests: averages, growth, ranking order and month windows."""

import pytest

from trend_calendar.models import KeywordSeries
from trend_calendar.trend_calculator import (
    average_volume,
    growth_for,
    month_window,
    period_key,
    period_label,
    previous_months,
    rank_keywords,
    round_half_up,
    shift_month,
    trend_window,
)


def _series(keyword, **monthly):
    return KeywordSeries(keyword=keyword, monthly_data={k.replace("_", "-")[1:]: v for k, v in monthly.items()})


# ---------------------------------------------------------------------------
# Calendar helpers
# ---------------------------------------------------------------------------

def test_period_key_and_label_are_zero_padded():
    assert period_key(2025, 7) == "2025-07"
    assert period_label(2025, 7) == "2025.07"


@pytest.mark.parametrize("year,month,offset,expected", [
    (2025, 1, -1, (2024, 12)),
    (2025, 3, -5, (2024, 10)),
    (2024, 12, 1, (2025, 1)),
    (2025, 7, 0, (2025, 7)),
    (2025, 7, -24, (2023, 7)),
])
def test_shift_month_rolls_over_years(year, month, offset, expected):
    assert shift_month(year, month, offset) == expected


def test_month_window_is_oldest_first():
    assert month_window(2025, 2, 3) == [(2024, 12), (2025, 1), (2025, 2)]


# ---------------------------------------------------------------------------
# average_volume / growth_for
# ---------------------------------------------------------------------------

def test_average_excludes_zero_months():
    series = _series("k", _2025_01=0, _2025_02=0, _2025_03=100)
    assert average_volume(series) == 100.0


def test_average_of_empty_series_is_zero():
    assert average_volume(KeywordSeries(keyword="empty")) == 0.0


def test_all_zero_series_has_zero_growth_and_volume():
    series = _series("k", _2025_01=0, _2025_02=0)
    for year, month in [(2025, 1), (2025, 2), (2030, 12)]:
        record = growth_for(series, year, month)
        assert record.growth == 0
        assert record.volume == 0


def test_growth_against_positive_average(vat_series):
    record = growth_for(vat_series, 2025, 7)
    assert record.keyword == "부가세"
    assert record.volume == 5000
    assert record.growth == pytest.approx(400.0)


def test_missing_month_counts_as_zero_volume(vat_series):
    record = growth_for(vat_series, 2024, 1)
    assert record.volume == 0
    assert record.growth == pytest.approx(-100.0)


def test_growth_does_not_modify_series(vat_series):
    before = dict(vat_series.monthly_data)
    growth_for(vat_series, 2025, 7)
    previous_months(vat_series, 2025, 7)
    assert dict(vat_series.monthly_data) == before


# ---------------------------------------------------------------------------
# rank_keywords
# ---------------------------------------------------------------------------

def test_rank_sorts_by_growth_descending(dataset):
    ranking = rank_keywords(dataset, 2025, 7)
    assert [r.keyword for r in ranking] == ["부가세", "알바", "여행자보험"]
    assert ranking[0].growth > ranking[1].growth > ranking[2].growth


def test_rank_is_stable_for_equal_growth():
    dataset = {
        "c": _series("c", _2025_01=0),
        "a": _series("a", _2025_01=50, _2025_02=50),
        "b": _series("b"),
        "top": _series("top", _2025_01=10, _2025_02=30),
    }
    ranking = rank_keywords(dataset, 2025, 2)
    assert [r.keyword for r in ranking] == ["top", "c", "a", "b"]


def test_rank_returns_every_keyword():
    dataset = {f"kw{i}": _series(f"kw{i}", _2025_01=i) for i in range(30)}
    assert len(rank_keywords(dataset, 2025, 1)) == 30


def test_rank_recomputes_for_each_month(dataset):
    july = rank_keywords(dataset, 2025, 7)
    may = rank_keywords(dataset, 2025, 5)
    assert july[0].keyword == "부가세"
    assert may[0].keyword == "알바"


# ---------------------------------------------------------------------------
# previous_months / trend_window
# ---------------------------------------------------------------------------

def test_previous_months_rolls_over_year_boundary():
    series = _series("k", _2024_12=10, _2025_01=20)
    window = previous_months(series, 2025, 1, 6)
    assert [m.label for m in window] == ["2024.08", "2024.09", "2024.10", "2024.11", "2024.12", "2025.01"]
    assert [m.volume for m in window] == [0, 0, 0, 0, 10, 20]


def test_previous_months_keeps_zero_volumes(vat_series):
    window = previous_months(vat_series, 2025, 2)
    assert len(window) == 6
    assert window[-2].label == "2025.01"
    assert window[-2].volume == 0


def test_previous_months_custom_window(vat_series):
    window = previous_months(vat_series, 2025, 7, window_size=3)
    assert [m.volume for m in window] == [200, 200, 5000]


def test_trend_window_rows(dataset):
    rows = trend_window(dataset, ["알바", "없는키워드"], 2025, 7, months=3)
    assert [row["month"] for row in rows] == ["2025.05", "2025.06", "2025.07"]
    assert [row["period"] for row in rows] == ["2025-05", "2025-06", "2025-07"]
    assert [row["volumes"]["알바"] for row in rows] == [300, 200, 300]
    assert all(row["volumes"]["없는키워드"] == 0 for row in rows)


@pytest.mark.parametrize("keyword", ["month", "period", "volumes"])
def test_trend_window_keyword_cannot_clobber_row_fields(keyword):
    dataset = {keyword: _series(keyword, _2025_07=42)}
    row = trend_window(dataset, [keyword], 2025, 7, months=1)[0]
    assert row["month"] == "2025.07"
    assert row["period"] == "2025-07"
    assert row["volumes"] == {keyword: 42}


@pytest.mark.parametrize("value,expected", [
    (12.5, 13),
    (12.4, 12),
    (0.5, 1),
    (-12.5, -12),
    (-12.6, -13),
    (400.0, 400),
])
def test_round_half_up(value, expected):
    assert round_half_up(value) == expected
