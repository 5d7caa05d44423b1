import pytest

from conftest import make_table, row
from pict_employment.models import EmploymentStatus
from pict_employment.pipeline import (
    composition_frame,
    points_frame,
    project_age_breakdown,
    project_composition,
    project_gender_trend,
    project_ratio_trend,
    project_time_series,
    resolve_latest_year,
)


# ---------------------------------------------------------------------------
# Latest year
# ---------------------------------------------------------------------------


def test_latest_year_of_empty_subset_is_none(table):
    assert resolve_latest_year(table.frame.iloc[0:0]) is None


def test_latest_year_picks_maximum(table):
    assert resolve_latest_year(table.country("TO")) == 2021


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def test_composition_uses_each_countrys_latest_year(table):
    records = {r.country_code: r for r in project_composition(table)}

    assert records["TO"].year == 2021
    assert records["FJ"].year == 2020
    # Age-bracket rows in the latest year do not add to the all-ages split.
    assert records["TO"].full_time == 1000
    assert records["TO"].part_time == 200


def test_composition_sum_invariant_and_order(table):
    records = project_composition(table)
    for r in records:
        assert r.total_employed == r.full_time + r.part_time
    totals = [r.total_employed for r in records]
    assert totals == sorted(totals, reverse=True)
    assert records[0].country_code == "FJ"


def test_composition_drops_countries_without_split(table):
    codes = [r.country_code for r in project_composition(table)]
    assert "WS" not in codes


def test_composition_latest_year_wins_with_zero_part_time():
    table = make_table(
        [
            row("TO", 2019, status="FT", value=100),
            row("TO", 2019, status="PT", value=0),
            row("TO", 2020, status="FT", value=120),
            row("TO", 2020, status="PT", value=0),
        ]
    )
    (record,) = project_composition(table)
    assert (record.year, record.full_time, record.part_time, record.total_employed) == (
        2020,
        120,
        0,
        120,
    )
    assert record.part_time_pct == 0
    assert record.full_time_pct == 100


def test_composition_sums_brackets_without_all_ages_rows():
    table = make_table(
        [
            row("TO", 2019, age="Y15T24", status="FT", value=100),
            row("TO", 2019, age="Y15T24", status="PT", value=0),
            row("TO", 2020, age="Y15T24", status="FT", value=120),
            row("TO", 2020, age="Y15T24", status="PT", value=0),
        ]
    )
    (record,) = project_composition(table)
    assert (record.year, record.full_time, record.part_time, record.total_employed) == (
        2020,
        120,
        0,
        120,
    )


def test_composition_age_level_chosen_per_country():
    table = make_table(
        [
            row("TO", 2020, status="FT", value=10),
            row("TO", 2020, age="Y15T24", status="FT", value=4),
            row("FJ", 2020, age="Y15T24", status="FT", value=3),
            row("FJ", 2020, age="Y25T54", status="PT", value=5),
        ]
    )
    records = {r.country_code: r for r in project_composition(table)}
    assert (records["TO"].full_time, records["TO"].part_time) == (10, 0)
    assert (records["FJ"].full_time, records["FJ"].part_time) == (3, 5)


def test_composition_ignores_sex_breakdown_for_latest_year():
    table = make_table(
        [
            row("TO", 2020, status="FT", value=10),
            row("TO", 2022, sex="M", status="FT", value=99),
        ]
    )
    (record,) = project_composition(table)
    assert record.year == 2020


def test_composition_frame_has_shares(table):
    frame = composition_frame(project_composition(table))
    fiji = frame.set_index("country_code").loc["FJ"]
    assert fiji["full_time_pct"] == pytest.approx(84.0)
    assert fiji["part_time_pct"] == pytest.approx(16.0)


# ---------------------------------------------------------------------------
# Time series
# ---------------------------------------------------------------------------


def test_time_series_uses_aggregate_rows_only(table):
    records = {r.country_code: r for r in project_time_series(table)}
    tonga = records["TO"]
    assert [(p.year, p.value) for p in tonga.points] == [
        (2018, 1000),
        (2019, 1100),
        (2021, 1200),
    ]


def test_time_series_sorted_by_name(table):
    names = [r.country_name for r in project_time_series(table)]
    assert names == ["Fiji", "Samoa", "Tonga"]


def test_time_series_sums_duplicate_years():
    table = make_table(
        [
            row("TO", 2020, value=10),
            row("TO", 2020, value=5),
            row("TO", 2019, value=1),
        ]
    )
    (record,) = project_time_series(table)
    assert [(p.year, p.value) for p in record.points] == [(2019, 1), (2020, 15)]


def test_time_series_min_points(table):
    codes = [r.country_code for r in project_time_series(table, min_points=2)]
    assert codes == ["FJ", "TO"]


def test_time_series_drops_countries_without_points():
    table = make_table([row("TO", 2020, value=0), row("FJ", 2020, value=3)])
    assert [r.country_code for r in project_time_series(table)] == ["FJ"]


def test_time_series_years_strictly_ascending(table):
    for record in project_time_series(table):
        years = [p.year for p in record.points]
        assert all(a < b for a, b in zip(years, years[1:]))


# ---------------------------------------------------------------------------
# Age breakdown
# ---------------------------------------------------------------------------


def test_age_breakdown_single_bracket():
    table = make_table(
        [
            row("TO", 2020, age="Y15T24", status="FT", value=100),
            row("TO", 2020, age="Y15T24", status="PT", value=50),
        ]
    )
    record = project_age_breakdown(table, "TO")
    assert record.year == 2020
    assert [(b.age_group, b.full_time, b.part_time) for b in record.brackets] == [
        ("15-24 years", 100, 50)
    ]


def test_age_breakdown_latest_year_labels_and_zero_drop(table):
    record = project_age_breakdown(table, "TO")
    assert record.year == 2021
    assert record.country_name == "Tonga"
    assert [b.age_group for b in record.brackets] == ["15-24 years", "25-54 years", "Y99X"]
    assert record.brackets[-1].age_code == "Y99X"
    assert record.brackets[-1].part_time == 0


def test_age_breakdown_unknown_country_is_none(table):
    assert project_age_breakdown(table, "NONEXISTENT") is None


def test_age_breakdown_only_total_age_rows_is_empty(table):
    record = project_age_breakdown(table, "FJ")
    assert record is not None
    assert record.year == 2020
    assert record.brackets == []


def test_age_breakdown_without_sex_total_rows_is_none():
    table = make_table([row("TO", 2020, sex="M", age="Y15T24", status="FT", value=1)])
    assert project_age_breakdown(table, "TO") is None


# ---------------------------------------------------------------------------
# Gender trend
# ---------------------------------------------------------------------------


def test_gender_trend_total_status(table):
    record = project_gender_trend(table, "TO", EmploymentStatus.TOTAL)
    assert record.employment_status is EmploymentStatus.TOTAL
    assert [(p.year, p.male, p.female) for p in record.points] == [
        (2018, 600, 400),
        (2021, 700, 500),
    ]


def test_gender_trend_status_is_selectable(table):
    record = project_gender_trend(table, "TO", "full_time")
    assert [(p.year, p.male, p.female) for p in record.points] == [(2021, 650, 350)]


def test_gender_trend_known_country_without_rows_is_empty(table):
    record = project_gender_trend(table, "FJ", EmploymentStatus.TOTAL)
    assert record is not None
    assert record.country_name == "Fiji"
    assert record.points == []


def test_gender_trend_unknown_country_is_none(table):
    assert project_gender_trend(table, "NONEXISTENT", EmploymentStatus.TOTAL) is None


def test_gender_trend_skips_all_zero_years():
    table = make_table(
        [
            row("TO", 2019, sex="M", value=0),
            row("TO", 2019, sex="F", value=0),
            row("TO", 2020, sex="F", value=4),
        ]
    )
    record = project_gender_trend(table, "TO")
    assert [(p.year, p.male, p.female) for p in record.points] == [(2020, 0, 4)]


def test_gender_trend_rejects_unknown_status(table):
    with pytest.raises(ValueError):
        project_gender_trend(table, "TO", "overtime")


# ---------------------------------------------------------------------------
# Ratio trend
# ---------------------------------------------------------------------------


def test_ratio_trend_prefers_explicit_total(table):
    record = project_ratio_trend(table, "FJ")
    first = record.points[0]
    assert first.year == 2017
    assert first.effective_total == 250000
    assert first.full_time_pct == pytest.approx(80.0)
    assert first.part_time_pct == pytest.approx(20.0)
    assert first.ratio == pytest.approx(4.0)


def test_ratio_trend_falls_back_to_sum_without_total():
    table = make_table(
        [row("TO", 2020, status="FT", value=30), row("TO", 2020, status="PT", value=10)]
    )
    (point,) = project_ratio_trend(table, "TO").points
    assert point.effective_total == 40
    assert point.full_time_pct == pytest.approx(75.0)


def test_ratio_trend_exclusions():
    table = make_table(
        [
            # Zero denominator.
            row("TO", 2015, status="FT", value=0),
            row("TO", 2015, status="PT", value=0),
            # Explicit total but no split: both shares zero.
            row("TO", 2016, status="_T", value=50),
            # Malformed: full-time exceeds reported total.
            row("TO", 2017, status="FT", value=80),
            row("TO", 2017, status="PT", value=30),
            row("TO", 2017, status="_T", value=70),
            # Valid.
            row("TO", 2018, status="FT", value=60),
            row("TO", 2018, status="PT", value=40),
        ]
    )
    record = project_ratio_trend(table, "TO")
    assert [p.year for p in record.points] == [2018]
    for p in record.points:
        assert p.effective_total > 0


def test_ratio_trend_flags_undefined_ratio():
    table = make_table([row("TO", 2020, status="FT", value=50)])
    (point,) = project_ratio_trend(table, "TO").points
    assert point.ratio is None
    assert point.ratio_defined is False
    assert point.full_time_pct == pytest.approx(100.0)


def test_ratio_trend_unknown_and_empty(table):
    assert project_ratio_trend(table, "NONEXISTENT") is None
    record = project_ratio_trend(table, "WS")
    assert record is not None
    assert record.points == []


def test_ratio_trend_ignores_age_brackets(table):
    record = project_ratio_trend(table, "TO")
    latest = record.points[-1]
    assert (latest.year, latest.full_time_count, latest.part_time_count) == (2021, 1000, 200)
    assert [p.year for p in record.points] == [2018, 2019, 2021]


# ---------------------------------------------------------------------------
# Determinism and frames
# ---------------------------------------------------------------------------


def test_projections_are_idempotent(table):
    assert project_composition(table) == project_composition(table)
    assert project_time_series(table) == project_time_series(table)
    assert project_age_breakdown(table, "TO") == project_age_breakdown(table, "TO")
    assert project_gender_trend(table, "TO") == project_gender_trend(table, "TO")
    assert project_ratio_trend(table, "TO") == project_ratio_trend(table, "TO")


def test_points_frame_flattens_records(table):
    frame = points_frame([project_ratio_trend(table, "TO"), None])
    assert list(frame["year"]) == [2018, 2019, 2021]
    assert set(frame["country_code"]) == {"TO"}
    assert frame["ratio_defined"].all()

    gender = points_frame([project_gender_trend(table, "TO")])
    assert set(gender["employment_status"]) == {"total"}
