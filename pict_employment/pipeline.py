"""Core projections: reshape the observation table for each chart view.

All five projections read the same :class:`~.table.ObservationTable`
and are independent of each other:

* :func:`project_composition` -- full-time/part-time split per country in
  its latest year (comparison bar).
* :func:`project_time_series` -- total employment per country per year
  (trend lines).
* :func:`project_age_breakdown` -- full-time/part-time split per age
  bracket for one country's latest year (age composition).
* :func:`project_gender_trend` -- male/female employment per year for one
  country (gender disparity).
* :func:`project_ratio_trend` -- full-time and part-time shares per year
  for one country (ratio trend).

Projections never raise for data conditions.  Per-country projections
return ``None`` when the country code is not in the table and a record
with an empty list when the country is known but nothing qualifies.
Additional helpers flatten records into DataFrames for plotting and CSV
export.
"""

from __future__ import annotations

from .config import TIME_SERIES_MIN_POINTS
from .models import (
    AgeBracket,
    AgeBreakdownRecord,
    CompositionRecord,
    EmploymentStatus,
    GenderPoint,
    GenderTrendRecord,
    RatioPoint,
    RatioTrendRecord,
    Sex,
    TimeSeriesPoint,
    TimeSeriesRecord,
)
from .table import ObservationTable

from dataclasses import asdict
from typing import Iterable, List, Optional, Sequence

import logging
import pandas as pd

# Module‑level logger
logger = logging.getLogger(__name__)

FULL_TIME = EmploymentStatus.FULL_TIME.value
PART_TIME = EmploymentStatus.PART_TIME.value
STATUS_TOTAL = EmploymentStatus.TOTAL.value


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def resolve_latest_year(df: pd.DataFrame) -> Optional[int]:
    """Return the most recent year in ``df``, or ``None`` if it has no rows.

    ``None`` is distinct from any real year so callers can short-circuit
    instead of building a snapshot for a spurious year.
    """
    if df.empty:
        return None
    return int(df["year"].max())


def _sex_total(df: pd.DataFrame) -> pd.DataFrame:
    return df[df["sex"] == Sex.TOTAL.value]


def _status_sums(df: pd.DataFrame, key: str, statuses: Sequence[str]) -> pd.DataFrame:
    """Sum ``value`` per ``key`` with one column per employment status.

    Only rows whose status is in ``statuses`` contribute.  Missing
    combinations are zero, and keys keep their order of first appearance.
    """
    subset = df[df["employment_status"].isin(statuses)]
    if subset.empty:
        return pd.DataFrame(columns=list(statuses), dtype=float)
    sums = (
        subset.groupby([key, "employment_status"], sort=False)["value"]
        .sum()
        .unstack("employment_status", fill_value=0.0)
    )
    order = pd.unique(subset[key])
    sums = sums.reindex(index=order, columns=list(statuses), fill_value=0.0)
    sums.columns.name = None
    return sums.astype(float)


def _age_total(table: ObservationTable, df: pd.DataFrame) -> pd.DataFrame:
    return df[df["age_group"].isin(table.vocabulary.age_total)]


def _split_rows(table: ObservationTable, df: pd.DataFrame) -> pd.DataFrame:
    """Full-time/part-time rows to sum, one age level per country.

    A country's all-ages rows are used when it has any; otherwise its
    bracket rows stand in for them.
    """
    split = df[df["employment_status"].isin([FULL_TIME, PART_TIME])]
    all_ages = split["age_group"].isin(table.vocabulary.age_total)
    has_all_ages = all_ages.groupby(split["country_code"]).transform("any")
    return split[all_ages | ~has_all_ages.astype(bool)]


# ---------------------------------------------------------------------------
# Composition (comparison bar)
# ---------------------------------------------------------------------------


def project_composition(table: ObservationTable) -> List[CompositionRecord]:
    """Full-time/part-time totals per country in that country's latest year.

    Latest years are resolved per country over ``sex == Total`` rows.  The
    split is summed over all-ages rows when the country reports them, so
    age brackets are not added on top of the total they break down;
    countries that only report brackets are summed over those.
    Countries whose latest-year split sums to zero are dropped, including
    those that only report an all-status total.  Records are sorted by
    total employment, largest first.
    """
    totals = _sex_total(table.frame)
    if totals.empty:
        return []

    latest = totals.groupby("country_code")["year"].transform("max")
    snapshot = totals[totals["year"] == latest]
    years = snapshot.groupby("country_code")["year"].first()
    sums = _status_sums(_split_rows(table, snapshot), "country_code", [FULL_TIME, PART_TIME])

    records: List[CompositionRecord] = []
    for code, row in sums.iterrows():
        full_time, part_time = float(row[FULL_TIME]), float(row[PART_TIME])
        total = full_time + part_time
        if total <= 0:
            continue
        records.append(
            CompositionRecord(
                country_code=code,
                country_name=table.country_name(code) or code,
                year=int(years[code]),
                full_time=full_time,
                part_time=part_time,
                total_employed=total,
            )
        )

    records.sort(key=lambda r: (-r.total_employed, r.country_name, r.country_code))
    logger.debug("Composition: %d countries with a full-time/part-time split", len(records))
    return records


# ---------------------------------------------------------------------------
# Time series (trend lines)
# ---------------------------------------------------------------------------


def project_time_series(
    table: ObservationTable, *, min_points: int = TIME_SERIES_MIN_POINTS
) -> List[TimeSeriesRecord]:
    """Total employment per country per year.

    Only aggregate rows are used (sex, age and employment status all
    ``Total``) so that breakdown rows are never added on top of the total
    they already belong to.  Same-year duplicates are summed and
    non-positive values are not plotted.

    Parameters
    ----------
    table : ObservationTable
        Parsed observations.
    min_points : int, optional
        Countries with fewer yearly points are left out.  Defaults to
        ``config.TIME_SERIES_MIN_POINTS``.

    Returns
    -------
    List[TimeSeriesRecord]
        One record per country, sorted by country name, each with points
        in ascending year order.
    """
    df = _age_total(table, _sex_total(table.frame))
    df = df[(df["employment_status"] == STATUS_TOTAL) & (df["value"] > 0)]
    if df.empty:
        return []

    yearly = (
        df.groupby(["country_code", "year"], as_index=False)["value"]
        .sum()
        .sort_values(["country_code", "year"])
    )

    records: List[TimeSeriesRecord] = []
    for code, group in yearly.groupby("country_code", sort=False):
        points = [
            TimeSeriesPoint(year=int(year), value=float(value))
            for year, value in zip(group["year"], group["value"])
        ]
        if len(points) < min_points:
            continue
        records.append(
            TimeSeriesRecord(
                country_code=code,
                country_name=table.country_name(code) or code,
                points=points,
            )
        )

    records.sort(key=lambda r: (r.country_name, r.country_code))
    logger.debug("Time series: %d countries (min_points=%d)", len(records), min_points)
    return records


# ---------------------------------------------------------------------------
# Age breakdown
# ---------------------------------------------------------------------------


def project_age_breakdown(
    table: ObservationTable, country_code: str
) -> Optional[AgeBreakdownRecord]:
    """Full-time/part-time split per age bracket in the country's latest year.

    The all-ages code is excluded so brackets are not double counted.
    Codes missing from the label table are shown verbatim, and brackets
    with no full-time or part-time employment are dropped.

    Returns ``None`` if the country is unknown or has no ``sex == Total``
    rows; otherwise a record whose ``brackets`` may be empty.
    """
    rows = table.country(country_code)
    if rows is None:
        return None

    totals = _sex_total(rows)
    year = resolve_latest_year(totals)
    if year is None:
        logger.warning("Age breakdown: no sex-total rows for %s", country_code)
        return None

    snapshot = totals[totals["year"] == year]
    by_age = snapshot[~snapshot["age_group"].isin(table.vocabulary.age_total)]
    sums = _status_sums(by_age, "age_group", [FULL_TIME, PART_TIME])

    brackets = [
        AgeBracket(
            age_code=code,
            age_group=table.vocabulary.age_label(code),
            full_time=float(row[FULL_TIME]),
            part_time=float(row[PART_TIME]),
        )
        for code, row in sums.iterrows()
        if row[FULL_TIME] > 0 or row[PART_TIME] > 0
    ]
    if not brackets:
        logger.info("Age breakdown: no brackets for %s in %d", country_code, year)

    return AgeBreakdownRecord(
        country_code=country_code,
        country_name=table.country_name(country_code) or country_code,
        year=year,
        brackets=brackets,
    )


# ---------------------------------------------------------------------------
# Gender trend
# ---------------------------------------------------------------------------


def project_gender_trend(
    table: ObservationTable,
    country_code: str,
    employment_status: EmploymentStatus | str = EmploymentStatus.TOTAL,
) -> Optional[GenderTrendRecord]:
    """Male and female employment per year for one country, all ages.

    Parameters
    ----------
    table : ObservationTable
        Parsed observations.
    country_code : str
        Country to project.
    employment_status : EmploymentStatus or str, optional
        Which status to chart (full-time, part-time or total).

    Returns
    -------
    Optional[GenderTrendRecord]
        ``None`` if the country is unknown.  Years where both male and
        female values are zero are omitted, so ``points`` may be empty.
    """
    status = EmploymentStatus.parse(employment_status)
    rows = table.country(country_code)
    if rows is None:
        return None

    subset = _age_total(table, rows)
    subset = subset[
        (subset["employment_status"] == status.value)
        & subset["sex"].isin([Sex.MALE.value, Sex.FEMALE.value])
    ]

    points: List[GenderPoint] = []
    if not subset.empty:
        sums = (
            subset.groupby(["year", "sex"])["value"]
            .sum()
            .unstack("sex", fill_value=0.0)
            .reindex(columns=[Sex.MALE.value, Sex.FEMALE.value], fill_value=0.0)
            .sort_index()
        )
        points = [
            GenderPoint(year=int(year), male=float(male), female=float(female))
            for year, male, female in zip(
                sums.index, sums[Sex.MALE.value], sums[Sex.FEMALE.value]
            )
            if male > 0 or female > 0
        ]
    if not points:
        logger.info("Gender trend: nothing to plot for %s (%s)", country_code, status.value)

    return GenderTrendRecord(
        country_code=country_code,
        country_name=table.country_name(country_code) or country_code,
        employment_status=status,
        points=points,
    )


# ---------------------------------------------------------------------------
# Ratio trend
# ---------------------------------------------------------------------------


def _ratio_point(year: int, full_time: float, part_time: float, total: float) -> Optional[RatioPoint]:
    effective_total = total if total > 0 else full_time + part_time
    if effective_total <= 0:
        return None

    full_time_pct = full_time / effective_total * 100
    part_time_pct = part_time / effective_total * 100
    if full_time_pct == 0 and part_time_pct == 0:
        return None
    # FT + PT larger than the reported total means a malformed source row.
    if full_time_pct > 100 or part_time_pct > 100:
        return None

    return RatioPoint(
        year=year,
        full_time_count=full_time,
        part_time_count=part_time,
        effective_total=effective_total,
        full_time_pct=full_time_pct,
        part_time_pct=part_time_pct,
        ratio=full_time / part_time if part_time > 0 else None,
    )


def project_ratio_trend(
    table: ObservationTable, country_code: str
) -> Optional[RatioTrendRecord]:
    """Full-time and part-time shares of employment per year for one country.

    Shares are taken against the explicit all-status total when it is
    positive, otherwise against full-time plus part-time.  Years with no
    usable denominator, with both shares zero, or with a share above 100
    are skipped.  ``ratio`` (full-time per part-time worker) is ``None``
    for years without part-time employment.

    Returns ``None`` if the country is unknown.
    """
    rows = table.country(country_code)
    if rows is None:
        return None

    subset = _age_total(table, _sex_total(rows))
    sums = _status_sums(subset, "year", [FULL_TIME, PART_TIME, STATUS_TOTAL]).sort_index()

    points: List[RatioPoint] = []
    for year, row in sums.iterrows():
        point = _ratio_point(
            int(year), float(row[FULL_TIME]), float(row[PART_TIME]), float(row[STATUS_TOTAL])
        )
        if point is None:
            logger.debug("Ratio trend: skipped %s %s", country_code, year)
            continue
        points.append(point)

    return RatioTrendRecord(
        country_code=country_code,
        country_name=table.country_name(country_code) or country_code,
        points=points,
    )


# ---------------------------------------------------------------------------
# Frame helpers
# ---------------------------------------------------------------------------


def composition_frame(records: Iterable[CompositionRecord]) -> pd.DataFrame:
    """Composition records as a DataFrame with percentage share columns."""
    rows = [
        {
            **asdict(r),
            "full_time_pct": r.full_time_pct,
            "part_time_pct": r.part_time_pct,
        }
        for r in records
    ]
    columns = [
        "country_code",
        "country_name",
        "year",
        "full_time",
        "part_time",
        "total_employed",
        "full_time_pct",
        "part_time_pct",
    ]
    return pd.DataFrame(rows, columns=columns)


def points_frame(records: Iterable[object], attr: str = "points") -> pd.DataFrame:
    """Flatten the nested list ``attr`` of each record into long format.

    Each output row carries the record's scalar fields (country code,
    name, ...) followed by the fields of one nested item.
    """
    rows = []
    for record in records:
        if record is None:
            continue
        outer = {
            key: (value.value if isinstance(value, EmploymentStatus) else value)
            for key, value in asdict(record).items()
            if key != attr
        }
        for item in getattr(record, attr):
            inner = asdict(item)
            if isinstance(item, RatioPoint):
                inner["ratio_defined"] = item.ratio_defined
            rows.append({**outer, **inner})
    return pd.DataFrame(rows)
