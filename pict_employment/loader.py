"""Raw table parser: read the Pacific Data Hub CSV into typed observations.

The extract is a wide SDMX export with one row per
country x year x sex x age x full-time/part-time combination, plus a
long tail of label and metadata columns that the dashboard ignores.
This module keeps only the seven columns the projections rely on and
normalises them:

* ``TIME_PERIOD`` becomes an integer ``year``; rows whose period has no
  leading integer are dropped, because year is the primary grouping key.
* ``OBS_VALUE`` becomes a float; blanks and junk become ``0`` so the row
  still occupies its group.
* ``SEX`` and ``FTPT`` codes are mapped to :class:`~.models.Sex` and
  :class:`~.models.EmploymentStatus` values through a
  :class:`~.config.CodeVocabulary`.  Unknown codes map to missing and
  never match a projection filter.

The primary entry point is :func:`load_observations`, which wraps every
failure in a single :class:`DataLoadError`.
"""

from __future__ import annotations

from .config import (
    COL_AGE,
    COL_COUNTRY_CODE,
    COL_COUNTRY_NAME,
    COL_PERIOD,
    COL_SEX,
    COL_STATUS,
    COL_VALUE,
    DATA_SOURCE,
    DEFAULT_SEP,
    DEFAULT_VOCABULARY,
    REQUIRED_COLUMNS,
    CodeVocabulary,
)
from .models import EmploymentStatus, Sex

from io import StringIO
from pathlib import Path
from typing import Dict, List, TextIO, Union

import logging
import pandas as pd
import requests

logger = logging.getLogger(__name__)

Source = Union[str, Path, TextIO]

OBSERVATION_COLUMNS: List[str] = [
    "country_code",
    "country_name",
    "year",
    "sex",
    "age_group",
    "employment_status",
    "value",
]

# Periods whose leading integer falls outside this range are unparsable.
MIN_YEAR = 1
MAX_YEAR = 9999


class DataLoadError(RuntimeError):
    """The source could not be fetched or parsed into an observation table."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def ensure_columns(df: pd.DataFrame, required: List[str]) -> None:
    """Raise an error if the DataFrame lacks any of the required columns."""
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise KeyError(f"Missing expected columns: {missing}")


def is_url(source: Source) -> bool:
    return isinstance(source, str) and source.lower().startswith(
        ("http://", "https://")
    )


def _clean_text(series: pd.Series) -> pd.Series:
    return series.fillna("").astype(str).str.strip()


def parse_year(series: pd.Series) -> pd.Series:
    """Parse period text to nullable integer years.

    The leading integer of the period is used (``"2019"`` and
    ``"2019-Q1"`` both give 2019); anything without one, or outside
    ``MIN_YEAR``..``MAX_YEAR``, becomes ``<NA>``.
    """
    digits = _clean_text(series).str.extract(r"^(\d+)", expand=False)
    years = pd.to_numeric(digits, errors="coerce")
    years = years.where(years.between(MIN_YEAR, MAX_YEAR))
    return years.astype("Int64")


def parse_value(series: pd.Series) -> pd.Series:
    """Parse observation text to floats, coercing failures to zero.

    Thousands separators are stripped first (``"1,204"`` -> ``1204.0``).
    Counts are non-negative, so negative and infinite values are zeroed too.
    """
    text = _clean_text(series).str.replace(",", "", regex=False)
    values = pd.to_numeric(text, errors="coerce").fillna(0.0).astype(float)
    return values.mask((values < 0) | (values == float("inf")), 0.0)


def _sex_codes(vocabulary: CodeVocabulary) -> Dict[str, str]:
    return {
        vocabulary.sex_male: Sex.MALE.value,
        vocabulary.sex_female: Sex.FEMALE.value,
        vocabulary.sex_total: Sex.TOTAL.value,
    }


def _status_codes(vocabulary: CodeVocabulary) -> Dict[str, str]:
    return {
        vocabulary.full_time: EmploymentStatus.FULL_TIME.value,
        vocabulary.part_time: EmploymentStatus.PART_TIME.value,
        vocabulary.status_total: EmploymentStatus.TOTAL.value,
    }


# ---------------------------------------------------------------------------
# Readers
# ---------------------------------------------------------------------------


def fetch_text(url: str, timeout: float = 30) -> str:
    """Download a remote CSV and return its decoded text."""
    logger.info("Fetching employment data from %s", url)
    response = requests.get(url, timeout=timeout)
    response.raise_for_status()
    return response.text


def read_source(source: Source = DATA_SOURCE, sep: str = DEFAULT_SEP) -> pd.DataFrame:
    """Read the raw CSV as untyped text columns.

    Parameters
    ----------
    source : str, Path or text stream
        Local path, URL or an already-open text stream.
    sep : str, optional
        Column delimiter; defaults to ``","``.

    Returns
    -------
    pd.DataFrame
        Every column as ``str``; blank cells are empty strings, not NaN.
    """
    if is_url(source):
        source = StringIO(fetch_text(source))  # type: ignore[arg-type]
    return pd.read_csv(source, sep=sep, dtype=str, keep_default_na=False)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


def parse_observations(
    raw: pd.DataFrame, vocabulary: CodeVocabulary = DEFAULT_VOCABULARY
) -> pd.DataFrame:
    """Normalise the raw extract into one typed row per observation.

    Parameters
    ----------
    raw : pd.DataFrame
        Output of :func:`read_source`.
    vocabulary : CodeVocabulary, optional
        Code values used by the extract.

    Returns
    -------
    pd.DataFrame
        Columns ``country_code``, ``country_name``, ``year`` (``Int64``),
        ``sex``, ``age_group`` (raw code), ``employment_status`` and
        ``value`` (float).  Rows without a usable year or country code
        are dropped.  Blank country names stay ``""``.
    """
    ensure_columns(raw, REQUIRED_COLUMNS)

    df = pd.DataFrame(
        {
            "country_code": _clean_text(raw[COL_COUNTRY_CODE]),
            "country_name": _clean_text(raw[COL_COUNTRY_NAME]),
            "year": parse_year(raw[COL_PERIOD]),
            "sex": _clean_text(raw[COL_SEX]).map(_sex_codes(vocabulary)),
            "age_group": _clean_text(raw[COL_AGE]),
            "employment_status": _clean_text(raw[COL_STATUS]).map(
                _status_codes(vocabulary)
            ),
            "value": parse_value(raw[COL_VALUE]),
        }
    )

    keep = df["year"].notna() & (df["country_code"] != "")
    dropped = int((~keep).sum())
    if dropped:
        logger.warning(
            "Dropped %d of %d rows without a valid year or country code",
            dropped,
            len(df),
        )
    df = df.loc[keep].reset_index(drop=True)
    df["year"] = df["year"].astype(int)
    return df[OBSERVATION_COLUMNS]


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def load_observations(
    source: Source = DATA_SOURCE,
    sep: str = DEFAULT_SEP,
    vocabulary: CodeVocabulary = DEFAULT_VOCABULARY,
) -> pd.DataFrame:
    """Read and parse the extract, failing as a whole or not at all.

    Raises
    ------
    DataLoadError
        If the source is unreachable, cannot be parsed, lacks a required
        column, or yields no usable rows.
    """
    label = source if isinstance(source, (str, Path)) else "<stream>"
    try:
        raw = read_source(source, sep=sep)
        observations = parse_observations(raw, vocabulary)
    except (OSError, requests.RequestException, pd.errors.ParserError, KeyError, ValueError) as exc:
        raise DataLoadError(f"Could not load employment data from {label}: {exc}") from exc

    if observations.empty:
        raise DataLoadError(f"No usable observations in {label}")

    logger.info(
        "Loaded %d observations for %d countries from %s",
        len(observations),
        observations["country_code"].nunique(),
        label,
    )
    return observations
