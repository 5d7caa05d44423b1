import csv
from io import StringIO
from typing import Dict, Iterable

import pytest

from pict_employment.loader import load_observations
from pict_employment.table import ObservationTable

HEADER = [
    "STRUCTURE",
    "FREQ",
    "GEO_PICT",
    "Pacific Island Countries and territories",
    "SEX",
    "AGE",
    "FTPT",
    "TIME_PERIOD",
    "OBS_VALUE",
]

NAMES = {"TO": "Tonga", "FJ": "Fiji", "WS": "Samoa", "XX": "Nowhere"}


def row(code, year, sex="_T", age="_T", status="_T", value="0", name=None) -> Dict[str, str]:
    return {
        "STRUCTURE": "DATAFLOW",
        "FREQ": "A",
        "GEO_PICT": code,
        "Pacific Island Countries and territories": NAMES.get(code, code) if name is None else name,
        "SEX": sex,
        "AGE": age,
        "FTPT": status,
        "TIME_PERIOD": str(year),
        "OBS_VALUE": str(value),
    }


def make_csv(rows: Iterable[Dict[str, str]], header=HEADER) -> str:
    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=header, lineterminator="\n")
    writer.writeheader()
    for r in rows:
        writer.writerow({k: v for k, v in r.items() if k in header})
    return buffer.getvalue()


def make_table(rows: Iterable[Dict[str, str]]) -> ObservationTable:
    return ObservationTable(load_observations(StringIO(make_csv(rows))))


@pytest.fixture
def sample_rows():
    """Three countries covering the shapes the projections care about."""
    return [
        # Tonga: all-age totals and brackets, male/female, three years.
        row("TO", 2018, status="FT", value=900),
        row("TO", 2018, status="PT", value=100),
        row("TO", 2018, status="_T", value=1000),
        row("TO", 2019, status="FT", value=950),
        row("TO", 2019, status="PT", value=150),
        row("TO", 2019, status="_T", value=1100),
        row("TO", 2021, status="FT", value=1000),
        row("TO", 2021, status="PT", value=200),
        row("TO", 2021, status="_T", value=1200),
        row("TO", 2021, age="Y15T24", status="FT", value=300),
        row("TO", 2021, age="Y15T24", status="PT", value=120),
        row("TO", 2021, age="Y25T54", status="FT", value=600),
        row("TO", 2021, age="Y25T54", status="PT", value=60),
        row("TO", 2021, age="Y55T64", status="FT", value=0),
        row("TO", 2021, age="Y55T64", status="PT", value=0),
        row("TO", 2021, age="Y99X", status="FT", value=5),
        row("TO", 2019, age="Y15T24", status="FT", value=999),
        row("TO", 2018, sex="M", status="_T", value=600),
        row("TO", 2018, sex="F", status="_T", value=400),
        row("TO", 2021, sex="M", status="_T", value=700),
        row("TO", 2021, sex="F", status="_T", value=500),
        row("TO", 2021, sex="M", status="FT", value=650),
        row("TO", 2021, sex="F", status="FT", value=350),
        # Fiji: larger, only two years of totals.
        row("FJ", 2017, status="FT", value=200000),
        row("FJ", 2017, status="PT", value=50000),
        row("FJ", 2017, status="_T", value=250000),
        row("FJ", 2020, status="FT", value=210000),
        row("FJ", 2020, status="PT", value=40000),
        row("FJ", 2020, status="_T", value=250000),
        # Samoa: only an all-status total, no split.
        row("WS", 2020, status="_T", value=30000),
    ]


@pytest.fixture
def table(sample_rows):
    return make_table(sample_rows)
