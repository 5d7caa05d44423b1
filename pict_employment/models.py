"""
Data model for the employment projections.

Every projection returns immutable records built fresh from the parsed
observation table; nothing here is ever written back to the source.
Coded columns are normalised to the enums below while parsing, so the
projections compare against enum members rather than raw SDMX codes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional


class Sex(str, Enum):
    MALE = "male"
    FEMALE = "female"
    TOTAL = "total"


class EmploymentStatus(str, Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    TOTAL = "total"

    @classmethod
    def parse(cls, value: "EmploymentStatus | str") -> "EmploymentStatus":
        """Accept a member, its value (``"full_time"``) or its name (``"FULL_TIME"``)."""
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text in (member.value, member.name):
                return member
        raise ValueError(
            f"Unknown employment status {value!r}; "
            f"expected one of {[m.value for m in cls]}"
        )


@dataclass(frozen=True)
class CountryOption:
    code: str
    name: str


@dataclass(frozen=True)
class CompositionRecord:
    """Full-time/part-time split for one country in its latest year."""

    country_code: str
    country_name: str
    year: int
    full_time: float
    part_time: float
    total_employed: float

    @property
    def full_time_pct(self) -> float:
        return self.full_time / self.total_employed * 100 if self.total_employed else 0.0

    @property
    def part_time_pct(self) -> float:
        return self.part_time / self.total_employed * 100 if self.total_employed else 0.0


@dataclass(frozen=True)
class TimeSeriesPoint:
    year: int
    value: float


@dataclass(frozen=True)
class TimeSeriesRecord:
    country_code: str
    country_name: str
    points: List[TimeSeriesPoint] = field(default_factory=list)


@dataclass(frozen=True)
class AgeBracket:
    age_code: str
    age_group: str  # display label
    full_time: float
    part_time: float


@dataclass(frozen=True)
class AgeBreakdownRecord:
    country_code: str
    country_name: str
    year: int
    brackets: List[AgeBracket] = field(default_factory=list)


@dataclass(frozen=True)
class GenderPoint:
    year: int
    male: float
    female: float


@dataclass(frozen=True)
class GenderTrendRecord:
    country_code: str
    country_name: str
    employment_status: EmploymentStatus
    points: List[GenderPoint] = field(default_factory=list)


@dataclass(frozen=True)
class RatioPoint:
    """One year of the full-time/part-time ratio trend.

    ``ratio`` is ``None`` when there is no part-time employment to divide
    by; check ``ratio_defined`` rather than comparing against a number.
    """

    year: int
    full_time_count: float
    part_time_count: float
    effective_total: float
    full_time_pct: float
    part_time_pct: float
    ratio: Optional[float]

    @property
    def ratio_defined(self) -> bool:
        return self.ratio is not None


@dataclass(frozen=True)
class RatioTrendRecord:
    country_code: str
    country_name: str
    points: List[RatioPoint] = field(default_factory=list)
