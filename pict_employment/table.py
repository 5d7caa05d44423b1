"""Grouped index over the parsed observations.

The table is built once after parsing and then only read.  Projections
ask it for one country's rows instead of re-scanning the whole extract
on every selection change.
"""

from __future__ import annotations

from typing import Dict, List, Optional

import pandas as pd

from .config import DEFAULT_VOCABULARY, CodeVocabulary
from .models import CountryOption


class ObservationTable:
    """Immutable snapshot of the observations, indexed by country code."""

    def __init__(
        self,
        frame: pd.DataFrame,
        vocabulary: CodeVocabulary = DEFAULT_VOCABULARY,
    ) -> None:
        self._frame = frame.reset_index(drop=True)
        self.vocabulary = vocabulary
        self._by_country: Dict[str, pd.DataFrame] = {}
        self._names: Dict[str, str] = {}
        for code, group in self._frame.groupby("country_code", sort=False):
            self._by_country[code] = group.reset_index(drop=True)
            names = group["country_name"]
            named = names[names != ""]
            self._names[code] = named.iloc[0] if not named.empty else code

    def __len__(self) -> int:
        return len(self._frame)

    def __contains__(self, code: object) -> bool:
        return code in self._by_country

    @property
    def frame(self) -> pd.DataFrame:
        """All observations; callers must not modify the returned frame."""
        return self._frame

    @property
    def country_codes(self) -> List[str]:
        """Country codes in order of first appearance in the source."""
        return list(self._by_country)

    def country(self, code: str) -> Optional[pd.DataFrame]:
        """Rows for one country, or ``None`` if the code is not in the data."""
        return self._by_country.get(code)

    def country_name(self, code: str) -> Optional[str]:
        """First non-empty display name recorded for ``code``."""
        return self._names.get(code)

    def country_options(self) -> List[CountryOption]:
        """Selector entries sorted by display name, then code."""
        options = [CountryOption(code, name) for code, name in self._names.items()]
        return sorted(options, key=lambda o: (o.name, o.code))
