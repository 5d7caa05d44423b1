"""
Configuration constants for the PICT employment data pipeline.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

# ======================================================
#  DATA SOURCES / CONSTANTS
# ======================================================
# Pacific Data Hub extract: employed persons by full-time/part-time status,
# all urbanization and disability categories collapsed (`_T`).
DEFAULT_DATA_SOURCE: str = (
    "https://stats-sdmx-disseminate.pacificdata.org/rest/data/"
    "SPC,DF_EMPLOYED_FTPT,1.0/A....._T._T.?format=csvfilewithlabels"
)
DATA_SOURCE: str = os.getenv("PICT_DATA_SOURCE", DEFAULT_DATA_SOURCE)

DEFAULT_SEP: str = ","

# Literal CSV header names; renaming one upstream is a breaking change.
COL_COUNTRY_CODE: str = "GEO_PICT"
COL_COUNTRY_NAME: str = "Pacific Island Countries and territories"
COL_PERIOD: str = "TIME_PERIOD"
COL_SEX: str = "SEX"
COL_AGE: str = "AGE"
COL_STATUS: str = "FTPT"
COL_VALUE: str = "OBS_VALUE"

REQUIRED_COLUMNS: List[str] = [
    COL_COUNTRY_CODE,
    COL_COUNTRY_NAME,
    COL_PERIOD,
    COL_SEX,
    COL_AGE,
    COL_STATUS,
    COL_VALUE,
]

# ======================================================
#  CODE VOCABULARIES
# ======================================================
AGE_GROUP_LABELS: Dict[str, str] = {
    "Y15T24": "15-24 years",
    "Y25T54": "25-54 years",
    "Y55T64": "55-64 years",
    "Y65T999": "65-99 years",
    "Y65+": "65+ years",
    "Y15T19": "15-19 years",
    "Y20T24": "20-24 years",
    "Y15T29": "15-29 years",
    "Y25+": "25+ years",
    "Y30T34": "30-34 years",
    "Y35T39": "35-39 years",
    "Y40T44": "40-44 years",
    "Y45T49": "45-49 years",
    "Y50T54": "50-54 years",
    "Y55T59": "55-59 years",
    "Y60T64": "60-64 years",
}


@dataclass(frozen=True)
class CodeVocabulary:
    """Coded values used by the source extract.

    The defaults match the SDMX codes published on the Pacific Data Hub.
    Inject a different instance when loading an extract that uses another
    coding; nothing downstream compares against literal strings.

    Attributes
    ----------
    full_time, part_time, status_total : str
        ``FTPT`` codes for full-time, part-time and the all-status aggregate.
    sex_male, sex_female, sex_total : str
        ``SEX`` codes for the binary breakdown and its aggregate.
    age_total : tuple of str
        ``AGE`` codes meaning "all ages"; excluded from bracket breakdowns.
    age_labels : mapping
        Age code -> display label.  Unknown codes are shown verbatim.
    """

    full_time: str = "FT"
    part_time: str = "PT"
    status_total: str = "_T"
    sex_male: str = "M"
    sex_female: str = "F"
    sex_total: str = "_T"
    age_total: Tuple[str, ...] = ("_T", "TOTAL")
    age_labels: Mapping[str, str] = field(
        default_factory=lambda: dict(AGE_GROUP_LABELS)
    )

    def age_label(self, code: str) -> str:
        return self.age_labels.get(code, code)


DEFAULT_VOCABULARY: CodeVocabulary = CodeVocabulary()

# ======================================================
#  PIPELINE POLICY
# ======================================================
# Countries need at least this many positive yearly points to appear in
# the trend-line view.
TIME_SERIES_MIN_POINTS: int = 1

# ======================================================
#  UI DEFAULTS
# ======================================================
STATUS_OPTIONS: List[Tuple[str, str]] = [
    ("Total employment", "total"),
    ("Full-time", "full_time"),
    ("Part-time", "part_time"),
]

DEFAULT_STATUS: str = "total"
DEFAULT_COUNTRY_HINT: str = "tonga"
ALL_COUNTRIES: str = "all"

# Number of countries shown in the diverging composition bar.
DIVERGING_TOP_N: int = 12
