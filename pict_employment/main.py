"""
Command-line driver: load the employment extract, run every projection and
save the results as CSV files.

    python -m pict_employment.main --source extract.csv --country TO
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import pandas as pd

from .config import DATA_SOURCE, DEFAULT_SEP, TIME_SERIES_MIN_POINTS
from .data_manager import EmploymentData, TableCache
from .loader import DataLoadError
from .models import EmploymentStatus
from .pipeline import composition_frame, points_frame

logger = logging.getLogger(__name__)


def run_pipeline(
    data: EmploymentData,
    *,
    country: Optional[str] = None,
    status: EmploymentStatus | str = EmploymentStatus.TOTAL,
    min_points: int = TIME_SERIES_MIN_POINTS,
) -> Dict[str, pd.DataFrame]:
    """Run all projections and return them as flat DataFrames.

    Per-country views are included only when ``country`` is given (or a
    default country exists); a country missing from the data yields an
    empty frame for each of those views.
    """
    code = country or data.default_country()
    payload: Dict[str, pd.DataFrame] = {
        "composition": composition_frame(data.get_composition()),
        "time_series": points_frame(data.get_time_series(min_points=min_points)),
    }
    if code is not None:
        payload["age_breakdown"] = points_frame([data.get_age_breakdown(code)], "brackets")
        payload["gender_trend"] = points_frame([data.get_gender_trend(code, status)])
        payload["ratio_trend"] = points_frame([data.get_ratio_trend(code)])
    return payload


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description=(
            "Reshape the Pacific Data Hub full-time/part-time employment "
            "extract into the dashboard's chart tables."
        )
    )
    parser.add_argument(
        "--source",
        default=DATA_SOURCE,
        help="Path or URL to the employment CSV (default: Pacific Data Hub API).",
    )
    parser.add_argument(
        "--sep",
        default=DEFAULT_SEP,
        help=f"Delimiter used in the source file (default: '{DEFAULT_SEP}').",
    )
    parser.add_argument(
        "--country",
        default=None,
        help="Country code for the per-country views (default: Tonga or first country).",
    )
    parser.add_argument(
        "--status",
        default=EmploymentStatus.TOTAL.value,
        choices=[s.value for s in EmploymentStatus],
        help="Employment status for the gender trend (default: total).",
    )
    parser.add_argument(
        "--min-points",
        type=int,
        default=TIME_SERIES_MIN_POINTS,
        help="Minimum yearly points for a country to appear in the trend table.",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("data"),
        help="Directory for the CSV outputs (default: ./data).",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Always download remote sources instead of reusing the disk cache.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    data = EmploymentData(
        TableCache(args.source, sep=args.sep, use_disk_cache=not args.no_cache)
    )
    try:
        payload = run_pipeline(
            data, country=args.country, status=args.status, min_points=args.min_points
        )
    except DataLoadError as exc:
        logger.error("%s", exc)
        return 1

    args.output_dir.mkdir(parents=True, exist_ok=True)
    for name, frame in payload.items():
        path = args.output_dir / f"{name}.csv"
        frame.to_csv(path, index=False)
        logger.info("Saved %s (%d rows)", path, len(frame))

    logger.info(
        "Projected %d countries from %d observations",
        len(data.table.country_codes),
        len(data.table),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
