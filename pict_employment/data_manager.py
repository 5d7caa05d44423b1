"""Data manager for loading and caching the observation table.

This module owns the parsed :class:`~.table.ObservationTable` for a
session and exposes the five chart queries on top of it.  The table is
held by an explicit :class:`TableCache` object rather than module state:
whoever creates the cache decides when it is invalidated, and a reload
replaces the snapshot wholesale.

Remote extracts are additionally written to a disk cache so that a
restarted app can come up without the network.  The cache files include
a version tag to make it easy to invalidate caches when the expected
extract layout changes.
"""

import hashlib
import logging
import os
import tempfile
from io import StringIO
from pathlib import Path
from typing import List, Optional, Union

import requests

from .config import DATA_SOURCE, DEFAULT_COUNTRY_HINT, DEFAULT_SEP, DEFAULT_VOCABULARY, CodeVocabulary
from .loader import DataLoadError, Source, fetch_text, is_url, load_observations
from .models import (
    AgeBreakdownRecord,
    CompositionRecord,
    CountryOption,
    EmploymentStatus,
    GenderTrendRecord,
    RatioTrendRecord,
    TimeSeriesRecord,
)
from .pipeline import (
    project_age_breakdown,
    project_composition,
    project_gender_trend,
    project_ratio_trend,
    project_time_series,
)
from .table import ObservationTable

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Cache setup
# ---------------------------------------------------------------------------
# A version tag to embed into the cache filenames.  Bump this value
# whenever the expected column layout of the extract changes.
CACHE_VERSION: str = "v1"


def _resolve_cache_dir() -> Path:
    """Select a writable directory for caching.

    The lookup order is:

    1. The ``DATA_CACHE_DIR`` environment variable, if set.
    2. A ``data`` folder at the repository root.
    3. A temporary directory in ``/tmp``.

    Each candidate path is tested for writability by attempting to
    create and delete a sentinel file.  The first path that succeeds
    is returned.
    """
    candidates: list[Path] = []
    env = os.getenv("DATA_CACHE_DIR")
    if env:
        candidates.append(Path(env).expanduser().resolve())

    # Repo root /data (two levels up from this file)
    candidates.append(Path(__file__).resolve().parent.parent / "data")
    candidates.append(Path(tempfile.gettempdir()) / "pict_employment_cache")

    for path in candidates:
        try:
            path.mkdir(parents=True, exist_ok=True)
            test_file = path / ".write_test"
            test_file.write_text("ok", encoding="utf-8")
            test_file.unlink()
            return path
        except OSError:
            continue

    fallback = Path(tempfile.gettempdir()) / "pict_employment_cache"
    fallback.mkdir(parents=True, exist_ok=True)
    return fallback


def _atomic_write_text(text: str, path: Path) -> None:
    """Write text to ``path`` atomically.

    The text is first written to a temporary file in the same directory
    and then renamed to the final location, so an interrupted write
    never leaves a truncated extract behind.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(text, encoding="utf-8")
    tmp_path.replace(path)


def cache_path_for(url: str, cache_dir: Path) -> Path:
    digest = hashlib.sha1(url.encode("utf-8")).hexdigest()[:12]
    return cache_dir / f"employed_ftpt_{CACHE_VERSION}_{digest}.csv"


class TableCache:
    """Owns the parsed observation table for one session.

    Parameters
    ----------
    source : str, Path or text stream, optional
        Where the extract lives.  Defaults to ``config.DATA_SOURCE``.
    sep : str, optional
        Column delimiter.
    vocabulary : CodeVocabulary, optional
        Code values used by the extract.
    use_disk_cache : bool, optional
        Keep a copy of remote extracts on disk and reuse it on the next
        load.  Ignored for local sources.
    cache_dir : Path, optional
        Directory for the disk cache; resolved lazily when not given.
    """

    def __init__(
        self,
        source: Source = DATA_SOURCE,
        sep: str = DEFAULT_SEP,
        vocabulary: CodeVocabulary = DEFAULT_VOCABULARY,
        *,
        use_disk_cache: bool = True,
        cache_dir: Optional[Path] = None,
    ) -> None:
        self.source = source
        self.sep = sep
        self.vocabulary = vocabulary
        self.use_disk_cache = use_disk_cache
        self._cache_dir = cache_dir
        self._table: Optional[ObservationTable] = None

    @property
    def loaded(self) -> bool:
        return self._table is not None

    def get(self, force_reload: bool = False) -> ObservationTable:
        """Return the table, loading it on first use or when forced.

        A forced reload bypasses the disk cache.  If loading fails the
        previous snapshot (if any) is kept and the error propagates.
        """
        if self._table is None or force_reload:
            self._table = self._load(refresh=force_reload)
        return self._table

    def invalidate(self) -> None:
        """Drop the in-memory table; the next :meth:`get` reloads it."""
        self._table = None

    # -- loading -----------------------------------------------------------

    def _load(self, refresh: bool) -> ObservationTable:
        source: Union[Source, StringIO] = self.source
        if is_url(self.source) and self.use_disk_cache:
            source = self._local_copy(str(self.source), refresh=refresh)

        frame = load_observations(source, sep=self.sep, vocabulary=self.vocabulary)
        return ObservationTable(frame, self.vocabulary)

    def _local_copy(self, url: str, refresh: bool) -> Union[Path, StringIO]:
        """Return a cached file for ``url``, downloading it if needed."""
        cache_dir = self._cache_dir or _resolve_cache_dir()
        path = cache_path_for(url, cache_dir)
        if path.exists() and not refresh:
            logger.info("Loading employment extract from cache %s", path)
            return path

        try:
            text = fetch_text(url)
        except requests.RequestException as exc:
            raise DataLoadError(f"Could not fetch employment data from {url}: {exc}") from exc

        try:
            _atomic_write_text(text, path)
            logger.info("Cache updated: %s", path.name)
            return path
        except OSError as exc:
            logger.warning("Could not write cache file %s: %s", path, exc)
            return StringIO(text)


class EmploymentData:
    """Query surface consumed by the dashboard.

    Each method re-projects from the cached table; results are fresh
    objects and nothing is memoised between calls.
    """

    def __init__(self, cache: Optional[TableCache] = None) -> None:
        self.cache = cache if cache is not None else TableCache()

    @property
    def table(self) -> ObservationTable:
        return self.cache.get()

    def reload(self) -> ObservationTable:
        return self.cache.get(force_reload=True)

    def get_composition(self) -> List[CompositionRecord]:
        return project_composition(self.table)

    def get_time_series(self, min_points: Optional[int] = None) -> List[TimeSeriesRecord]:
        if min_points is None:
            return project_time_series(self.table)
        return project_time_series(self.table, min_points=min_points)

    def get_age_breakdown(self, country_code: str) -> Optional[AgeBreakdownRecord]:
        return project_age_breakdown(self.table, country_code)

    def get_gender_trend(
        self,
        country_code: str,
        employment_status: Union[EmploymentStatus, str] = EmploymentStatus.TOTAL,
    ) -> Optional[GenderTrendRecord]:
        return project_gender_trend(self.table, country_code, employment_status)

    def get_ratio_trend(self, country_code: str) -> Optional[RatioTrendRecord]:
        return project_ratio_trend(self.table, country_code)

    def country_options(self) -> List[CountryOption]:
        return self.table.country_options()

    def default_country(self) -> Optional[str]:
        """Country preselected in the dashboard: Tonga if present, else the first option."""
        options = self.country_options()
        if not options:
            return None
        for option in options:
            if DEFAULT_COUNTRY_HINT in option.name.lower():
                return option.code
        return options[0].code
