"""
Storm observation loader

This module downloads the public ``storms`` dataset (NOAA best-track fixes
for Atlantic storms, as published with the dplyr package and mirrored by
Rdatasets), caches it locally and prepares it for track building.
"""

import os
import time
import logging
import requests
import pandas as pd
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from storm_tracks.utils.config_utils import get_config_value
from storm_tracks.utils.path_utils import ensure_directory, resolve_project_path

logger = logging.getLogger(__name__)

DEFAULT_SOURCE_URL = (
    "https://vincentarelbundock.github.io/Rdatasets/csv/dplyr/storms.csv"
)

REQUIRED_COLUMNS = ["name", "year", "month", "day", "hour", "lat", "long", "status", "wind"]
NUMERIC_COLUMNS = ["year", "month", "day", "hour", "lat", "long", "wind", "pressure", "category"]

STATUS_ORDER = [
    "disturbance",
    "tropical wave",
    "other low",
    "extratropical",
    "subtropical depression",
    "subtropical storm",
    "tropical depression",
    "tropical storm",
    "hurricane",
]


class StormDataLoader:
    """
    Downloads, caches and prepares storm observations.

    The loader never reorders fixes within a storm beyond a stable sort by
    (name, year, timestamp), so the time order of each storm-year is the
    order that track building relies on.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the loader with configuration.

        Args:
            config: Configuration dictionary (see config/track_config.yaml)
        """
        self.config = config or {}
        self.source_url = get_config_value(self.config, "data.source_url", DEFAULT_SOURCE_URL)
        raw_dir = get_config_value(self.config, "data.raw_directory", "data/raw")
        raw_filename = get_config_value(self.config, "data.raw_filename", "storms.csv")
        self.raw_dir = resolve_project_path(raw_dir)
        self.raw_file = self.raw_dir / raw_filename
        self.overwrite = get_config_value(self.config, "data.overwrite_existing", False)

    def _download(self, url: str, output_path: Path) -> Path:
        """
        Download the dataset, retrying on network and HTTP errors.

        The body is written to a ``.part`` file and moved into place only
        once complete, so an interrupted download never leaves a truncated
        cache that later runs would reuse.

        Raises:
            RuntimeError: If every attempt fails
        """
        max_retries = max(1, get_config_value(self.config, "download.max_retries", 3))
        retry_delay = get_config_value(self.config, "download.retry_delay_seconds", 5)
        timeout = get_config_value(self.config, "download.timeout_seconds", 30)
        partial = output_path.with_name(output_path.name + ".part")

        last_error = None
        for attempt in range(1, max_retries + 1):
            try:
                logger.info(f"Downloading storms data (attempt {attempt}/{max_retries}): {url}")
                response = requests.get(url, timeout=timeout)
                response.raise_for_status()
            except requests.RequestException as e:
                last_error = e
                logger.warning(f"Attempt {attempt} failed for {url}: {e}")
                if attempt < max_retries:
                    time.sleep(retry_delay)
                continue

            ensure_directory(output_path.parent)
            partial.write_bytes(response.content)
            partial.replace(output_path)
            logger.info(f"Saved {len(response.content):,} bytes to {output_path}")
            return output_path

        logger.error(f"Failed to download after {max_retries} attempts: {url}")
        raise RuntimeError(
            f"Could not download storms data from {url}: {last_error}"
        ) from last_error

    def fetch(self) -> Path:
        """
        Make sure the raw dataset is available locally.

        Returns:
            Path to the cached CSV file

        Raises:
            RuntimeError: If the file is missing and cannot be downloaded
        """
        if self.raw_file.exists() and not self.overwrite:
            logger.info(f"Using cached storms data: {self.raw_file}")
            return self.raw_file

        return self._download(self.source_url, self.raw_file)

    def load(self, path: Optional[os.PathLike] = None) -> pd.DataFrame:
        """
        Load and clean the storms dataset.

        Args:
            path: Optional CSV path; defaults to the cached download

        Returns:
            Observations with a 'timestamp' column and categorical 'status'
        """
        csv_path = Path(path) if path is not None else self.fetch()
        if not csv_path.exists():
            raise FileNotFoundError(f"Storms data file not found: {csv_path}")

        df = pd.read_csv(csv_path)
        logger.info(f"Loaded {csv_path.name}: {len(df)} rows")
        return self.prepare(df)

    def prepare(self, df: pd.DataFrame) -> pd.DataFrame:
        """
        Clean raw storm rows into observations.

        Args:
            df: Raw storms table

        Returns:
            Cleaned copy of the table
        """
        df = df.drop(columns=["rownames", "Unnamed: 0"], errors="ignore").copy()

        missing = [col for col in REQUIRED_COLUMNS if col not in df.columns]
        if missing:
            raise ValueError(f"Storms data is missing required columns: {missing}")

        for col in NUMERIC_COLUMNS:
            if col in df.columns:
                df[col] = pd.to_numeric(df[col], errors="coerce")

        df["name"] = df["name"].astype(str).str.strip()
        df["year"] = df["year"].astype("Int64")
        parts = df[["year", "month", "day", "hour"]].astype("Int64").astype(str)
        for col in ("month", "day", "hour"):
            parts[col] = parts[col].str.zfill(2)
        df["timestamp"] = pd.to_datetime(
            parts["year"] + "-" + parts["month"] + "-" + parts["day"] + " " + parts["hour"],
            format="%Y-%m-%d %H",
            errors="coerce",
        )

        df["status"] = df["status"].astype(str).str.strip().str.lower()
        categories = STATUS_ORDER + sorted(set(df["status"]) - set(STATUS_ORDER))
        df["status"] = pd.Categorical(df["status"], categories=categories, ordered=True)

        return df.reset_index(drop=True)

    def filter_storms(
        self,
        df: pd.DataFrame,
        names: Optional[Iterable[str]] = None,
        years: Optional[Iterable[int]] = None,
    ) -> pd.DataFrame:
        """
        Keep the selected named storms, time-ordered within each storm-year.

        Args:
            df: Prepared observations
            names: Storm names to keep (case-insensitive); defaults to config
            years: Optional years to keep; defaults to config (all years)

        Returns:
            Filtered observations sorted by name, year and timestamp
        """
        if names is None:
            names = get_config_value(self.config, "storms.names", [])
        if years is None:
            years = get_config_value(self.config, "storms.years", [])

        wanted = {str(n).strip().lower() for n in names}
        mask = df["name"].str.lower().isin(wanted) if wanted else pd.Series(True, index=df.index)
        if years:
            mask &= df["year"].isin(list(years))

        filtered = df[mask].sort_values(["name", "year", "timestamp"], kind="mergesort")
        filtered = filtered.reset_index(drop=True)

        found = sorted(filtered["name"].unique())
        not_found = sorted(wanted - {n.lower() for n in found})
        if not_found:
            logger.warning(f"Storms not found in data: {not_found}")
        logger.info(
            f"Selected {len(filtered)} fixes for {filtered[['name', 'year']].drop_duplicates().shape[0]} storm-years"
        )
        return filtered
