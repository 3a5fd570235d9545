"""
Track Builder for storm observations

This module turns time-ordered storm fixes into line geometries: one
polyline per storm-year (the track) and one two-point polyline per
consecutive pair of fixes (the segments), each segment tagged with the
attributes of its leading fix so it can be colored by wind or status.
"""

import logging
import numpy as np
import pandas as pd
import geopandas as gpd
from typing import Any, Dict, List, Optional, Tuple

from storm_tracks.utils.config_utils import get_config_value
from storm_tracks.utils.track_geom import (
    coords_are_finite,
    segment_lines,
    track_line,
    track_length_km,
)

logger = logging.getLogger(__name__)

GROUP_KEYS = ["name", "year"]
SINGLE_POINT_POLICIES = ("skip", "point")
ERROR_POLICIES = ("raise", "skip")

TRACK_COLUMNS = [
    "name",
    "year",
    "n_fixes",
    "start_time",
    "end_time",
    "max_wind",
    "min_pressure",
    "peak_category",
    "peak_status",
    "reached_hurricane",
    "length_km",
    "geometry",
]


class TrackDataError(ValueError):
    """Raised when a storm-year group cannot be turned into geometries."""

    def __init__(self, group_key, message):
        self.group_key = group_key
        super().__init__(f"Storm {group_key[0]} ({group_key[1]}): {message}")


def group_observations(df: pd.DataFrame) -> List[Tuple[Tuple[Any, Any], pd.DataFrame]]:
    """
    Partition observations into storm-year groups.

    Groups come back in order of first appearance and rows inside each
    group keep their input order; nothing is re-sorted.

    Args:
        df: Observations with 'name' and 'year' columns

    Returns:
        List of ((name, year), group DataFrame) pairs
    """
    missing = [col for col in GROUP_KEYS if col not in df.columns]
    if missing:
        raise ValueError(f"Observations are missing grouping columns: {missing}")
    if df.empty:
        return []

    missing_keys = df[GROUP_KEYS].isna().any(axis=1).to_numpy()
    if missing_keys.any():
        bad_rows = [int(i) for i in np.flatnonzero(missing_keys)]
        raise ValueError(f"Observations have a missing name or year at rows {bad_rows}")
    return [(key, group) for key, group in df.groupby(GROUP_KEYS, sort=False)]


class TrackBuilder:
    """
    Builds track and segment GeoDataFrames from storm observations.

    Every group is derived independently of the others. The builder keeps
    no state between calls, so calling it twice on the same observations
    gives identical geometries.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize the track builder.

        Args:
            config: Configuration dictionary (see config/track_config.yaml)
        """
        self.config = config or {}
        self.crs = get_config_value(self.config, "tracks.crs", "EPSG:4326")
        self.lon_col = get_config_value(self.config, "columns.longitude", "long")
        self.lat_col = get_config_value(self.config, "columns.latitude", "lat")
        self.time_col = get_config_value(self.config, "columns.timestamp", "timestamp")
        self.single_point = get_config_value(self.config, "tracks.single_point", "skip")
        self.on_error = get_config_value(self.config, "tracks.on_error", "raise")

        if self.single_point not in SINGLE_POINT_POLICIES:
            raise ValueError(
                f"tracks.single_point must be one of {SINGLE_POINT_POLICIES}, "
                f"got {self.single_point!r}"
            )
        if self.on_error not in ERROR_POLICIES:
            raise ValueError(
                f"tracks.on_error must be one of {ERROR_POLICIES}, got {self.on_error!r}"
            )

    def _group_coords(self, key, group: pd.DataFrame) -> np.ndarray:
        """Extract the (lon, lat) array for a group, failing on bad values."""
        for col in (self.lon_col, self.lat_col):
            if col not in group.columns:
                raise TrackDataError(key, f"missing coordinate column '{col}'")
        try:
            coords = group[[self.lon_col, self.lat_col]].to_numpy(dtype=float)
        except (TypeError, ValueError) as e:
            raise TrackDataError(key, f"coordinates are not numeric: {e}")

        finite = coords_are_finite(coords)
        if not finite.all():
            bad_rows = [int(i) for i in np.flatnonzero(~finite)]
            raise TrackDataError(
                key, f"non-finite or missing coordinates at fix positions {bad_rows}"
            )
        return coords

    def build_group_track(self, key, group: pd.DataFrame) -> Optional[Dict[str, Any]]:
        """
        Build the track row for one storm-year group.

        Args:
            key: (name, year) of the group
            group: Time-ordered observations of the group

        Returns:
            Dictionary with group metadata and geometry, or None when the
            group is skipped (empty, or a single fix under the skip policy)
        """
        if group.empty:
            return None
        coords = self._group_coords(key, group)
        geometry = track_line(coords, single_point=self.single_point)
        if geometry is None:
            logger.debug(f"Skipping track for {key[0]} ({key[1]}): {len(group)} fix")
            return None

        has_time = self.time_col in group.columns
        row = {
            "name": key[0],
            "year": key[1],
            "n_fixes": len(group),
            "start_time": group[self.time_col].iloc[0] if has_time else pd.NaT,
            "end_time": group[self.time_col].iloc[-1] if has_time else pd.NaT,
            "max_wind": np.nan,
            "min_pressure": np.nan,
            "peak_category": np.nan,
            "peak_status": None,
            "reached_hurricane": False,
            "length_km": track_length_km(coords),
            "geometry": geometry,
        }
        wind = (
            pd.to_numeric(group["wind"], errors="coerce").to_numpy(dtype=float)
            if "wind" in group.columns
            else np.array([])
        )
        if np.isfinite(wind).any():
            peak_pos = int(np.nanargmax(wind))
            row["max_wind"] = wind[peak_pos]
            if "status" in group.columns:
                row["peak_status"] = group["status"].iloc[peak_pos]
        if "status" in group.columns:
            row["reached_hurricane"] = bool((group["status"].astype(str) == "hurricane").any())
        if "pressure" in group.columns:
            row["min_pressure"] = group["pressure"].min()
        if "category" in group.columns:
            row["peak_category"] = pd.to_numeric(group["category"], errors="coerce").max()
        return row

    def build_group_segments(self, key, group: pd.DataFrame) -> Optional[pd.DataFrame]:
        """
        Build the segment rows for one storm-year group.

        Segment i joins fix i to fix i + 1 and carries every attribute of
        fix i; the terminal fix has no outgoing segment and is dropped.

        Args:
            key: (name, year) of the group
            group: Time-ordered observations of the group

        Returns:
            DataFrame of n - 1 segment rows, or None for groups under two fixes
        """
        if len(group) < 2:
            return None
        coords = self._group_coords(key, group)
        leading = group.iloc[:-1].drop(columns=[self.lon_col, self.lat_col])
        leading = leading.reset_index(drop=True)
        leading["segment_index"] = np.arange(len(leading))
        leading["geometry"] = segment_lines(coords)
        return leading

    def _run(self, df: pd.DataFrame, build_tracks: bool, build_segments: bool):
        track_rows = []
        segment_frames = []
        for key, group in group_observations(df):
            try:
                track = self.build_group_track(key, group) if build_tracks else None
                segments = self.build_group_segments(key, group) if build_segments else None
            except TrackDataError as e:
                if self.on_error == "raise":
                    raise
                logger.error(f"Skipping storm group: {e}")
                continue
            if track is not None:
                track_rows.append(track)
            if segments is not None:
                segment_frames.append(segments)
        return track_rows, segment_frames

    def _tracks_frame(self, rows) -> gpd.GeoDataFrame:
        return gpd.GeoDataFrame(
            pd.DataFrame(rows, columns=TRACK_COLUMNS), geometry="geometry", crs=self.crs
        )

    def _segments_frame(self, frames, df: pd.DataFrame) -> gpd.GeoDataFrame:
        if frames:
            segments = pd.concat(frames, ignore_index=True)
        else:
            columns = [c for c in df.columns if c not in (self.lon_col, self.lat_col)]
            segments = pd.DataFrame(columns=columns + ["segment_index", "geometry"])
        return gpd.GeoDataFrame(segments, geometry="geometry", crs=self.crs)

    def build_tracks(self, df: pd.DataFrame) -> gpd.GeoDataFrame:
        """
        Build one track per storm-year group.

        Args:
            df: Observations ordered by time within each (name, year)

        Returns:
            GeoDataFrame with one row per non-skipped group
        """
        rows, _ = self._run(df, build_tracks=True, build_segments=False)
        logger.info(f"Built {len(rows)} tracks")
        return self._tracks_frame(rows)

    def build_segments(self, df: pd.DataFrame) -> gpd.GeoDataFrame:
        """
        Build one segment per consecutive pair of fixes in every group.

        Args:
            df: Observations ordered by time within each (name, year)

        Returns:
            GeoDataFrame with the leading fix's attributes per segment
        """
        _, frames = self._run(df, build_tracks=False, build_segments=True)
        segments = self._segments_frame(frames, df)
        logger.info(f"Built {len(segments)} segments")
        return segments

    def build(self, df: pd.DataFrame) -> Tuple[gpd.GeoDataFrame, gpd.GeoDataFrame]:
        """
        Build tracks and segments in a single pass over the groups.

        Under the "skip" error policy a group that fails is left out of
        both tables.
        """
        rows, frames = self._run(df, build_tracks=True, build_segments=True)
        tracks = self._tracks_frame(rows)
        segments = self._segments_frame(frames, df)
        logger.info(f"Built {len(tracks)} tracks and {len(segments)} segments")
        return tracks, segments
