"""
Markdown report for the storm track maps.

Summarizes each storm-year track and writes a short narrative report
that links the generated figures.
"""

import logging
import numpy as np
import pandas as pd
import geopandas as gpd
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Union

logger = logging.getLogger(__name__)

SUMMARY_COLUMNS = [
    "name",
    "year",
    "n_fixes",
    "start_time",
    "end_time",
    "duration_hours",
    "max_wind",
    "min_pressure",
    "peak_category",
    "peak_status",
    "reached_hurricane",
    "length_km",
]


def summarize_tracks(tracks: gpd.GeoDataFrame) -> pd.DataFrame:
    """
    Build a per storm-year summary table from the track table.

    Args:
        tracks: Track GeoDataFrame as produced by TrackBuilder

    Returns:
        DataFrame sorted by year and name, without geometry
    """
    summary = pd.DataFrame(tracks.drop(columns="geometry", errors="ignore"))
    if summary.empty:
        return pd.DataFrame(columns=SUMMARY_COLUMNS)

    duration = pd.to_datetime(summary["end_time"]) - pd.to_datetime(summary["start_time"])
    summary["duration_hours"] = duration.dt.total_seconds() / 3600
    summary = summary.reindex(columns=SUMMARY_COLUMNS)
    return summary.sort_values(["year", "name"], kind="mergesort").reset_index(drop=True)


def describe_tracks(summary: pd.DataFrame) -> List[str]:
    """
    Turn the summary table into plain-language observations.

    Args:
        summary: Output of summarize_tracks

    Returns:
        List of sentences, empty when there are no tracks
    """
    if summary.empty:
        return []

    notes = []

    def label(row):
        return f"{row['name']} ({row['year']})"

    years = sorted(summary["year"].dropna().unique())
    if years:
        notes.append(
            f"{len(summary)} storm tracks from {summary['name'].nunique()} storm names "
            f"span {years[0]} to {years[-1]}."
        )

    wind = pd.to_numeric(summary["max_wind"], errors="coerce")
    if wind.notna().any():
        strongest = summary.loc[wind.idxmax()]
        notes.append(
            f"{label(strongest)} was the strongest, peaking at {int(strongest['max_wind'])} kt."
        )

    duration = pd.to_numeric(summary["duration_hours"], errors="coerce")
    if duration.notna().any():
        longest = summary.loc[duration.idxmax()]
        notes.append(
            f"{label(longest)} lasted longest, about {longest['duration_hours'] / 24:.1f} days "
            f"over {longest['length_km']:,.0f} km."
        )

    reached = summary["reached_hurricane"].eq(True)
    hurricanes = summary[reached]
    if not hurricanes.empty:
        names = ", ".join(label(row) for _, row in hurricanes.iterrows())
        notes.append(f"Tracks that reached hurricane status: {names}.")
    weak = summary[~reached]
    if not weak.empty:
        names = ", ".join(label(row) for _, row in weak.iterrows())
        notes.append(f"Tracks that never reached hurricane status: {names}.")

    return notes


def _markdown_table(df: pd.DataFrame) -> List[str]:
    def fmt(value):
        if value is None or (not isinstance(value, str) and pd.isna(value)):
            return ""
        if isinstance(value, (float, np.floating)):
            return f"{value:,.1f}"
        return str(value)

    lines = [
        "| " + " | ".join(df.columns) + " |",
        "|" + "|".join("---" for _ in df.columns) + "|",
    ]
    for _, row in df.iterrows():
        lines.append("| " + " | ".join(fmt(v) for v in row) + " |")
    return lines


def write_report(
    summary: pd.DataFrame,
    figures: Iterable[Union[str, Path]],
    output_path: Union[str, Path],
    title: str = "Atlantic Hurricane Tracks",
) -> Path:
    """
    Write the markdown report.

    Args:
        summary: Output of summarize_tracks
        figures: Paths of generated figures and maps
        output_path: Destination markdown file
        title: Report heading

    Returns:
        Path to the written report
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    lines = [f"# {title}", "", f"Generated {datetime.now():%Y-%m-%d %H:%M}.", ""]

    lines += ["## Observations", ""]
    notes = describe_tracks(summary)
    lines += [f"- {note}" for note in notes] if notes else ["No storm tracks were built."]
    lines.append("")

    lines += ["## Track summary", ""]
    lines += _markdown_table(summary)
    lines.append("")

    lines += ["## Figures", ""]
    for figure in figures:
        figure = Path(figure)
        try:
            link = figure.relative_to(output_path.parent)
        except ValueError:
            link = figure
        if figure.suffix == ".png":
            lines.append(f"![{figure.stem}]({link.as_posix()})")
        else:
            lines.append(f"- [{figure.stem}]({link.as_posix()})")
    lines.append("")

    output_path.write_text("\n".join(lines), encoding="utf-8")
    logger.info(f"Saved report: {output_path}")
    return output_path
