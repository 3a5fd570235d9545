#!/usr/bin/env python3
"""
Main CLI for the Atlantic hurricane track report.

Loads the storms dataset, keeps the configured named storms, builds
per storm-year tracks and segments, renders the maps and writes the
markdown report.
"""

import argparse
import sys
import yaml
from pathlib import Path
from typing import List, Optional

from storm_tracks.data_prep.storms_loader import StormDataLoader
from storm_tracks.tracks.track_builder import TrackBuilder, TrackDataError
from storm_tracks.utils.config_utils import (
    DEFAULT_CONFIG_PATH,
    get_config_value,
    load_config,
    merge_config,
)
from storm_tracks.utils.logging_utils import setup_logging
from storm_tracks.utils.path_utils import get_results_path, resolve_project_path
from storm_tracks.visualization.report import summarize_tracks, write_report
from storm_tracks.visualization.track_maps import TrackMapper


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Render Atlantic hurricane track maps.")
    parser.add_argument(
        "--config", default=DEFAULT_CONFIG_PATH, help="YAML config, relative to the project root"
    )
    parser.add_argument(
        "--storms", nargs="+", metavar="NAME", help="Storm names to include (overrides config)"
    )
    parser.add_argument("--data", help="Local storms CSV to use instead of downloading")
    parser.add_argument("--output-dir", help="Directory for figures and the report")
    parser.add_argument(
        "--no-interactive", action="store_true", help="Skip the interactive HTML map"
    )
    return parser.parse_args(argv)


def run_report(config: dict, data_path: Optional[str] = None, interactive: bool = True) -> Path:
    """
    Run the full report pipeline.

    Args:
        config: Configuration dictionary
        data_path: Optional local CSV path
        interactive: Whether to render the interactive map

    Returns:
        Path to the written markdown report
    """
    logger = setup_logging(
        "storm_tracks",
        log_dir=resolve_project_path(get_config_value(config, "logging.log_directory", "logs")),
        level=get_config_value(config, "logging.level", "INFO"),
        include_console=get_config_value(config, "logging.console_output", True),
    )

    loader = StormDataLoader(config)
    observations = loader.filter_storms(loader.load(data_path))

    tracks, segments = TrackBuilder(config).build(observations)

    output_dir = get_results_path(
        get_config_value(config, "plotting.output_directory", "data/results/tracks")
    )
    mapper = TrackMapper(config, output_dir=output_dir)
    figures = mapper.render_all(observations, tracks, segments, interactive=interactive)

    report_path = write_report(
        summarize_tracks(tracks),
        figures,
        output_dir / get_config_value(config, "report.filename", "storm_tracks_report.md"),
        title=get_config_value(config, "report.title", "Atlantic Hurricane Tracks"),
    )
    logger.info(f"Report complete! Results saved to: {output_dir}")
    return report_path


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI function for the storm track report."""
    args = parse_args(argv)

    try:
        config = load_config(args.config)
    except (FileNotFoundError, yaml.YAMLError) as e:
        print(f"Error: {e}")
        return 1

    overrides = {}
    if args.storms:
        overrides["storms"] = {"names": args.storms}
    if args.output_dir:
        overrides["plotting"] = {"output_directory": args.output_dir}
    config = merge_config(config, overrides)

    try:
        report_path = run_report(config, data_path=args.data, interactive=not args.no_interactive)
    except (FileNotFoundError, RuntimeError, TrackDataError, ValueError) as e:
        print(f"Error: {e}")
        return 1

    print(f"\nStorm track report written to: {report_path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
