"""
Visualization package.

Static and interactive track maps plus the markdown report.
"""

from .track_maps import TrackMapper
from .report import summarize_tracks, describe_tracks, write_report

__all__ = ["TrackMapper", "summarize_tracks", "describe_tracks", "write_report"]
