"""
Track building package.

Turns time-ordered storm fixes into track and segment geometries.
"""

from .track_builder import TrackBuilder, TrackDataError, group_observations

__all__ = ["TrackBuilder", "TrackDataError", "group_observations"]
