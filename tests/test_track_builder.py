"""
Tests for TrackBuilder: tracks, segments and their edge cases.
"""

import numpy as np
import pandas as pd
import pytest

from storm_tracks.tracks.track_builder import (
    TrackBuilder,
    TrackDataError,
    group_observations,
)


def _coords(geom):
    return [tuple(c) for c in geom.coords]


def test_group_observations_keeps_input_order(observations):
    groups = group_observations(observations)
    assert [key for key, _ in groups] == [("Irma", 2017), ("Katrina", 2005), ("X", 1999)]
    irma = groups[0][1]
    assert irma["wind"].tolist() == [80, 95, 110, 130]


def test_group_observations_requires_name_and_year(observations):
    with pytest.raises(ValueError):
        group_observations(observations.drop(columns="year"))


def test_irma_track_is_single_four_vertex_line(observations):
    irma = observations[observations["name"] == "Irma"]
    tracks = TrackBuilder().build_tracks(irma)

    assert len(tracks) == 1
    track = tracks.iloc[0]
    assert (track["name"], track["year"]) == ("Irma", 2017)
    assert track["n_fixes"] == 4
    assert track["max_wind"] == 130
    assert _coords(track.geometry) == [(-20.0, 15.0), (-25.0, 16.0), (-30.0, 17.0), (-35.0, 18.0)]


def test_irma_segments_carry_leading_fix_attributes(observations):
    irma = observations[observations["name"] == "Irma"]
    segments = TrackBuilder().build_segments(irma)

    assert len(segments) == 3
    assert [_coords(g) for g in segments.geometry] == [
        [(-20.0, 15.0), (-25.0, 16.0)],
        [(-25.0, 16.0), (-30.0, 17.0)],
        [(-30.0, 17.0), (-35.0, 18.0)],
    ]
    assert segments["wind"].tolist() == [80, 95, 110]
    assert 130 not in segments["wind"].tolist()
    assert segments["segment_index"].tolist() == [0, 1, 2]
    assert "long" not in segments.columns and "lat" not in segments.columns


def test_single_fix_group_is_skipped_without_error(observations):
    single = observations[observations["name"] == "X"]
    tracks, segments = TrackBuilder().build(single)
    assert len(tracks) == 0
    assert len(segments) == 0


def test_single_fix_group_as_point_when_configured(observations):
    builder = TrackBuilder({"tracks": {"single_point": "point"}})
    tracks, segments = builder.build(observations)

    x_track = tracks[tracks["name"] == "X"].iloc[0]
    assert x_track.geometry.geom_type == "Point"
    assert x_track["length_km"] == 0.0
    assert "X" not in segments["name"].tolist()


def test_segment_counts_and_reconstruction(observations):
    tracks, segments = TrackBuilder().build(observations)

    assert len(tracks) == 2
    assert len(segments) == (4 - 1) + (3 - 1)
    for _, track in tracks.iterrows():
        group_segments = segments[
            (segments["name"] == track["name"]) & (segments["year"] == track["year"])
        ]
        assert len(group_segments) == track["n_fixes"] - 1
        vertices = [_coords(g)[0] for g in group_segments.geometry]
        vertices.append(_coords(group_segments.geometry.iloc[-1])[1])
        assert vertices == _coords(track.geometry)


def test_attribute_alignment_matches_ith_fix(observations):
    segments = TrackBuilder().build_segments(observations)
    for key, group in group_observations(observations):
        seg = segments[(segments["name"] == key[0]) & (segments["year"] == key[1])]
        assert seg["wind"].tolist() == group["wind"].iloc[:-1].tolist()
        assert seg["timestamp"].tolist() == group["timestamp"].iloc[:-1].tolist()
        assert seg["status"].tolist() == group["status"].iloc[:-1].tolist()


def test_build_is_idempotent(observations):
    builder = TrackBuilder()
    first_tracks, first_segments = builder.build(observations)
    second_tracks, second_segments = builder.build(observations)

    assert [_coords(g) for g in first_tracks.geometry] == [_coords(g) for g in second_tracks.geometry]
    assert [_coords(g) for g in first_segments.geometry] == [
        _coords(g) for g in second_segments.geometry
    ]


def test_outputs_share_wgs84_crs(observations):
    tracks, segments = TrackBuilder().build(observations)
    assert tracks.crs == "EPSG:4326"
    assert segments.crs == "EPSG:4326"


def test_duplicate_consecutive_positions_give_zero_length_segment(observations):
    irma = observations[observations["name"] == "Irma"].copy()
    irma.loc[irma.index[1], ["long", "lat"]] = [-20, 15]
    segments = TrackBuilder().build_segments(irma)
    assert len(segments) == 3
    assert segments.geometry.iloc[0].length == 0


def test_non_finite_coordinates_raise(observations):
    broken = observations.copy()
    broken.loc[1, "lat"] = np.nan
    with pytest.raises(TrackDataError) as excinfo:
        TrackBuilder().build(broken)
    assert "Irma" in str(excinfo.value)
    assert excinfo.value.group_key == ("Irma", 2017)


def test_skip_policy_isolates_failing_group(observations):
    broken = observations.copy()
    broken.loc[1, "long"] = np.inf
    builder = TrackBuilder({"tracks": {"on_error": "skip"}})
    tracks, segments = builder.build(broken)

    assert tracks["name"].tolist() == ["Katrina"]
    assert set(segments["name"]) == {"Katrina"}


def test_empty_observations_give_empty_tables(observations):
    tracks, segments = TrackBuilder().build(observations.iloc[0:0])
    assert tracks.empty and segments.empty
    assert tracks.crs == "EPSG:4326"
    assert "geometry" in segments.columns


def test_track_metadata(observations):
    tracks = TrackBuilder().build_tracks(observations)
    katrina = tracks[tracks["name"] == "Katrina"].iloc[0]
    assert katrina["peak_status"] == "hurricane"
    assert katrina["start_time"] == pd.Timestamp("2005-08-23 18:00")
    assert katrina["end_time"] == pd.Timestamp("2005-08-24 06:00")
    assert katrina["min_pressure"] == 1010 - 70 // 2
    assert katrina["length_km"] > 0


def test_invalid_policies_rejected():
    with pytest.raises(ValueError):
        TrackBuilder({"tracks": {"single_point": "line"}})
    with pytest.raises(ValueError):
        TrackBuilder({"tracks": {"on_error": "ignore"}})


def _sandy_2012():
    return pd.DataFrame(
        {
            "name": ["Sandy"] * 3,
            "year": [2012] * 3,
            "long": [-77.0, -76.0, -72.0],
            "lat": [25.0, 28.0, 33.0],
            "status": ["tropical storm", "hurricane", "extratropical"],
            "wind": [50, 70, 75],
        }
    )


def test_reached_hurricane_uses_any_fix_not_peak_wind():
    track = TrackBuilder().build_tracks(_sandy_2012()).iloc[0]
    assert track["max_wind"] == 75
    assert track["peak_status"] == "extratropical"
    assert track["reached_hurricane"]


def test_reached_hurricane_false_without_hurricane_fix(observations):
    tracks = TrackBuilder().build_tracks(observations)
    assert tracks.set_index("name")["reached_hurricane"].to_dict() == {
        "Irma": True,
        "Katrina": True,
    }
    weak = _sandy_2012().assign(status=["tropical storm"] * 3)
    assert not TrackBuilder().build_tracks(weak).iloc[0]["reached_hurricane"]


def test_missing_group_key_raises(observations):
    broken = observations.copy()
    broken["year"] = broken["year"].astype(float)
    broken.loc[5, "year"] = np.nan
    with pytest.raises(ValueError, match="missing name or year"):
        group_observations(broken)
    with pytest.raises(ValueError, match="missing name or year"):
        TrackBuilder().build(broken)


def test_missing_name_raises(observations):
    broken = observations.copy()
    broken.loc[0, "name"] = None
    with pytest.raises(ValueError, match=r"rows \[0\]"):
        TrackBuilder().build_tracks(broken)


def test_non_numeric_wind_leaves_max_wind_empty():
    storm = _sandy_2012().assign(wind=["n/a", "unknown", ""])
    track = TrackBuilder().build_tracks(storm).iloc[0]
    assert np.isnan(track["max_wind"])
    assert track["peak_status"] is None
    assert track["reached_hurricane"]


def test_partly_numeric_wind_picks_numeric_peak():
    storm = _sandy_2012().assign(wind=["50", "n/a", "65"])
    track = TrackBuilder().build_tracks(storm).iloc[0]
    assert track["max_wind"] == 65
    assert track["peak_status"] == "extratropical"
