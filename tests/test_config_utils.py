"""
Tests for configuration loading and lookup.
"""

import pytest
import yaml

from storm_tracks.utils.config_utils import (
    get_config_value,
    load_config,
    merge_config,
)


def test_project_config_loads():
    config = load_config()
    assert get_config_value(config, "tracks.crs") == "EPSG:4326"
    assert get_config_value(config, "tracks.single_point") == "skip"
    assert len(get_config_value(config, "storms.names")) == 6


def test_get_config_value_defaults():
    config = {"a": {"b": {"c": 1}, "empty": None}}
    assert get_config_value(config, "a.b.c") == 1
    assert get_config_value(config, "a.b.missing", 5) == 5
    assert get_config_value(config, "a.empty", "x") == "x"
    assert get_config_value(None, "a.b", 2) == 2


def test_merge_config_is_recursive_and_copies():
    base = {"plotting": {"dpi": 150, "palette": "husl"}, "storms": {"names": ["Irma"]}}
    merged = merge_config(base, {"plotting": {"dpi": 72}, "storms": {"names": ["Sandy"]}})
    assert merged["plotting"] == {"dpi": 72, "palette": "husl"}
    assert merged["storms"]["names"] == ["Sandy"]
    assert base["plotting"]["dpi"] == 150


def test_load_config_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(str(tmp_path / "missing.yaml"), relative_to_project_root=False)

    bad = tmp_path / "bad.yaml"
    bad.write_text("tracks: [unclosed")
    with pytest.raises(yaml.YAMLError):
        load_config(str(bad), relative_to_project_root=False)
