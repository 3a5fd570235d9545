import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest


def _fixes(name, year, positions, winds, statuses, start="2017-09-01 00:00"):
    times = pd.date_range(start, periods=len(positions), freq="6h")
    rows = []
    for (lon, lat), wind, status, ts in zip(positions, winds, statuses, times):
        rows.append(
            {
                "name": name,
                "year": year,
                "month": ts.month,
                "day": ts.day,
                "hour": ts.hour,
                "lat": float(lat),
                "long": float(lon),
                "status": status,
                "category": 1 if status == "hurricane" else None,
                "wind": wind,
                "pressure": 1010 - wind // 2,
                "timestamp": ts,
            }
        )
    return rows


@pytest.fixture
def observations():
    """Three storm-years: Irma 2017 (4 fixes), Katrina 2005 (3 fixes), X 1999 (1 fix)."""
    rows = []
    rows += _fixes(
        "Irma",
        2017,
        [(-20, 15), (-25, 16), (-30, 17), (-35, 18)],
        [80, 95, 110, 130],
        ["hurricane"] * 4,
    )
    rows += _fixes(
        "Katrina",
        2005,
        [(-75, 23), (-77, 24), (-80, 26)],
        [30, 40, 70],
        ["tropical depression", "tropical storm", "hurricane"],
        start="2005-08-23 18:00",
    )
    rows += _fixes("X", 1999, [(-50, 20)], [25], ["tropical depression"], start="1999-07-01")
    return pd.DataFrame(rows)


@pytest.fixture
def track_config(tmp_path):
    return {
        "data": {"raw_directory": str(tmp_path / "raw")},
        "download": {"max_retries": 2, "retry_delay_seconds": 0},
        "storms": {"names": ["Irma", "Katrina"]},
        "tracks": {"crs": "EPSG:4326", "single_point": "skip", "on_error": "raise"},
        "plotting": {
            "output_directory": str(tmp_path / "results"),
            "dpi": 50,
            "figure_size": [6, 4],
            "basemap": {"enabled": False},
        },
        "logging": {"log_directory": str(tmp_path / "logs"), "console_output": False},
    }
