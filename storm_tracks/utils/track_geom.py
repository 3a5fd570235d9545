import logging
import math
import numpy as np
import geopandas as gpd
import requests
from shapely.geometry import LineString, Point

__all__ = [
    "EARTH_RADIUS_KM",
    "coords_are_finite",
    "track_line",
    "segment_lines",
    "track_length_km",
    "get_country_boundaries",
]

logger = logging.getLogger(__name__)

EARTH_RADIUS_KM = 6371.0088


def coords_are_finite(coords):
    """
    Return a boolean mask marking which (lon, lat) pairs are finite.

    Parameters:
        coords: Sequence of (lon, lat) pairs or an (n, 2) array
    """
    arr = np.asarray(coords, dtype=float).reshape(-1, 2)
    return np.isfinite(arr).all(axis=1)


def track_line(coords, single_point="skip"):
    """
    Connect an ordered sequence of positions into one polyline.
    Returns a Shapely LineString in lon/lat degrees, a Point for a
    single position when single_point == "point", or None.

    Parameters:
        coords: Ordered sequence of (lon, lat) tuples
        single_point: "skip" to return None for one position, "point" to
            return a Point geometry instead
    """
    coords = [tuple(c) for c in coords]
    if len(coords) >= 2:
        return LineString(coords)
    if len(coords) == 1 and single_point == "point":
        return Point(coords[0])
    return None


def segment_lines(coords):
    """
    Split an ordered sequence of positions into two-point polylines.
    Segment i runs from position i to position i + 1, so n positions give
    n - 1 segments. Identical consecutive positions give a zero-length
    LineString.

    Parameters:
        coords: Ordered sequence of (lon, lat) tuples
    """
    coords = [tuple(c) for c in coords]
    return [LineString([coords[i], coords[i + 1]]) for i in range(len(coords) - 1)]


def track_length_km(coords):
    """
    Great-circle length of a polyline in kilometres (haversine).

    Parameters:
        coords: Ordered sequence of (lon, lat) tuples in degrees
    """
    arr = np.radians(np.asarray(coords, dtype=float).reshape(-1, 2))
    if len(arr) < 2:
        return 0.0
    lon, lat = arr[:, 0], arr[:, 1]
    dlon = np.diff(lon)
    dlat = np.diff(lat)
    a = (
        np.sin(dlat / 2) ** 2
        + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(dlon / 2) ** 2
    )
    # Clip guards against tiny rounding overshoot above 1
    dist = 2 * EARTH_RADIUS_KM * np.arcsin(np.sqrt(np.clip(a, 0.0, 1.0)))
    return float(dist.sum())


def get_country_boundaries(url, bounds=None, timeout=10):
    """
    Download country polygons from a public GeoJSON source.
    Returns a GeoDataFrame in EPSG:4326, optionally clipped to countries
    intersecting (minx, miny, maxx, maxy), or None if the download fails.

    Parameters:
        url: GeoJSON FeatureCollection URL
        bounds: Optional (minx, miny, maxx, maxy) box in degrees
        timeout: Request timeout in seconds
    """
    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        features = response.json()["features"]
    except (requests.RequestException, ValueError, KeyError) as e:
        logger.warning(f"Could not load country boundaries: {e}")
        return None

    countries = gpd.GeoDataFrame.from_features(features, crs="EPSG:4326")
    if bounds is not None and not countries.empty:
        minx, miny, maxx, maxy = bounds
        if all(math.isfinite(b) for b in bounds):
            countries = countries.cx[minx:maxx, miny:maxy]
    return countries
