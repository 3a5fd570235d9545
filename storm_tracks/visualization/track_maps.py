"""
Storm track map rendering

This module draws the report's maps from track and segment tables:
static matplotlib maps colored by storm name, year, status and wind
speed, and an interactive folium map with popups for every segment.
"""

import logging
import warnings
import numpy as np
import pandas as pd
import geopandas as gpd
import matplotlib.pyplot as plt
import matplotlib.colors as mcolors
from matplotlib.lines import Line2D
import seaborn as sns
import folium
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from storm_tracks.utils.config_utils import get_config_value
from storm_tracks.utils.path_utils import create_output_filename, get_results_path
from storm_tracks.utils.track_geom import get_country_boundaries

logger = logging.getLogger(__name__)

# Suppress matplotlib warnings
warnings.filterwarnings("ignore", category=UserWarning, module="matplotlib")

DEFAULT_STATUS_COLORS = {
    "tropical depression": "#1f78b4",
    "tropical storm": "#33a02c",
    "hurricane": "#e31a1c",
    "extratropical": "#6a3d9a",
    "subtropical depression": "#a6cee3",
    "subtropical storm": "#b2df8a",
    "other low": "#b15928",
    "tropical wave": "#fdbf6f",
    "disturbance": "#cab2d6",
}

DEFAULT_COUNTRIES_URL = (
    "https://raw.githubusercontent.com/datasets/geo-countries/master/data/countries.geojson"
)

POPUP_FIELDS = ["name", "year", "timestamp", "status", "category", "wind", "pressure"]


class TrackMapper:
    """
    Creates static and interactive maps of storm tracks.

    Every plotting method saves its figure under the configured output
    directory and returns the file path, or None when there is nothing
    to draw.
    """

    def __init__(
        self,
        config: Optional[Dict[str, Any]] = None,
        output_dir: Optional[Union[str, Path]] = None,
    ):
        """
        Initialize the mapper.

        Args:
            config: Configuration dictionary (see config/track_config.yaml)
            output_dir: Overrides plotting.output_directory when given
        """
        self.config = config or {}
        if output_dir is None:
            output_dir = get_config_value(
                self.config, "plotting.output_directory", "data/results/tracks"
            )
        self.output_dir = get_results_path(output_dir)
        self.figure_size = tuple(get_config_value(self.config, "plotting.figure_size", [12, 8]))
        self.dpi = get_config_value(self.config, "plotting.dpi", 150)
        self.padding = get_config_value(self.config, "plotting.padding_degrees", 5)
        self._setup_colors()
        self._basemap = None
        self._basemap_loaded = False

    def _setup_colors(self):
        """Setup color schemes for different plot types."""
        self.palette = get_config_value(self.config, "plotting.palette", "husl")
        self.wind_cmap = get_config_value(self.config, "plotting.wind_colormap", "plasma")
        self.status_colors = dict(DEFAULT_STATUS_COLORS)
        self.status_colors.update(
            get_config_value(self.config, "plotting.status_colors", {})
        )

    def _category_colors(self, values) -> Dict[Any, Any]:
        """Assign one palette color per distinct value, in sorted order."""
        values = sorted(pd.unique(pd.Series(values).dropna()))
        colors = sns.color_palette(self.palette, max(len(values), 1))
        return {value: colors[i] for i, value in enumerate(values)}

    def _extent(self, gdf: gpd.GeoDataFrame):
        minx, miny, maxx, maxy = gdf.total_bounds
        pad = self.padding
        return minx - pad, miny - pad, maxx + pad, maxy + pad

    def _get_basemap(self, bounds) -> Optional[gpd.GeoDataFrame]:
        """Fetch country outlines once per mapper; None when disabled or unavailable."""
        if not get_config_value(self.config, "plotting.basemap.enabled", True):
            return None
        if not self._basemap_loaded:
            self._basemap = get_country_boundaries(
                get_config_value(self.config, "plotting.basemap.url", DEFAULT_COUNTRIES_URL),
                timeout=get_config_value(self.config, "plotting.basemap.timeout_seconds", 10),
            )
            self._basemap_loaded = True
        if self._basemap is None or self._basemap.empty:
            return None
        minx, miny, maxx, maxy = bounds
        return self._basemap.cx[minx:maxx, miny:maxy]

    def _new_map_axes(self, extent, title: str):
        fig, ax = plt.subplots(figsize=self.figure_size)
        basemap = self._get_basemap(extent)
        if basemap is not None and not basemap.empty:
            basemap.plot(ax=ax, color="#f2f2f2", edgecolor="#999999", linewidth=0.5)
        ax.set_xlim(extent[0], extent[2])
        ax.set_ylim(extent[1], extent[3])
        ax.set_xlabel("Longitude (°E)", fontsize=12)
        ax.set_ylabel("Latitude (°N)", fontsize=12)
        ax.set_title(title, fontsize=14, fontweight="bold")
        ax.grid(True, alpha=0.3)
        return fig, ax

    def _save(self, fig, base_name: str, show_plot: bool = False) -> str:
        plot_path = self.output_dir / create_output_filename(base_name, extension=".png")
        fig.tight_layout()
        fig.savefig(plot_path, dpi=self.dpi, bbox_inches="tight")
        logger.info(f"Saved plot: {plot_path}")
        if show_plot:
            plt.show()
        plt.close(fig)
        return str(plot_path)

    def plot_tracks_by(
        self, tracks: gpd.GeoDataFrame, column: str = "name", show_plot: bool = False
    ) -> Optional[str]:
        """
        Plot whole tracks colored by a categorical column.

        Args:
            tracks: Track GeoDataFrame
            column: Column to color by, e.g. 'name' or 'year'
            show_plot: Whether to display the plot

        Returns:
            Path to saved plot file, or None if there are no tracks
        """
        if tracks.empty:
            logger.warning(f"No tracks to plot by {column}")
            return None
        if column not in tracks.columns:
            raise ValueError(f"Track table has no column '{column}'")

        fig, ax = self._new_map_axes(self._extent(tracks), f"Storm Tracks by {column.title()}")
        colors = self._category_colors(tracks[column])
        handles = []
        for value, color in colors.items():
            subset = tracks[tracks[column] == value]
            subset.plot(ax=ax, color=color, linewidth=2, markersize=20)
            handles.append(Line2D([0], [0], color=color, linewidth=2, label=str(value)))
        ax.legend(handles=handles, title=column.title(), bbox_to_anchor=(1.02, 1), loc="upper left")

        return self._save(fig, f"tracks_by_{column}", show_plot)

    def plot_fixes_by_status(
        self,
        observations: pd.DataFrame,
        tracks: Optional[gpd.GeoDataFrame] = None,
        show_plot: bool = False,
    ) -> Optional[str]:
        """
        Plot every fix colored by storm status, over the track lines.

        Args:
            observations: Observation table with long/lat/status columns
            tracks: Optional track GeoDataFrame drawn underneath in grey
            show_plot: Whether to display the plot

        Returns:
            Path to saved plot file, or None if there are no observations
        """
        if observations.empty:
            logger.warning("No observations to plot by status")
            return None
        lon_col = get_config_value(self.config, "columns.longitude", "long")
        lat_col = get_config_value(self.config, "columns.latitude", "lat")

        points = gpd.GeoDataFrame(
            observations,
            geometry=gpd.points_from_xy(observations[lon_col], observations[lat_col]),
            crs="EPSG:4326",
        )
        fig, ax = self._new_map_axes(self._extent(points), "Storm Fixes by Status")
        if tracks is not None and not tracks.empty:
            tracks.plot(ax=ax, color="grey", linewidth=1, alpha=0.6)

        handles = []
        for status in pd.unique(points["status"].astype(str)):
            color = self.status_colors.get(status, "#777777")
            subset = points[points["status"].astype(str) == status]
            ax.scatter(subset[lon_col], subset[lat_col], color=color, s=18, zorder=3)
            handles.append(
                Line2D([0], [0], marker="o", color="w", markerfacecolor=color, markersize=8, label=status)
            )
        ax.legend(handles=handles, title="Status", bbox_to_anchor=(1.02, 1), loc="upper left")

        return self._save(fig, "fixes_by_status", show_plot)

    def plot_wind_gradient(
        self, segments: gpd.GeoDataFrame, show_plot: bool = False
    ) -> Optional[str]:
        """
        Plot track segments colored by the wind speed of their leading fix.

        Args:
            segments: Segment GeoDataFrame with a 'wind' column
            show_plot: Whether to display the plot

        Returns:
            Path to saved plot file, or None if there are no segments
        """
        if segments.empty:
            logger.warning("No segments to plot wind gradient")
            return None

        fig, ax = self._new_map_axes(self._extent(segments), "Storm Tracks by Wind Speed")
        segments.assign(wind=pd.to_numeric(segments["wind"], errors="coerce")).plot(
            ax=ax,
            column="wind",
            cmap=self.wind_cmap,
            linewidth=3,
            legend=True,
            legend_kwds={"label": "Wind speed (kt)", "shrink": 0.7},
        )
        return self._save(fig, "tracks_by_wind", show_plot)

    def _wind_color(self, norm, cmap, wind) -> str:
        if wind is None or pd.isna(wind):
            return "#777777"
        return mcolors.to_hex(cmap(norm(float(wind))))

    @staticmethod
    def _popup_html(row: pd.Series) -> str:
        cells = []
        for field in POPUP_FIELDS:
            if field in row.index:
                value = row[field]
                value = "" if pd.isna(value) else value
                cells.append(f"<tr><th>{field}</th><td>{value}</td></tr>")
        return "<table>" + "".join(cells) + "</table>"

    def interactive_map(
        self,
        tracks: gpd.GeoDataFrame,
        segments: gpd.GeoDataFrame,
        filename: str = "storm_tracks_map",
    ) -> Optional[str]:
        """
        Build an interactive folium map of tracks and wind-colored segments.

        Args:
            tracks: Track GeoDataFrame
            segments: Segment GeoDataFrame
            filename: Base name of the HTML file

        Returns:
            Path to saved HTML file, or None if there is nothing to map
        """
        if tracks.empty and segments.empty:
            logger.warning("No tracks or segments for interactive map")
            return None

        source = tracks if not tracks.empty else segments
        minx, miny, maxx, maxy = source.total_bounds
        m = folium.Map(
            location=[(miny + maxy) / 2, (minx + maxx) / 2],
            zoom_start=get_config_value(self.config, "plotting.interactive.zoom_start", 4),
            tiles=get_config_value(self.config, "plotting.interactive.tiles", "CartoDB positron"),
        )

        track_layer = folium.FeatureGroup(name="Tracks")
        colors = self._category_colors(tracks["name"]) if not tracks.empty else {}
        for _, row in tracks.iterrows():
            color = mcolors.to_hex(colors.get(row["name"], "#333333"))
            tooltip = f"{row['name']} ({row['year']})"
            geom = row.geometry
            if geom.geom_type == "Point":
                folium.CircleMarker(
                    location=[geom.y, geom.x], radius=4, color=color, tooltip=tooltip
                ).add_to(track_layer)
            else:
                folium.PolyLine(
                    locations=[(lat, lon) for lon, lat in geom.coords],
                    color=color,
                    weight=2,
                    opacity=0.6,
                    tooltip=tooltip,
                ).add_to(track_layer)
        track_layer.add_to(m)

        segment_layer = folium.FeatureGroup(name="Wind segments")
        if not segments.empty:
            wind = pd.to_numeric(segments["wind"], errors="coerce")
            norm = mcolors.Normalize(vmin=np.nanmin(wind), vmax=np.nanmax(wind))
            cmap = plt.get_cmap(self.wind_cmap)
            for (_, row), row_wind in zip(segments.iterrows(), wind):
                folium.PolyLine(
                    locations=[(lat, lon) for lon, lat in row.geometry.coords],
                    color=self._wind_color(norm, cmap, row_wind),
                    weight=4,
                    popup=folium.Popup(self._popup_html(row), max_width=300),
                ).add_to(segment_layer)
        segment_layer.add_to(m)

        folium.LayerControl().add_to(m)

        map_path = self.output_dir / create_output_filename(filename, extension=".html")
        m.save(str(map_path))
        logger.info(f"Saved interactive map: {map_path}")
        return str(map_path)

    def render_all(
        self,
        observations: pd.DataFrame,
        tracks: gpd.GeoDataFrame,
        segments: gpd.GeoDataFrame,
        interactive: bool = True,
    ) -> List[str]:
        """
        Render the full sequence of report maps.

        Returns:
            List of generated file paths, in report order
        """
        generated = [
            self.plot_fixes_by_status(observations, tracks),
            self.plot_tracks_by(tracks, "name"),
            self.plot_tracks_by(tracks, "year"),
            self.plot_wind_gradient(segments),
        ]
        if interactive:
            generated.append(self.interactive_map(tracks, segments))
        return [path for path in generated if path]
