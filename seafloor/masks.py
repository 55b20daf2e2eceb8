"""
Geographic masks used to select grid cells.

This module contains:
- The Mask wrapper around a polygon, polyline or point-set geometry
- Vectorized containment tests against grid cell centres
- Loading masks from vector files
"""

import geopandas as gpd
import numpy as np


class Mask:
    """
    Geographic region tested against grid cell centres.

    Parameters
    ----------
    geometry : shapely geometry
        Polygon/MultiPolygon (EEZ), LineString/MultiLineString (canyon axes)
        or Point/MultiPoint (seamounts, coral occurrences).
    buffer : float, optional
        Proximity distance in map units. Lines and points only select cells
        within this distance. Default 0 (plain containment).
    name : str, optional
        Label used in messages.

    Notes
    -----
    Cells on the region boundary count as inside. A mask never modifies the
    grid it is applied to; it only returns a boolean selection.
    """

    def __init__(self, geometry, buffer=0.0, name=None):
        self.geometry = geometry
        self.buffer = float(buffer)
        self.name = name or geometry.geom_type
        self.region = geometry.buffer(self.buffer) if self.buffer > 0 else geometry

    def __repr__(self):
        return f"Mask(name={self.name!r}, type={self.geometry.geom_type}, buffer={self.buffer})"

    @classmethod
    def from_geodataframe(cls, gdf, buffer=0.0, name=None):
        """Build a mask from the union of all features in a GeoDataFrame."""
        return cls(gdf.geometry.union_all(), buffer=buffer, name=name)

    def contains(self, x, y):
        """
        Test which coordinates fall inside the mask region.

        Parameters
        ----------
        x, y : array-like
            Coordinates in the mask's map units.

        Returns
        -------
        ndarray of bool
            Same length as ``x``.
        """
        x = np.asarray(x, dtype=np.float64).ravel()
        y = np.asarray(y, dtype=np.float64).ravel()
        if len(x) == 0 or self.region.is_empty:
            return np.zeros(len(x), dtype=bool)
        pts = gpd.GeoSeries(gpd.points_from_xy(x, y))
        return pts.covered_by(self.region).to_numpy()

    def cells(self, grid):
        """Boolean (ny, nx) array of grid cells whose centres fall inside the mask."""
        xs, ys = grid.cell_coords()
        return self.contains(xs, ys).reshape(grid.shape)


def read_mask(path, buffer=0.0, name=None, crs=None):
    """
    Read a vector layer into a Mask.

    Parameters
    ----------
    path : str or Path
        Any file geopandas can read (GeoPackage, shapefile, GeoJSON).
    buffer : float, optional
        Proximity buffer in map units of the target CRS.
    name : str, optional
        Mask name. Defaults to the file stem.
    crs : str or pyproj.CRS, optional
        Reproject the layer to this CRS before building the mask.

    Returns
    -------
    Mask
    """
    gdf = gpd.read_file(path)
    if crs is not None and gdf.crs is not None and gdf.crs != crs:
        gdf = gdf.to_crs(crs)
    print(f"Loaded {len(gdf)} features from {path}")
    return Mask.from_geodataframe(gdf, buffer=buffer, name=name or getattr(path, 'stem', str(path)))
