"""
Species distribution modelling interface.

The model itself (e.g. Maxent) is an external library. This module defines
the capability it must provide and the data preparation around it:
- SpeciesModel / Scorer protocols (fit on predictors + occurrences, predict
  a suitability raster)
- Sampling predictor values at occurrence points
- Thinning occurrences to one record per grid cell
- Drawing background points from valid cells
- A fit -> predict -> mask convenience wrapper
"""

from typing import Protocol

import numpy as np
import pandas as pd

from seafloor.exceptions import ShapeMismatch
from seafloor.grid import Grid


class Scorer(Protocol):
    """Fitted model that maps a predictor stack to a suitability raster."""

    def predict(self, predictors: Grid) -> Grid:
        ...


class SpeciesModel(Protocol):
    """Species distribution model that can be fitted to occurrence points."""

    def fit(self, predictors: Grid, points: pd.DataFrame) -> Scorer:
        ...


def _point_xy(points):
    for xcol, ycol in (('x', 'y'), ('lon', 'lat'), ('longitude', 'latitude'),
                       ('decimalLongitude', 'decimalLatitude')):
        if xcol in points.columns and ycol in points.columns:
            return points[xcol].to_numpy(dtype=float), points[ycol].to_numpy(dtype=float)
    raise ValueError(
        f"Occurrence table needs x/y or lon/lat columns, got {list(points.columns)}"
    )


def _nearest(coords, values):
    """Index of the nearest lattice coordinate; -1 for points off the lattice."""
    coords = np.asarray(coords, dtype=float)
    missing = np.isnan(values)
    if len(coords) == 1:
        idx = np.zeros(len(values), dtype=int)
    else:
        # regular lattice, ascending or descending
        step = coords[1] - coords[0]
        pos = np.rint((np.where(missing, coords[0], values) - coords[0]) / step)
        idx = pos.astype(int)
    idx[missing | (idx < 0) | (idx >= len(coords))] = -1
    return idx


def cell_index(grid, points):
    """
    Row and column of the cell containing each occurrence point.

    Returns
    -------
    tuple of (ndarray, ndarray)
        Row and column indices; -1 where a point falls outside the grid.
    """
    x, y = _point_xy(points)
    cols = _nearest(grid.x, x)
    rows = _nearest(grid.y, y)
    outside = (cols < 0) | (rows < 0)
    rows[outside] = -1
    cols[outside] = -1
    return rows, cols


def sample_grid(grid, points):
    """
    Predictor values at occurrence points.

    Parameters
    ----------
    grid : Grid
        Predictor stack.
    points : DataFrame
        Occurrences with x/y or lon/lat columns.

    Returns
    -------
    DataFrame
        Input columns plus one column per band. Points outside the grid get
        missing predictor values.
    """
    rows, cols = cell_index(grid, points)
    inside = rows >= 0
    values = grid.masked_values()
    out = points.copy()
    for i, name in enumerate(grid.names):
        col = np.full(len(points), np.nan)
        col[inside] = values[i, rows[inside], cols[inside]]
        out[name] = col
    return out


def thin_occurrences(points, grid):
    """
    Keep one occurrence per grid cell and drop points outside the grid.

    The first record in each cell is kept, in input order.
    """
    rows, cols = cell_index(grid, points)
    keyed = points.assign(_row=rows, _col=cols)
    keyed = keyed[keyed['_row'] >= 0]
    keyed = keyed.drop_duplicates(subset=['_row', '_col'])
    print(f"Thinned {len(points)} occurrences to {len(keyed)} unique cells")
    return keyed.drop(columns=['_row', '_col'])


def background_points(grid, n, seed=None):
    """
    Random background locations drawn from cells with complete predictors.

    Parameters
    ----------
    grid : Grid
        Predictor stack.
    n : int
        Number of points. Capped at the number of valid cells.
    seed : int, optional
        Random seed for reproducible draws.

    Returns
    -------
    DataFrame
        Columns x and y at cell centres, without repeats.
    """
    xs, ys = grid.cell_coords()
    valid = np.flatnonzero(grid.valid_footprint().ravel())
    n = min(int(n), len(valid))
    rng = np.random.default_rng(seed)
    pick = np.sort(rng.choice(valid, size=n, replace=False))
    return pd.DataFrame({'x': xs[pick], 'y': ys[pick]})


def run_sdm(model, predictors, points, footprint=None):
    """
    Fit a species distribution model and predict suitability.

    Parameters
    ----------
    model : SpeciesModel
        External model with a ``fit(predictors, points)`` method.
    predictors : Grid
        Predictor stack used for fitting and prediction.
    points : DataFrame
        Occurrence records (x/y or lon/lat columns).
    footprint : Grid or array-like of bool, optional
        Cells to keep in the prediction, e.g. the bathymetry grid.

    Returns
    -------
    Grid
        Suitability raster on the predictor lattice.
    """
    points = thin_occurrences(points, predictors)
    if points.empty:
        raise ValueError("No occurrence points fall inside the predictor grid")

    print(f"Fitting {type(model).__name__} on {len(points)} occurrences "
          f"and {predictors.n_bands} predictors...")
    scorer = model.fit(predictors, points)
    suitability = scorer.predict(predictors)

    if not predictors.same_geometry(suitability):
        raise ShapeMismatch("Model prediction geometry differs from predictor geometry")
    if footprint is not None:
        suitability = suitability.mask_outside(footprint)
    return suitability
