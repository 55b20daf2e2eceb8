"""
Regular-lattice raster grid shared by every analysis step.

This module contains:
- The immutable Grid container (band arrays + cell-centre coordinates +
  missing-value sentinel + band names)
- Band selection and footprint helpers
- Conversion of a grid to a wide pandas table
- Stacking of several same-geometry grids into one multi-band grid
"""

from dataclasses import dataclass

import numpy as np
import pandas as pd

from seafloor.exceptions import BandMismatch, ShapeMismatch


@dataclass(frozen=True, eq=False)
class Grid:
    """
    Multi-band raster on a fixed regular lattice.

    Parameters
    ----------
    values : array-like of shape (n_bands, ny, nx) or (ny, nx)
        Band values. A 2-D array is treated as a single band.
    x : array-like of shape (nx,)
        Cell-centre x coordinates (columns).
    y : array-like of shape (ny,)
        Cell-centre y coordinates (rows), in raster row order.
    names : sequence of str
        One name per band.
    nodata : float, optional
        Missing-value sentinel. NaN is always treated as missing as well.

    Notes
    -----
    All bands share one lattice; there is no per-band geometry. Arrays are
    copied and frozen on construction, so a Grid is never mutated after it is
    built. Every operation returns a new Grid.
    """
    values: np.ndarray
    x: np.ndarray
    y: np.ndarray
    names: tuple
    nodata: float = np.nan

    def __post_init__(self):
        values = np.array(self.values, dtype=np.float64)
        if values.ndim == 2:
            values = values[np.newaxis]
        if values.ndim != 3:
            raise ShapeMismatch(f"Grid values must be 2-D or 3-D, got {values.ndim}-D")

        x = np.array(self.x, dtype=np.float64).ravel()
        y = np.array(self.y, dtype=np.float64).ravel()
        names = tuple(str(n) for n in self.names)

        if values.shape[1:] != (len(y), len(x)):
            raise ShapeMismatch(
                f"Band arrays have shape {values.shape[1:]} but coordinates "
                f"describe ({len(y)}, {len(x)})"
            )
        if len(names) != values.shape[0]:
            raise BandMismatch(
                f"Got {len(names)} band names for {values.shape[0]} bands"
            )
        if len(set(names)) != len(names):
            raise BandMismatch(f"Duplicate band names: {list(names)}")

        for arr in (values, x, y):
            arr.flags.writeable = False

        object.__setattr__(self, 'values', values)
        object.__setattr__(self, 'x', x)
        object.__setattr__(self, 'y', y)
        object.__setattr__(self, 'names', names)
        object.__setattr__(self, 'nodata', float(self.nodata))

    # -----------------------------------------------------------------
    # Shape and geometry
    # -----------------------------------------------------------------

    @property
    def n_bands(self):
        return self.values.shape[0]

    @property
    def shape(self):
        """Lattice shape as (ny, nx)."""
        return self.values.shape[1:]

    def same_geometry(self, other):
        """Return True if ``other`` shares this grid's lattice."""
        return (
            self.shape == other.shape
            and np.allclose(self.x, other.x)
            and np.allclose(self.y, other.y)
        )

    def cell_coords(self):
        """
        Flattened cell-centre coordinates in row-major cell order.

        Returns
        -------
        tuple of (ndarray, ndarray)
            x and y coordinate of every cell, length ny * nx.
        """
        xx, yy = np.meshgrid(self.x, self.y)
        return xx.ravel(), yy.ravel()

    # -----------------------------------------------------------------
    # Bands
    # -----------------------------------------------------------------

    def index(self, key):
        """Resolve a band name or integer position to a position."""
        if isinstance(key, (int, np.integer)) and not isinstance(key, bool):
            if not -self.n_bands <= key < self.n_bands:
                raise BandMismatch(f"Band index {key} out of range for {self.n_bands} bands")
            return int(key) % self.n_bands
        if key in self.names:
            return self.names.index(key)
        raise BandMismatch(f"Band {key!r} not found. Available bands: {list(self.names)}")

    def missing(self):
        """Boolean array of shape (n_bands, ny, nx), True where a value is missing."""
        miss = np.isnan(self.values)
        if not np.isnan(self.nodata):
            miss |= self.values == self.nodata
        return miss

    def masked_values(self):
        """Copy of all band values with missing cells set to NaN."""
        out = self.values.copy()
        out[self.missing()] = np.nan
        return out

    def band(self, key):
        """Copy of one band as a 2-D array with missing cells set to NaN."""
        i = self.index(key)
        out = self.values[i].copy()
        out[self.missing()[i]] = np.nan
        return out

    def valid_footprint(self, key=None):
        """
        Boolean (ny, nx) array of cells with known data.

        Parameters
        ----------
        key : str or int, optional
            Band to test. If None, a cell is valid only when every band has
            a value.
        """
        miss = self.missing()
        if key is None:
            return ~miss.any(axis=0)
        return ~miss[self.index(key)]

    def select(self, keys):
        """New grid with only the requested bands, in the requested order."""
        idx = [self.index(k) for k in keys]
        return Grid(self.values[idx], self.x, self.y, [self.names[i] for i in idx], self.nodata)

    def rename(self, names):
        return Grid(self.values, self.x, self.y, names, self.nodata)

    def like(self, values, names):
        """New grid on this lattice with different values and names."""
        return Grid(values, self.x, self.y, names)

    def mask_outside(self, footprint):
        """
        New grid with cells outside ``footprint`` set to missing.

        Parameters
        ----------
        footprint : Grid or array-like of bool, shape (ny, nx)
            Cells to keep. A Grid contributes its all-band valid footprint
            and must share this grid's geometry.
        """
        if isinstance(footprint, Grid):
            if not self.same_geometry(footprint):
                raise ShapeMismatch("Footprint grid geometry differs from input grid geometry")
            keep = footprint.valid_footprint()
        else:
            keep = np.asarray(footprint, dtype=bool)
            if keep.shape != self.shape:
                raise ShapeMismatch(
                    f"Footprint shape {keep.shape} differs from grid shape {self.shape}"
                )
        out = self.masked_values()
        out[:, ~keep] = np.nan
        return Grid(out, self.x, self.y, self.names)

    # -----------------------------------------------------------------
    # Tables
    # -----------------------------------------------------------------

    def to_frame(self, keys=None):
        """
        Convert to a wide DataFrame with one row per cell.

        Parameters
        ----------
        keys : list, optional
            Bands to include. Defaults to all bands.

        Returns
        -------
        DataFrame
            Columns x, y and one column per band (missing as NaN), rows in
            row-major cell order.
        """
        grid = self if keys is None else self.select(keys)
        xs, ys = grid.cell_coords()
        data = {'x': xs, 'y': ys}
        values = grid.masked_values()
        for i, name in enumerate(grid.names):
            data[name] = values[i].ravel()
        return pd.DataFrame(data)


def from_arrays(arrays, x, y, names=None, nodata=np.nan):
    """
    Build a Grid from several 2-D arrays.

    Parameters
    ----------
    arrays : mapping of str to array or sequence of arrays
        Band arrays. A mapping supplies band names from its keys.
    x, y : array-like
        Cell-centre coordinates.
    names : sequence of str, optional
        Band names when ``arrays`` is a sequence. Defaults to band_1, band_2...
    nodata : float, optional
        Missing-value sentinel.
    """
    if isinstance(arrays, dict):
        names = list(arrays.keys())
        arrays = list(arrays.values())
    elif names is None:
        names = [f"band_{i + 1}" for i in range(len(arrays))]
    shapes = {np.shape(a) for a in arrays}
    if len(shapes) != 1:
        raise ShapeMismatch(f"Band arrays have different shapes: {sorted(shapes)}")
    return Grid(np.stack(arrays), x, y, names, nodata)


def stack(grids, names=None):
    """
    Overlay several same-geometry grids into one multi-band grid.

    Parameters
    ----------
    grids : sequence of Grid
        Grids to combine, band order preserved.
    names : sequence of str, optional
        Replacement band names for the result.

    Returns
    -------
    Grid
        Multi-band grid with missing cells as NaN.
    """
    grids = list(grids)
    if not grids:
        raise ValueError("stack() needs at least one grid")
    first = grids[0]
    for g in grids[1:]:
        if not first.same_geometry(g):
            raise ShapeMismatch("Cannot stack grids with different geometry")
    values = np.concatenate([g.masked_values() for g in grids], axis=0)
    if names is None:
        names = [n for g in grids for n in g.names]
    return Grid(values, first.x, first.y, names)
