"""
Reading and writing the bundled dataset.

This module contains functions for:
- Reading GeoTIFF rasters into Grid objects
- Writing Grid objects back to GeoTIFF
- Reading the EEZ, canyon, seamount and coral vector layers as masks
- Writing long tables to parquet
"""

from pathlib import Path

import numpy as np
import rasterio
from rasterio.transform import from_origin, xy

from seafloor import config
from seafloor.grid import Grid
from seafloor.masks import read_mask


def read_grid(path, names=None):
    """
    Read a (multi-band) GeoTIFF into a Grid.

    Parameters
    ----------
    path : str or Path
        Raster file.
    names : sequence of str, optional
        Band names. Defaults to the band descriptions stored in the file,
        or band_1, band_2... when there are none.

    Returns
    -------
    tuple of (Grid, CRS)
        Grid with cell-centre coordinates and nodata cells set to NaN, and
        the raster CRS (for reprojecting vector masks onto it).
    """
    with rasterio.open(path) as src:
        values = src.read(masked=True).astype(np.float64).filled(np.nan)
        rows = np.arange(src.height)
        cols = np.arange(src.width)
        x, _ = xy(src.transform, np.zeros_like(cols), cols, offset='center')
        _, y = xy(src.transform, rows, np.zeros_like(rows), offset='center')
        if names is None:
            names = [d or f"band_{i + 1}" for i, d in enumerate(src.descriptions)]
        crs = src.crs
        shape = (src.height, src.width)

    print(f"Read {len(names)} band(s) {shape[0]}x{shape[1]} from {path}")
    return Grid(values, x, y, names), crs


def write_grid(grid, path, crs=None):
    """
    Write a Grid to a float32 GeoTIFF.

    Rows are written north-up; a grid with ascending y is flipped first.
    Missing cells are written as NaN nodata.
    """
    values = grid.masked_values().astype(np.float32)
    y = grid.y
    if len(y) > 1 and y[1] > y[0]:
        values = values[:, ::-1, :]
        y = y[::-1]
    xres = abs(grid.x[1] - grid.x[0]) if len(grid.x) > 1 else 1.0
    yres = abs(y[1] - y[0]) if len(y) > 1 else 1.0
    transform = from_origin(grid.x[0] - xres / 2, y[0] + yres / 2, xres, yres)

    profile = {
        'driver': 'GTiff',
        'height': grid.shape[0],
        'width': grid.shape[1],
        'count': grid.n_bands,
        'dtype': 'float32',
        'crs': crs,
        'transform': transform,
        'nodata': np.nan,
        'compress': 'deflate',
    }
    with rasterio.open(path, 'w', **profile) as dst:
        dst.write(values)
        for i, name in enumerate(grid.names, start=1):
            dst.set_band_description(i, name)

    print(f"Grid saved to {path}")


def read_masks(crs=None, paths=None, buffers=None):
    """
    Read the EEZ, canyon, seamount and coral layers as named masks.

    Parameters
    ----------
    crs : CRS, optional
        Target CRS (usually the raster CRS from read_grid()).
    paths : dict, optional
        Layer paths keyed by mask name. Defaults to the config paths.
    buffers : dict, optional
        Proximity buffers keyed by mask name. Defaults to the config buffers.

    Returns
    -------
    dict
        Mask per name; layers whose file does not exist are left out,
        except the EEZ which is required.
    """
    paths = paths or {
        'eez': config.EEZ_PATH,
        'canyon': config.CANYON_PATH,
        'seamount': config.SEAMOUNT_PATH,
        'coral': config.CORAL_PATH,
    }
    buffers = buffers or {
        'eez': 0.0,
        'canyon': config.CANYON_BUFFER,
        'seamount': config.SEAMOUNT_BUFFER,
        'coral': config.CORAL_BUFFER,
    }

    paths = {name: Path(p) for name, p in paths.items()}
    if not paths['eez'].exists():
        raise FileNotFoundError(f"EEZ layer not found: {paths['eez']}")

    masks = {}
    for name, path in paths.items():
        if not path.exists():
            print(f"  Skipping {name}: {path} not found")
            continue
        masks[name] = read_mask(path, buffer=buffers.get(name, 0.0), name=name, crs=crs)
    return masks


def write_table(df, path):
    """Write a table to parquet."""
    df.to_parquet(path, engine='pyarrow', index=False)
    print(f"Saved {len(df):,} rows to {path}")
