"""
Derived climate indices for gridded CMIP6 seafloor projections.

This module contains functions for:
- Standardizing projections against a historical baseline
- Assembling the four-band hazard grid used for cumulative impact
- Time of emergence of a climate signal
- Climate velocity (temporal trend / spatial gradient)
"""

import warnings

import numpy as np
from pyproj import Geod

from seafloor.config import HAZARD_BANDS, EMERGENCE_THRESHOLD, MIN_GRADIENT
from seafloor.exceptions import BandMismatch, ShapeMismatch
from seafloor.grid import Grid, stack


def _years(series, years):
    if years is None:
        try:
            years = [int(n) for n in series.names]
        except ValueError:
            raise BandMismatch(
                f"Band names {list(series.names)} are not years; pass years explicitly"
            )
    years = np.asarray(years, dtype=np.float64)
    if len(years) != series.n_bands:
        raise BandMismatch(f"Got {len(years)} years for {series.n_bands} bands")
    return years


def baseline_statistics(series):
    """
    Per-cell mean and sample standard deviation across bands.

    Parameters
    ----------
    series : Grid
        One band per time step of the historical baseline.

    Returns
    -------
    Grid
        Bands 'mean' and 'sd' (ddof=1). Cells with no data are missing.
    """
    values = series.masked_values()
    with warnings.catch_warnings():
        warnings.simplefilter('ignore', category=RuntimeWarning)
        mean = np.nanmean(values, axis=0)
        sd = np.nanstd(values, axis=0, ddof=1)
    return series.like(np.stack([mean, sd]), ['mean', 'sd'])


def standardized_anomaly(future, baseline_mean, baseline_sd):
    """
    Express a projection in units of historical standard deviations.

    Parameters
    ----------
    future : Grid
        Projected values, one or more bands.
    baseline_mean, baseline_sd : Grid
        Single-band grids on the same lattice.

    Returns
    -------
    Grid
        (future - mean) / sd with the band names of ``future``. Cells where
        the sd is missing or not positive are missing.
    """
    for other in (baseline_mean, baseline_sd):
        if not future.same_geometry(other):
            raise ShapeMismatch("Baseline grid geometry differs from projection geometry")
    mean = baseline_mean.band(0)
    sd = baseline_sd.band(0)
    sd = np.where(sd > 0, sd, np.nan)
    anomaly = (future.masked_values() - mean) / sd
    return future.like(anomaly, future.names)


def hazard_grid(poc, do, ph, temp):
    """
    Stack four single-band anomaly grids in the fixed hazard band order.

    The result is the input expected by seafloor.impact.cumulative_impact.
    """
    return stack([g.select([0]) for g in (poc, do, ph, temp)], names=HAZARD_BANDS)


def time_of_emergence(series, years=None, threshold=EMERGENCE_THRESHOLD,
                      baseline=None, persistent=False):
    """
    First year in which a climate signal exceeds a noise threshold.

    Parameters
    ----------
    series : Grid
        One band per year. Values are anomalies in standard deviations unless
        ``baseline`` is given.
    years : sequence of int, optional
        Year of each band. Defaults to the band names parsed as integers.
    threshold : float, optional
        Signal-to-noise threshold in standard deviations. Default 2.
    baseline : tuple of (int, int), optional
        Inclusive baseline years. When given, values are first standardized
        against the baseline mean and sd of each cell.
    persistent : bool, optional
        If True, emergence is the first year after which the signal stays
        above the threshold for the rest of the series.

    Returns
    -------
    Grid
        Single band 'toe' holding the emergence year; missing where the
        signal never emerges.
    """
    years = _years(series, years)
    values = series.masked_values()

    if baseline is not None:
        start, end = baseline
        in_base = (years >= start) & (years <= end)
        if in_base.sum() < 2:
            raise BandMismatch(f"Baseline {baseline} covers fewer than 2 bands")
        stats = baseline_statistics(Grid(values[in_base], series.x, series.y,
                                         [f"b{i}" for i in range(in_base.sum())]))
        sd = stats.band('sd')
        sd = np.where(sd > 0, sd, np.nan)
        values = (values - stats.band('mean')) / sd

    exceed = np.abs(np.nan_to_num(values, nan=0.0)) >= threshold
    if persistent:
        exceed = np.flip(np.logical_and.accumulate(np.flip(exceed, axis=0), axis=0), axis=0)

    emerged = exceed.any(axis=0)
    first = np.argmax(exceed, axis=0)
    toe = np.where(emerged, years[first], np.nan)
    return series.like(toe, ['toe'])


def _cell_spacing_km(grid, geographic):
    """Column spacing per row and row spacing, both in km."""
    if grid.shape[0] < 2 or grid.shape[1] < 2:
        raise ShapeMismatch("Climate velocity needs at least 2 rows and 2 columns")
    if geographic:
        geod = Geod(ellps='WGS84')
        n = len(grid.y)
        _, _, dx = geod.inv(np.full(n, grid.x[0]), grid.y, np.full(n, grid.x[1]), grid.y)
        _, _, dy = geod.inv(grid.x[0], grid.y[0], grid.x[0], grid.y[1])
        return np.asarray(dx) / 1000.0, abs(dy) / 1000.0
    dx = abs(grid.x[1] - grid.x[0]) / 1000.0
    dy = abs(grid.y[1] - grid.y[0]) / 1000.0
    return np.full(len(grid.y), dx), dy


def _nan_diff(field, axis):
    """
    Per-cell difference along one axis, tolerant of missing neighbours.

    Central difference where both neighbours are present, one-sided where
    only one is, 0 where neither is. Missing cells stay missing.
    """
    f = np.moveaxis(field, axis, 0)
    edge = np.full((1,) + f.shape[1:], np.nan)
    step = np.diff(f, axis=0)
    forward = np.concatenate([step, edge])
    backward = np.concatenate([edge, step])

    diff = np.where(np.isnan(forward), backward,
                    np.where(np.isnan(backward), forward, (forward + backward) / 2))
    diff = np.where(np.isnan(diff), 0.0, diff)
    diff[np.isnan(f)] = np.nan
    return np.moveaxis(diff, 0, axis)


def climate_velocity(series, years=None, geographic=True, min_gradient=MIN_GRADIENT):
    """
    Climate velocity from a yearly series of a climate variable.

    Parameters
    ----------
    series : Grid
        One band per year.
    years : sequence of int, optional
        Year of each band. Defaults to the band names parsed as integers.
    geographic : bool, optional
        True for lon/lat lattices (distances on the WGS84 ellipsoid), False
        for projected lattices in meters.
    min_gradient : float, optional
        Spatial gradients below this value give a missing velocity.

    Returns
    -------
    Grid
        Bands 'trend' (units per year, least squares), 'gradient' (units per
        km, from the mean field) and 'velocity' (km per year, trend divided
        by gradient; signed like the trend).

    Notes
    -----
    Cells with a missing value in any year are missing in every band.
    Next to missing cells the spatial gradient uses one-sided differences;
    a cell with no valid neighbour along an axis has no gradient component
    along it.
    """
    years = _years(series, years)
    if len(years) < 2:
        raise BandMismatch("Climate velocity needs at least 2 time steps")

    values = series.masked_values()
    t = years - years.mean()
    mean_field = values.mean(axis=0)
    trend = np.tensordot(t, values - mean_field, axes=(0, 0)) / np.sum(t ** 2)

    dx, dy = _cell_spacing_km(series, geographic)
    grad_x = _nan_diff(mean_field, axis=1) / dx[:, np.newaxis]
    grad_y = _nan_diff(mean_field, axis=0) / dy
    gradient = np.hypot(grad_x, grad_y)

    with np.errstate(invalid='ignore', divide='ignore'):
        velocity = np.where(gradient >= min_gradient, trend / gradient, np.nan)

    return series.like(np.stack([trend, gradient, velocity]), ['trend', 'gradient', 'velocity'])
