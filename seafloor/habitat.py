"""
Habitat partitioning of gridded seafloor variables.

This module contains functions for:
- Converting elevation to depth magnitude
- Classifying depth into Shelf / Slope buckets
- Selecting EEZ, canyon, seamount and cold-water coral cells
- Reshaping the selected cells into a long habitat table
"""

import numpy as np
import pandas as pd

from seafloor.config import (
    SHELF_MAX_DEPTH, SLOPE_MAX_DEPTH,
    SHELF_LABEL, SLOPE_LABEL, OUT_OF_RANGE_LABEL, FEATURE_LABELS
)
from seafloor.exceptions import BandMismatch, EmptyMaskResult

# Group order in the output table
GROUPS = ['eez', 'canyon', 'seamount', 'coral']

TABLE_COLUMNS = ['x', 'y', 'variable', 'value', 'habitat']


def depth_magnitude(elevation):
    """Convert elevation (negative below sea level) to positive depth in meters."""
    return -np.asarray(elevation, dtype=np.float64)


def classify_depth(depth, shelf_max=SHELF_MAX_DEPTH, slope_max=SLOPE_MAX_DEPTH):
    """
    Bucket depth magnitudes into Shelf, Slope or OutOfRange.

    Parameters
    ----------
    depth : float or array-like
        Depth magnitude in meters (positive below the sea surface).
    shelf_max : float, optional
        Shelf/Slope break. Default 200.
    slope_max : float, optional
        Lower limit of the slope. Default 5000. Contour overlays use 4000.

    Returns
    -------
    str or ndarray of str
        Label per depth value.

    Notes
    -----
    Shelf is [0, shelf_max) and Slope is [shelf_max, slope_max]. A depth of
    exactly shelf_max is Slope, as is a depth of exactly slope_max. Land
    (negative magnitude), missing values and depths > slope_max are
    OutOfRange.
    """
    if not 0 < shelf_max < slope_max:
        raise ValueError(f"Need 0 < shelf_max ({shelf_max}) < slope_max ({slope_max})")

    d = np.asarray(depth, dtype=np.float64)
    labels = np.full(d.shape, OUT_OF_RANGE_LABEL, dtype=object)
    labels[(d >= 0) & (d < shelf_max)] = SHELF_LABEL
    labels[(d >= shelf_max) & (d <= slope_max)] = SLOPE_LABEL

    if d.ndim == 0:
        return labels.item()
    return labels


def _resolve_variables(grid, depth_band, variables):
    depth_name = grid.names[grid.index(depth_band)]
    if variables is None:
        variables = [n for n in grid.names if n != depth_name]
    else:
        variables = [grid.names[grid.index(v)] for v in variables]
        variables = list(dict.fromkeys(variables))
    if not variables:
        raise BandMismatch(f"Grid has no variable bands besides depth band {depth_name!r}")
    return depth_name, variables


def _resolve_masks(masks):
    masks = {str(k).lower(): m for k, m in masks.items()}
    unknown = set(masks) - set(GROUPS)
    if unknown:
        raise ValueError(f"Unknown mask names: {sorted(unknown)}. Expected some of {GROUPS}")
    if 'eez' not in masks:
        raise ValueError("An 'eez' mask is required")
    return masks


def _group_frame(frame, selected, depth_name, variables, label, shelf_max, slope_max):
    """Wide table of selected, complete cells with a habitat column."""
    columns = ['x', 'y'] + list(dict.fromkeys([depth_name] + variables))
    group = frame.loc[selected.ravel(), columns]
    group = group.dropna(subset=[depth_name] + variables)

    if label is None:
        habitat = classify_depth(depth_magnitude(group[depth_name].to_numpy()),
                                 shelf_max, slope_max)
        group = group.assign(habitat=habitat)
        group = group[group['habitat'] != OUT_OF_RANGE_LABEL]
    else:
        group = group.assign(habitat=label)

    return group[['x', 'y'] + variables + ['habitat']]


def habitat_cells(grid, depth_band, masks, group='eez', variables=None,
                  shelf_max=SHELF_MAX_DEPTH, slope_max=SLOPE_MAX_DEPTH):
    """
    Select the cells of one habitat group as a wide table.

    Parameters
    ----------
    grid : Grid
        Multi-band grid holding a depth/elevation band and variable bands.
    depth_band : str or int
        Elevation band (meters, negative below sea level).
    masks : dict
        Named masks; 'eez' is required, 'canyon', 'seamount', 'coral' optional.
    group : str, optional
        'eez' for Shelf/Slope depth bucketing, or one of the feature masks.
    variables : list, optional
        Variable bands to keep. Defaults to all bands except depth.
    shelf_max, slope_max : float, optional
        Depth bucket thresholds for the 'eez' group.

    Returns
    -------
    DataFrame
        Columns x, y, one per variable, and habitat; rows in row-major
        cell order.

    Raises
    ------
    BandMismatch
        If a requested band is absent.
    EmptyMaskResult
        If the group selects no cells.

    Notes
    -----
    Feature groups require membership in both the feature mask and the
    EEZ. A feature cell outside the EEZ is never returned.
    """
    depth_name, variables = _resolve_variables(grid, depth_band, variables)
    masks = _resolve_masks(masks)
    group = group.lower()
    if group not in masks:
        raise ValueError(f"No mask named {group!r}")

    frame = grid.to_frame()
    selected = masks['eez'].cells(grid)
    if group != 'eez':
        selected = selected & masks[group].cells(grid)
    label = None if group == 'eez' else FEATURE_LABELS[group]

    out = _group_frame(frame, selected, depth_name, variables, label, shelf_max, slope_max)
    if out.empty:
        raise EmptyMaskResult(f"Mask {group!r} selected no cells with complete data")
    return out


def mask_habitat(grid, depth_band, masks, variables=None,
                 shelf_max=SHELF_MAX_DEPTH, slope_max=SLOPE_MAX_DEPTH, on_empty='raise'):
    """
    Partition grid cells into habitats and return a long-form table.

    Parameters
    ----------
    grid : Grid
        Multi-band grid holding a depth/elevation band and variable bands.
    depth_band : str or int
        Elevation band (meters, negative below sea level).
    masks : dict
        Named masks; 'eez' is required, 'canyon', 'seamount', 'coral' optional.
    variables : list, optional
        Variable bands to reshape. Defaults to all bands except depth.
    shelf_max, slope_max : float, optional
        Depth bucket thresholds. Default 200 / 5000 m.
    on_empty : {'raise', 'skip'}, optional
        What to do when a group selects no cells. Default 'raise'.

    Returns
    -------
    DataFrame
        Long table with columns x, y, variable, value, habitat. One row per
        cell and variable.

    Notes
    -----
    Groups are stacked in the order Shelf/Slope, Canyon, Seamount, CWC;
    within a group rows follow row-major cell order, and within a cell the
    variable order. Labels are exclusive only within the depth buckets: a
    cell may appear once as Shelf or Slope and again as Canyon, Seamount or
    CWC.
    """
    if on_empty not in ('raise', 'skip'):
        raise ValueError(f"on_empty must be 'raise' or 'skip', got {on_empty!r}")

    depth_name, variables = _resolve_variables(grid, depth_band, variables)
    masks = _resolve_masks(masks)

    frame = grid.to_frame()
    eez_cells = masks['eez'].cells(grid)

    groups = []
    for name in GROUPS:
        if name not in masks:
            continue
        if name == 'eez':
            selected, label = eez_cells, None
        else:
            selected, label = eez_cells & masks[name].cells(grid), FEATURE_LABELS[name]

        group = _group_frame(frame, selected, depth_name, variables, label, shelf_max, slope_max)
        if group.empty:
            if on_empty == 'raise':
                raise EmptyMaskResult(f"Mask {name!r} selected no cells with complete data")
            continue
        groups.append(group)

    if not groups:
        return pd.DataFrame({c: pd.Series(dtype=float if c in ('x', 'y', 'value') else object)
                             for c in TABLE_COLUMNS})

    wide = pd.concat(groups, ignore_index=True)
    wide['_row'] = np.arange(len(wide))

    # melt emits one block per variable; a stable sort on the row number
    # restores cell order with variables in request order inside each cell
    long = wide.melt(id_vars=['_row', 'x', 'y', 'habitat'], value_vars=variables,
                     var_name='variable', value_name='value')
    long = long.sort_values('_row', kind='stable')

    return long[TABLE_COLUMNS].reset_index(drop=True)
