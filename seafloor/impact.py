"""
Cumulative climate impact on the seafloor.

Combines four standardized hazard anomalies (export POC flux, dissolved
oxygen, pH, temperature) into a negative-impact and a positive-impact band.
A decline in food supply, oxygen or pH is a hazard, as is warming; the
opposite changes count towards the positive band.
"""

import numpy as np

from seafloor.config import HAZARD_BANDS, IMPACT_BANDS
from seafloor.exceptions import BandCountMismatch, ShapeMismatch
from seafloor.grid import Grid

# Sign that counts as a hazard for each band, in HAZARD_BANDS order
HAZARD_SIGNS = (-1, -1, -1, 1)


def _check_input(grid4):
    if grid4.n_bands != len(HAZARD_SIGNS):
        raise BandCountMismatch(
            f"Cumulative impact needs exactly {len(HAZARD_SIGNS)} bands "
            f"{list(HAZARD_BANDS)}, got {grid4.n_bands}: {list(grid4.names)}"
        )


def _footprint_cells(grid4, footprint):
    if isinstance(footprint, Grid):
        if not grid4.same_geometry(footprint):
            raise ShapeMismatch("Bathymetry grid geometry differs from hazard grid geometry")
        return footprint.valid_footprint(0)
    keep = np.asarray(footprint, dtype=bool)
    if keep.shape != grid4.shape:
        raise ShapeMismatch(
            f"Footprint shape {keep.shape} differs from hazard grid shape {grid4.shape}"
        )
    return keep


def _contribution(values, sign):
    """Magnitude of values with the given sign, 0 for the other sign, NaN stays NaN."""
    out = np.where(np.sign(values) * sign >= 0, np.abs(values), 0.0)
    out[np.isnan(values)] = np.nan
    return out


def hazard_contributions(grid4):
    """
    Per-band contributions to the negative and positive impact bands.

    Parameters
    ----------
    grid4 : Grid
        Four hazard anomaly bands in the order POC flux, DO, pH, temperature,
        in units of historical standard deviations.

    Returns
    -------
    tuple of (Grid, Grid)
        Negative and positive contributions, each with the input band names.
        Values are non-negative magnitudes; a value with the opposite sign
        contributes 0; missing inputs stay missing.
    """
    _check_input(grid4)
    values = grid4.masked_values()
    negative = np.stack([_contribution(v, s) for v, s in zip(values, HAZARD_SIGNS)])
    positive = np.stack([_contribution(v, -s) for v, s in zip(values, HAZARD_SIGNS)])
    return grid4.like(negative, grid4.names), grid4.like(positive, grid4.names)


def cumulative_impact(grid4, footprint=None):
    """
    Sum hazard anomalies into negative and positive cumulative impact.

    Parameters
    ----------
    grid4 : Grid
        Four hazard anomaly bands in the fixed order POC flux, DO, pH,
        temperature (standard deviations from the historical baseline).
    footprint : Grid or array-like of bool, optional
        Bathymetry grid (or boolean valid-cell array) on the same lattice.
        Cells without bathymetry become missing in the output.

    Returns
    -------
    Grid
        Two bands, 'Negative' and 'Positive', each >= 0 where defined.

    Raises
    ------
    BandCountMismatch
        If ``grid4`` does not have exactly 4 bands.
    ShapeMismatch
        If the footprint geometry differs from the hazard grid.

    Notes
    -----
    Negative impact: POC flux, DO and pH values <= 0 (negated) plus
    temperature values >= 0. Positive impact: POC flux, DO and pH values
    >= 0 plus temperature values <= 0 (negated). Contributions of the other
    sign count as 0 and missing contributions are ignored in the sum; an
    output cell is missing only when all four inputs are missing.

    Examples
    --------
    A cell with POC = -1.5, DO = -0.8, pH = 0.2, temperature = 1.1 gives
    Negative = 3.4 and Positive = 0.2.
    """
    _check_input(grid4)
    keep = None if footprint is None else _footprint_cells(grid4, footprint)

    negative, positive = hazard_contributions(grid4)
    all_missing = grid4.missing().all(axis=0)

    bands = []
    for contrib in (negative, positive):
        total = np.nansum(contrib.values, axis=0)
        total[all_missing] = np.nan
        bands.append(total)

    out = grid4.like(np.stack(bands), IMPACT_BANDS)
    if keep is not None:
        out = out.mask_outside(keep)
    return out
