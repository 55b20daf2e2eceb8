import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
from shapely.geometry import LineString, MultiPoint, Point, box

from seafloor.grid import Grid
from seafloor.masks import Mask

# 4x4 north-up lattice: x = 0..3, y = 3..0
X = [0.0, 1.0, 2.0, 3.0]
Y = [3.0, 2.0, 1.0, 0.0]

ELEVATION = [
    [-50.0, -150.0, -199.9, -200.0],
    [-250.0, -1000.0, -4500.0, -4999.0],
    [-5000.0, -6000.0, 10.0, np.nan],
    [-100.0, -300.0, -3000.0, -3500.0],
]


@pytest.fixture
def habitat_grid():
    """Depth band plus two variables; o2 is missing at (x=1, y=2)."""
    temp = np.arange(16, dtype=float).reshape(4, 4)
    o2 = temp + 100.0
    o2[1, 1] = np.nan
    return Grid(np.stack([ELEVATION, temp, o2]), X, Y, ["depth", "temp", "o2"])


@pytest.fixture
def masks():
    """EEZ covers rows y=3..1; canyon runs along x=2; seamounts at (1,1) and (0,0)."""
    return {
        "eez": Mask(box(-0.5, 0.5, 3.5, 3.5), name="eez"),
        "canyon": Mask(LineString([(2, -1), (2, 4)]), buffer=0.1, name="canyon"),
        "seamount": Mask(MultiPoint([(1, 1), (0, 0)]), buffer=0.2, name="seamount"),
    }


@pytest.fixture
def far_coral():
    return Mask(Point(10, 10), buffer=0.1, name="coral")


def make_grid(values, names=None, x=None, y=None):
    """Grid on a lattice sized to ``values`` (n_bands, ny, nx)."""
    values = np.asarray(values, dtype=float)
    if values.ndim == 2:
        values = values[np.newaxis]
    _, ny, nx = values.shape
    x = np.arange(nx, dtype=float) if x is None else x
    y = np.arange(ny, dtype=float)[::-1] if y is None else y
    names = names or [f"b{i}" for i in range(values.shape[0])]
    return Grid(values, x, y, names)


@pytest.fixture
def grid_factory():
    return make_grid
