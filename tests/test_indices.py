import numpy as np
import pytest

from seafloor.exceptions import BandMismatch, ShapeMismatch
from seafloor.grid import Grid
from seafloor.indices import (
    baseline_statistics, climate_velocity, hazard_grid,
    standardized_anomaly, time_of_emergence
)


def test_baseline_statistics(grid_factory):
    series = grid_factory(np.array([1.0, 3.0, 5.0]).reshape(3, 1, 1))
    stats = baseline_statistics(series)

    assert stats.names == ("mean", "sd")
    assert stats.band("mean")[0, 0] == pytest.approx(3.0)
    assert stats.band("sd")[0, 0] == pytest.approx(2.0)


def test_standardized_anomaly(grid_factory):
    future = grid_factory([[5.0, 5.0]], ["o2"])
    mean = grid_factory([[1.0, 1.0]])
    sd = grid_factory([[2.0, 0.0]])

    anomaly = standardized_anomaly(future, mean, sd)
    assert anomaly.names == ("o2",)
    assert anomaly.band(0)[0, 0] == pytest.approx(2.0)
    assert np.isnan(anomaly.band(0)[0, 1])

    with pytest.raises(ShapeMismatch):
        standardized_anomaly(future, grid_factory([[1.0]]), sd)


def test_hazard_grid_fixed_order(grid_factory):
    parts = [grid_factory([[float(i)]], [f"layer{i}"]) for i in range(4)]
    grid = hazard_grid(*parts)

    assert grid.names == ("epc", "o2", "ph", "thetao")
    np.testing.assert_array_equal(grid.values[:, 0, 0], [0.0, 1.0, 2.0, 3.0])


def test_time_of_emergence_first_exceedance(grid_factory):
    values = np.array([
        [[0.0, 0.1]],
        [[1.0, 0.2]],
        [[-2.5, 0.3]],
        [[1.0, 0.4]],
        [[3.0, np.nan]],
    ])
    series = grid_factory(values, ["2000", "2001", "2002", "2003", "2004"])

    toe = time_of_emergence(series)
    assert toe.names == ("toe",)
    assert toe.band(0)[0, 0] == 2002
    assert np.isnan(toe.band(0)[0, 1])

    persistent = time_of_emergence(series, persistent=True)
    assert persistent.band(0)[0, 0] == 2004


def test_time_of_emergence_against_baseline(grid_factory):
    values = np.array([1.0, -1.0, 1.0, -1.0, 2.0, 3.0]).reshape(6, 1, 1)
    series = grid_factory(values)
    years = [2000, 2001, 2002, 2003, 2004, 2005]

    # baseline sd = sqrt(4/3): 2.0 -> 1.73 sd, 3.0 -> 2.60 sd
    toe = time_of_emergence(series, years, baseline=(2000, 2003))
    assert toe.band(0)[0, 0] == 2005


def test_time_of_emergence_needs_years(grid_factory):
    series = grid_factory(np.zeros((2, 1, 1)), ["a", "b"])
    with pytest.raises(BandMismatch):
        time_of_emergence(series)
    with pytest.raises(BandMismatch):
        time_of_emergence(series, years=[2000])


def test_climate_velocity_projected():
    x = np.array([0.0, 1000.0, 2000.0])
    y = np.array([2000.0, 1000.0, 0.0])
    years = [2000, 2001, 2002, 2003]
    field = np.tile(x / 1000.0, (3, 1))
    values = np.stack([field + 0.5 * i for i in range(len(years))])
    series = Grid(values, x, y, [str(yr) for yr in years])

    velocity = climate_velocity(series, geographic=False)

    assert velocity.names == ("trend", "gradient", "velocity")
    np.testing.assert_allclose(velocity.band("trend"), 0.5)
    np.testing.assert_allclose(velocity.band("gradient"), 1.0)
    np.testing.assert_allclose(velocity.band("velocity"), 0.5)


def test_climate_velocity_keeps_cells_next_to_missing():
    x = np.array([0.0, 1000.0, 2000.0, 3000.0])
    y = np.array([2000.0, 1000.0, 0.0])
    years = [2000, 2001, 2002, 2003]
    field = np.tile(x / 1000.0, (3, 1))
    values = np.stack([field + 0.5 * i for i in range(len(years))])
    values[:, 1, 0] = np.nan
    series = Grid(values, x, y, [str(yr) for yr in years])

    velocity = climate_velocity(series, geographic=False).band("velocity")

    assert np.isnan(velocity[1, 0])
    valid = ~np.isnan(values[0])
    np.testing.assert_allclose(velocity[valid], 0.5)


def test_climate_velocity_geographic_uses_ellipsoid_distance():
    x = np.array([0.0, 1.0, 2.0])
    y = np.array([1.0, 0.0, -1.0])
    field = np.tile(x, (3, 1))
    values = np.stack([field + 0.1 * i for i in range(3)])
    series = Grid(values, x, y, ["2000", "2001", "2002"])

    velocity = climate_velocity(series)

    # one degree of longitude near the equator is ~111.3 km
    np.testing.assert_allclose(velocity.band("velocity"), 0.1 * 111.3, rtol=0.01)


def test_climate_velocity_flat_field_is_missing(grid_factory):
    values = np.stack([np.full((2, 2), float(i)) for i in range(3)])
    series = grid_factory(values, ["2000", "2001", "2002"])

    velocity = climate_velocity(series, geographic=False)
    np.testing.assert_allclose(velocity.band("trend"), 1.0)
    assert np.isnan(velocity.band("velocity")).all()


def test_climate_velocity_needs_two_steps_and_cells(grid_factory):
    with pytest.raises(BandMismatch):
        climate_velocity(grid_factory(np.zeros((1, 2, 2)), ["2000"]), geographic=False)
    with pytest.raises(ShapeMismatch):
        climate_velocity(grid_factory(np.zeros((2, 1, 3)), ["2000", "2001"]), geographic=False)
