import numpy as np
import pandas as pd
import pytest

from seafloor.exceptions import ShapeMismatch
from seafloor.sdm import background_points, cell_index, run_sdm, sample_grid, thin_occurrences


class MeanScorer:
    def __init__(self, grid):
        self.grid = grid

    def predict(self, predictors):
        return predictors.like(predictors.masked_values().mean(axis=0), ["suitability"])


class RecordingModel:
    """Stand-in for an external model: remembers what it was fitted on."""

    def __init__(self, scorer_cls=MeanScorer):
        self.scorer_cls = scorer_cls
        self.points = None

    def fit(self, predictors, points):
        self.points = points
        return self.scorer_cls(predictors)


@pytest.fixture
def predictors(grid_factory):
    temp = np.arange(9, dtype=float).reshape(3, 3)
    o2 = temp * 10
    o2[2, 2] = np.nan
    return grid_factory(np.stack([temp, o2]), ["temp", "o2"])


def test_cell_index_and_outside_points(predictors):
    points = pd.DataFrame({"lon": [0.1, 2.0, 7.0], "lat": [2.2, 0.0, 1.0]})
    rows, cols = cell_index(predictors, points)

    assert rows.tolist() == [0, 2, -1]
    assert cols.tolist() == [0, 2, -1]


def test_cell_index_lattice_edges_and_missing(predictors):
    points = pd.DataFrame({"x": [-0.4, 2.4, -0.6, 1.0, np.nan],
                           "y": [2.4, -0.4, 1.0, 2.6, 1.0]})
    rows, cols = cell_index(predictors, points)

    assert rows.tolist() == [0, 2, -1, -1, -1]
    assert cols.tolist() == [0, 2, -1, -1, -1]


def test_sample_grid(predictors):
    points = pd.DataFrame({"x": [1.0, 2.0, 9.0], "y": [1.0, 0.0, 9.0], "id": [1, 2, 3]})
    sampled = sample_grid(predictors, points)

    assert sampled["id"].tolist() == [1, 2, 3]
    assert sampled["temp"].tolist()[:2] == [4.0, 8.0]
    assert np.isnan(sampled["o2"].iloc[1])
    assert np.isnan(sampled["temp"].iloc[2])


def test_sample_grid_needs_coordinates(predictors):
    with pytest.raises(ValueError):
        sample_grid(predictors, pd.DataFrame({"a": [1]}))


def test_thin_occurrences_one_per_cell(predictors):
    points = pd.DataFrame({"x": [0.0, 0.1, 1.0, 50.0], "y": [2.0, 1.9, 2.0, 50.0], "id": [1, 2, 3, 4]})
    thinned = thin_occurrences(points, predictors)
    assert thinned["id"].tolist() == [1, 3]


def test_background_points(predictors):
    first = background_points(predictors, 5, seed=42)
    second = background_points(predictors, 5, seed=42)

    pd.testing.assert_frame_equal(first, second)
    assert len(first) == 5
    assert not ((first["x"] == 2.0) & (first["y"] == 0.0)).any()

    assert len(background_points(predictors, 100, seed=0)) == 8


def test_run_sdm_fits_thinned_points_and_masks(predictors):
    points = pd.DataFrame({"x": [0.0, 0.0, 1.0], "y": [2.0, 2.0, 1.0]})
    footprint = np.ones((3, 3), dtype=bool)
    footprint[0, 0] = False
    model = RecordingModel()

    suitability = run_sdm(model, predictors, points, footprint=footprint)

    assert len(model.points) == 2
    assert suitability.names == ("suitability",)
    assert suitability.same_geometry(predictors)
    assert np.isnan(suitability.band(0)[0, 0])
    assert suitability.band(0)[1, 1] == pytest.approx((4.0 + 40.0) / 2)


def test_run_sdm_rejects_foreign_geometry(predictors, grid_factory):
    class ShiftedScorer(MeanScorer):
        def predict(self, predictors):
            return grid_factory(np.zeros((2, 2)))

    points = pd.DataFrame({"x": [0.0], "y": [2.0]})
    with pytest.raises(ShapeMismatch):
        run_sdm(RecordingModel(ShiftedScorer), predictors, points)


def test_run_sdm_needs_points_on_grid(predictors):
    points = pd.DataFrame({"x": [100.0], "y": [100.0]})
    with pytest.raises(ValueError):
        run_sdm(RecordingModel(), predictors, points)
