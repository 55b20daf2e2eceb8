import geopandas as gpd
import numpy as np
import pandas as pd
import pytest
from shapely.geometry import LineString, box

from seafloor.io import read_grid, read_masks, write_grid, write_table


def test_write_then_read_grid(habitat_grid, tmp_path):
    path = tmp_path / "layers.tif"
    write_grid(habitat_grid, path, crs="EPSG:4326")

    grid, crs = read_grid(path)

    assert crs.to_epsg() == 4326
    assert grid.names == habitat_grid.names
    assert grid.same_geometry(habitat_grid)
    np.testing.assert_allclose(grid.masked_values(), habitat_grid.masked_values(), rtol=1e-6)


def test_write_grid_flips_south_up_rows(grid_factory, tmp_path):
    south_up = grid_factory([[1.0, 2.0], [3.0, 4.0]], ["a"], y=[0.0, 1.0])
    path = tmp_path / "a.tif"
    write_grid(south_up, path)

    grid, _ = read_grid(path, names=["a"])
    assert grid.y.tolist() == [1.0, 0.0]
    assert grid.band("a").tolist() == [[3.0, 4.0], [1.0, 2.0]]


def test_read_masks_skips_missing_layers(tmp_path):
    eez = tmp_path / "eez.gpkg"
    canyon = tmp_path / "canyon.gpkg"
    gpd.GeoDataFrame(geometry=[box(0, 0, 5, 5)], crs="EPSG:4326").to_file(eez)
    gpd.GeoDataFrame(geometry=[LineString([(1, 0), (1, 5)])], crs="EPSG:4326").to_file(canyon)

    masks = read_masks(
        crs="EPSG:4326",
        paths={"eez": eez, "canyon": canyon, "coral": tmp_path / "none.gpkg"},
        buffers={"eez": 0.0, "canyon": 0.2},
    )

    assert sorted(masks) == ["canyon", "eez"]
    assert masks["canyon"].buffer == 0.2


def test_read_masks_requires_eez(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_masks(paths={"eez": tmp_path / "missing.gpkg"})


def test_write_table(tmp_path):
    path = tmp_path / "table.parquet"
    df = pd.DataFrame({"x": [0.0], "y": [1.0], "variable": ["temp"], "value": [2.0], "habitat": ["Shelf"]})
    write_table(df, path)
    pd.testing.assert_frame_equal(pd.read_parquet(path), df)
