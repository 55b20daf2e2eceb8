import geopandas as gpd
import numpy as np
from shapely.geometry import LineString, MultiPoint, box

from seafloor.masks import Mask, read_mask


def test_polygon_contains_boundary_and_interior():
    mask = Mask(box(0, 0, 2, 2))
    inside = mask.contains([1.0, 2.0, 3.0], [1.0, 2.0, 1.0])
    assert inside.tolist() == [True, True, False]


def test_line_mask_uses_buffer():
    line = LineString([(0, 0), (0, 10)])
    assert Mask(line, buffer=0.5).contains([0.4, 0.6], [5.0, 5.0]).tolist() == [True, False]


def test_point_mask_uses_buffer():
    mask = Mask(MultiPoint([(0, 0), (5, 5)]), buffer=1.0)
    assert mask.contains([0.5, 5.0, 2.5], [0.5, 5.9, 2.5]).tolist() == [True, True, False]


def test_empty_input_returns_empty_selection():
    assert Mask(box(0, 0, 1, 1)).contains([], []).shape == (0,)


def test_cells_matches_grid_shape(habitat_grid, masks):
    cells = masks["eez"].cells(habitat_grid)

    assert cells.shape == habitat_grid.shape
    assert cells[:3].all()
    assert not cells[3].any()


def test_mask_does_not_modify_grid(habitat_grid, masks):
    before = habitat_grid.masked_values()
    masks["canyon"].cells(habitat_grid)
    np.testing.assert_array_equal(habitat_grid.masked_values(), before)


def test_from_geodataframe_unions_features():
    gdf = gpd.GeoDataFrame(geometry=[box(0, 0, 1, 1), box(5, 5, 6, 6)])
    mask = Mask.from_geodataframe(gdf, name="eez")
    assert mask.contains([0.5, 5.5, 3.0], [0.5, 5.5, 3.0]).tolist() == [True, True, False]


def test_read_mask_from_file(tmp_path):
    path = tmp_path / "eez.gpkg"
    gpd.GeoDataFrame(geometry=[box(0, 0, 1, 1)], crs="EPSG:4326").to_file(path)

    mask = read_mask(path, crs="EPSG:4326")
    assert mask.name == "eez"
    assert mask.contains([0.5], [0.5]).tolist() == [True]
