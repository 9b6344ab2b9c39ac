import numpy as np
import pytest

from smrf import create_dsm, ConfigurationError, DataError


@pytest.fixture
def duplicate_cell_points():
    x = np.array([0.0, 0.1, 5.0, 0.0, 5.0])
    y = np.array([0.0, 0.1, 5.0, 5.0, 0.0])
    z = np.array([1.0, 3.0, 0.0, 2.0, 4.0])
    return x, y, z


@pytest.mark.parametrize("rule, expected", [
    ('min', 1.0),
    ('max', 3.0),
    ('mean', 2.0),
    ('median', 2.0),
])
def test_aggregation_rules(duplicate_cell_points, rule, expected):
    x, y, z = duplicate_cell_points
    result = create_dsm(x, y, z, cell_size=1.0, aggregation=rule)

    # (0, 0)位于最后一行第一列
    assert result.dsm.shape == (6, 6)
    assert result.dsm[5, 0] == pytest.approx(expected)
    assert not result.is_empty_cell[5, 0]
    assert result.dsm[0, 5] == pytest.approx(0.0)
    assert result.dsm[0, 0] == pytest.approx(2.0)


def test_empty_cells_are_filled():
    rng = np.random.default_rng(0)
    x = rng.uniform(0, 20, 150)
    y = rng.uniform(0, 20, 150)
    z = rng.normal(10, 1, 150)

    result = create_dsm(x, y, z, cell_size=1.0)

    assert result.is_empty_cell.any()
    assert not np.isnan(result.dsm).any()
    assert result.dsm.shape == result.is_empty_cell.shape == result.grid.shape
    np.testing.assert_allclose(result.xi, result.grid.xi)
    np.testing.assert_allclose(result.yi, result.grid.yi)


def test_populated_cells_keep_their_values(duplicate_cell_points):
    x, y, z = duplicate_cell_points
    result = create_dsm(x, y, z, cell_size=1.0, fill_empty=False)

    populated = ~result.is_empty_cell
    assert populated.sum() == 4
    assert np.isnan(result.dsm[result.is_empty_cell]).all()


def test_explicit_grid_drops_outside_points():
    xi = np.arange(10.0)
    yi = np.arange(9.0, -1.0, -1.0)
    x = np.array([2.0, -0.7, -3.0, 9.6])
    y = np.array([2.0, 5.0, 5.0, 9.6])
    z = np.array([1.0, 2.0, 99.0, 4.0])

    result = create_dsm(x, y, z, xi=xi, yi=yi, fill_empty=False)

    assert result.dsm[7, 2] == 1.0
    assert result.dsm[4, 0] == 2.0
    assert result.dsm[0, 9] == 4.0
    assert np.nanmax(result.dsm) < 99.0


def test_cloud_outside_grid_is_a_data_error():
    xi = np.arange(10.0)
    yi = np.arange(9.0, -1.0, -1.0)
    with pytest.raises(DataError):
        create_dsm([50.0, 60.0], [50.0, 60.0], [1.0, 2.0], xi=xi, yi=yi)


def test_invalid_input():
    with pytest.raises(DataError):
        create_dsm([], [], [], cell_size=1.0)
    with pytest.raises(DataError):
        create_dsm([0.0, 1.0], [0.0, 1.0], [0.0], cell_size=1.0)
    with pytest.raises(ConfigurationError):
        create_dsm([0.0, 1.0], [0.0, 1.0], [0.0, 1.0])
    with pytest.raises(ConfigurationError):
        create_dsm([0.0, 1.0], [0.0, 1.0], [0.0, 1.0], cell_size=-1.0)
    with pytest.raises(ConfigurationError):
        create_dsm([0.0, 1.0], [0.0, 1.0], [0.0, 1.0], cell_size=1.0, aggregation='mode')
    with pytest.raises(ConfigurationError):
        create_dsm([0.0, 1.0], [0.0, 1.0], [0.0, 1.0], xi=np.arange(3.0))


def test_injected_services(duplicate_cell_points):
    x, y, z = duplicate_cell_points
    calls = []

    def gap_filler(raster, method):
        calls.append(method)
        return np.where(np.isnan(raster), -1.0, raster)

    result = create_dsm(x, y, z, cell_size=1.0, gap_fill_method=2, gap_filler=gap_filler)

    assert calls == [2]
    assert (result.dsm[result.is_empty_cell] == -1.0).all()
