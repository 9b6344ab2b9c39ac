import logging

import numpy as np
import pytest

from smrf import SMRF, SMRFConfig, ConfigurationError, DataError
from smrf.interpolation import inpaint_nans, linear_interpolate
from smrf.utils import ClassificationMetrics, generate_scene


@pytest.fixture
def block_filter():
    return SMRF(SMRFConfig(cell_size=1.0, slope_threshold=0.15, max_window=10,
                           elevation_threshold=0.5, elevation_scaler=1.25))


@pytest.mark.parametrize("options", [
    dict(slope_threshold=0.1, max_window=6, elevation_threshold=0.2, elevation_scaler=0.0),
    dict(slope_threshold=0.15, max_window=10, elevation_threshold=0.5, elevation_scaler=1.25),
])
def test_block_is_identified(block_scene, options):
    x, y, z, block = block_scene

    result = SMRF(SMRFConfig(cell_size=1.0, **options)).filter(x, y, z)

    np.testing.assert_array_equal(result.is_object, block)
    assert result.final_surface.shape == result.grid.shape == (100, 100)
    np.testing.assert_allclose(result.final_surface[1:-1, 1:-1], 0.0, atol=1e-9)
    np.testing.assert_allclose(result.prospective_surface, 0.0, atol=1e-9)
    assert result.is_object_cell.sum() == 100
    assert result.dsm.max() == 3.0


def test_without_elevation_threshold(block_scene, caplog):
    x, y, z, _ = block_scene
    smrf = SMRF(SMRFConfig(cell_size=1.0, slope_threshold=0.15, max_window=10))

    with caplog.at_level(logging.WARNING, logger='smrf'):
        result = smrf.filter(x, y, z)

    assert result.is_object is None
    assert result.final_surface is result.prospective_surface
    assert any('prospective surface' in r.message for r in caplog.records)


def test_elevation_scaler_alone_does_not_classify(block_scene, caplog):
    x, y, z, _ = block_scene
    smrf = SMRF(SMRFConfig(cell_size=1.0, slope_threshold=0.1, max_window=6,
                           elevation_scaler=1.0))

    with caplog.at_level(logging.WARNING, logger='smrf'):
        result = smrf.filter(x, y, z)

    assert result.is_object is None
    np.testing.assert_array_equal(result.final_surface, result.prospective_surface)
    assert any('prospective surface' in r.message for r in caplog.records)


def test_dict_options_with_short_names(block_scene):
    x, y, z, block = block_scene
    smrf = SMRF({'c': 1.0, 's': 0.15, 'w': 10, 'et': 0.5, 'es': 1.25,
                 'inpaintMethod': 2})

    assert smrf.config.max_window == 10
    assert smrf.config.gap_fill_method == 2
    np.testing.assert_array_equal(smrf.filter(x, y, z).is_object, block)


def test_window_sequence(block_scene):
    x, y, z, block = block_scene
    smrf = SMRF({'c': 1.0, 's': 0.15, 'w': [1, 2, 4, 6, 8], 'et': 0.5})

    assert smrf.config.window_sequence is not None
    np.testing.assert_array_equal(smrf.filter(x, y, z).is_object, block)


def test_configuration_errors():
    with pytest.raises(ConfigurationError):
        SMRF({'c': 1.0, 's': 0.15, 'w': 10, 'colour': 'red'})
    with pytest.raises(ConfigurationError):
        SMRF({'c': 1.0, 'w': 10})
    with pytest.raises(ConfigurationError):
        SMRF({'c': 1.0, 's': 0.15, 'w': [4, 2]})
    with pytest.raises(ConfigurationError):
        SMRF([('c', 1.0)])


def test_mismatched_point_arrays(block_filter):
    with pytest.raises(DataError):
        block_filter.filter([0.0, 1.0, 2.0], [0.0, 1.0], [0.0, 1.0, 2.0])


def test_net_breaks_up_large_building():
    xx, yy = np.meshgrid(np.arange(60.0), np.arange(60.0))
    building = (xx >= 15) & (xx < 45) & (yy >= 15) & (yy < 45)
    zz = np.where(building, 10.0, 0.0)
    options = dict(cell_size=1.0, slope_threshold=0.1, max_window=6,
                   elevation_threshold=0.5)

    plain = SMRF(SMRFConfig(**options)).filter(xx.ravel(), yy.ravel(), zz.ravel())
    netted = SMRF(SMRFConfig(net_spacing=10.0, **options)).filter(
        xx.ravel(), yy.ravel(), zz.ravel())

    # 行号自上而下，建筑物关于中心对称
    assert not plain.is_object_cell[15:45, 15:45].all()
    assert netted.is_object_cell[15:45, 15:45].all()
    assert netted.is_object_cell.sum() >= plain.is_object_cell.sum()
    np.testing.assert_array_equal(netted.is_object, building.ravel())


def test_injected_services(block_scene):
    x, y, z, block = block_scene
    methods = []

    def gap_filler(raster, method):
        methods.append(method)
        return inpaint_nans(raster, method)

    smrf = SMRF(SMRFConfig(cell_size=1.0, slope_threshold=0.15, max_window=10,
                           elevation_threshold=0.5),
                gap_filler=gap_filler, scattered_interpolator=linear_interpolate)
    result = smrf.filter(x, y, z)

    assert methods == [4]
    np.testing.assert_array_equal(result.is_object, block)
    np.testing.assert_allclose(result.final_surface[1:-1, 1:-1], 0.0, atol=1e-9)


def test_explicit_grid_leaves_outside_points_as_ground(block_scene):
    x, y, z, block = block_scene
    smrf = SMRF(SMRFConfig(slope_threshold=0.15, max_window=10, elevation_threshold=0.5,
                           xi=np.arange(20.0, 80.0), yi=np.arange(79.0, 19.0, -1.0)))

    result = smrf.filter(x, y, z)

    assert smrf.config.cell_size == 1.0
    assert result.grid.shape == (60, 60)
    np.testing.assert_array_equal(result.is_object, block)


def test_classify(block_scene, block_filter):
    x, y, z, block = block_scene
    points = np.column_stack((x, y, z))

    np.testing.assert_array_equal(block_filter.classify(points), block)

    with pytest.raises(ValueError):
        block_filter.classify(points[:, :2])
    with pytest.raises(ConfigurationError):
        SMRF({'c': 1.0, 's': 0.15, 'w': 10}).classify(points)


def test_building_on_sloped_terrain():
    points, labels = generate_scene(size=60, z_func=lambda xx, yy: 0.05 * xx,
                                    buildings=[(30, 30, 12, 12, 6)])
    smrf = SMRF(SMRFConfig(cell_size=1.0, slope_threshold=0.15, max_window=8,
                           elevation_threshold=0.5, elevation_scaler=1.25))

    result = smrf.filter(points[:, 0], points[:, 1], points[:, 2])
    errors = ClassificationMetrics.compute_filter_errors(labels, result.is_object)

    assert errors['total'] == 0.0
    assert errors['kappa'] == pytest.approx(1.0)

    XI, _ = np.meshgrid(result.grid.xi, result.grid.yi)
    assert np.nanmedian(np.abs(result.final_surface - 0.05 * XI)) < 0.05


def test_net_on_single_row_grid():
    x = np.arange(20.0)
    smrf = SMRF(SMRFConfig(cell_size=1.0, slope_threshold=0.1, max_window=6,
                           net_spacing=5.0))

    with pytest.raises(DataError, match="two rows and two columns"):
        smrf.filter(x, np.zeros_like(x), np.zeros_like(x))
