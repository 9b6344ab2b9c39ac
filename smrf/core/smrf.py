import numpy as np
from typing import Any, Callable, Dict, NamedTuple, Optional, Union
import logging

from .grid import Grid
from .net import create_net
from .progressive import ProgressiveFilter, detect_low_outliers
from .rasterize import create_dsm
from ..config import SMRFConfig
from ..exceptions import ConfigurationError
from ..interpolation.consolidate import consolidate
from ..interpolation.gapfill import inpaint_nans
from ..interpolation.scattered import natural_neighbor_interpolate, sample_surface

logger = logging.getLogger(__name__)


class SMRFResult(NamedTuple):
    """SMRF滤波结果"""
    final_surface: np.ndarray
    grid: Grid
    is_object: Optional[np.ndarray]
    prospective_surface: np.ndarray
    dsm: np.ndarray
    is_object_cell: np.ndarray


def slope_magnitude(surface: np.ndarray, cell_size: float) -> np.ndarray:
    """栅格坡度大小，单位间距中心差分"""
    scaled = np.asarray(surface, dtype=float) / cell_size
    gradients = [np.gradient(scaled, axis=axis) if scaled.shape[axis] > 1
                 else np.zeros_like(scaled)
                 for axis in (0, 1)]
    return np.hypot(gradients[0], gradients[1])


class SMRF:
    """简单形态学滤波（SMRF）地面点分类

    流程：

    1. 栅格化点云得到最低高程面（DSM）
    2. 在取反的DSM上检测低异常值
    3. 可选地切割背景值网格
    4. 渐进形态学滤波识别地物单元
    5. 去除空单元、异常值、地物和网格单元后插值得到预期地面
    6. 若给出高程阈值，按坡度缩放的垂直容差对每个点重新分类
    7. 用地面点插值得到最终地面
    """

    def __init__(self,
                 config: Union[SMRFConfig, Dict[str, Any]],
                 gap_filler: Optional[Callable] = None,
                 scattered_interpolator: Optional[Callable] = None,
                 consolidator: Optional[Callable] = None):
        """
        初始化SMRF滤波器

        Parameters
        ----------
        config : SMRFConfig or dict
            滤波参数，字典会通过SMRFConfig.from_dict校验
        gap_filler : callable, optional
            gap_filler(raster, method) -> raster，默认为inpaint_nans
        scattered_interpolator : callable, optional
            scattered_interpolator(x, y, z, xi, yi) -> raster，默认为自然邻点插值
        consolidator : callable, optional
            consolidator(index, values, rule) -> (bins, reduced)，默认为consolidate
        """
        if isinstance(config, dict):
            config = SMRFConfig.from_dict(config)
        elif not isinstance(config, SMRFConfig):
            raise ConfigurationError("config must be an SMRFConfig or a dict")
        self.config = config
        self.gap_filler = gap_filler or inpaint_nans
        self.scattered_interpolator = scattered_interpolator or natural_neighbor_interpolate
        self.consolidator = consolidator or consolidate
        self.main_filter = self._main_filter()

    def _main_filter(self) -> ProgressiveFilter:
        config = self.config
        return ProgressiveFilter(cell_size=config.cell_size,
                                 slope_threshold=config.slope_threshold,
                                 max_window=config.max_window,
                                 window_sequence=config.window_sequence,
                                 verbose=config.verbose)

    def filter(self, x, y, z) -> SMRFResult:
        """
        对点云进行地面滤波

        Parameters
        ----------
        x, y, z : array_like
            等长的点坐标

        Returns
        -------
        result : SMRFResult
            最终地面、栅格定义、逐点分类（未给出高程阈值时为None）、
            预期地面、最低高程面和非地面单元掩码
        """
        config = self.config
        cell_size = config.cell_size

        # 创建最低高程面
        logger.info("Creating minimum surface...")
        dsm_result = create_dsm(x, y, z,
                                cell_size=cell_size,
                                xi=config.xi,
                                yi=config.yi,
                                aggregation='min',
                                gap_fill_method=config.gap_fill_method,
                                gap_filler=self.gap_filler,
                                consolidator=self.consolidator,
                                symmetric_edge_snap=config.symmetric_edge_snap)
        dsm = dsm_result.dsm
        grid = dsm_result.grid

        # 检测低异常值
        logger.info("Detecting low outliers...")
        is_low_outlier = detect_low_outliers(dsm, cell_size)

        # 切割网格
        if config.net_spacing is not None:
            logger.info("Cutting net...")
            net_surface, is_net_cell = create_net(dsm, cell_size, config.net_spacing)
        else:
            net_surface = dsm
            is_net_cell = np.zeros(dsm.shape, dtype=bool)

        # 识别地物
        logger.info("Detecting objects...")
        is_object_cell, _ = self.main_filter.apply(net_surface)

        # 构建预期地面
        is_object_cell = (dsm_result.is_empty_cell | is_low_outlier
                          | is_object_cell | is_net_cell)
        prospective = dsm.copy()
        prospective[is_object_cell] = np.nan
        prospective = self.gap_filler(prospective, config.gap_fill_method)
        logger.info(f"{is_object_cell.sum()} of {is_object_cell.size} cells are non-ground")

        if not config.classifies_points:
            logger.warning("Since elevation threshold and elevation scaling factor were not "
                           "provided for ground identification, the final surface is equal "
                           "to the prospective surface.")
            return SMRFResult(prospective, grid, None, prospective, dsm, is_object_cell)

        x = np.asarray(x, dtype=float).ravel()
        y = np.asarray(y, dtype=float).ravel()
        z = np.asarray(z, dtype=float).ravel()
        is_object = self._identify_objects(x, y, z, prospective, grid)

        logger.info("Interpolating final ground surface...")
        final_surface = self.scattered_interpolator(x[~is_object], y[~is_object],
                                                    z[~is_object], grid.xi, grid.yi)
        return SMRFResult(final_surface, grid, is_object, prospective, dsm, is_object_cell)

    def _identify_objects(self, x: np.ndarray, y: np.ndarray, z: np.ndarray,
                          prospective: np.ndarray, grid: Grid) -> np.ndarray:
        """按坡度缩放的高程阈值对每个点分类"""
        config = self.config
        slope = slope_magnitude(prospective, config.cell_size)

        expected_z = sample_surface(prospective, grid, x, y, order=config.interpolation_order)
        local_slope = sample_surface(slope, grid, x, y, order=config.interpolation_order)

        required = config.elevation_threshold + config.elevation_scaler * local_slope
        # NaN比较结果为False，栅格外的点视为地面
        with np.errstate(invalid='ignore'):
            is_object = np.abs(expected_z - z) > required

        logger.info(f"Identified {is_object.sum()} of {is_object.size} points as objects")
        return is_object

    def classify(self, points: np.ndarray) -> np.ndarray:
        """
        对点云进行分类

        Parameters
        ----------
        points : np.ndarray
            输入点云数据，shape为(n_points, 3)

        Returns
        -------
        is_object : np.ndarray
            布尔数组，True表示地物点，False表示地面点
        """
        if not self.config.classifies_points:
            raise ConfigurationError("An elevation threshold is required to classify points")
        points = np.asarray(points, dtype=float)
        if points.ndim != 2 or points.shape[1] < 3:
            raise ValueError("points must have shape (n_points, 3)")
        return self.filter(points[:, 0], points[:, 1], points[:, 2]).is_object
