import numpy as np
from typing import Optional, Sequence, Tuple
import logging
from tqdm import tqdm

from .morphology import open_surface
from ..exceptions import ConfigurationError, DataError

logger = logging.getLogger(__name__)

# 低异常值检测使用的固定参数
OUTLIER_SLOPE = 5.0


class ProgressiveFilter:
    """渐进形态学滤波

    对栅格依次进行半径递增的开运算，每一步都作用在上一步开运算的结果上。
    某一步中被削去的高度超过该步阈值的单元被标记为地物。阈值与当前窗口的
    地图半径成正比：坡度为s的真实地面在该水平距离上本身就会产生这样的落差。
    """

    def __init__(self,
                 cell_size: Optional[float] = None,
                 slope_threshold: Optional[float] = None,
                 max_window: Optional[float] = None,
                 window_sequence: Optional[Sequence[float]] = None,
                 verbose: bool = False):
        """
        初始化渐进滤波参数

        Parameters
        ----------
        cell_size : float
            单元大小（地图单位）
        slope_threshold : float
            地面最大坡度（dz/dx）
        max_window : float, optional
            最大窗口半径（地图单位），生成1, 2, ..., ceil(max_window/cell_size)像素的序列
        window_sequence : sequence of float, optional
            显式窗口半径序列（地图单位），必须单调不减
        verbose : bool
            是否显示进度条
        """
        self.cell_size = cell_size
        self.slope_threshold = slope_threshold
        self.max_window = max_window
        self.window_sequence = window_sequence
        self.verbose = verbose

        # 验证参数
        self._validate_parameters()

    def _validate_parameters(self) -> None:
        """验证参数的有效性"""
        if self.cell_size is None:
            raise ConfigurationError("Cell size must be specified.")
        if self.max_window is None and self.window_sequence is None:
            raise ConfigurationError("Maximum window size must be specified")
        if self.slope_threshold is None:
            raise ConfigurationError("Slope threshold value must be specified.")
        if self.cell_size <= 0:
            raise ConfigurationError("cell_size must be positive")
        if self.slope_threshold < 0:
            raise ConfigurationError("slope_threshold must be non-negative")
        if self.max_window is not None and self.window_sequence is not None:
            raise ConfigurationError("Supply either max_window or window_sequence, not both")
        if self.max_window is not None and self.max_window < 0:
            raise ConfigurationError("max_window must be non-negative")
        if self.window_sequence is not None:
            self.window_sequence = np.atleast_1d(np.asarray(self.window_sequence, dtype=float))
            if self.window_sequence.size == 0:
                raise ConfigurationError("window_sequence must not be empty")
            if np.any(self.window_sequence < 0):
                raise ConfigurationError("window radii must be non-negative")
            if np.any(np.diff(self.window_sequence) < 0):
                raise ConfigurationError("window_sequence must be ascending")

    def window_radii(self) -> np.ndarray:
        """窗口半径（像素）"""
        if self.window_sequence is not None:
            return np.ceil(self.window_sequence / self.cell_size).astype(int)
        return np.arange(1, int(np.ceil(self.max_window / self.cell_size)) + 1)

    def elevation_thresholds(self) -> np.ndarray:
        """每一步的高程阈值（地图单位）"""
        return self.slope_threshold * (self.window_radii() * self.cell_size)

    def apply(self, surface: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """
        对栅格进行渐进滤波

        Parameters
        ----------
        surface : np.ndarray
            无NaN的二维高程栅格

        Returns
        -------
        is_object_cell : np.ndarray
            布尔掩码，True表示地物
        last_surface : np.ndarray
            最后一次开运算的结果
        """
        last_surface = np.asarray(surface, dtype=float)
        if np.isnan(last_surface).any():
            raise DataError("surface must not contain NaN")

        windows = self.window_radii()
        thresholds = self.elevation_thresholds()
        is_object_cell = np.zeros(last_surface.shape, dtype=bool)

        logger.debug(f"Progressive filter over {len(windows)} windows")
        for radius, threshold in tqdm(zip(windows, thresholds), total=len(windows),
                                      desc="Opening surface", disable=not self.verbose):
            this_surface = open_surface(last_surface, radius)
            is_object_cell |= (last_surface - this_surface) > threshold
            last_surface = this_surface

        return is_object_cell, last_surface


def detect_low_outliers(surface: np.ndarray, cell_size: float) -> np.ndarray:
    """
    检测单像元的低异常值

    对取反后的高程栅格以一个像元的窗口和宽松坡度执行渐进滤波。

    Parameters
    ----------
    surface : np.ndarray
        无NaN的二维高程栅格
    cell_size : float
        单元大小（地图单位）

    Returns
    -------
    is_low_outlier : np.ndarray
        布尔掩码
    """
    outlier_filter = ProgressiveFilter(cell_size=cell_size,
                                       slope_threshold=OUTLIER_SLOPE,
                                       window_sequence=[cell_size])
    is_low_outlier, _ = outlier_filter.apply(-np.asarray(surface, dtype=float))
    return is_low_outlier
