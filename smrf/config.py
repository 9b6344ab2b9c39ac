import numpy as np
from typing import Any, Dict, Optional, Sequence, Union
import logging

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# 原始调用约定中的简写参数名
_ALIASES = {
    'c': 'cell_size',
    's': 'slope_threshold',
    'et': 'elevation_threshold',
    'es': 'elevation_scaler',
    'inpaintmethod': 'gap_fill_method',
    'cutnet': 'net_spacing',
}


class SMRFConfig:
    """SMRF滤波参数

    所有可识别的参数及其默认值都在构造函数中显式列出，并在构造时统一校验。
    """

    OPTIONS = (
        'cell_size',
        'slope_threshold',
        'max_window',
        'window_sequence',
        'elevation_threshold',
        'elevation_scaler',
        'xi',
        'yi',
        'gap_fill_method',
        'net_spacing',
        'interpolation_order',
        'symmetric_edge_snap',
        'verbose',
    )

    def __init__(self,
                 cell_size: Optional[float] = None,
                 slope_threshold: Optional[float] = None,
                 max_window: Optional[float] = None,
                 window_sequence: Optional[Sequence[float]] = None,
                 elevation_threshold: Optional[float] = None,
                 elevation_scaler: Optional[float] = None,
                 xi: Optional[Sequence[float]] = None,
                 yi: Optional[Sequence[float]] = None,
                 gap_fill_method: int = 4,
                 net_spacing: Optional[float] = None,
                 interpolation_order: int = 3,
                 symmetric_edge_snap: bool = False,
                 verbose: bool = False):
        """
        初始化SMRF参数

        Parameters
        ----------
        cell_size : float, optional
            栅格单元大小（地图单位），未提供时由xi和yi推导
        slope_threshold : float
            地面最大坡度（dz/dx），通常在0.05到0.30之间
        max_window : float, optional
            最大窗口半径（地图单位）
        window_sequence : sequence of float, optional
            显式的窗口半径序列（地图单位），必须单调不减
        elevation_threshold : float, optional
            点到预期地面的最大垂直距离
        elevation_scaler : float, optional
            按地面坡度放大高程阈值的系数，只给出elevation_threshold时为0，
            未给出elevation_threshold时被忽略
        xi, yi : sequence of float, optional
            显式的栅格坐标向量
        gap_fill_method : int
            传递给空洞填充服务的方法编号
        net_spacing : float, optional
            网格切割间距（地图单位）
        interpolation_order : int
            在点位置采样预期地面和坡度时使用的样条阶数
        symmetric_edge_snap : bool
            是否在栅格两侧都使用容差比较来回收边界外一个单元内的点
        verbose : bool
            是否显示进度条
        """
        self.cell_size = cell_size
        self.slope_threshold = slope_threshold
        self.max_window = max_window
        self.window_sequence = window_sequence
        self.elevation_threshold = elevation_threshold
        self.elevation_scaler = elevation_scaler
        self.xi = xi
        self.yi = yi
        self.gap_fill_method = gap_fill_method
        self.net_spacing = net_spacing
        self.interpolation_order = interpolation_order
        self.symmetric_edge_snap = symmetric_edge_snap
        self.verbose = verbose

        # 验证参数
        self._validate_parameters()

    @classmethod
    def from_dict(cls, options: Dict[str, Any]) -> 'SMRFConfig':
        """
        从参数字典创建配置

        同时接受完整参数名和原始调用约定中的简写（c, s, w, et, es, xi, yi,
        inpaintMethod, cutNet），不区分大小写。未知参数视为配置错误。
        """
        kwargs = {}
        for key, value in options.items():
            name = key.lower()
            if name == 'w':
                name = 'max_window' if np.ndim(value) == 0 else 'window_sequence'
            name = _ALIASES.get(name, name)
            if name not in cls.OPTIONS:
                raise ConfigurationError(f"Unknown option: {key!r}")
            if name in kwargs:
                raise ConfigurationError(f"Option {name!r} supplied more than once")
            kwargs[name] = value
        return cls(**kwargs)

    def _validate_parameters(self) -> None:
        """验证参数的有效性"""
        if self.slope_threshold is None:
            raise ConfigurationError("Slope threshold must be supplied.")
        if self.slope_threshold < 0:
            raise ConfigurationError("slope_threshold must be non-negative")

        if self.max_window is None and self.window_sequence is None:
            raise ConfigurationError("Maximum window size must be supplied.")
        if self.max_window is not None and self.window_sequence is not None:
            raise ConfigurationError("Supply either max_window or window_sequence, not both")
        if self.max_window is not None and np.ndim(self.max_window) != 0:
            raise ConfigurationError("max_window must be a scalar")
        if self.window_sequence is not None:
            self.window_sequence = np.atleast_1d(np.asarray(self.window_sequence, dtype=float))
            if self.window_sequence.ndim != 1 or self.window_sequence.size == 0:
                raise ConfigurationError("window_sequence must be a non-empty vector")

        self._resolve_grid()

        if self.elevation_threshold is not None and self.elevation_scaler is None:
            self.elevation_scaler = 0.0
        if self.elevation_threshold is None and self.elevation_scaler is not None:
            # 没有高程阈值时不进行逐点分类，缩放系数不起作用
            logger.warning("elevation_scaler is ignored without elevation_threshold")

        if self.net_spacing is not None and self.net_spacing <= 0:
            raise ConfigurationError("net_spacing must be positive")
        if self.interpolation_order not in (1, 3):
            raise ConfigurationError("interpolation_order must be 1 (linear) or 3 (spline)")

    def _resolve_grid(self) -> None:
        """校验栅格定义，必要时由xi和yi推导单元大小"""
        if self.xi is None and self.yi is None:
            if self.cell_size is None:
                raise ConfigurationError("Cell size or (xi AND yi) must be supplied.")
        elif self.xi is None:
            raise ConfigurationError("If yi is defined, xi must also be defined.")
        elif self.yi is None:
            raise ConfigurationError("If xi is defined, yi must also be defined.")
        else:
            self.xi = np.asarray(self.xi, dtype=float)
            self.yi = np.asarray(self.yi, dtype=float)
            if self.xi.ndim != 1 or self.xi.size < 2:
                raise ConfigurationError("xi must be a vector")
            if self.yi.ndim != 1 or self.yi.size < 2:
                raise ConfigurationError("yi must be a vector")
            spacing = abs(self.xi[1] - self.xi[0])
            if not np.isclose(spacing, abs(self.yi[1] - self.yi[0]), rtol=1e-9, atol=0.0):
                raise ConfigurationError("xi and yi must be incremented identically")
            if self.cell_size is None:
                self.cell_size = float(spacing)
            elif not np.isclose(self.cell_size, spacing, rtol=1e-9, atol=0.0):
                raise ConfigurationError("cell_size contradicts the spacing of xi and yi")

        if self.cell_size <= 0:
            raise ConfigurationError("cell_size must be positive")

    @property
    def window(self) -> Union[float, np.ndarray]:
        """窗口参数（标量最大半径或半径序列）"""
        return self.max_window if self.max_window is not None else self.window_sequence

    @property
    def classifies_points(self) -> bool:
        """是否对每个点进行重新分类"""
        return self.elevation_threshold is not None

    def __repr__(self) -> str:
        params = ', '.join(f"{name}={getattr(self, name)!r}" for name in self.OPTIONS
                           if name not in ('xi', 'yi'))
        return f"SMRFConfig({params})"
