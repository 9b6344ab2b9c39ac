import numpy as np
from typing import Tuple
import logging

from .morphology import open_surface
from ..exceptions import ConfigurationError, DataError

logger = logging.getLogger(__name__)


def create_net(surface: np.ndarray, cell_size: float,
               net_spacing: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    在高程栅格中切割一张背景值网格

    按net_spacing的间距选出若干行和列，用半径为两倍间距（像素）的开运算结果
    替换这些单元的值。大面积地物（例如大型屋顶）被切成宽度不超过网格间距的小块，
    主滤波因此可以使用较小的最大窗口。栅格至少需要两行两列。

    Parameters
    ----------
    surface : np.ndarray
        无NaN的二维高程栅格
    cell_size : float
        单元大小（地图单位）
    net_spacing : float
        网格间距（地图单位）

    Returns
    -------
    net_surface : np.ndarray
        切割网格后的栅格
    is_net_cell : np.ndarray
        网格单元的布尔掩码
    """
    if cell_size is None or cell_size <= 0:
        raise ConfigurationError("cell_size must be positive")
    if net_spacing is None or net_spacing <= 0:
        raise ConfigurationError("net_spacing must be positive")

    surface = np.asarray(surface, dtype=float)
    # 单行或单列栅格会整体成为网格单元，预期地面无法填充
    if surface.ndim != 2 or min(surface.shape) < 2:
        raise DataError("Net cutting needs a grid with at least two rows and two columns")

    stride = int(np.ceil(net_spacing / cell_size))

    background = open_surface(surface, 2 * stride)
    is_net_cell = np.zeros(surface.shape, dtype=bool)
    is_net_cell[:, ::stride] = True
    is_net_cell[::stride, :] = True

    net_surface = surface.copy()
    net_surface[is_net_cell] = background[is_net_cell]

    logger.debug(f"Cut net with stride {stride} px ({is_net_cell.sum()} cells)")
    return net_surface, is_net_cell
