import numpy as np
from typing import Callable, NamedTuple, Optional, Tuple
import logging

from .grid import Grid
from ..exceptions import ConfigurationError, DataError
from ..interpolation.consolidate import AGGREGATIONS, consolidate
from ..interpolation.gapfill import inpaint_nans

logger = logging.getLogger(__name__)


class DSMResult(NamedTuple):
    """栅格化结果"""
    dsm: np.ndarray
    grid: Grid
    is_empty_cell: np.ndarray
    xi: np.ndarray
    yi: np.ndarray


def _as_point_cloud(x, y, z) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """将坐标转换为等长的一维浮点数组"""
    x = np.asarray(x, dtype=float).ravel()
    y = np.asarray(y, dtype=float).ravel()
    z = np.asarray(z, dtype=float).ravel()
    if not (x.size == y.size == z.size):
        raise DataError("x, y and z must have the same length")
    if x.size == 0:
        raise DataError("point cloud is empty")
    return x, y, z


def create_dsm(x, y, z,
               cell_size: Optional[float] = None,
               xi=None,
               yi=None,
               aggregation: str = 'min',
               gap_fill_method: int = 4,
               fill_empty: bool = True,
               gap_filler: Optional[Callable] = None,
               consolidator: Optional[Callable] = None,
               symmetric_edge_snap: bool = False) -> DSMResult:
    """
    由点云创建数字表面模型

    每个点吸附到最近的栅格节点，同一单元内的高程按aggregation合并；
    没有点的单元记入is_empty_cell，随后用空洞填充服务插值补全。

    Parameters
    ----------
    x, y, z : array_like
        等长的点坐标
    cell_size : float, optional
        单元大小（地图单位），与xi/yi二选一
    xi, yi : array_like, optional
        显式的栅格坐标向量
    aggregation : str
        单元内合并规则：'min'、'max'、'mean'或'median'
    gap_fill_method : int
        传递给gap_filler的方法编号
    fill_empty : bool
        是否填充空单元
    gap_filler : callable, optional
        gap_filler(raster, method) -> raster，默认为inpaint_nans
    consolidator : callable, optional
        consolidator(index, values, rule) -> (bins, reduced)，默认为consolidate
    symmetric_edge_snap : bool
        是否在栅格两侧都使用容差比较回收边界外的点

    Returns
    -------
    result : DSMResult
    """
    gap_filler = gap_filler or inpaint_nans
    consolidator = consolidator or consolidate

    if aggregation not in AGGREGATIONS:
        raise ConfigurationError(f"Unknown aggregation rule: {aggregation!r}")
    if (xi is None) != (yi is None):
        raise ConfigurationError("xi and yi must be supplied together")
    if xi is None and cell_size is None:
        raise ConfigurationError("Cell size must be declared.")
    if xi is None and cell_size <= 0:
        raise ConfigurationError("cell_size must be positive")

    x, y, z = _as_point_cloud(x, y, z)

    if xi is not None:
        grid = Grid.from_vectors(xi, yi)
    else:
        grid = Grid.from_points(x, y, cell_size)

    index, valid = grid.flat_index(x, y, symmetric=symmetric_edge_snap)
    dropped = int((~valid).sum())
    if dropped:
        logger.debug(f"{dropped} points fall outside the grid and are ignored")

    bins, values = consolidator(np.where(valid, index, np.nan), z, aggregation)
    bins = np.asarray(bins)
    values = np.asarray(values, dtype=float)
    keep = ~np.isnan(bins)
    bins = bins[keep].astype(np.int64)
    values = values[keep]
    if bins.size == 0:
        raise DataError("No points fall inside the grid")

    dsm = np.full(grid.rows * grid.cols, np.nan)
    dsm[bins] = values
    dsm = dsm.reshape(grid.shape)

    is_empty_cell = np.isnan(dsm)
    logger.info(f"Rasterized {valid.sum()} points onto a {grid.rows}x{grid.cols} grid "
                f"({is_empty_cell.sum()} empty cells)")

    if fill_empty and is_empty_cell.any():
        dsm = gap_filler(dsm, gap_fill_method)

    return DSMResult(dsm, grid, is_empty_cell, grid.xi, grid.yi)
