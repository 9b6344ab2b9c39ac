import numpy as np
from typing import Tuple

from ..exceptions import ConfigurationError, DataError


def _round_half_away(values: np.ndarray) -> np.ndarray:
    """四舍五入（0.5远离零），np.round为银行家舍入"""
    return np.sign(values) * np.floor(np.abs(values) + 0.5)


def _floor_to(value: float, step: float) -> float:
    return np.floor(value / step) * step


def _ceil_to(value: float, step: float) -> float:
    return np.ceil(value / step) * step


class Grid:
    """规则栅格及其坐标变换

    栅格由第一个单元中心(x0, y0)、带符号的单元间距(dx, dy)和尺寸(rows, cols)定义。
    dy为负时行号自上而下递增。
    """

    def __init__(self, x0: float, y0: float, dx: float, dy: float,
                 rows: int, cols: int):
        self.x0 = float(x0)
        self.y0 = float(y0)
        self.dx = float(dx)
        self.dy = float(dy)
        self.rows = int(rows)
        self.cols = int(cols)

        self._validate_parameters()

    def _validate_parameters(self) -> None:
        """验证参数的有效性"""
        if not self.dx > 0:
            raise ConfigurationError("cell size must be positive")
        if self.dy == 0:
            raise ConfigurationError("cell size must be positive")
        if self.rows < 1 or self.cols < 1:
            raise DataError("grid must have at least one row and one column")

    @classmethod
    def from_vectors(cls, xi, yi) -> 'Grid':
        """
        由显式坐标向量创建栅格

        Parameters
        ----------
        xi : array_like
            列坐标，长度至少为2
        yi : array_like
            行坐标，长度至少为2，间距绝对值必须与xi相同

        Returns
        -------
        grid : Grid
        """
        xi = np.asarray(xi, dtype=float)
        yi = np.asarray(yi, dtype=float)
        if xi.ndim != 1 or xi.size < 2:
            raise ConfigurationError("xi must be a vector")
        if yi.ndim != 1 or yi.size < 2:
            raise ConfigurationError("yi must be a vector")
        dx = xi[1] - xi[0]
        dy = yi[1] - yi[0]
        if not np.isclose(abs(dx), abs(dy), rtol=1e-9, atol=0.0):
            raise ConfigurationError("xi and yi must be incremented identically")
        if dx <= 0:
            raise ConfigurationError("xi must be increasing")
        return cls(xi[0], yi[0], dx, dy, yi.size, xi.size)

    @classmethod
    def from_points(cls, x, y, cell_size: float) -> 'Grid':
        """
        由点云范围和单元大小创建栅格

        列坐标从ceil(min(x)/c)*c递增到floor(max(x)/c)*c，
        行坐标从floor(max(y)/c)*c递减到ceil(min(y)/c)*c。

        Parameters
        ----------
        x, y : array_like
            点的平面坐标
        cell_size : float
            单元大小（地图单位）

        Returns
        -------
        grid : Grid
        """
        if cell_size is None or not cell_size > 0:
            raise ConfigurationError("cell_size must be positive")
        x = np.asarray(x, dtype=float)
        y = np.asarray(y, dtype=float)
        if x.size == 0:
            raise DataError("point cloud is empty")

        x_start = _ceil_to(x.min(), cell_size)
        x_stop = _floor_to(x.max(), cell_size)
        y_start = _floor_to(y.max(), cell_size)
        y_stop = _ceil_to(y.min(), cell_size)

        cols = int(np.floor((x_stop - x_start) / cell_size + 0.5)) + 1
        rows = int(np.floor((y_start - y_stop) / cell_size + 0.5)) + 1
        if cols < 1 or rows < 1:
            raise DataError("point cloud extent does not span a single grid node")

        return cls(x_start, y_start, cell_size, -cell_size, rows, cols)

    @classmethod
    def from_raster(cls, raster: np.ndarray, R: np.ndarray) -> 'Grid':
        """由栅格影像及其参考矩阵恢复栅格定义"""
        R = np.asarray(R, dtype=float)
        rows, cols = np.shape(raster)[:2]
        x0, y0 = R[2, 0], R[2, 1]
        return cls(x0, y0, R[1, 0], R[0, 1], rows, cols)

    @property
    def shape(self) -> Tuple[int, int]:
        return (self.rows, self.cols)

    @property
    def cell_size(self) -> float:
        return self.dx

    @property
    def xi(self) -> np.ndarray:
        """列中心的x坐标"""
        return self.x0 + self.dx * np.arange(self.cols)

    @property
    def yi(self) -> np.ndarray:
        """行中心的y坐标"""
        return self.y0 + self.dy * np.arange(self.rows)

    def _snap(self, values: np.ndarray, nodes: np.ndarray,
              symmetric: bool) -> np.ndarray:
        step = abs(nodes[1] - nodes[0]) if nodes.size > 1 else abs(self.dx)
        low = nodes.min()
        high = nodes.max()

        snapped = step * _round_half_away((values - low) / step) + low

        # 边界外一个单元内的点拉回到边界节点
        if symmetric:
            below = np.isclose(snapped, low - step) & (values > low - step)
            above = np.isclose(snapped, high + step) & (values < high + step)
        else:
            below = (snapped == low - step) & (values > low - step)
            above = (snapped == high + step) & (values < high + step)
        snapped[below] = low
        snapped[above] = high

        snapped[(snapped < low) | (snapped > high)] = np.nan
        return snapped

    def snap_x(self, x, symmetric: bool = False) -> np.ndarray:
        """将x坐标吸附到最近的列中心，栅格范围外为NaN"""
        return self._snap(np.asarray(x, dtype=float), self.xi, symmetric)

    def snap_y(self, y, symmetric: bool = False) -> np.ndarray:
        """将y坐标吸附到最近的行中心，栅格范围外为NaN"""
        return self._snap(np.asarray(y, dtype=float), self.yi, symmetric)

    def map_to_pixel(self, x, y) -> Tuple[np.ndarray, np.ndarray]:
        """地图坐标转换为（小数）行列号"""
        row = (np.asarray(y, dtype=float) - self.y0) / self.dy
        col = (np.asarray(x, dtype=float) - self.x0) / self.dx
        return row, col

    def pixel_to_map(self, row, col) -> Tuple[np.ndarray, np.ndarray]:
        """行列号转换为地图坐标"""
        x = self.x0 + np.asarray(col, dtype=float) * self.dx
        y = self.y0 + np.asarray(row, dtype=float) * self.dy
        return x, y

    def to_index(self, x, y, symmetric: bool = False) -> Tuple[np.ndarray, np.ndarray]:
        """
        地图坐标转换为整数行列号

        Returns
        -------
        row, col : np.ndarray
            取整后的行列号（浮点型），栅格范围外为NaN
        """
        xs = self.snap_x(x, symmetric)
        ys = self.snap_y(y, symmetric)
        row, col = self.map_to_pixel(xs, ys)
        # 消除浮点误差
        row = np.round(row)
        col = np.round(col)
        outside = np.isnan(row) | np.isnan(col)
        row[outside] = np.nan
        col[outside] = np.nan
        return row, col

    def flat_index(self, x, y, symmetric: bool = False) -> Tuple[np.ndarray, np.ndarray]:
        """
        地图坐标转换为按行展开的单元索引

        Returns
        -------
        index : np.ndarray
            int64单元索引，无效位置为-1
        valid : np.ndarray
            布尔数组，点是否落在栅格内
        """
        row, col = self.to_index(x, y, symmetric)
        valid = ~np.isnan(row)
        index = np.full(row.shape, -1, dtype=np.int64)
        index[valid] = (row[valid].astype(np.int64) * self.cols
                        + col[valid].astype(np.int64))
        return index, valid

    def referencing_matrix(self) -> np.ndarray:
        """
        仿射参考矩阵R（行列号从0开始）

        [x, y] = [row, col, 1] @ R
        """
        return np.array([[0.0, self.dy],
                         [self.dx, 0.0],
                         [self.x0, self.y0]])

    def world_file_params(self) -> Tuple[float, float, float, float, float, float]:
        """世界文件的六个参数(A, D, B, E, C, F)，C和F为左上角单元中心"""
        return (self.dx, 0.0, 0.0, self.dy, self.x0, self.y0)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Grid):
            return NotImplemented
        return (self.shape == other.shape
                and np.allclose([self.x0, self.y0, self.dx, self.dy],
                                [other.x0, other.y0, other.dx, other.dy]))

    def __repr__(self) -> str:
        return (f"Grid(x0={self.x0}, y0={self.y0}, dx={self.dx}, dy={self.dy}, "
                f"rows={self.rows}, cols={self.cols})")
