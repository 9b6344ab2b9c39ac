import numpy as np
from scipy.spatial import cKDTree, Delaunay, QhullError
from scipy.interpolate import LinearNDInterpolator
from scipy.ndimage import map_coordinates
from numba import jit
import logging

logger = logging.getLogger(__name__)


@jit(nopython=True)
def _discrete_sibson_numba(values: np.ndarray, nearest: np.ndarray,
                           radius: np.ndarray, rows: int, cols: int,
                           cell: float) -> np.ndarray:
    """使用Numba加速的离散Sibson插值

    每个栅格节点把其最近样本的值散布到以自身为圆心、以到该样本距离为半径
    的圆内所有节点上，结果为每个节点收到的值的平均。
    """
    total = np.zeros(rows * cols)
    count = np.zeros(rows * cols)

    for p in range(rows * cols):
        pi = p // cols
        pj = p % cols
        r = radius[p] / cell
        r2 = r * r
        reach = int(np.floor(r))
        value = values[nearest[p]]

        for qi in range(max(0, pi - reach), min(rows, pi + reach + 1)):
            di = qi - pi
            for qj in range(max(0, pj - reach), min(cols, pj + reach + 1)):
                dj = qj - pj
                if di * di + dj * dj <= r2:
                    q = qi * cols + qj
                    total[q] += value
                    count[q] += 1.0

    result = np.empty(rows * cols)
    for q in range(rows * cols):
        if count[q] > 0:
            result[q] = total[q] / count[q]
        else:
            result[q] = values[nearest[q]]
    return result


def _outside_hull(points: np.ndarray, XI: np.ndarray, YI: np.ndarray):
    """返回位于样本凸包外的节点掩码，样本退化时返回None"""
    try:
        triangulation = Delaunay(points)
    except QhullError:
        return None
    nodes = np.column_stack((XI.ravel(), YI.ravel()))
    return (triangulation.find_simplex(nodes) < 0).reshape(XI.shape)


def natural_neighbor_interpolate(x, y, z, xi, yi) -> np.ndarray:
    """
    自然邻点插值到规则栅格

    Parameters
    ----------
    x, y, z : array_like
        散乱样本
    xi, yi : array_like
        目标栅格的列坐标和行坐标，间距必须相同

    Returns
    -------
    surface : np.ndarray
        shape为(len(yi), len(xi))的栅格，样本凸包外为NaN
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    z = np.asarray(z, dtype=float)
    xi = np.asarray(xi, dtype=float)
    yi = np.asarray(yi, dtype=float)

    XI, YI = np.meshgrid(xi, yi)
    points = np.column_stack((x, y))
    if len(points) < 3:
        logger.warning("Natural neighbor interpolation needs at least three samples")
        return np.full(XI.shape, np.nan)

    outside = _outside_hull(points, XI, YI)
    if outside is None:
        logger.warning("Samples are degenerate; natural neighbor surface is empty")
        return np.full(XI.shape, np.nan)

    cell = abs(xi[1] - xi[0]) if xi.size > 1 else abs(yi[1] - yi[0])

    # 每个节点到最近样本的距离
    tree = cKDTree(points)
    radius, nearest = tree.query(np.column_stack((XI.ravel(), YI.ravel())))

    surface = _discrete_sibson_numba(z, nearest.astype(np.int64), radius,
                                     XI.shape[0], XI.shape[1], cell)
    surface = surface.reshape(XI.shape)
    surface[outside] = np.nan
    return surface


def linear_interpolate(x, y, z, xi, yi) -> np.ndarray:
    """基于Delaunay三角网的线性插值，凸包外为NaN"""
    XI, YI = np.meshgrid(np.asarray(xi, dtype=float), np.asarray(yi, dtype=float))
    points = np.column_stack((np.asarray(x, dtype=float), np.asarray(y, dtype=float)))
    try:
        interpolator = LinearNDInterpolator(points, np.asarray(z, dtype=float))
    except QhullError:
        logger.warning("Samples are degenerate; linear surface is empty")
        return np.full(XI.shape, np.nan)
    return interpolator(XI, YI)


def sample_surface(surface: np.ndarray, grid, x, y, order: int = 3) -> np.ndarray:
    """
    在地图坐标处对栅格进行插值采样

    Parameters
    ----------
    surface : np.ndarray
        与grid对应的栅格
    grid : Grid
        栅格定义
    x, y : array_like
        采样点的地图坐标
    order : int
        样条阶数，1为双线性，3为三次样条

    Returns
    -------
    samples : np.ndarray
        每个点的采样值，栅格范围外为NaN
    """
    row, col = grid.map_to_pixel(x, y)
    row = np.atleast_1d(row)
    col = np.atleast_1d(col)

    eps = 1e-9
    inside = ((row >= -eps) & (row <= grid.rows - 1 + eps)
              & (col >= -eps) & (col <= grid.cols - 1 + eps))

    samples = np.full(row.shape, np.nan)
    if inside.any():
        samples[inside] = map_coordinates(np.asarray(surface, dtype=float),
                                          [row[inside], col[inside]],
                                          order=order, mode='nearest')
    return samples
