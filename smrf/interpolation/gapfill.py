"""栅格空洞填充

用稀疏线性系统对栅格中的NaN单元进行平滑插值，已知单元保持不变。

支持的方法：

2. 拉普拉斯方程：每个未知单元等于其四邻域（栅格内）的平均值
4. 弹簧模型：每个单元与其水平、垂直和对角邻居之间以零长度弹簧相连，
   最小二乘求解所有与未知单元相关的弹簧
"""

import numpy as np
from scipy.sparse import csr_matrix
from scipy.sparse import linalg as sparse_linalg
import logging

from ..exceptions import ConfigurationError, DataError

logger = logging.getLogger(__name__)

GAP_FILL_METHODS = (2, 4)


def _neighbor_pairs(index: np.ndarray, diagonal: bool):
    """返回相邻单元对(a, b)的展开索引"""
    pairs = [
        (index[:, :-1], index[:, 1:]),
        (index[:-1, :], index[1:, :]),
    ]
    if diagonal:
        pairs.append((index[:-1, :-1], index[1:, 1:]))
        pairs.append((index[:-1, 1:], index[1:, :-1]))
    a = np.concatenate([p[0].ravel() for p in pairs])
    b = np.concatenate([p[1].ravel() for p in pairs])
    return a, b


def _fill_springs(values: np.ndarray, unknown: np.ndarray, shape) -> np.ndarray:
    n = values.size
    a, b = _neighbor_pairs(np.arange(n).reshape(shape), diagonal=True)

    # 只保留至少连接一个未知单元的弹簧
    active = unknown[a] | unknown[b]
    a = a[active]
    b = b[active]
    m = a.size

    rows = np.concatenate([np.arange(m), np.arange(m)])
    cols = np.concatenate([a, b])
    data = np.concatenate([np.ones(m), -np.ones(m)])
    springs = csr_matrix((data, (rows, cols)), shape=(m, n))

    known_ids = np.flatnonzero(~unknown)
    rhs = -(springs[:, known_ids] @ values[known_ids])
    A = springs[:, np.flatnonzero(unknown)]

    normal = (A.T @ A).tocsc()
    return sparse_linalg.spsolve(normal, A.T @ rhs)


def _fill_laplacian(values: np.ndarray, unknown: np.ndarray, shape) -> np.ndarray:
    n = values.size
    a, b = _neighbor_pairs(np.arange(n).reshape(shape), diagonal=False)

    # 每个未知单元的方程：sum(邻居) - 邻居数 * 自身 = 0
    unknown_ids = np.flatnonzero(unknown)
    position = np.full(n, -1, dtype=np.int64)
    position[unknown_ids] = np.arange(unknown_ids.size)

    src = np.concatenate([a, b])
    dst = np.concatenate([b, a])
    on_unknown = unknown[src]
    src = src[on_unknown]
    dst = dst[on_unknown]

    degree = np.bincount(position[src], minlength=unknown_ids.size).astype(float)
    rhs = -np.bincount(position[src], weights=np.where(unknown[dst], 0.0, values[dst]),
                       minlength=unknown_ids.size)

    coupled = unknown[dst]
    rows = np.concatenate([position[src[coupled]], np.arange(unknown_ids.size)])
    cols = np.concatenate([position[dst[coupled]], np.arange(unknown_ids.size)])
    data = np.concatenate([np.ones(coupled.sum()), -degree])
    system = csr_matrix((data, (rows, cols)),
                        shape=(unknown_ids.size, unknown_ids.size)).tocsc()
    return sparse_linalg.spsolve(system, rhs)


def inpaint_nans(raster: np.ndarray, method: int = 4) -> np.ndarray:
    """
    填充栅格中的NaN单元

    Parameters
    ----------
    raster : np.ndarray
        二维栅格，NaN表示无数据
    method : int
        填充方法，2为拉普拉斯方程，4为弹簧模型

    Returns
    -------
    filled : np.ndarray
        无NaN的栅格副本
    """
    if method not in GAP_FILL_METHODS:
        raise ConfigurationError(f"Unsupported gap fill method: {method!r}")

    raster = np.array(raster, dtype=float)
    if raster.ndim != 2:
        raise ValueError("raster must be two dimensional")

    values = raster.ravel()
    unknown = np.isnan(values)
    if not unknown.any():
        return raster
    if unknown.all():
        raise DataError("Cannot fill a raster without any known cells")

    logger.debug(f"Filling {unknown.sum()} of {unknown.size} cells (method {method})")
    if method == 4:
        solution = _fill_springs(values, unknown, raster.shape)
    else:
        solution = _fill_laplacian(values, unknown, raster.shape)

    values[unknown] = solution
    return values.reshape(raster.shape)
