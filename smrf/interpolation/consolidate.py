import numpy as np
from typing import Tuple

from ..exceptions import ConfigurationError

_REDUCERS = {
    'min': np.minimum,
    'max': np.maximum,
}

AGGREGATIONS = ('min', 'max', 'mean', 'median')


def consolidate(index: np.ndarray, values: np.ndarray,
                rule: str = 'min') -> Tuple[np.ndarray, np.ndarray]:
    """
    按单元索引合并重复值

    Parameters
    ----------
    index : np.ndarray
        每个值对应的单元索引，NaN或负值表示无效并被丢弃
    values : np.ndarray
        与index等长的数值
    rule : str
        合并规则，'min'、'max'、'mean'或'median'

    Returns
    -------
    bins : np.ndarray
        升序排列的不重复单元索引（int64）
    reduced : np.ndarray
        每个单元合并后的值
    """
    if rule not in AGGREGATIONS:
        raise ConfigurationError(f"Unknown aggregation rule: {rule!r}")

    index = np.asarray(index, dtype=float).ravel()
    values = np.asarray(values, dtype=float).ravel()
    if index.shape != values.shape:
        raise ValueError("index and values must have the same length")

    keep = ~np.isnan(index) & (index >= 0)
    index = index[keep].astype(np.int64)
    values = values[keep]
    if index.size == 0:
        return np.empty(0, dtype=np.int64), np.empty(0, dtype=float)

    order = np.argsort(index, kind='stable')
    index = index[order]
    values = values[order]
    bins, starts, counts = np.unique(index, return_index=True, return_counts=True)

    if rule in _REDUCERS:
        reduced = _REDUCERS[rule].reduceat(values, starts)
    elif rule == 'mean':
        reduced = np.add.reduceat(values, starts) / counts
    else:
        # 中位数需要组内排序
        reduced = np.array([np.median(group)
                            for group in np.split(values, starts[1:])])

    return bins, reduced
