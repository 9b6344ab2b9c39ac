"""插值模块

该模块提供了滤波流程依赖的插值服务，包括：

1. 单元内重复值合并
2. 栅格空洞填充
3. 散乱点插值与栅格采样

这些服务都是无副作用的函数，可以在SMRF中替换为其他实现。
"""

from .consolidate import consolidate
from .gapfill import inpaint_nans
from .scattered import natural_neighbor_interpolate, linear_interpolate, sample_surface

__all__ = [
    'consolidate',
    'inpaint_nans',
    'natural_neighbor_interpolate',
    'linear_interpolate',
    'sample_surface'
]
