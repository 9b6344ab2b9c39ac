"""SMRF算法核心模块

该模块包含了滤波流程的各个阶段，包括：

1. 栅格定义与坐标变换
2. 点云栅格化
3. 灰度形态学开运算
4. 渐进形态学滤波与低异常值检测
5. 网格切割
6. 地面点分类流程

各阶段之间只通过栅格数据传递，可以单独使用和测试。
"""

from .grid import Grid
from .rasterize import create_dsm, DSMResult
from .morphology import disk_footprint, erode, dilate, open_surface
from .progressive import ProgressiveFilter, detect_low_outliers
from .net import create_net
from .smrf import SMRF, SMRFResult, slope_magnitude

__all__ = [
    'Grid',
    'create_dsm',
    'DSMResult',
    'disk_footprint',
    'erode',
    'dilate',
    'open_surface',
    'ProgressiveFilter',
    'detect_low_outliers',
    'create_net',
    'SMRF',
    'SMRFResult',
    'slope_magnitude'
]
