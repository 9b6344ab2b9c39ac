"""SMRF (Simple Morphological Filter) Library

基于渐进形态学滤波的机载LIDAR点云地面点识别库。点云先栅格化为最低高程面，
再通过半径递增的灰度开运算去除建筑物、树木等地物，最后按坡度缩放的高程阈值
对每个点进行重新分类。
"""

from .config import SMRFConfig
from .exceptions import SMRFError, ConfigurationError, DataError
from .core.grid import Grid
from .core.rasterize import create_dsm, DSMResult
from .core.morphology import disk_footprint, erode, dilate, open_surface
from .core.progressive import ProgressiveFilter, detect_low_outliers
from .core.net import create_net
from .core.smrf import SMRF, SMRFResult
from .utils.metrics import ClassificationMetrics

__version__ = '0.1.0'

__all__ = [
    'SMRF',
    'SMRFResult',
    'SMRFConfig',
    'SMRFError',
    'ConfigurationError',
    'DataError',
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
    'ClassificationMetrics'
]
