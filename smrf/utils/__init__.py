"""工具模块

该模块提供了各种辅助功能，包括：

1. 分类结果评估
2. 合成测试场景生成
"""

from .metrics import ClassificationMetrics
from .synthetic import generate_building, generate_tree, generate_scene

__all__ = [
    'ClassificationMetrics',
    'generate_building',
    'generate_tree',
    'generate_scene'
]
