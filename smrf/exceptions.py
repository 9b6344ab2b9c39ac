"""SMRF异常类型

配置错误在计算开始之前抛出，数据错误在栅格化阶段抛出。
两者都继承自ValueError，与参数校验时抛出ValueError的约定保持一致。
"""


class SMRFError(Exception):
    """SMRF所有异常的基类"""


class ConfigurationError(SMRFError, ValueError):
    """缺失或相互矛盾的参数"""


class DataError(SMRFError, ValueError):
    """空点云或退化的输入数据"""
