import numpy as np
import pytest


@pytest.fixture
def block_scene():
    """100x100点的平地，中心10x10的方块高3"""
    x = np.arange(100, dtype=float)
    y = np.arange(100, dtype=float)
    xx, yy = np.meshgrid(x, y)
    zz = np.zeros_like(xx)
    block = (xx >= 45) & (xx < 55) & (yy >= 45) & (yy < 55)
    zz[block] = 3.0
    return xx.ravel(), yy.ravel(), zz.ravel(), block.ravel()


@pytest.fixture
def plateau_surface():
    """平地上半宽为w个单元、高5的方形平台"""
    def _make(half_width, size=41):
        surface = np.zeros((size, size))
        c = size // 2
        surface[c - half_width:c + half_width + 1, c - half_width:c + half_width + 1] = 5.0
        return surface
    return _make
