"""合成点云场景

生成带有参考标签的简单场景，用于验证滤波效果：

1. 地面：规则采样的地形函数
2. 建筑物：平顶屋面点
3. 树木：圆锥形树冠点
"""

import numpy as np


def generate_building(x, y, width, length, height, base_height, resolution=1.0):
    """
    生成建筑物屋顶点

    Parameters
    ----------
    x, y : float
        建筑物中心坐标
    width, length : float
        建筑物宽度和长度
    height : float
        建筑物高度
    base_height : float
        建筑物底部高度
    resolution : float
        屋顶点间距

    Returns
    -------
    points : np.ndarray
        屋顶点坐标，shape为(n_points, 3)
    """
    px = np.arange(x - width / 2, x + width / 2, resolution)
    py = np.arange(y - length / 2, y + length / 2, resolution)
    xx, yy = np.meshgrid(px, py)
    zz = np.full(xx.shape, base_height + height)

    return np.column_stack((xx.flatten(), yy.flatten(), zz.flatten()))


def generate_tree(x, y, radius, height, base_height, n_points, rng=None):
    """
    生成树木点

    Parameters
    ----------
    x, y : float
        树木中心坐标
    radius : float
        树木半径
    height : float
        树木高度
    base_height : float
        树木底部高度
    n_points : int
        树木点数
    rng : np.random.Generator, optional
        随机数生成器

    Returns
    -------
    points : np.ndarray
        树木点坐标，shape为(n_points, 3)
    """
    rng = rng if rng is not None else np.random.default_rng()

    # 近似为圆锥，点位于冠层表面
    r = radius * np.sqrt(rng.uniform(0, 1, n_points))
    theta = rng.uniform(0, 2 * np.pi, n_points)
    px = x + r * np.cos(theta)
    py = y + r * np.sin(theta)
    pz = base_height + height * (1 - r / radius)

    return np.column_stack((px, py, pz))


def generate_scene(size=60.0, resolution=1.0, z_func=None, buildings=(), trees=(),
                   seed=42):
    """
    生成带参考标签的合成场景

    Parameters
    ----------
    size : float
        场景边长
    resolution : float
        地面点间距
    z_func : function, optional
        地形函数，默认为平地
    buildings : sequence of tuple
        (x, y, width, length, height)
    trees : sequence of tuple
        (x, y, radius, height, n_points)
    seed : int
        随机种子

    Returns
    -------
    points : np.ndarray
        点云，shape为(n_points, 3)
    labels : np.ndarray
        布尔数组，True表示地物
    """
    rng = np.random.default_rng(seed)
    z_func = z_func if z_func is not None else (lambda xx, yy: np.zeros_like(xx))

    # 地面为规则采样的地形
    xx, yy = np.meshgrid(np.arange(0, size, resolution), np.arange(0, size, resolution))
    ground = np.column_stack((xx.ravel(), yy.ravel(), z_func(xx, yy).ravel()))

    # 地物覆盖处的地面点被遮挡
    visible = np.ones(len(ground), dtype=bool)
    parts = []

    for bx, by, bw, bl, bh in buildings:
        inside = ((np.abs(ground[:, 0] - bx) < bw / 2)
                  & (np.abs(ground[:, 1] - by) < bl / 2))
        visible &= ~inside
        base = float(z_func(np.array(bx), np.array(by)))
        parts.append(generate_building(bx, by, bw, bl, bh, base, resolution))

    for tx, ty, tr, th, n in trees:
        base = float(z_func(np.array(tx), np.array(ty)))
        parts.append(generate_tree(tx, ty, tr, th, base, n, rng))

    ground = ground[visible]
    objects = np.vstack(parts) if parts else np.empty((0, 3))

    points = np.vstack((ground, objects))
    labels = np.concatenate((np.zeros(len(ground), dtype=bool),
                             np.ones(len(objects), dtype=bool)))

    return points, labels
