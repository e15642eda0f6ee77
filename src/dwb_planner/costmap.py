"""
dwb_planner/costmap.py - 局部代价地图接口

Costmap 为规划器消费的外部数据源接口；Costmap2D 是基于 numpy 网格的
参考实现（滚动窗口、uint8 代价）。
"""

import abc
import logging
from typing import Dict, Optional, Tuple, Any

import numpy as np

logger = logging.getLogger(__name__)

FREE_SPACE = 0
INSCRIBED_INFLATED_OBSTACLE = 253
LETHAL_OBSTACLE = 254
NO_INFORMATION = 255


class Costmap(abc.ABC):
    """代价地图接口（同步调用，可能失败）"""

    @abc.abstractmethod
    def update(self) -> None:
        """规划前刷新地图"""

    @property
    @abc.abstractmethod
    def width(self) -> int:
        """x 方向单元格数"""

    @property
    @abc.abstractmethod
    def height(self) -> int:
        """y 方向单元格数"""

    @property
    @abc.abstractmethod
    def resolution(self) -> float:
        """单元格边长 (m)"""

    @property
    @abc.abstractmethod
    def frame_id(self) -> str:
        """地图坐标系"""

    @abc.abstractmethod
    def world_to_map(self, wx: float, wy: float) -> Optional[Tuple[int, int]]:
        """世界坐标 -> 单元格索引；地图外返回 None"""

    @abc.abstractmethod
    def get_cost(self, mx: int, my: int) -> int:
        """单元格代价"""

    def get_info(self) -> Dict[str, Any]:
        return {
            'width': self.width,
            'height': self.height,
            'resolution': self.resolution,
            'frame_id': self.frame_id,
        }


class Costmap2D(Costmap):
    """numpy 网格代价地图

    Args:
        width: x 方向单元格数
        height: y 方向单元格数
        resolution: 单元格边长 (m)
        frame_id: 地图坐标系
        origin: 地图左下角在 frame_id 中的坐标 (x, y)
        default_value: 初始代价

    Example:
        >>> cm = Costmap2D(100, 100, 0.05, frame_id='odom', origin=(-2.5, -2.5))
        >>> cm.set_cost(50, 50, LETHAL_OBSTACLE)
        >>> cm.get_cost(*cm.world_to_map(0.0, 0.0))
        254
    """

    def __init__(
        self,
        width: int,
        height: int,
        resolution: float,
        frame_id: str = "odom",
        origin: Tuple[float, float] = (0.0, 0.0),
        default_value: int = FREE_SPACE,
    ) -> None:
        if width <= 0 or height <= 0:
            raise ValueError("地图尺寸必须为正")
        if resolution <= 0:
            raise ValueError("地图分辨率必须为正")
        self._width = int(width)
        self._height = int(height)
        self._resolution = float(resolution)
        self._frame_id = frame_id
        self.origin = (float(origin[0]), float(origin[1]))
        # 行索引为 y，列索引为 x
        self.data = np.full((self._height, self._width), default_value, dtype=np.uint8)
        self.n_updates = 0

    @property
    def width(self) -> int:
        return self._width

    @property
    def height(self) -> int:
        return self._height

    @property
    def resolution(self) -> float:
        return self._resolution

    @property
    def frame_id(self) -> str:
        return self._frame_id

    def update(self) -> None:
        self.n_updates += 1

    def world_to_map(self, wx: float, wy: float) -> Optional[Tuple[int, int]]:
        ox, oy = self.origin
        if wx < ox or wy < oy:
            return None
        mx = int((wx - ox) / self._resolution)
        my = int((wy - oy) / self._resolution)
        if mx >= self._width or my >= self._height:
            return None
        return mx, my

    def map_to_world(self, mx: int, my: int) -> Tuple[float, float]:
        """单元格中心的世界坐标"""
        ox, oy = self.origin
        return (ox + (mx + 0.5) * self._resolution,
                oy + (my + 0.5) * self._resolution)

    def get_cost(self, mx: int, my: int) -> int:
        return int(self.data[my, mx])

    def set_cost(self, mx: int, my: int, cost: int) -> None:
        self.data[my, mx] = cost

    def fill_world_rect(self, x0: float, y0: float, x1: float, y1: float,
                        cost: int = LETHAL_OBSTACLE) -> int:
        """将世界坐标矩形内的单元格设为 cost，返回修改的单元格数"""
        lo = self.world_to_map(max(x0, self.origin[0]), max(y0, self.origin[1]))
        if lo is None:
            return 0
        ox, oy = self.origin
        hx = min(int((x1 - ox) / self._resolution), self._width - 1)
        hy = min(int((y1 - oy) / self._resolution), self._height - 1)
        if hx < lo[0] or hy < lo[1]:
            return 0
        self.data[lo[1]:hy + 1, lo[0]:hx + 1] = cost
        n = (hx - lo[0] + 1) * (hy - lo[1] + 1)
        logger.debug("Costmap2D: 设置 %d 个单元格代价为 %d", n, cost)
        return n

    def get_info(self) -> Dict[str, Any]:
        info = super().get_info()
        info['origin'] = list(self.origin)
        return info
