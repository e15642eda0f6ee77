"""
dwb_planner/transforms.py - 坐标变换服务

Transformer 为外部坐标变换服务接口：失败返回 None，规划器不做重试。
StaticTransformer 以树形结构保存静态 2D 变换，用 3x3 齐次矩阵组合。
"""

import abc
import logging
from typing import Dict, Optional, Tuple

import numpy as np

from .models import Pose2D
from .geometry import pose_to_matrix, invert_transform, apply_transform

logger = logging.getLogger(__name__)


class Transformer(abc.ABC):
    """坐标变换服务接口"""

    @abc.abstractmethod
    def transform_pose(self, target_frame: str, pose: Pose2D) -> Optional[Pose2D]:
        """将 pose 变换到 target_frame；失败返回 None"""


class StaticTransformer(Transformer):
    """静态坐标树

    ``set_transform(parent, child, x, y, theta)`` 表示 child 坐标系原点在
    parent 中的位姿。同一棵树内任意两帧之间均可变换。

    Example:
        >>> tf = StaticTransformer()
        >>> tf.set_transform('map', 'odom', 1.0, 0.0, 0.0)
        >>> tf.transform_pose('map', Pose2D(0.0, 0.0, 0.0, 'odom')).x
        1.0
    """

    def __init__(self) -> None:
        self._parents: Dict[str, Tuple[str, np.ndarray]] = {}

    def set_transform(self, parent: str, child: str,
                      x: float, y: float, theta: float) -> None:
        if parent == child:
            raise ValueError("parent 与 child 坐标系不能相同")
        self._parents[child] = (parent, pose_to_matrix(x, y, theta))

    def has_frame(self, frame: str) -> bool:
        if frame in self._parents:
            return True
        return any(parent == frame for parent, _ in self._parents.values())

    def _to_root(self, frame: str) -> Tuple[str, np.ndarray]:
        """返回 (根坐标系, frame -> 根 的变换)"""
        m = np.eye(3, dtype=np.float64)
        seen = set()
        while frame in self._parents:
            if frame in seen:
                raise ValueError(f"坐标树存在环: {frame}")
            seen.add(frame)
            parent, t = self._parents[frame]
            m = t @ m
            frame = parent
        return frame, m

    def lookup(self, target_frame: str, source_frame: str) -> Optional[np.ndarray]:
        """source -> target 的变换矩阵；不连通返回 None"""
        if target_frame == source_frame:
            return np.eye(3, dtype=np.float64)
        if not (self.has_frame(target_frame) and self.has_frame(source_frame)):
            return None
        root_s, m_s = self._to_root(source_frame)
        root_t, m_t = self._to_root(target_frame)
        if root_s != root_t:
            return None
        return invert_transform(m_t) @ m_s

    def transform_pose(self, target_frame: str, pose: Pose2D) -> Optional[Pose2D]:
        if not target_frame or not pose.frame_id:
            logger.debug("StaticTransformer: 坐标系为空 (%r -> %r)",
                         pose.frame_id, target_frame)
            return None
        m = self.lookup(target_frame, pose.frame_id)
        if m is None:
            logger.debug("StaticTransformer: 无法从 %s 变换到 %s",
                         pose.frame_id, target_frame)
            return None
        return apply_transform(m, pose, target_frame)
