"""
segmenter.py - 路径分段

将参考路径切分为运动方向一致的路径段（前进 / 倒车 / 原地旋转）。

对相邻位姿 A→B，取位移 d = B - A 与 A 的朝向单位向量
o = (cos θ_A, sin θ_A)，dot = d·o：
- dot² < ε        → ROTATE_IN_PLACE（位移可忽略）
- dot > 0         → FORWARD
- dot < 0         → BACKWARD

类别变化时切段，并把上一段末位姿复制为下一段首位姿，保证路径连续。
"""

import math
import logging
from typing import List

from .exceptions import EmptyPlanError
from .models import MovementType, Path2D, PlanSegment, Pose2D

logger = logging.getLogger(__name__)

ROTATION_EPSILON = 1e-10


def classify_step(a: Pose2D, b: Pose2D) -> MovementType:
    """判定 a→b 的运动类别"""
    dot = (b.x - a.x) * math.cos(a.theta) + (b.y - a.y) * math.sin(a.theta)
    if dot * dot < ROTATION_EPSILON:
        return MovementType.ROTATE_IN_PLACE
    return MovementType.FORWARD if dot > 0 else MovementType.BACKWARD


def split_plan(path: Path2D, split: bool = True) -> List[PlanSegment]:
    """将路径切分为路径段列表

    Args:
        path: 参考路径（不能为空）
        split: False 时返回覆盖整条路径的单一段 (UNDEFINED)

    Returns:
        按行进顺序排列的路径段
    """
    if path.is_empty:
        raise EmptyPlanError("Received plan with zero length")

    if not split:
        return [PlanSegment(path.copy(), MovementType.UNDEFINED)]

    poses = list(path.poses)
    if len(poses) < 2:
        # 单点无法分类，整体作为最后一段
        return [PlanSegment(path.copy(), MovementType.UNDEFINED)]

    segments: List[PlanSegment] = []
    start = 0
    while len(poses) - start > 1:
        current = [poses[start], poses[start + 1]]
        movement = classify_step(poses[start], poses[start + 1])
        i = start + 2
        while i < len(poses) and classify_step(current[-1], poses[i]) == movement:
            current.append(poses[i])
            i += 1
        segments.append(PlanSegment(path.copy(current), movement))
        # 下一段从本段末位姿开始
        start = i - 1
        if i >= len(poses):
            break

    logger.info("Split path into %d segments.", len(segments))
    return segments
