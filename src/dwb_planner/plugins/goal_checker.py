"""
plugins/goal_checker.py - 简单目标检查器

位置误差在 xy_goal_tolerance 内且航向误差在 yaw_goal_tolerance 内即到达。
"""

import math
from typing import Any, Dict

from ..geometry import angle_diff
from ..models import Pose2D, Twist2D
from .base import GoalChecker


class SimpleGoalChecker(GoalChecker):
    """位置 + 航向容差目标检查器（无副作用）

    Args:
        xy_goal_tolerance: 位置容差 (m)
        yaw_goal_tolerance: 航向容差 (rad)
    """

    def __init__(self, xy_goal_tolerance: float = 0.25,
                 yaw_goal_tolerance: float = 0.25) -> None:
        self.xy_goal_tolerance = xy_goal_tolerance
        self.yaw_goal_tolerance = yaw_goal_tolerance

    def initialize(self, params: Dict[str, Any]) -> None:
        self.xy_goal_tolerance = float(params.get("xy_goal_tolerance", self.xy_goal_tolerance))
        self.yaw_goal_tolerance = float(params.get("yaw_goal_tolerance", self.yaw_goal_tolerance))

    def is_goal_reached(self, query_pose: Pose2D, goal_pose: Pose2D,
                        velocity: Twist2D) -> bool:
        dist = math.hypot(query_pose.x - goal_pose.x, query_pose.y - goal_pose.y)
        if dist > self.xy_goal_tolerance:
            return False
        dyaw = abs(angle_diff(query_pose.theta, goal_pose.theta))
        return dyaw <= self.yaw_goal_tolerance
