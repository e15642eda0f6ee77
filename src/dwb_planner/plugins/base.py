"""
plugins/base.py — 插件统一接口

TrajectoryGenerator ABC ：枚举候选速度并滚动生成轨迹
TrajectoryCritic ABC    ：按单一准则给轨迹打分
GoalChecker ABC         ：判断是否到达（中间）目标
"""

from __future__ import annotations

import abc
from typing import Any, Dict, Optional

import numpy as np

from ..models import Path2D, Pose2D, Trajectory2D, Twist2D


# ═══════════════════════════════════════════════════════════════════════════
# TrajectoryGenerator
# ═══════════════════════════════════════════════════════════════════════════

class TrajectoryGenerator(abc.ABC):
    """轨迹生成器接口.

    每个控制周期::

        gen.start_new_iteration(current_velocity)
        while gen.has_more_twists():
            twist = gen.next_twist()
            traj = gen.generate_trajectory(pose, current_velocity, twist)

    候选序列只在当前周期内有效，跨周期不可续用。
    """

    def initialize(self, params: Dict[str, Any]) -> None:
        """读取参数; 默认空操作."""

    @abc.abstractmethod
    def start_new_iteration(self, current_velocity: Twist2D) -> None:
        """开始本周期的候选枚举，重置枚举状态."""

    @abc.abstractmethod
    def has_more_twists(self) -> bool:
        """是否还有候选速度."""

    @abc.abstractmethod
    def next_twist(self) -> Twist2D:
        """取下一个候选速度."""

    @abc.abstractmethod
    def generate_trajectory(self, start_pose: Pose2D, start_vel: Twist2D,
                            cmd_vel: Twist2D) -> Trajectory2D:
        """确定性地滚动生成轨迹.

        不可行时抛出 ``IllegalTrajectoryError``，只使该候选失效。
        """

    def reset(self) -> None:
        """清除跨周期记忆 (新路径 / 新路径段时调用)."""


# ═══════════════════════════════════════════════════════════════════════════
# TrajectoryCritic
# ═══════════════════════════════════════════════════════════════════════════

class TrajectoryCritic(abc.ABC):
    """轨迹评价器接口.

    约定: ``score_trajectory`` 返回非负分数 (越小越好)。短路评估依赖
    部分和单调不减; 在短路模式下返回负分属于未定义行为。
    拒绝轨迹时抛出 ``IllegalTrajectoryError(self.get_name(), reason)``。
    """

    def __init__(self) -> None:
        self.name = ""
        self.scale = 1.0
        self.costmap = None
        self.params: Dict[str, Any] = {}

    def initialize(self, name: str, params: Dict[str, Any], costmap=None) -> None:
        """设置名称、权重 (``scale``) 与代价地图，然后调用 ``on_init``."""
        self.name = name
        self.params = dict(params)
        self.scale = float(self.params.get("scale", 1.0))
        self.costmap = costmap
        self.on_init()

    def on_init(self) -> None:
        """子类的参数读取钩子."""

    def get_name(self) -> str:
        return self.name

    def get_scale(self) -> float:
        return self.scale

    def set_scale(self, scale: float) -> None:
        self.scale = float(scale)

    def prepare(self, pose: Pose2D, vel: Twist2D, goal: Pose2D,
                global_plan: Path2D) -> bool:
        """每周期一次的准备; 返回 False 表示可恢复的准备失败."""
        return True

    @abc.abstractmethod
    def score_trajectory(self, traj: Trajectory2D) -> float:
        """给一条轨迹打分."""

    def debrief(self, cmd_vel: Twist2D) -> None:
        """告知本周期的结果 (所选速度, 或失败时的空速度)."""

    def reset(self) -> None:
        """清除跨周期记忆."""

    def add_critic_visualization(self, costmap) -> Optional[np.ndarray]:
        """返回 (height, width) 的代价可视化层; 默认不提供."""
        return None


# ═══════════════════════════════════════════════════════════════════════════
# GoalChecker
# ═══════════════════════════════════════════════════════════════════════════

class GoalChecker(abc.ABC):
    """目标检查器接口."""

    def initialize(self, params: Dict[str, Any]) -> None:
        """读取参数; 默认空操作."""

    @abc.abstractmethod
    def is_goal_reached(self, query_pose: Pose2D, goal_pose: Pose2D,
                        velocity: Twist2D) -> bool:
        """判断 query_pose 是否已到达 goal_pose."""

    def reset(self) -> None:
        """清除内部状态."""
