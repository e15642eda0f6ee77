"""
plugins/critics.py - 参考轨迹评价器

- GoalDistCritic:      轨迹终点到局部目标的距离
- PathDistCritic:      轨迹终点到局部路径的最近距离
- BaseObstacleCritic:  沿轨迹累积代价地图代价，碰撞/出界即拒绝
- PreferForwardCritic: 惩罚倒车与低速原地转向
- OscillationCritic:   有状态，拒绝与近期指令方向相反的振荡轨迹

所有分数非负，越小越好。
"""

import math
import logging
from typing import Optional

import numpy as np

from ..costmap import LETHAL_OBSTACLE, NO_INFORMATION, INSCRIBED_INFLATED_OBSTACLE
from ..exceptions import IllegalTrajectoryError
from ..geometry import angle_diff
from ..models import Path2D, Pose2D, Trajectory2D, Twist2D
from .base import TrajectoryCritic

logger = logging.getLogger(__name__)


class GoalDistCritic(TrajectoryCritic):
    """轨迹终点与局部目标的欧氏距离"""

    def __init__(self) -> None:
        super().__init__()
        self.goal: Optional[Pose2D] = None

    def prepare(self, pose, vel, goal, global_plan) -> bool:
        self.goal = goal
        return True

    def score_trajectory(self, traj: Trajectory2D) -> float:
        if self.goal is None or not traj.poses:
            return 0.0
        end = traj.poses[-1]
        return math.hypot(end.x - self.goal.x, end.y - self.goal.y)


class PathDistCritic(TrajectoryCritic):
    """轨迹终点到局部路径点集的最近距离

    局部路径为空时 prepare 返回 False，此后打分恒为 0。
    """

    def __init__(self) -> None:
        super().__init__()
        self._plan_xy = np.zeros((0, 2), dtype=np.float64)

    def prepare(self, pose, vel, goal, global_plan: Path2D) -> bool:
        self._plan_xy = global_plan.to_array()[:, :2]
        return self._plan_xy.shape[0] > 0

    def score_trajectory(self, traj: Trajectory2D) -> float:
        if self._plan_xy.shape[0] == 0 or not traj.poses:
            return 0.0
        end = np.array([traj.poses[-1].x, traj.poses[-1].y])
        d = np.linalg.norm(self._plan_xy - end, axis=1)
        return float(d.min())


class BaseObstacleCritic(TrajectoryCritic):
    """代价地图障碍物评价

    参数:
        sum_scores: True 时累加轨迹上所有代价，否则取最大值
    """

    def on_init(self) -> None:
        self.sum_scores = bool(self.params.get("sum_scores", False))

    def score_pose(self, pose: Pose2D) -> float:
        if self.costmap is None:
            return 0.0
        cell = self.costmap.world_to_map(pose.x, pose.y)
        if cell is None:
            raise IllegalTrajectoryError(self.name, "Trajectory Goes Off Grid.")
        cost = self.costmap.get_cost(*cell)
        if cost in (LETHAL_OBSTACLE, INSCRIBED_INFLATED_OBSTACLE, NO_INFORMATION):
            raise IllegalTrajectoryError(self.name, "Trajectory Hits Obstacle.")
        return float(cost)

    def score_trajectory(self, traj: Trajectory2D) -> float:
        score = 0.0
        for pose in traj.poses:
            c = self.score_pose(pose)
            score = score + c if self.sum_scores else max(score, c)
        return score

    def add_critic_visualization(self, costmap) -> Optional[np.ndarray]:
        data = getattr(costmap, "data", None)
        if data is None:
            return None
        return np.asarray(data, dtype=np.float64)


class PreferForwardCritic(TrajectoryCritic):
    """偏好前进

    参数:
        penalty: 倒车惩罚
        strafe_x: 低于该前向速度时视为原地/侧向运动
        strafe_theta: 原地转向惩罚阈值 (rad/s)
        theta_scale: 转向惩罚系数
    """

    def on_init(self) -> None:
        self.penalty = float(self.params.get("penalty", 1.0))
        self.strafe_x = float(self.params.get("strafe_x", 0.1))
        self.strafe_theta = float(self.params.get("strafe_theta", 0.2))
        self.theta_scale = float(self.params.get("theta_scale", 10.0))

    def score_trajectory(self, traj: Trajectory2D) -> float:
        v = traj.velocity
        if v.x < 0.0:
            return self.penalty
        if v.x < self.strafe_x and abs(v.theta) < self.strafe_theta:
            return self.penalty
        return abs(v.theta) * self.theta_scale * max(0.0, self.strafe_x - v.x)


class OscillationCritic(TrajectoryCritic):
    """振荡抑制（有状态）

    记录最近一次所选指令的前进/转向方向；在机器人移动超过
    oscillation_reset_dist 或转过 oscillation_reset_angle 之前，
    拒绝方向相反的候选。
    """

    def on_init(self) -> None:
        self.reset_dist = float(self.params.get("oscillation_reset_dist", 0.05))
        self.reset_angle = float(self.params.get("oscillation_reset_angle", 0.2))
        self.reset()

    def reset(self) -> None:
        self.x_sign = 0
        self.theta_sign = 0
        self.anchor: Optional[Pose2D] = None
        self.pose: Optional[Pose2D] = None

    def prepare(self, pose, vel, goal, global_plan) -> bool:
        self.pose = pose
        if self.anchor is not None:
            moved = math.hypot(pose.x - self.anchor.x, pose.y - self.anchor.y)
            turned = abs(angle_diff(pose.theta, self.anchor.theta))
            if moved > self.reset_dist or turned > self.reset_angle:
                self.x_sign = 0
                self.theta_sign = 0
                self.anchor = None
        return True

    def score_trajectory(self, traj: Trajectory2D) -> float:
        v = traj.velocity
        if self.x_sign and v.x * self.x_sign < 0:
            raise IllegalTrajectoryError(self.name, "Trajectory is oscillating.")
        if self.theta_sign and v.theta * self.theta_sign < 0 and abs(v.x) < 1e-6:
            raise IllegalTrajectoryError(self.name, "Trajectory is oscillating.")
        return 0.0

    def debrief(self, cmd_vel: Twist2D) -> None:
        if cmd_vel.is_zero():
            return
        x_sign = int(np.sign(cmd_vel.x))
        theta_sign = int(np.sign(cmd_vel.theta))
        if (x_sign and x_sign != self.x_sign) or (theta_sign and theta_sign != self.theta_sign):
            self.anchor = self.pose
        if x_sign:
            self.x_sign = x_sign
        if theta_sign:
            self.theta_sign = theta_sign
