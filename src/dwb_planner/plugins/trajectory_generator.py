"""
plugins/trajectory_generator.py - 标准轨迹生成器

动态窗口采样 + 加速度受限前向积分：
1. 由当前速度和加速度限制求本周期可达速度窗口
2. 在窗口内对 (vx, vy, vtheta) 等间距网格采样
3. 对每个候选以固定时间步长积分出轨迹
"""

import math
import logging
from typing import Any, Dict

import numpy as np

from ..exceptions import IllegalTrajectoryError
from ..geometry import normalize_angle
from ..models import Pose2D, Trajectory2D, Twist2D
from .base import TrajectoryGenerator

logger = logging.getLogger(__name__)

_DEFAULTS: Dict[str, Any] = {
    "min_vel_x": 0.0,
    "max_vel_x": 0.55,
    "min_vel_y": 0.0,
    "max_vel_y": 0.0,
    "min_vel_theta": -1.0,
    "max_vel_theta": 1.0,
    "acc_lim_x": 2.5,
    "acc_lim_y": 2.5,
    "acc_lim_theta": 3.2,
    "sim_time": 1.7,
    "sim_granularity": 0.1,
    "sim_period": 0.1,
    "vx_samples": 20,
    "vy_samples": 1,
    "vtheta_samples": 20,
}


def _window(current: float, lo: float, hi: float, acc: float, period: float):
    """速度窗口 [lo', hi']，保证落在绝对限制之内"""
    w_lo = max(lo, current - acc * period)
    w_hi = min(hi, current + acc * period)
    if w_lo > w_hi:
        # 当前速度在限制之外时，退回到最近的边界
        w_lo = w_hi = lo if current < lo else hi
    return w_lo, w_hi


def _samples(lo: float, hi: float, n: int) -> np.ndarray:
    if n <= 1 or hi - lo < 1e-12:
        return np.array([0.5 * (lo + hi)])
    return np.linspace(lo, hi, n)


def _accelerate(current: float, target: float, acc: float, dt: float) -> float:
    if acc <= 0:
        return target
    step = acc * dt
    if target > current:
        return min(target, current + step)
    return max(target, current - step)


class StandardTrajectoryGenerator(TrajectoryGenerator):
    """标准 (vx, vy, vtheta) 网格轨迹生成器

    Example:
        >>> gen = StandardTrajectoryGenerator()
        >>> gen.initialize({"vx_samples": 3, "vtheta_samples": 3})
        >>> gen.start_new_iteration(Twist2D())
        >>> n = 0
        >>> while gen.has_more_twists():
        ...     _ = gen.next_twist(); n += 1
        >>> n
        9
    """

    def __init__(self) -> None:
        self.params: Dict[str, Any] = dict(_DEFAULTS)
        self._candidates = np.zeros((0, 3), dtype=np.float64)
        self._index = 0

    def initialize(self, params: Dict[str, Any]) -> None:
        unknown = set(params) - set(_DEFAULTS)
        if unknown:
            logger.warning("StandardTrajectoryGenerator: 忽略未知参数 %s", sorted(unknown))
        self.params.update({k: v for k, v in params.items() if k in _DEFAULTS})
        if self.params["sim_time"] <= 0 or self.params["sim_granularity"] <= 0:
            raise ValueError("sim_time 与 sim_granularity 必须为正")

    def reset(self) -> None:
        self._candidates = np.zeros((0, 3), dtype=np.float64)
        self._index = 0

    def start_new_iteration(self, current_velocity: Twist2D) -> None:
        p = self.params
        period = p["sim_period"]
        x_lo, x_hi = _window(current_velocity.x, p["min_vel_x"], p["max_vel_x"],
                             p["acc_lim_x"], period)
        y_lo, y_hi = _window(current_velocity.y, p["min_vel_y"], p["max_vel_y"],
                             p["acc_lim_y"], period)
        t_lo, t_hi = _window(current_velocity.theta, p["min_vel_theta"], p["max_vel_theta"],
                             p["acc_lim_theta"], period)
        xs = _samples(x_lo, x_hi, int(p["vx_samples"]))
        ys = _samples(y_lo, y_hi, int(p["vy_samples"]))
        ts = _samples(t_lo, t_hi, int(p["vtheta_samples"]))
        grid = np.stack(np.meshgrid(xs, ys, ts, indexing="ij"), axis=-1)
        self._candidates = grid.reshape(-1, 3)
        self._index = 0

    def has_more_twists(self) -> bool:
        return self._index < self._candidates.shape[0]

    def next_twist(self) -> Twist2D:
        if not self.has_more_twists():
            raise IndexError("本周期候选速度已枚举完")
        vx, vy, vth = self._candidates[self._index]
        self._index += 1
        return Twist2D(float(vx), float(vy), float(vth))

    def _check_limits(self, cmd_vel: Twist2D) -> None:
        p = self.params
        eps = 1e-9
        if not (p["min_vel_x"] - eps <= cmd_vel.x <= p["max_vel_x"] + eps
                and p["min_vel_y"] - eps <= cmd_vel.y <= p["max_vel_y"] + eps
                and p["min_vel_theta"] - eps <= cmd_vel.theta <= p["max_vel_theta"] + eps):
            raise IllegalTrajectoryError(type(self).__name__, "Velocity out of bounds")

    def generate_trajectory(self, start_pose: Pose2D, start_vel: Twist2D,
                            cmd_vel: Twist2D) -> Trajectory2D:
        self._check_limits(cmd_vel)
        p = self.params
        n_steps = max(1, int(math.ceil(p["sim_time"] / p["sim_granularity"])))
        dt = p["sim_time"] / n_steps

        x, y, theta = start_pose.x, start_pose.y, start_pose.theta
        vx, vy, vth = start_vel.x, start_vel.y, start_vel.theta
        traj = Trajectory2D(velocity=cmd_vel)
        traj.poses.append(Pose2D(x, y, theta, start_pose.frame_id))
        traj.time_offsets.append(0.0)

        for k in range(1, n_steps + 1):
            vx = _accelerate(vx, cmd_vel.x, p["acc_lim_x"], dt)
            vy = _accelerate(vy, cmd_vel.y, p["acc_lim_y"], dt)
            vth = _accelerate(vth, cmd_vel.theta, p["acc_lim_theta"], dt)
            c, s = math.cos(theta), math.sin(theta)
            x += (vx * c - vy * s) * dt
            y += (vx * s + vy * c) * dt
            theta = normalize_angle(theta + vth * dt)
            traj.poses.append(Pose2D(x, y, theta, start_pose.frame_id))
            traj.time_offsets.append(k * dt)
        return traj
