"""
dwb_planner/geometry.py - 平面几何工具

角度归一化、二维刚体变换（3x3 齐次矩阵）与平方距离。
"""

import math

import numpy as np

from .models import Pose2D


def normalize_angle(angle: float) -> float:
    """归一化到 (-pi, pi]"""
    return math.atan2(math.sin(angle), math.cos(angle))


def angle_diff(a: float, b: float) -> float:
    """a - b 的最短角差"""
    return normalize_angle(a - b)


def square_distance(a: Pose2D, b: Pose2D) -> float:
    """两位姿的平面欧氏距离平方（忽略航向）"""
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def pose_to_matrix(x: float, y: float, theta: float) -> np.ndarray:
    """位姿 -> 3x3 齐次变换矩阵"""
    c, s = math.cos(theta), math.sin(theta)
    return np.array([
        [c, -s, x],
        [s, c, y],
        [0.0, 0.0, 1.0],
    ], dtype=np.float64)


def matrix_to_xytheta(m: np.ndarray):
    """3x3 齐次变换矩阵 -> (x, y, theta)"""
    return float(m[0, 2]), float(m[1, 2]), math.atan2(m[1, 0], m[0, 0])


def invert_transform(m: np.ndarray) -> np.ndarray:
    """刚体变换求逆：R^T, -R^T t"""
    rot = m[:2, :2]
    inv = np.eye(3, dtype=np.float64)
    inv[:2, :2] = rot.T
    inv[:2, 2] = -rot.T @ m[:2, 2]
    return inv


def apply_transform(m: np.ndarray, pose: Pose2D, frame_id: str) -> Pose2D:
    """将 pose 左乘变换 m，结果标记为 frame_id"""
    x, y, theta = matrix_to_xytheta(m @ pose_to_matrix(pose.x, pose.y, pose.theta))
    return Pose2D(x, y, theta, frame_id)
