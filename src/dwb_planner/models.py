"""
dwb_planner/models.py - 局部规划器数据模型

定义局部规划核心使用的数据结构：Pose2D、Twist2D、Path2D、PlanSegment、
Trajectory2D、CriticScore、TrajectoryScore、LocalPlanEvaluation、GoalState。
"""

from collections import deque
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Deque, Dict, List, Optional, Any

import numpy as np


# 轨迹非法 / 尚未有效的总分哨兵值
ILLEGAL_SCORE = -1.0


@dataclass(frozen=True)
class Pose2D:
    """平面位姿

    Attributes:
        x: x 坐标 (m)
        y: y 坐标 (m)
        theta: 航向角 (rad)
        frame_id: 参考坐标系名称
    """
    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0
    frame_id: str = ""

    def with_frame(self, frame_id: str) -> 'Pose2D':
        """返回相同数值、不同坐标系标签的位姿"""
        return replace(self, frame_id=frame_id)

    def to_array(self) -> np.ndarray:
        return np.array([self.x, self.y, self.theta], dtype=np.float64)

    def to_dict(self) -> Dict[str, Any]:
        return {'x': self.x, 'y': self.y, 'theta': self.theta,
                'frame_id': self.frame_id}


@dataclass(frozen=True)
class Twist2D:
    """平面速度 (vx, vy, vtheta)；全零即"空"速度指令"""
    x: float = 0.0
    y: float = 0.0
    theta: float = 0.0

    def is_zero(self) -> bool:
        return self.x == 0.0 and self.y == 0.0 and self.theta == 0.0

    def to_dict(self) -> Dict[str, float]:
        return {'x': self.x, 'y': self.y, 'theta': self.theta}


@dataclass
class Path2D:
    """有序位姿序列，所有位姿共享同一坐标系

    Attributes:
        poses: 路径点，插入顺序即行进顺序
        frame_id: 路径坐标系
        stamp: 名义时间戳 (s)
    """
    poses: List[Pose2D] = field(default_factory=list)
    frame_id: str = ""
    stamp: float = 0.0

    def __len__(self) -> int:
        return len(self.poses)

    @property
    def is_empty(self) -> bool:
        return len(self.poses) == 0

    def copy(self, poses: Optional[List[Pose2D]] = None) -> 'Path2D':
        """复制 header，可替换路径点"""
        return Path2D(poses=list(self.poses if poses is None else poses),
                      frame_id=self.frame_id, stamp=self.stamp)

    def stamped(self, index: int) -> Pose2D:
        """取第 index 个路径点，并打上路径坐标系标签"""
        return self.poses[index].with_frame(self.frame_id)

    def to_array(self) -> np.ndarray:
        """(N, 3) 数组 [x, y, theta]"""
        if not self.poses:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([[p.x, p.y, p.theta] for p in self.poses],
                        dtype=np.float64)

    @classmethod
    def from_xytheta(cls, points, frame_id: str = "", stamp: float = 0.0) -> 'Path2D':
        """由 [(x, y, theta), ...] 构造"""
        return cls(poses=[Pose2D(float(x), float(y), float(t)) for x, y, t in points],
                   frame_id=frame_id, stamp=stamp)


class MovementType(Enum):
    """路径段运动类别"""
    FORWARD = "forward"
    BACKWARD = "backward"
    ROTATE_IN_PLACE = "rotate_in_place"
    UNDEFINED = "undefined"  # 未分段时整条路径


@dataclass
class PlanSegment:
    """运动方向一致的一段路径

    相邻两段共享一个边界位姿：第 i 段末位姿 == 第 i+1 段首位姿。
    """
    path: Path2D
    movement: MovementType = MovementType.UNDEFINED

    @property
    def poses(self) -> List[Pose2D]:
        return self.path.poses

    @property
    def frame_id(self) -> str:
        return self.path.frame_id

    def __len__(self) -> int:
        return len(self.path)

    def end_pose(self) -> Pose2D:
        """段终点（即中间目标），带路径坐标系"""
        return self.path.stamped(-1)


@dataclass
class Trajectory2D:
    """一个候选速度指令在固定时域内的滚动轨迹

    Attributes:
        velocity: 生成该轨迹的速度指令
        poses: 采样位姿
        time_offsets: 各采样点相对起点的时间 (s)
    """
    velocity: Twist2D = field(default_factory=Twist2D)
    poses: List[Pose2D] = field(default_factory=list)
    time_offsets: List[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.poses)

    def as_array(self) -> np.ndarray:
        """(N, 3) 数组 [x, y, theta]"""
        if not self.poses:
            return np.zeros((0, 3), dtype=np.float64)
        return np.array([[p.x, p.y, p.theta] for p in self.poses],
                        dtype=np.float64)


@dataclass
class CriticScore:
    """单个 critic 对一条轨迹的评分

    raw_score == ILLEGAL_SCORE 表示该 critic 拒绝了轨迹。
    """
    name: str
    scale: float = 0.0
    raw_score: float = 0.0

    @property
    def weighted(self) -> float:
        return self.raw_score * self.scale


@dataclass
class TrajectoryScore:
    """一条轨迹的各 critic 评分与加权总分

    total 为 ILLEGAL_SCORE 表示非法轨迹，区别于合法的 0 分。
    """
    traj: Trajectory2D = field(default_factory=Trajectory2D)
    scores: List[CriticScore] = field(default_factory=list)
    total: float = 0.0

    @property
    def is_legal(self) -> bool:
        return self.total >= 0.0


@dataclass
class LocalPlanEvaluation:
    """一个控制周期内所有候选的评价记录（仅在遥测需要时分配）"""
    frame_id: str = ""
    stamp: float = 0.0
    twists: List[TrajectoryScore] = field(default_factory=list)
    best_index: int = -1
    worst_index: int = -1

    @property
    def best(self) -> Optional[TrajectoryScore]:
        if 0 <= self.best_index < len(self.twists):
            return self.twists[self.best_index]
        return None

    @property
    def worst(self) -> Optional[TrajectoryScore]:
        if 0 <= self.worst_index < len(self.twists):
            return self.twists[self.worst_index]
        return None


@dataclass
class GoalState:
    """会话级目标状态

    Attributes:
        goal_pose: 最终目标
        intermediate_goal_pose: 当前段终点
        active_segment: 当前正在跟踪的路径段
        pending_segments: 尚未激活的路径段队列
    """
    goal_pose: Optional[Pose2D] = None
    intermediate_goal_pose: Optional[Pose2D] = None
    active_segment: Optional[PlanSegment] = None
    pending_segments: Deque[PlanSegment] = field(default_factory=deque)

    @property
    def has_goal(self) -> bool:
        return self.goal_pose is not None

    @property
    def on_final_segment(self) -> bool:
        return len(self.pending_segments) == 0

    def activate(self, segment: PlanSegment) -> None:
        """激活路径段，并将中间目标设为其末位姿"""
        self.active_segment = segment
        self.intermediate_goal_pose = segment.end_pose()
