"""
dwb_planner/exceptions.py - 规划器异常类型

局部异常 (IllegalTrajectoryError) 只在单个候选内部处理；
周期级异常总是抛给调用方。
"""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tracker import IllegalTrajectoryTracker


class PlannerError(RuntimeError):
    """所有规划器异常的基类"""


class ConfigurationError(PlannerError):
    """插件名称错误或缺失，构建阶段致命"""


class PlannerTFError(PlannerError):
    """坐标变换失败，当前周期致命"""


class EmptyPlanError(PlannerError):
    """路径为空，或开窗后没有剩余路径点"""


class GoalNotSetError(PlannerError):
    """在设置目标之前查询是否到达目标"""


class IllegalTrajectoryError(PlannerError):
    """某个 critic（或生成器）拒绝了一条候选轨迹

    Args:
        critic_name: 拒绝者名称
        message: 拒绝原因
    """

    def __init__(self, critic_name: str, message: str) -> None:
        super().__init__(message)
        self.critic_name = critic_name
        self.reason = message


class NoLegalTrajectoriesError(PlannerError):
    """整个周期没有任何可接受的轨迹；携带拒绝统计"""

    def __init__(self, tracker: 'IllegalTrajectoryTracker') -> None:
        super().__init__(tracker.message())
        self.tracker = tracker
