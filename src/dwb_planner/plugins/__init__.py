"""
plugins/ - 插件接口 + 参考实现

- base: TrajectoryGenerator / TrajectoryCritic / GoalChecker ABC
- trajectory_generator: StandardTrajectoryGenerator
- goal_checker: SimpleGoalChecker
- critics: GoalDist / PathDist / BaseObstacle / PreferForward / Oscillation
"""

from .base import TrajectoryGenerator, TrajectoryCritic, GoalChecker
from .trajectory_generator import StandardTrajectoryGenerator
from .goal_checker import SimpleGoalChecker
from .critics import (
    GoalDistCritic,
    PathDistCritic,
    BaseObstacleCritic,
    PreferForwardCritic,
    OscillationCritic,
)

__all__ = [
    "TrajectoryGenerator",
    "TrajectoryCritic",
    "GoalChecker",
    "StandardTrajectoryGenerator",
    "SimpleGoalChecker",
    "GoalDistCritic",
    "PathDistCritic",
    "BaseObstacleCritic",
    "PreferForwardCritic",
    "OscillationCritic",
]
