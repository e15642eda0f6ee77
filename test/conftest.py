"""
conftest.py — pytest fixtures shared across the test suite.

Provides a small costmap, a static transform tree and scripted stub plugins
(generator / critics / goal checker) so individual test modules stay short.
"""

import math
from typing import Dict, List, Optional, Sequence

import pytest

from dwb_planner.costmap import Costmap2D
from dwb_planner.exceptions import IllegalTrajectoryError
from dwb_planner.models import Path2D, Pose2D, Trajectory2D, Twist2D
from dwb_planner.plugins.base import GoalChecker, TrajectoryCritic, TrajectoryGenerator
from dwb_planner.transforms import StaticTransformer


# =========================================================================
# Stub plugins
# =========================================================================

class ListGenerator(TrajectoryGenerator):
    """Enumerates a fixed list of twists; trajectory = one step of motion."""

    def __init__(self, twists: Sequence[Twist2D],
                 infeasible: Sequence[Twist2D] = ()) -> None:
        self.twists = list(twists)
        self.infeasible = list(infeasible)
        self._index = 0
        self.n_iterations = 0
        self.n_resets = 0

    def start_new_iteration(self, current_velocity: Twist2D) -> None:
        self._index = 0
        self.n_iterations += 1

    def has_more_twists(self) -> bool:
        return self._index < len(self.twists)

    def next_twist(self) -> Twist2D:
        twist = self.twists[self._index]
        self._index += 1
        return twist

    def generate_trajectory(self, start_pose, start_vel, cmd_vel) -> Trajectory2D:
        if cmd_vel in self.infeasible:
            raise IllegalTrajectoryError("ListGenerator", "infeasible")
        end = Pose2D(start_pose.x + cmd_vel.x, start_pose.y + cmd_vel.y,
                     start_pose.theta + cmd_vel.theta, start_pose.frame_id)
        return Trajectory2D(velocity=cmd_vel, poses=[start_pose, end],
                            time_offsets=[0.0, 1.0])

    def reset(self) -> None:
        self.n_resets += 1


class ScriptedCritic(TrajectoryCritic):
    """Scores by looking up the trajectory's twist.x in a table.

    ``scores`` maps twist.x -> raw score; a value of None rejects.
    """

    def __init__(self, name: str, scale: float = 1.0,
                 scores: Optional[Dict[float, Optional[float]]] = None,
                 default: float = 0.0, prepare_ok: bool = True) -> None:
        super().__init__()
        self.initialize(name, {"scale": scale})
        self.scores = scores or {}
        self.default = default
        self.prepare_ok = prepare_ok
        self.score_calls: List[Twist2D] = []
        self.prepare_calls = 0
        self.debriefs: List[Twist2D] = []
        self.n_resets = 0
        self.last_plan: Optional[Path2D] = None
        self.last_goal: Optional[Pose2D] = None

    def prepare(self, pose, vel, goal, global_plan) -> bool:
        self.prepare_calls += 1
        self.last_plan = global_plan
        self.last_goal = goal
        return self.prepare_ok

    def score_trajectory(self, traj: Trajectory2D) -> float:
        self.score_calls.append(traj.velocity)
        raw = self.scores.get(traj.velocity.x, self.default)
        if raw is None:
            raise IllegalTrajectoryError(self.name, "rejected")
        return raw

    def debrief(self, cmd_vel: Twist2D) -> None:
        self.debriefs.append(cmd_vel)

    def reset(self) -> None:
        self.n_resets += 1


class FlagGoalChecker(GoalChecker):
    """Returns ``self.reached`` and records the queried goals."""

    def __init__(self, reached: bool = False) -> None:
        self.reached = reached
        self.queries: List[Pose2D] = []
        self.n_resets = 0

    def is_goal_reached(self, query_pose, goal_pose, velocity) -> bool:
        self.queries.append(goal_pose)
        return self.reached

    def reset(self) -> None:
        self.n_resets += 1


# =========================================================================
# Environment fixtures
# =========================================================================

@pytest.fixture
def costmap() -> Costmap2D:
    """4m x 4m window (40 x 40 @ 0.1m) centred on the odom origin."""
    return Costmap2D(40, 40, 0.1, frame_id="odom", origin=(-2.0, -2.0))


@pytest.fixture
def tf() -> StaticTransformer:
    """map -> odom identity, plus an unconnected 'island' frame."""
    t = StaticTransformer()
    t.set_transform("map", "odom", 0.0, 0.0, 0.0)
    t.set_transform("island", "lonely", 0.0, 0.0, 0.0)
    return t


@pytest.fixture
def straight_path() -> Path2D:
    """Forward path along +x in the map frame, 0.25 m spacing, 0..5 m."""
    return Path2D.from_xytheta([(0.25 * i, 0.0, 0.0) for i in range(21)],
                               frame_id="map")


@pytest.fixture
def reversing_path() -> Path2D:
    """Drive forward to x=1, then back up to x=0 keeping heading 0."""
    pts = [(0.0, 0.0, 0.0), (0.5, 0.0, 0.0), (1.0, 0.0, 0.0),
           (0.5, 0.0, 0.0), (0.0, 0.0, 0.0)]
    return Path2D.from_xytheta(pts, frame_id="map")


@pytest.fixture
def turning_path() -> Path2D:
    return Path2D.from_xytheta(
        [(0, 0, 0), (1, 0, 0), (1, 0, math.pi / 2), (1, 1, math.pi / 2)],
        frame_id="map")


@pytest.fixture
def origin_pose() -> Pose2D:
    return Pose2D(0.0, 0.0, 0.0, "odom")
