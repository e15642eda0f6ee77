"""
test_models.py — Unit tests for models.py / geometry.py.

Covers:
    - Pose2D / Twist2D value semantics
    - Path2D array conversion & header copy
    - TrajectoryScore legality sentinel
    - LocalPlanEvaluation best / worst accessors
    - GoalState activation invariant
    - geometry helpers
"""

import math

import numpy as np
import pytest

from dwb_planner.geometry import (
    angle_diff,
    apply_transform,
    invert_transform,
    normalize_angle,
    pose_to_matrix,
    square_distance,
)
from dwb_planner.models import (
    ILLEGAL_SCORE,
    CriticScore,
    GoalState,
    LocalPlanEvaluation,
    MovementType,
    Path2D,
    PlanSegment,
    Pose2D,
    Trajectory2D,
    TrajectoryScore,
    Twist2D,
)


class TestValueTypes:

    def test_pose_is_immutable(self):
        p = Pose2D(1.0, 2.0, 0.5, "map")
        with pytest.raises(Exception):
            p.x = 3.0

    def test_with_frame(self):
        p = Pose2D(1.0, 2.0, 0.5)
        q = p.with_frame("odom")
        assert q.frame_id == "odom"
        assert (q.x, q.y, q.theta) == (1.0, 2.0, 0.5)
        assert p.frame_id == ""

    def test_twist_empty(self):
        assert Twist2D().is_zero()
        assert not Twist2D(0.1, 0.0, 0.0).is_zero()

    def test_twist_hashable_equality(self):
        assert Twist2D(0.1, 0.0, 0.2) == Twist2D(0.1, 0.0, 0.2)
        assert len({Twist2D(0.1), Twist2D(0.1)}) == 1


class TestPath2D:

    def test_from_xytheta_and_array(self):
        path = Path2D.from_xytheta([(0, 0, 0), (1, 2, 0.5)], frame_id="map")
        arr = path.to_array()
        assert arr.shape == (2, 3)
        np.testing.assert_array_almost_equal(arr[1], [1.0, 2.0, 0.5])

    def test_empty_array_shape(self):
        assert Path2D().to_array().shape == (0, 3)
        assert Path2D().is_empty

    def test_copy_keeps_header(self):
        path = Path2D.from_xytheta([(0, 0, 0), (1, 0, 0)], frame_id="map", stamp=3.0)
        sub = path.copy(path.poses[:1])
        assert sub.frame_id == "map"
        assert sub.stamp == 3.0
        assert len(sub) == 1
        assert len(path) == 2

    def test_stamped_pose_carries_frame(self):
        path = Path2D.from_xytheta([(0, 0, 0), (1, 0, 0)], frame_id="map")
        assert path.stamped(-1).frame_id == "map"

    def test_segment_end_pose(self):
        path = Path2D.from_xytheta([(0, 0, 0), (1, 0, 0)], frame_id="map")
        seg = PlanSegment(path, MovementType.FORWARD)
        assert seg.end_pose() == Pose2D(1.0, 0.0, 0.0, "map")
        assert len(seg) == 2


class TestScores:

    def test_illegal_sentinel(self):
        s = TrajectoryScore(total=ILLEGAL_SCORE)
        assert not s.is_legal
        assert TrajectoryScore(total=0.0).is_legal

    def test_weighted_score(self):
        assert CriticScore("a", scale=2.0, raw_score=1.5).weighted == pytest.approx(3.0)

    def test_evaluation_best_worst(self):
        ev = LocalPlanEvaluation()
        assert ev.best is None and ev.worst is None
        ev.twists = [TrajectoryScore(total=1.0), TrajectoryScore(total=2.0)]
        ev.best_index, ev.worst_index = 0, 1
        assert ev.best.total == 1.0
        assert ev.worst.total == 2.0

    def test_trajectory_array(self):
        traj = Trajectory2D(poses=[Pose2D(0, 0, 0), Pose2D(1, 1, 0.1)])
        assert traj.as_array().shape == (2, 3)
        assert Trajectory2D().as_array().shape == (0, 3)


class TestGoalState:

    def test_activate_sets_intermediate_goal(self):
        gs = GoalState()
        assert not gs.has_goal
        path = Path2D.from_xytheta([(0, 0, 0), (2, 0, 0)], frame_id="map")
        gs.activate(PlanSegment(path))
        assert gs.intermediate_goal_pose == Pose2D(2.0, 0.0, 0.0, "map")
        assert gs.on_final_segment


class TestGeometry:

    def test_normalize_angle(self):
        assert normalize_angle(3 * math.pi) == pytest.approx(math.pi)
        assert normalize_angle(-math.pi / 2) == pytest.approx(-math.pi / 2)

    def test_angle_diff_wraps(self):
        assert angle_diff(math.pi - 0.1, -math.pi + 0.1) == pytest.approx(-0.2)

    def test_square_distance(self):
        assert square_distance(Pose2D(0, 0), Pose2D(3, 4)) == pytest.approx(25.0)

    def test_invert_transform(self):
        m = pose_to_matrix(1.0, -2.0, 0.7)
        np.testing.assert_array_almost_equal(m @ invert_transform(m), np.eye(3))

    def test_apply_transform(self):
        m = pose_to_matrix(1.0, 0.0, math.pi / 2)
        p = apply_transform(m, Pose2D(1.0, 0.0, 0.0), "map")
        assert p.x == pytest.approx(1.0)
        assert p.y == pytest.approx(1.0)
        assert p.theta == pytest.approx(math.pi / 2)
        assert p.frame_id == "map"
