"""
test_local_planner.py — Tests for local_planner.py (DWBLocalPlanner session).

Covers:
    - compute_velocity_commands: best command, prepare / debrief protocol
    - cycle-level failures: no legal trajectory, no plan, TF failure
    - evaluation record only assembled when the publisher asks for it
    - pruned segment committed only on successful cycles
    - goal checking with segment advancement and plugin resets
"""

import logging

import pytest

from dwb_planner.config import DWBConfig
from dwb_planner.costmap import Costmap2D
from dwb_planner.exceptions import (
    EmptyPlanError,
    GoalNotSetError,
    NoLegalTrajectoriesError,
    PlannerTFError,
)
from dwb_planner.local_planner import DWBLocalPlanner
from dwb_planner.models import MovementType, Pose2D, Twist2D
from dwb_planner.publisher import PublisherConfig, RecordingPublisher

from conftest import FlagGoalChecker, ListGenerator, ScriptedCritic


def _twists(*xs):
    return [Twist2D(float(x), 0.0, 0.0) for x in xs]


def make_planner(costmap, tf, critics, generator=None, checker=None,
                 publisher=None, **options):
    return DWBLocalPlanner(
        generator=generator or ListGenerator(_twists(1, 2, 3)),
        goal_checker=checker or FlagGoalChecker(),
        critics=critics,
        costmap=costmap,
        transformer=tf,
        publisher=publisher,
        config=DWBConfig(**options),
    )


ROBOT = Pose2D(0.0, 0.0, 0.0, "odom")
VEL = Twist2D()


class TestComputeVelocityCommands:

    def test_returns_best_command(self, costmap, tf, straight_path):
        critic = ScriptedCritic("a", scores={1.0: 3.0, 2.0: 1.0, 3.0: 2.0})
        planner = make_planner(costmap, tf, [critic])
        planner.set_plan(straight_path)

        cmd = planner.compute_velocity_commands(ROBOT, VEL)

        assert cmd == Twist2D(2.0)
        assert critic.prepare_calls == 1
        assert critic.debriefs == [Twist2D(2.0)]

    def test_critics_see_local_plan_and_goal(self, costmap, tf, straight_path):
        critic = ScriptedCritic("a", default=1.0)
        planner = make_planner(costmap, tf, [critic])
        planner.set_goal_pose(Pose2D(5.0, 0.0, 0.0, "map"))
        planner.set_plan(straight_path)
        planner.compute_velocity_commands(ROBOT, VEL)

        assert critic.last_plan.frame_id == "odom"
        assert len(critic.last_plan) == 10
        assert critic.last_goal.x == pytest.approx(5.0)
        assert critic.last_goal.frame_id == "odom"

    def test_costmap_update_toggle(self, costmap, tf, straight_path):
        planner = make_planner(costmap, tf, [ScriptedCritic("a")])
        planner.set_plan(straight_path)
        planner.compute_velocity_commands(ROBOT, VEL)
        assert costmap.n_updates == 1

        planner = make_planner(costmap, tf, [ScriptedCritic("a")],
                               update_costmap_before_planning=False)
        planner.set_plan(straight_path)
        planner.compute_velocity_commands(ROBOT, VEL)
        assert costmap.n_updates == 1

    def test_prepare_failure_is_not_fatal(self, costmap, tf, straight_path, caplog):
        critic = ScriptedCritic("lazy", default=1.0, prepare_ok=False)
        planner = make_planner(costmap, tf, [critic])
        planner.set_plan(straight_path)
        with caplog.at_level(logging.WARNING, logger="dwb_planner.local_planner"):
            cmd = planner.compute_velocity_commands(ROBOT, VEL)
        assert cmd == Twist2D(1.0)
        assert "lazy" in caplog.text

    def test_no_legal_trajectories_debriefs_empty(self, costmap, tf, straight_path):
        c1 = ScriptedCritic("obst", default=None)
        c2 = ScriptedCritic("other", default=1.0)
        planner = make_planner(costmap, tf, [c1, c2])
        planner.set_plan(straight_path)

        with pytest.raises(NoLegalTrajectoriesError) as exc_info:
            planner.compute_velocity_commands(ROBOT, VEL)

        assert exc_info.value.tracker.illegal_count == 3
        assert "No valid trajectories out of 3" in str(exc_info.value)
        assert c1.debriefs == [Twist2D()]
        assert c2.debriefs == [Twist2D()]

    def test_no_plan(self, costmap, tf):
        critic = ScriptedCritic("a")
        planner = make_planner(costmap, tf, [critic])
        with pytest.raises(EmptyPlanError):
            planner.compute_velocity_commands(ROBOT, VEL)
        assert critic.debriefs == [Twist2D()]

    def test_tf_failure(self, costmap, tf, straight_path):
        critic = ScriptedCritic("a")
        planner = make_planner(costmap, tf, [critic])
        planner.set_plan(straight_path)
        with pytest.raises(PlannerTFError):
            planner.compute_velocity_commands(Pose2D(0, 0, 0, "lonely"), VEL)
        assert critic.debriefs == [Twist2D()]
        assert critic.prepare_calls == 0

    def test_debrief_once_per_cycle(self, costmap, tf, straight_path):
        critic = ScriptedCritic("a", default=1.0)
        planner = make_planner(costmap, tf, [critic])
        planner.set_plan(straight_path)
        for _ in range(3):
            planner.compute_velocity_commands(ROBOT, VEL)
        assert len(critic.debriefs) == 3
        assert critic.prepare_calls == 3

    def test_costmap_update_error_debriefs(self, tf, straight_path):
        class BrokenCostmap(Costmap2D):
            def update(self):
                raise RuntimeError("sensor timeout")

        critic = ScriptedCritic("a")
        cm = BrokenCostmap(40, 40, 0.1, frame_id="odom", origin=(-2.0, -2.0))
        planner = make_planner(cm, tf, [critic])
        planner.set_plan(straight_path)
        with pytest.raises(RuntimeError, match="sensor timeout"):
            planner.compute_velocity_commands(ROBOT, VEL)
        assert critic.debriefs == [Twist2D()]
        assert critic.prepare_calls == 0

    def test_critic_crash_debriefs_all(self, costmap, tf, straight_path):
        class CrashingCritic(ScriptedCritic):
            def score_trajectory(self, traj):
                raise ValueError("bad lookup")

        good = ScriptedCritic("good", default=1.0)
        bad = CrashingCritic("bad")
        pub = RecordingPublisher()
        planner = make_planner(costmap, tf, [good, bad], publisher=pub)
        planner.set_plan(straight_path)
        with pytest.raises(ValueError):
            planner.compute_velocity_commands(ROBOT, VEL)
        assert good.debriefs == [Twist2D()]
        assert bad.debriefs == [Twist2D()]
        assert len(pub.evaluations) == 1
        assert len(pub.local_plan) == 0


class TestTelemetry:

    def test_evaluation_only_when_requested(self, costmap, tf, straight_path):
        pub = RecordingPublisher(PublisherConfig(publish_evaluation=False))
        planner = make_planner(costmap, tf, [ScriptedCritic("a")], publisher=pub)
        planner.set_plan(straight_path)
        planner.compute_velocity_commands(ROBOT, VEL)
        assert pub.evaluations == []
        assert pub.local_plan is not None

    def test_evaluation_published_on_success_and_failure(self, costmap, tf, straight_path):
        pub = RecordingPublisher()
        critic = ScriptedCritic("a", scores={1.0: 2.0, 2.0: 1.0, 3.0: None})
        planner = make_planner(costmap, tf, [critic], publisher=pub)
        planner.set_plan(straight_path)
        planner.compute_velocity_commands(ROBOT, VEL)

        ev = pub.last_evaluation
        assert len(ev.twists) == 3
        assert ev.best_index == 1
        assert ev.frame_id == "odom"

        critic.scores = {}
        critic.default = None
        with pytest.raises(NoLegalTrajectoriesError):
            planner.compute_velocity_commands(ROBOT, VEL)
        assert len(pub.evaluations) == 2
        assert pub.last_evaluation.best_index == -1
        assert len(pub.local_plan) == 0

    def test_transformed_plan_and_inputs_published(self, costmap, tf, straight_path):
        pub = RecordingPublisher()
        planner = make_planner(costmap, tf, [ScriptedCritic("a")], publisher=pub)
        planner.set_goal_pose(Pose2D(5.0, 0.0, 0.0, "map"))
        planner.set_plan(straight_path)
        planner.compute_velocity_commands(ROBOT, VEL)
        assert pub.transformed_plan.frame_id == "odom"
        assert pub.input_params["map_info"]["width"] == 40
        assert pub.input_params["goal_pose"].x == pytest.approx(5.0)


class TestPruneCommit:

    def test_pruned_segment_committed_on_success(self, costmap, tf, straight_path):
        planner = make_planner(costmap, tf, [ScriptedCritic("a")])
        planner.set_plan(straight_path)
        planner.compute_velocity_commands(Pose2D(3.0, 0.0, 0.0, "odom"), VEL)
        active = planner.goal_state.active_segment
        assert len(active) == len(straight_path) - 5
        assert active.poses[-1] == straight_path.poses[-1]

    def test_not_committed_on_failure(self, costmap, tf, straight_path):
        planner = make_planner(costmap, tf, [ScriptedCritic("obst", default=None)])
        planner.set_plan(straight_path)
        with pytest.raises(NoLegalTrajectoriesError):
            planner.compute_velocity_commands(Pose2D(3.0, 0.0, 0.0, "odom"), VEL)
        assert len(planner.goal_state.active_segment) == len(straight_path)

    def test_prune_disabled(self, costmap, tf, straight_path):
        planner = make_planner(costmap, tf, [ScriptedCritic("a")], prune_plan=False)
        planner.set_plan(straight_path)
        planner.compute_velocity_commands(Pose2D(3.0, 0.0, 0.0, "odom"), VEL)
        assert len(planner.goal_state.active_segment) == len(straight_path)


class TestGoalChecking:

    def test_goal_not_set(self, costmap, tf, straight_path):
        planner = make_planner(costmap, tf, [])
        planner.set_plan(straight_path)
        with pytest.raises(GoalNotSetError):
            planner.is_goal_reached(ROBOT, VEL)

    def test_single_segment_reached(self, costmap, tf, straight_path):
        checker = FlagGoalChecker(reached=True)
        planner = make_planner(costmap, tf, [], checker=checker)
        planner.set_goal_pose(Pose2D(5.0, 0.0, 0.0, "map"))
        planner.set_plan(straight_path)
        assert planner.is_goal_reached(ROBOT, VEL) is True
        assert checker.queries[-1].x == pytest.approx(5.0)
        assert checker.queries[-1].frame_id == "odom"

    def test_not_reached(self, costmap, tf, turning_path):
        checker = FlagGoalChecker(reached=False)
        planner = make_planner(costmap, tf, [], checker=checker, split_path=True)
        planner.set_goal_pose(Pose2D(1.0, 1.0, 0.0, "map"))
        planner.set_plan(turning_path)
        assert planner.is_goal_reached(ROBOT, VEL) is False
        assert len(planner.goal_state.pending_segments) == 2

    def test_segment_advancement(self, costmap, tf, turning_path):
        checker = FlagGoalChecker(reached=True)
        generator = ListGenerator(_twists(1))
        critic = ScriptedCritic("a")
        planner = make_planner(costmap, tf, [critic], generator=generator,
                               checker=checker, split_path=True)
        planner.set_goal_pose(turning_path.stamped(-1))
        planner.set_plan(turning_path)
        gs = planner.goal_state

        assert gs.active_segment.movement == MovementType.FORWARD
        assert gs.intermediate_goal_pose == turning_path.stamped(1)
        resets_before = (generator.n_resets, checker.n_resets, critic.n_resets)

        assert planner.is_goal_reached(ROBOT, VEL) is False
        assert gs.active_segment.movement == MovementType.ROTATE_IN_PLACE
        assert gs.intermediate_goal_pose == turning_path.stamped(2)
        assert (generator.n_resets, checker.n_resets, critic.n_resets) == \
            tuple(n + 1 for n in resets_before)

        assert planner.is_goal_reached(ROBOT, VEL) is False
        assert gs.active_segment.movement == MovementType.FORWARD
        assert gs.on_final_segment

        assert planner.is_goal_reached(ROBOT, VEL) is True
        assert planner.is_goal_reached(ROBOT, VEL) is True
        assert gs.active_segment.poses == turning_path.poses[2:]

    def test_set_plan_resets_plugins(self, costmap, tf, straight_path):
        generator = ListGenerator(_twists(1))
        checker = FlagGoalChecker()
        critic = ScriptedCritic("a")
        planner = make_planner(costmap, tf, [critic], generator=generator, checker=checker)
        planner.set_plan(straight_path)
        planner.set_plan(straight_path)
        assert generator.n_resets == 2
        assert checker.n_resets == 2
        assert critic.n_resets == 2

    def test_set_goal_after_plan_keeps_segment_goal(self, costmap, tf, turning_path):
        planner = make_planner(costmap, tf, [], split_path=True)
        planner.set_plan(turning_path)
        planner.set_goal_pose(turning_path.stamped(-1))
        assert planner.goal_state.intermediate_goal_pose == turning_path.stamped(1)
        assert planner.goal_state.goal_pose == turning_path.stamped(-1)
