"""
local_planner.py - DWB 局部规划器会话

对外操作：
- set_plan(path):      安装参考路径（可分段），重置目标状态与全部插件
- set_goal_pose(pose): 安装最终目标
- is_goal_reached(pose, velocity): 检查中间目标；到达则切换到下一段
- compute_velocity_commands(pose, velocity): 运行一个控制周期

控制周期流程：
1. prepare:  刷新代价地图 → 路径开窗/剪枝 → 各 critic.prepare
2. score:    ScoringEngine 枚举并评分候选
3. decide:   无可接受轨迹则抛 NoLegalTrajectoriesError（携带拒绝统计）
4. debrief:  每个周期恰好一次，成功时传所选速度，失败时传空速度

本类不可重入，也不做加锁；调用方负责串行化。
"""

import time
import logging
from collections import deque
from typing import List, Optional, Sequence, Tuple

from .config import DWBConfig
from .costmap import Costmap
from .exceptions import (
    EmptyPlanError,
    GoalNotSetError,
    NoLegalTrajectoriesError,
)
from .models import (
    GoalState,
    LocalPlanEvaluation,
    Path2D,
    PlanSegment,
    Pose2D,
    Trajectory2D,
    Twist2D,
)
from .plan_transform import PlanTransformer
from .plugins.base import GoalChecker, TrajectoryCritic, TrajectoryGenerator
from .publisher import PlannerPublisher
from .scoring import ScoringEngine, ScoringOutcome
from .segmenter import split_plan
from .timing import CycleTimer
from .transforms import Transformer

logger = logging.getLogger(__name__)


class DWBLocalPlanner:
    """动态窗口局部规划器

    插件均由调用方（通常是 ``build_local_planner``）实例化后注入，
    本类不做任何按名称的插件解析。

    Args:
        generator: 轨迹生成器
        goal_checker: 目标检查器
        critics: critic 列表，顺序即评估顺序
        costmap: 局部代价地图
        transformer: 坐标变换服务
        publisher: 遥测接收端（默认空操作）
        config: 规划器配置
        goal_state: 会话目标状态（默认新建；多会话时由调用方各自持有）

    Example:
        >>> planner = build_local_planner(config, costmap, tf)
        >>> planner.set_goal_pose(goal)
        >>> planner.set_plan(path)
        >>> while not planner.is_goal_reached(pose, vel):
        ...     cmd = planner.compute_velocity_commands(pose, vel)
    """

    def __init__(
        self,
        generator: TrajectoryGenerator,
        goal_checker: GoalChecker,
        critics: Sequence[TrajectoryCritic],
        costmap: Costmap,
        transformer: Transformer,
        publisher: Optional[PlannerPublisher] = None,
        config: Optional[DWBConfig] = None,
        goal_state: Optional[GoalState] = None,
    ) -> None:
        self.config = config or DWBConfig()
        self.generator = generator
        self.goal_checker = goal_checker
        self.critics: List[TrajectoryCritic] = list(critics)
        self.costmap = costmap
        self.transformer = transformer
        self.publisher = publisher or PlannerPublisher()
        self.goal_state = goal_state if goal_state is not None else GoalState()

        self.plan_transformer = PlanTransformer(
            costmap=costmap,
            transformer=transformer,
            prune_plan=self.config.prune_plan,
            prune_distance=self.config.prune_distance,
        )
        self.scorer = ScoringEngine(
            generator=generator,
            critics=self.critics,
            short_circuit=self.config.short_circuit_trajectory_evaluation,
            debug_trajectory_details=self.config.debug_trajectory_details,
        )
        self.last_timer: Optional[CycleTimer] = None

    # ==================== 目标 / 路径 ====================

    def set_goal_pose(self, goal_pose: Pose2D) -> None:
        logger.info("New Goal Received.")
        gs = self.goal_state
        gs.goal_pose = goal_pose
        if gs.active_segment is None:
            gs.intermediate_goal_pose = goal_pose
        else:
            gs.intermediate_goal_pose = gs.active_segment.end_pose()

    def set_plan(self, path: Path2D) -> None:
        """安装新的参考路径

        split_path 启用时按运动方向分段，只激活第一段，其余排队。
        """
        if self.config.split_path:
            logger.info("Splitting path...")
        segments = split_plan(path, self.config.split_path)

        gs = self.goal_state
        gs.pending_segments = deque(segments[1:])
        gs.activate(segments[0])
        self.publisher.publish_global_plan(gs.active_segment.path)
        self.reset_plugins()

    def reset_plugins(self) -> None:
        self.generator.reset()
        self.goal_checker.reset()
        for critic in self.critics:
            critic.reset()

    def is_goal_reached(self, pose: Pose2D, velocity: Twist2D) -> bool:
        """检查是否到达目标

        还有排队路径段时，到达中间目标只会切换到下一段并返回 False。

        Raises:
            GoalNotSetError: 尚未设置目标
            PlannerTFError: 位姿无法变换到局部坐标系
        """
        gs = self.goal_state
        if not gs.has_goal:
            raise GoalNotSetError("Cannot check if the goal is reached without the goal being set!")

        reached = self.goal_checker.is_goal_reached(
            self.plan_transformer.to_local(pose),
            self.plan_transformer.to_local(gs.intermediate_goal_pose),
            velocity,
        )
        if not reached:
            return False

        if gs.on_final_segment:
            logger.info("Goal reached!")
            return True

        logger.info("Intermediate goal reached!")
        gs.activate(gs.pending_segments.popleft())
        self.publisher.publish_global_plan(gs.active_segment.path)
        # 路径段已更换，critic 等插件需要重置；prepare 在下次计算指令时自动调用
        self.reset_plugins()
        return False

    # ==================== 控制周期 ====================

    def compute_velocity_commands(self, pose: Pose2D, velocity: Twist2D) -> Twist2D:
        """运行一个控制周期，返回速度指令

        评价记录只在 publisher 需要时分配，成功或失败都会发布。

        Raises:
            EmptyPlanError / PlannerTFError / NoLegalTrajectoriesError；
            地图刷新或插件抛出的其他异常同样原样传出（已 debrief）
        """
        results: Optional[LocalPlanEvaluation] = None
        if self.publisher.should_record_evaluation():
            results = LocalPlanEvaluation(frame_id=pose.frame_id, stamp=time.time())

        try:
            cmd_vel = self._compute(pose, velocity, results)
        except Exception:
            self.publisher.publish_evaluation(results)
            raise
        self.publisher.publish_evaluation(results)
        return cmd_vel

    def prepare(self, pose: Pose2D, velocity: Twist2D) -> Tuple[Path2D, PlanSegment, Pose2D]:
        """周期准备

        Returns:
            (局部路径, 剪枝后的路径段, 局部起点位姿)
        """
        if self.config.update_costmap_before_planning:
            self.costmap.update()

        gs = self.goal_state
        if gs.active_segment is None:
            raise EmptyPlanError("No plan has been set")

        local_plan, pruned = self.plan_transformer.transform(gs.active_segment, pose,
                                                             stamp=time.time())
        self.publisher.publish_transformed_plan(local_plan)

        local_start = self.plan_transformer.to_local(pose)
        local_goal = self.plan_transformer.to_local(gs.intermediate_goal_pose)
        self.publisher.publish_input_params(self.costmap.get_info(), local_start,
                                            velocity, local_goal)

        for critic in self.critics:
            if not critic.prepare(local_start, velocity, local_goal, local_plan):
                logger.warning("Critic \"%s\" failed to prepare", critic.get_name())
        return local_plan, pruned, local_start

    def _compute(self, pose: Pose2D, velocity: Twist2D,
                 results: Optional[LocalPlanEvaluation]) -> Twist2D:
        timer = CycleTimer()
        self.last_timer = timer
        frame_id = self.costmap.frame_id
        try:
            with timer.phase("prepare"):
                _, pruned, local_start = self.prepare(pose, velocity)
            with timer.phase("score"):
                outcome: ScoringOutcome = self.scorer.evaluate(local_start, velocity, results)
            if not outcome.success:
                raise NoLegalTrajectoriesError(outcome.tracker)
        except Exception:
            # 任何失败（含地图刷新、插件自身异常）都以空速度 debrief 一次
            self._finish_failed(frame_id, timer)
            raise

        cmd_vel = outcome.best.traj.velocity
        with timer.phase("debrief"):
            self._debrief(cmd_vel)

        if self.config.prune_plan:
            self.goal_state.active_segment = pruned
            self.publisher.publish_global_plan(pruned.path)

        self.publisher.publish_local_plan(frame_id, outcome.best.traj)
        self.publisher.publish_cost_grid(self.costmap, self.critics)
        if self.config.debug_trajectory_details:
            logger.debug("周期耗时: %s (%d 个候选)", timer.summary(), outcome.n_candidates)
        return cmd_vel

    def _debrief(self, cmd_vel: Twist2D) -> None:
        for critic in self.critics:
            critic.debrief(cmd_vel)

    def _finish_failed(self, frame_id: str, timer: CycleTimer) -> None:
        """失败周期：以空速度告知各 critic，并发布空局部轨迹"""
        with timer.phase("debrief"):
            self._debrief(Twist2D())
        self.publisher.publish_local_plan(frame_id, Trajectory2D())
        self.publisher.publish_cost_grid(self.costmap, self.critics)
