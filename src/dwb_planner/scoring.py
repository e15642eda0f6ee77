"""
scoring.py - 轨迹评分核心

单个控制周期内：
1. 生成器枚举候选速度并滚动生成轨迹
2. 按配置顺序依次调用各 critic，累加 raw_score * scale
   - scale == 0 的 critic 直接跳过（不调用打分）
   - 短路：部分和已超过当前最优总分时提前停止（要求各项贡献非负）
3. 非法轨迹记入 IllegalTrajectoryTracker，继续下一个候选
4. 记录最优（总分最小）与最差候选

每个候选的结果以 CandidateOutcome 标记返回，引擎据此分支，
单个候选的拒绝不会逃出本模块。
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

from .exceptions import IllegalTrajectoryError
from .models import (
    ILLEGAL_SCORE,
    CriticScore,
    LocalPlanEvaluation,
    Pose2D,
    Trajectory2D,
    TrajectoryScore,
    Twist2D,
)
from .plugins.base import TrajectoryCritic, TrajectoryGenerator
from .tracker import IllegalTrajectoryTracker

logger = logging.getLogger(__name__)


@dataclass
class CandidateOutcome:
    """单个候选的评分结果：score 与 error 恰有一个非 None"""
    traj: Trajectory2D
    score: Optional[TrajectoryScore] = None
    error: Optional[IllegalTrajectoryError] = None

    @property
    def is_legal(self) -> bool:
        return self.error is None

    def as_record(self) -> TrajectoryScore:
        """评价记录中的条目；非法候选只含拒绝者一项，总分为哨兵值"""
        if self.score is not None:
            return self.score
        return TrajectoryScore(
            traj=self.traj,
            scores=[CriticScore(name=self.error.critic_name, raw_score=ILLEGAL_SCORE)],
            total=ILLEGAL_SCORE,
        )


@dataclass
class ScoringOutcome:
    """一个周期的评分汇总；best 为 None 表示没有可接受的轨迹"""
    best: Optional[TrajectoryScore] = None
    worst: Optional[TrajectoryScore] = None
    tracker: IllegalTrajectoryTracker = field(default_factory=IllegalTrajectoryTracker)
    n_candidates: int = 0

    @property
    def success(self) -> bool:
        return self.best is not None


class ScoringEngine:
    """候选轨迹生成 + 多 critic 评分

    Args:
        generator: 轨迹生成器
        critics: critic 列表，顺序即评估顺序
        short_circuit: 是否启用短路评估
        debug_trajectory_details: 失败时是否输出拒绝统计

    Example:
        >>> engine = ScoringEngine(generator, [obstacle, path_dist])
        >>> outcome = engine.evaluate(pose, velocity)
        >>> if outcome.success:
        ...     cmd = outcome.best.traj.velocity
    """

    def __init__(
        self,
        generator: TrajectoryGenerator,
        critics: Sequence[TrajectoryCritic],
        short_circuit: bool = True,
        debug_trajectory_details: bool = False,
    ) -> None:
        self.generator = generator
        self.critics: List[TrajectoryCritic] = list(critics)
        self.short_circuit = short_circuit
        self.debug_trajectory_details = debug_trajectory_details
        self._warned_negative: Set[str] = set()

    def score_trajectory(self, traj: Trajectory2D,
                         best_score: float = ILLEGAL_SCORE) -> TrajectoryScore:
        """按顺序累加各 critic 的加权分数

        critic 抛出的 IllegalTrajectoryError 原样向上传递，由调用方处理。

        Args:
            traj: 待评价轨迹
            best_score: 当前最优总分（负值表示尚无最优）
        """
        score = TrajectoryScore(traj=traj)
        for critic in self.critics:
            cs = CriticScore(name=critic.get_name(), scale=critic.get_scale())
            if cs.scale == 0.0:
                score.scores.append(cs)
                continue

            cs.raw_score = critic.score_trajectory(traj)
            score.scores.append(cs)
            contribution = cs.raw_score * cs.scale
            if contribution < 0 and self.short_circuit:
                self._warn_negative(cs.name, contribution)
            score.total += contribution
            if self.short_circuit and best_score >= 0 and score.total > best_score:
                # 各项非负，部分和只增不减
                break
        return score

    def _warn_negative(self, name: str, contribution: float) -> None:
        if name not in self._warned_negative:
            self._warned_negative.add(name)
            logger.warning("Critic \"%s\" 给出负的加权分数 %.4f，短路评估结果不可靠",
                           name, contribution)

    def evaluate_candidate(self, pose: Pose2D, velocity: Twist2D, twist: Twist2D,
                           best_score: float) -> CandidateOutcome:
        """生成并评价单个候选"""
        try:
            traj = self.generator.generate_trajectory(pose, velocity, twist)
        except IllegalTrajectoryError as e:
            return CandidateOutcome(traj=Trajectory2D(velocity=twist), error=e)
        try:
            return CandidateOutcome(traj=traj, score=self.score_trajectory(traj, best_score))
        except IllegalTrajectoryError as e:
            return CandidateOutcome(traj=traj, error=e)

    def evaluate(self, pose: Pose2D, velocity: Twist2D,
                 results: Optional[LocalPlanEvaluation] = None) -> ScoringOutcome:
        """运行一个周期的枚举与评分

        Args:
            pose: 机器人局部位姿
            velocity: 当前速度
            results: 非 None 时填充逐候选评价记录

        Returns:
            ScoringOutcome
        """
        outcome = ScoringOutcome()
        tracker = outcome.tracker

        self.generator.start_new_iteration(velocity)
        while self.generator.has_more_twists():
            twist = self.generator.next_twist()
            best_total = outcome.best.total if outcome.best is not None else ILLEGAL_SCORE
            cand = self.evaluate_candidate(pose, velocity, twist, best_total)
            outcome.n_candidates += 1

            if results is not None:
                results.twists.append(cand.as_record())

            if not cand.is_legal:
                tracker.add_illegal_trajectory(cand.error)
                continue

            tracker.add_legal_trajectory()
            score = cand.score
            # 只有非负总分的轨迹才可被选为最优
            if score.is_legal and (outcome.best is None or score.total < outcome.best.total):
                outcome.best = score
                if results is not None:
                    results.best_index = len(results.twists) - 1
            if outcome.worst is None or score.total > outcome.worst.total:
                outcome.worst = score
                if results is not None:
                    results.worst_index = len(results.twists) - 1

        if outcome.best is None and self.debug_trajectory_details:
            logger.error("%s", tracker.message())
            for (critic_name, reason), pct in tracker.percentages().items():
                logger.error("%.2f: %10s/%s", pct, critic_name, reason)

        return outcome
