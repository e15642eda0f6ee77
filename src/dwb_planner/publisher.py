"""
dwb_planner/publisher.py - 遥测/调试数据发布

PlannerPublisher 为空实现：规划器在没有任何遥测消费者时照常工作。
RecordingPublisher 在内存中保留最近一次发布的数据，并按主题开关控制。
只有 should_record_evaluation() 为 True 时，规划器才会组装完整的
逐候选评价记录。
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Any, TYPE_CHECKING

import numpy as np

from .models import LocalPlanEvaluation, Path2D, Pose2D, Trajectory2D, Twist2D

if TYPE_CHECKING:
    from .costmap import Costmap
    from .plugins.base import TrajectoryCritic

logger = logging.getLogger(__name__)


class PlannerPublisher:
    """遥测接收端（fire-and-forget），默认全部为空操作"""

    def should_record_evaluation(self) -> bool:
        return False

    def publish_evaluation(self, results: Optional[LocalPlanEvaluation]) -> None:
        pass

    def publish_global_plan(self, plan: Path2D) -> None:
        pass

    def publish_transformed_plan(self, plan: Path2D) -> None:
        pass

    def publish_local_plan(self, frame_id: str, traj: Trajectory2D) -> None:
        pass

    def publish_cost_grid(self, costmap: 'Costmap',
                          critics: Sequence['TrajectoryCritic']) -> None:
        pass

    def publish_input_params(self, map_info: Dict[str, Any], start_pose: Pose2D,
                             velocity: Twist2D, goal_pose: Pose2D) -> None:
        pass


@dataclass
class PublisherConfig:
    """RecordingPublisher 主题开关"""
    publish_evaluation: bool = True
    publish_global_plan: bool = True
    publish_transformed_plan: bool = True
    publish_local_plan: bool = True
    publish_cost_grid: bool = False
    publish_input_params: bool = True


class RecordingPublisher(PlannerPublisher):
    """在内存中保留最近发布的数据，供调试与测试使用

    Attributes:
        evaluations: 历次发布的评价记录（None 表示未记录）
        global_plan / transformed_plan / local_plan: 最近一次发布的路径
        cost_grid: 最近一次组合的代价网格 (height, width)
        input_params: 最近一次的规划输入
    """

    def __init__(self, config: Optional[PublisherConfig] = None) -> None:
        self.config = config or PublisherConfig()
        self.evaluations: List[LocalPlanEvaluation] = []
        self.global_plan: Optional[Path2D] = None
        self.transformed_plan: Optional[Path2D] = None
        self.local_plan: Optional[Trajectory2D] = None
        self.local_plan_frame: str = ""
        self.cost_grid: Optional[np.ndarray] = None
        self.input_params: Optional[Dict[str, Any]] = None
        self.n_global_plans = 0

    def should_record_evaluation(self) -> bool:
        return self.config.publish_evaluation

    def publish_evaluation(self, results: Optional[LocalPlanEvaluation]) -> None:
        if results is not None and self.config.publish_evaluation:
            self.evaluations.append(results)

    def publish_global_plan(self, plan: Path2D) -> None:
        if self.config.publish_global_plan:
            self.global_plan = plan.copy()
            self.n_global_plans += 1

    def publish_transformed_plan(self, plan: Path2D) -> None:
        if self.config.publish_transformed_plan:
            self.transformed_plan = plan.copy()

    def publish_local_plan(self, frame_id: str, traj: Trajectory2D) -> None:
        if self.config.publish_local_plan:
            self.local_plan = traj
            self.local_plan_frame = frame_id

    def publish_cost_grid(self, costmap, critics) -> None:
        if not self.config.publish_cost_grid:
            return
        grid = np.zeros((costmap.height, costmap.width), dtype=np.float64)
        for critic in critics:
            layer = critic.add_critic_visualization(costmap)
            if layer is None:
                continue
            if layer.shape != grid.shape:
                logger.warning("Critic \"%s\" 可视化网格尺寸 %s 与地图 %s 不符，已忽略",
                               critic.get_name(), layer.shape, grid.shape)
                continue
            grid += critic.get_scale() * layer
        self.cost_grid = grid

    def publish_input_params(self, map_info, start_pose, velocity, goal_pose) -> None:
        if self.config.publish_input_params:
            self.input_params = {
                'map_info': dict(map_info),
                'start_pose': start_pose,
                'velocity': velocity,
                'goal_pose': goal_pose,
            }

    @property
    def last_evaluation(self) -> Optional[LocalPlanEvaluation]:
        return self.evaluations[-1] if self.evaluations else None
