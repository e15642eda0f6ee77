"""
plan_transform.py - 路径开窗与剪枝

把当前路径段变换到局部（代价地图）坐标系：
1. 将机器人位姿变换到路径坐标系
2. 跳过窗口半径外的前导路径点；进入窗口后逐点变换，直到路径再次离开
   窗口（离开窗口的第一个点仍保留），得到一段连续的局部路径
3. 剪枝：丢弃局部路径与原路径段前部距机器人超过 prune_distance 的点

该算法假设路径在某处经过机器人附近，否则需要若干周期才能收敛。
"""

import logging
from typing import Tuple

from .costmap import Costmap
from .exceptions import EmptyPlanError, PlannerTFError
from .geometry import square_distance
from .models import Path2D, PlanSegment, Pose2D
from .transforms import Transformer

logger = logging.getLogger(__name__)


class PlanTransformer:
    """路径段 → 局部路径

    Args:
        costmap: 局部代价地图（提供窗口尺寸与局部坐标系）
        transformer: 坐标变换服务
        prune_plan: 是否剪掉已经走过的路径点
        prune_distance: 剪枝半径 (m)
    """

    def __init__(
        self,
        costmap: Costmap,
        transformer: Transformer,
        prune_plan: bool = True,
        prune_distance: float = 1.0,
    ) -> None:
        self.costmap = costmap
        self.transformer = transformer
        self.prune_plan = prune_plan
        self.prune_distance = prune_distance

    def window_radius(self) -> float:
        cm = self.costmap
        return max(cm.width, cm.height) * cm.resolution / 2.0

    def to_local(self, pose: Pose2D) -> Pose2D:
        """变换到代价地图坐标系，失败抛 PlannerTFError"""
        local = self.transformer.transform_pose(self.costmap.frame_id, pose)
        if local is None:
            raise PlannerTFError(
                f"Unable to transform pose from {pose.frame_id!r} into {self.costmap.frame_id!r}")
        return local

    def transform(self, segment: PlanSegment, robot_pose: Pose2D,
                  stamp: float = 0.0) -> Tuple[Path2D, PlanSegment]:
        """开窗 + 剪枝

        Args:
            segment: 当前路径段（不会被修改）
            robot_pose: 机器人位姿（任意坐标系）
            stamp: 局部路径时间戳

        Returns:
            (局部路径, 剪枝后的路径段)
        """
        plan = segment.path
        if plan.is_empty:
            raise EmptyPlanError("Received plan with zero length")

        robot_in_plan = self.transformer.transform_pose(plan.frame_id, robot_pose)
        if robot_in_plan is None:
            raise PlannerTFError("Unable to transform robot pose into global plan's frame")

        local = Path2D(frame_id=self.costmap.frame_id, stamp=stamp)
        radius = self.window_radius()
        sq_radius = radius * radius

        for i, plan_pose in enumerate(plan.poses):
            outside = square_distance(robot_in_plan, plan_pose) > sq_radius
            if outside and local.is_empty:
                continue
            local.poses.append(self.to_local(plan.stamped(i)))
            if outside:
                break

        global_poses = list(plan.poses)
        if self.prune_plan:
            robot_local = self.transformer.transform_pose(local.frame_id, robot_pose)
            if robot_local is None:
                raise PlannerTFError("Unable to transform robot pose into costmap's frame")

            sq_prune = self.prune_distance * self.prune_distance
            n_drop = 0
            for w in local.poses:
                if square_distance(robot_local, w) < sq_prune:
                    logger.debug("Nearest waypoint to <%f, %f> is <%f, %f>",
                                 robot_local.x, robot_local.y, w.x, w.y)
                    break
                n_drop += 1
            if n_drop:
                del local.poses[:n_drop]
                del global_poses[:n_drop]

        if local.is_empty:
            raise EmptyPlanError("Resulting plan has 0 poses in it.")

        return local, PlanSegment(plan.copy(global_poses), segment.movement)
