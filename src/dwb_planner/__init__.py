"""
dwb_planner - 动态窗口 (DWB) 局部规划器核心

每个控制周期，根据机器人当前位姿、速度与参考路径，从轨迹生成器
枚举的候选速度中，按一组可插拔 critic 的加权评分选出最优速度指令。

核心流程：
1. 路径分段：按前进 / 倒车 / 原地旋转切分参考路径，逐段跟踪
2. 开窗与剪枝：将当前段变换到局部坐标系，只保留窗口内、未走过的路径点
3. 评分：逐候选累加 critic 分数，支持短路评估，记录非法轨迹统计
4. 决策与回报：选出最优候选；无论成败都恰好 debrief 一次各 critic

生成器 / critic / 目标检查器为插件接口，附带参考实现；
代价地图、坐标变换与遥测同样以接口形式注入。
"""

from .models import (
    ILLEGAL_SCORE,
    Pose2D,
    Twist2D,
    Path2D,
    MovementType,
    PlanSegment,
    Trajectory2D,
    CriticScore,
    TrajectoryScore,
    LocalPlanEvaluation,
    GoalState,
)
from .exceptions import (
    PlannerError,
    ConfigurationError,
    PlannerTFError,
    EmptyPlanError,
    GoalNotSetError,
    IllegalTrajectoryError,
    NoLegalTrajectoriesError,
)
from .tracker import IllegalTrajectoryTracker
from .segmenter import split_plan, classify_step
from .plan_transform import PlanTransformer
from .scoring import ScoringEngine, ScoringOutcome, CandidateOutcome
from .local_planner import DWBLocalPlanner
from .config import DWBConfig, CriticConfig
from .registry import PluginRegistry, default_registry, build_local_planner
from .costmap import Costmap, Costmap2D
from .transforms import Transformer, StaticTransformer
from .publisher import PlannerPublisher, RecordingPublisher, PublisherConfig
from .report import EvaluationReportGenerator

__version__ = "0.1.0"
__all__ = [
    # 数据模型
    'ILLEGAL_SCORE',
    'Pose2D',
    'Twist2D',
    'Path2D',
    'MovementType',
    'PlanSegment',
    'Trajectory2D',
    'CriticScore',
    'TrajectoryScore',
    'LocalPlanEvaluation',
    'GoalState',
    # 异常
    'PlannerError',
    'ConfigurationError',
    'PlannerTFError',
    'EmptyPlanError',
    'GoalNotSetError',
    'IllegalTrajectoryError',
    'NoLegalTrajectoriesError',
    'IllegalTrajectoryTracker',
    # 核心算法
    'split_plan',
    'classify_step',
    'PlanTransformer',
    'ScoringEngine',
    'ScoringOutcome',
    'CandidateOutcome',
    'DWBLocalPlanner',
    # 配置与装配
    'DWBConfig',
    'CriticConfig',
    'PluginRegistry',
    'default_registry',
    'build_local_planner',
    # 外部接口
    'Costmap',
    'Costmap2D',
    'Transformer',
    'StaticTransformer',
    'PlannerPublisher',
    'RecordingPublisher',
    'PublisherConfig',
    # 报告
    'EvaluationReportGenerator',
]
