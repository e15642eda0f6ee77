"""
config.py - 规划器配置

DWBConfig 保存会话启动时的全部标量选项和插件选择；
CriticConfig 描述单个 critic（名称、类名、权重、参数）。
支持 dict / JSON 序列化，未知字段忽略，缺失字段用默认值。
"""

import json
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


@dataclass
class CriticConfig:
    """单个 critic 配置

    Attributes:
        name: critic 实例名称（日志 / 评分记录中使用）
        class_name: 插件类名，缺省时同 name（如 "PathDist" → "dwb_critics::PathDistCritic"）
        scale: 权重，0 表示跳过该 critic
        params: 插件参数
    """
    name: str
    class_name: Optional[str] = None
    scale: float = 1.0
    params: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'class_name': self.class_name,
            'scale': self.scale,
            'params': dict(self.params),
        }

    @classmethod
    def from_value(cls, value: Union[str, Dict[str, Any]]) -> 'CriticConfig':
        """接受字符串（仅名称）或字典"""
        if isinstance(value, str):
            return cls(name=value)
        data = dict(value)
        if 'name' not in data:
            raise ValueError(f"critic 配置缺少 name: {data}")
        # 兼容 "class" 键
        if 'class' in data and 'class_name' not in data:
            data['class_name'] = data.pop('class')
        return cls(
            name=data['name'],
            class_name=data.get('class_name'),
            scale=float(data.get('scale', 1.0)),
            params=dict(data.get('params', {})),
        )


@dataclass
class DWBConfig:
    """DWB 局部规划器配置

    Attributes:
        update_costmap_before_planning: 每周期规划前刷新代价地图
        prune_plan: 是否剪掉已走过的路径点
        prune_distance: 剪枝半径 (m)
        short_circuit_trajectory_evaluation: 是否启用短路评估
        debug_trajectory_details: 无可行轨迹时输出拒绝统计，并记录周期耗时
        split_path: 是否按运动方向分段
        trajectory_generator_name: 轨迹生成器插件名
        goal_checker_name: 目标检查器插件名
        default_critic_namespaces: critic 类名解析时依次尝试的命名空间
        critics: critic 配置，顺序即评估顺序
        generator_params: 轨迹生成器参数
        goal_checker_params: 目标检查器参数
    """
    update_costmap_before_planning: bool = True
    prune_plan: bool = True
    prune_distance: float = 1.0
    short_circuit_trajectory_evaluation: bool = True
    debug_trajectory_details: bool = False
    split_path: bool = False
    trajectory_generator_name: str = "dwb_plugins::StandardTrajectoryGenerator"
    goal_checker_name: str = "dwb_plugins::SimpleGoalChecker"
    default_critic_namespaces: List[str] = field(default_factory=lambda: ["dwb_critics"])
    critics: List[CriticConfig] = field(default_factory=list)
    generator_params: Dict[str, Any] = field(default_factory=dict)
    goal_checker_params: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.critics = [c if isinstance(c, CriticConfig) else CriticConfig.from_value(c)
                        for c in self.critics]
        if self.prune_distance < 0:
            raise ValueError("prune_distance 不能为负")

    # ── JSON 序列化 ──

    def to_dict(self) -> Dict[str, Any]:
        """转为字典"""
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        d['critics'] = [c.to_dict() for c in self.critics]
        d['default_critic_namespaces'] = list(self.default_critic_namespaces)
        d['generator_params'] = dict(self.generator_params)
        d['goal_checker_params'] = dict(self.goal_checker_params)
        return d

    def to_json(self, filepath: Union[str, Path]) -> str:
        """保存到 JSON 文件

        Returns:
            保存的文件路径字符串
        """
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False)
        return str(filepath)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'DWBConfig':
        """从字典创建（忽略未知字段，缺失字段用默认值）"""
        valid_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        if 'critics' in filtered:
            filtered['critics'] = [CriticConfig.from_value(c) for c in filtered['critics']]
        return cls(**filtered)

    @classmethod
    def from_json(cls, filepath: Union[str, Path]) -> 'DWBConfig':
        """从 JSON 文件加载"""
        filepath = Path(filepath)
        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls.from_dict(data)
