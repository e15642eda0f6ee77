"""
registry.py - 插件注册与规划器装配

按名称解析插件只发生在装配阶段；DWBLocalPlanner 本身只接收实例。

critic 类名解析规则：
1. 名称不含 "Critic" 时追加后缀（"PathDist" → "PathDistCritic"）
2. 名称不含 "::" 时依次尝试 default_critic_namespaces，取第一个已注册的
3. 否则原样使用；仍未注册则抛 ConfigurationError
"""

import logging
from typing import Callable, Dict, Iterable, List, Optional

from .config import DWBConfig
from .costmap import Costmap
from .exceptions import ConfigurationError
from .local_planner import DWBLocalPlanner
from .plugins import (
    BaseObstacleCritic,
    GoalDistCritic,
    OscillationCritic,
    PathDistCritic,
    PreferForwardCritic,
    SimpleGoalChecker,
    StandardTrajectoryGenerator,
)
from .plugins.base import GoalChecker, TrajectoryCritic, TrajectoryGenerator
from .publisher import PlannerPublisher
from .transforms import Transformer

logger = logging.getLogger(__name__)


class PluginRegistry:
    """插件名 → 工厂的注册表

    Example:
        >>> reg = PluginRegistry()
        >>> reg.register("my_critics::SpeedCritic", SpeedCritic)
        >>> reg.create("my_critics::SpeedCritic")
    """

    def __init__(self) -> None:
        self._factories: Dict[str, Callable[[], object]] = {}

    def register(self, full_name: str, factory: Callable[[], object]) -> None:
        if full_name in self._factories:
            logger.warning("PluginRegistry: 覆盖已注册的插件 %s", full_name)
        self._factories[full_name] = factory

    def is_class_available(self, full_name: str) -> bool:
        return full_name in self._factories

    def names(self) -> List[str]:
        return sorted(self._factories)

    def create(self, full_name: str) -> object:
        factory = self._factories.get(full_name)
        if factory is None:
            raise ConfigurationError(
                f"Could not find plugin \"{full_name}\". Available: {', '.join(self.names())}")
        return factory()

    def resolve_critic_class_name(self, base_name: str,
                                  namespaces: Iterable[str]) -> str:
        if "Critic" not in base_name:
            base_name = base_name + "Critic"
        if "::" not in base_name:
            for ns in namespaces:
                full_name = f"{ns}::{base_name}"
                if self.is_class_available(full_name):
                    return full_name
        return base_name


def default_registry() -> PluginRegistry:
    """注册全部参考插件的注册表"""
    reg = PluginRegistry()
    reg.register("dwb_plugins::StandardTrajectoryGenerator", StandardTrajectoryGenerator)
    reg.register("dwb_plugins::SimpleGoalChecker", SimpleGoalChecker)
    reg.register("dwb_critics::GoalDistCritic", GoalDistCritic)
    reg.register("dwb_critics::PathDistCritic", PathDistCritic)
    reg.register("dwb_critics::BaseObstacleCritic", BaseObstacleCritic)
    reg.register("dwb_critics::PreferForwardCritic", PreferForwardCritic)
    reg.register("dwb_critics::OscillationCritic", OscillationCritic)
    return reg


def _create_typed(registry: PluginRegistry, name: str, base: type) -> object:
    plugin = registry.create(name)
    if not isinstance(plugin, base):
        raise ConfigurationError(f"插件 \"{name}\" 不是 {base.__name__}")
    return plugin


def load_critics(config: DWBConfig, costmap: Costmap,
                 registry: PluginRegistry) -> List[TrajectoryCritic]:
    """按配置顺序实例化并初始化 critic"""
    critics: List[TrajectoryCritic] = []
    for cc in config.critics:
        plugin_class = registry.resolve_critic_class_name(
            cc.class_name or cc.name, config.default_critic_namespaces)
        critic = _create_typed(registry, plugin_class, TrajectoryCritic)
        logger.info("Using critic \"%s\" (%s)", cc.name, plugin_class)
        params = dict(cc.params)
        params["scale"] = cc.scale
        critic.initialize(cc.name, params, costmap)
        critics.append(critic)
    return critics


def build_local_planner(
    config: DWBConfig,
    costmap: Costmap,
    transformer: Transformer,
    publisher: Optional[PlannerPublisher] = None,
    registry: Optional[PluginRegistry] = None,
) -> DWBLocalPlanner:
    """按配置装配 DWBLocalPlanner

    Raises:
        ConfigurationError: 插件名无法解析或类型不符
    """
    registry = registry or default_registry()

    logger.info("Using Trajectory Generator \"%s\"", config.trajectory_generator_name)
    generator = _create_typed(registry, config.trajectory_generator_name, TrajectoryGenerator)
    generator.initialize(dict(config.generator_params))

    logger.info("Using Goal Checker \"%s\"", config.goal_checker_name)
    goal_checker = _create_typed(registry, config.goal_checker_name, GoalChecker)
    goal_checker.initialize(dict(config.goal_checker_params))

    critics = load_critics(config, costmap, registry)

    return DWBLocalPlanner(
        generator=generator,
        goal_checker=goal_checker,
        critics=critics,
        costmap=costmap,
        transformer=transformer,
        publisher=publisher,
        config=config,
    )
