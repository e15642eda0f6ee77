"""
dwb_planner/tracker.py - 非法轨迹统计

按 (critic 名称, 拒绝原因) 统计一个周期内被拒绝的候选数量，
仅用于无可行轨迹时的诊断。
"""

from typing import Dict, Tuple

from .exceptions import IllegalTrajectoryError


class IllegalTrajectoryTracker:
    """非法轨迹计数器

    Example:
        >>> tracker = IllegalTrajectoryTracker()
        >>> tracker.add_illegal_trajectory(IllegalTrajectoryError("Obstacle", "collision"))
        >>> tracker.percentages()
        {('Obstacle', 'collision'): 1.0}
    """

    def __init__(self) -> None:
        self.counts: Dict[Tuple[str, str], int] = {}
        self.legal_count = 0
        self.illegal_count = 0

    def add_illegal_trajectory(self, error: IllegalTrajectoryError) -> None:
        key = (error.critic_name, error.reason)
        self.counts[key] = self.counts.get(key, 0) + 1
        self.illegal_count += 1

    def add_legal_trajectory(self) -> None:
        self.legal_count += 1

    @property
    def total(self) -> int:
        return self.legal_count + self.illegal_count

    def percentages(self) -> Dict[Tuple[str, str], float]:
        """各 (critic, reason) 占本周期全部候选（合法 + 非法）的比例"""
        if self.total == 0:
            return {}
        denom = float(self.total)
        return {key: n / denom for key, n in self.counts.items()}

    def message(self) -> str:
        if self.legal_count == 0:
            return f"No valid trajectories out of {self.illegal_count}! "
        pct = 100.0 * self.legal_count / self.total
        return (f"{self.legal_count} valid trajectories found "
                f"({pct:.2f}% of {self.total}). ")
