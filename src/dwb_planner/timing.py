"""
timing.py — 控制周期分阶段计时

记录 prepare / score / debrief 等阶段耗时，供调试日志使用。
"""

import time
from contextlib import contextmanager
from typing import Dict, Iterator


class CycleTimer:
    """单个控制周期的阶段计时器."""

    def __init__(self) -> None:
        self.records: Dict[str, float] = {}

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        """记录 name 阶段耗时 (秒)；阶段抛异常时同样记录."""
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.records[name] = self.records.get(name, 0.0) + time.perf_counter() - t0

    @property
    def total(self) -> float:
        return sum(self.records.values())

    def summary(self) -> str:
        parts = [f"{name}={sec * 1000.0:.2f}ms" for name, sec in self.records.items()]
        parts.append(f"total={self.total * 1000.0:.2f}ms")
        return " ".join(parts)
