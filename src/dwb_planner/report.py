"""
report.py - 周期评价诊断报告

将 LocalPlanEvaluation（及可选的 IllegalTrajectoryTracker）转换为
Markdown 报告：候选评分表、最优/最差候选、拒绝原因占比。
"""

import logging
from typing import List, Optional

from .models import LocalPlanEvaluation, TrajectoryScore
from .tracker import IllegalTrajectoryTracker

logger = logging.getLogger(__name__)


class EvaluationReportGenerator:
    """局部规划评价报告生成器"""

    @staticmethod
    def _fmt_twist(score: TrajectoryScore) -> str:
        v = score.traj.velocity
        return f"({v.x:.3f}, {v.y:.3f}, {v.theta:.3f})"

    @staticmethod
    def generate(evaluation: LocalPlanEvaluation,
                 tracker: Optional[IllegalTrajectoryTracker] = None,
                 max_rows: int = 50) -> str:
        """生成 Markdown 报告

        Args:
            evaluation: 周期评价记录
            tracker: 拒绝统计（可选）
            max_rows: 候选表最多显示的行数

        Returns:
            Markdown 字符串
        """
        lines: List[str] = []
        _a = lines.append
        fmt = EvaluationReportGenerator._fmt_twist

        _a("# 局部规划评价报告")
        _a("")
        _a(f"- **坐标系**: {evaluation.frame_id}")
        _a(f"- **候选数**: {len(evaluation.twists)}")
        n_legal = sum(1 for t in evaluation.twists if t.is_legal)
        _a(f"- **合法候选**: {n_legal}")
        best, worst = evaluation.best, evaluation.worst
        if best is not None:
            _a(f"- **最优**: #{evaluation.best_index} {fmt(best)} total={best.total:.4f}")
        else:
            _a("- **最优**: 无")
        if worst is not None:
            _a(f"- **最差**: #{evaluation.worst_index} {fmt(worst)} total={worst.total:.4f}")
        _a("")

        if evaluation.twists:
            critic_names: List[str] = []
            for t in evaluation.twists:
                for cs in t.scores:
                    if cs.name not in critic_names:
                        critic_names.append(cs.name)

            _a("## 候选评分")
            _a("")
            _a("| # | 速度 (x, y, θ) | " + " | ".join(critic_names) + " | total |")
            _a("|---|---|" + "---|" * len(critic_names) + "---|")
            for i, t in enumerate(evaluation.twists[:max_rows]):
                by_name = {cs.name: cs for cs in t.scores}
                cells = []
                for name in critic_names:
                    cs = by_name.get(name)
                    cells.append("" if cs is None else f"{cs.raw_score:.3f}")
                mark = " *" if i == evaluation.best_index else ""
                _a(f"| {i}{mark} | {fmt(t)} | " + " | ".join(cells) + f" | {t.total:.4f} |")
            if len(evaluation.twists) > max_rows:
                _a("")
                _a(f"（省略 {len(evaluation.twists) - max_rows} 行）")
            _a("")

        if tracker is not None and tracker.illegal_count > 0:
            _a("## 拒绝原因")
            _a("")
            _a(tracker.message().strip())
            _a("")
            _a("| critic | 原因 | 占比 |")
            _a("|---|---|---|")
            for (name, reason), pct in sorted(tracker.percentages().items(),
                                              key=lambda kv: -kv[1]):
                _a(f"| {name} | {reason} | {pct * 100:.1f}% |")
            _a("")

        return "\n".join(lines)
