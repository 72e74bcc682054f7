"""复杂度报告合并与统计

合并规则：新条目总是覆盖同 taskId 的旧条目，其余旧条目保留在前。
合并对相同批次幂等、对互不相交的批次可交换、条目数单调不减。
"""

from collections.abc import Iterable, Mapping, Sequence
from datetime import UTC, datetime
from types import MappingProxyType

from pydantic import BaseModel, Field

from .models.report import (
    ComplexityAnalysisEntry,
    ComplexityReport,
    ComplexityReportMeta,
)

# 统计分档（沿用 CLI 摘要口径）
HIGH_COMPLEXITY_MIN = 8.0
MEDIUM_COMPLEXITY_MIN = 5.0


class ComplexitySummary(BaseModel):
    """分析结果分档统计"""

    total: int = Field(default=0, ge=0)
    high: int = Field(default=0, ge=0, description="score >= 8")
    medium: int = Field(default=0, ge=0, description="5 <= score < 8")
    low: int = Field(default=0, ge=0, description="score < 5")


def _prior_entries(
    prior: ComplexityReport | Iterable[ComplexityAnalysisEntry] | None,
) -> list[ComplexityAnalysisEntry]:
    if prior is None:
        return []
    if isinstance(prior, ComplexityReport):
        return list(prior.complexity_analysis)
    return list(prior)


def merge_complexity_entries(
    new_entries: Sequence[ComplexityAnalysisEntry],
    prior: ComplexityReport | Iterable[ComplexityAnalysisEntry] | None,
) -> list[ComplexityAnalysisEntry]:
    """合并新分析条目与历史报告

    Args:
        new_entries: 本次分析产生的条目（覆盖本次分析的全部 ID）
        prior: 历史报告或历史条目，None 表示无历史

    Returns:
        kept ++ new_entries，其中 kept 为 taskId 未在本次分析中出现的历史条目
    """
    analyzed_ids = {e.task_id for e in new_entries}
    kept = [e for e in _prior_entries(prior) if e.task_id not in analyzed_ids]
    return kept + list(new_entries)


def index_by_task_id(
    report: ComplexityReport | None,
) -> Mapping[int, ComplexityAnalysisEntry]:
    """构建只读的 taskId -> 条目 映射（无报告时为空映射）"""
    if report is None:
        return MappingProxyType({})
    return MappingProxyType({e.task_id: e for e in report.complexity_analysis})


def summarize_complexity(entries: Iterable[ComplexityAnalysisEntry]) -> ComplexitySummary:
    """按高/中/低分档统计分析条目"""
    summary = ComplexitySummary()
    for entry in entries:
        summary.total += 1
        if entry.complexity_score >= HIGH_COMPLEXITY_MIN:
            summary.high += 1
        elif entry.complexity_score >= MEDIUM_COMPLEXITY_MIN:
            summary.medium += 1
        else:
            summary.low += 1
    return summary


def build_report(
    entries: Sequence[ComplexityAnalysisEntry],
    *,
    tasks_analyzed: int,
    total_tasks: int,
    threshold_score: float,
    project_name: str,
    used_research: bool,
    generated_at: datetime | None = None,
) -> ComplexityReport:
    """组装带最新 meta 的复杂度报告"""
    return ComplexityReport(
        meta=ComplexityReportMeta(
            generated_at=generated_at or datetime.now(UTC),
            tasks_analyzed=tasks_analyzed,
            total_tasks=total_tasks,
            analysis_count=len(entries),
            threshold_score=threshold_score,
            project_name=project_name,
            used_research=used_research,
        ),
        complexity_analysis=list(entries),
    )
