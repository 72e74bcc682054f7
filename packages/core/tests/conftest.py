"""packages/core 测试配置 -- 核心层 fixture"""

from datetime import UTC, datetime

import pytest
from taskforge.core.models import (
    ComplexityAnalysisEntry,
    ComplexityReport,
    ComplexityReportMeta,
)


def make_entry(task_id: int, score: float = 5.0, title: str = "") -> ComplexityAnalysisEntry:
    """构造测试用分析条目"""
    return ComplexityAnalysisEntry(
        task_id=task_id,
        task_title=title or f"Task {task_id}",
        complexity_score=score,
        recommended_subtasks=3,
        reasoning="T:5, I:5, D:5, R:5, M:5 = 5.0",
        expansion_prompt=f"1) first step of task {task_id}",
    )


def make_report(*entries: ComplexityAnalysisEntry) -> ComplexityReport:
    """构造测试用报告"""
    return ComplexityReport(
        meta=ComplexityReportMeta(
            generated_at=datetime(2026, 1, 1, tzinfo=UTC),
            tasks_analyzed=len(entries),
            total_tasks=len(entries),
            analysis_count=len(entries),
            threshold_score=5,
            project_name="Core Test",
        ),
        complexity_analysis=list(entries),
    )


@pytest.fixture
def three_entry_report() -> ComplexityReport:
    """含 1/2/3 三个条目的报告"""
    return make_report(make_entry(1, 2), make_entry(2, 6), make_entry(3, 9))


@pytest.fixture
def entry_factory():
    """分析条目工厂"""
    return make_entry


@pytest.fixture
def report_factory():
    """报告工厂"""
    return make_report
