"""apps/analyzer 测试配置 -- 任务文件 / 历史报告 / 生成器替身 fixture"""

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from taskforge.core.models import (
    ComplexityAnalysisEntry,
    ComplexityReport,
    ComplexityReportMeta,
)
from taskforge.core.store import create_store_group


def _analysis(task_id: int, title: str, score: float, subtasks: int) -> dict:
    return {
        "taskId": task_id,
        "taskTitle": title,
        "complexityScore": score,
        "recommendedSubtasks": subtasks,
        "reasoning": f"score {score}",
        "expansionPrompt": f"1) plan {title.lower()}",
    }


@pytest.fixture
def analysis_json() -> str:
    """覆盖任务 2/3 的合法生成结果"""
    return json.dumps(
        [
            _analysis(2, "User Authentication", 6.0, 4),
            _analysis(3, "Payment API integration", 7.85, 6),
        ]
    )


@pytest.fixture
def tasks_path(write_tasks_file, sample_tasks) -> Path:
    return write_tasks_file(sample_tasks)


@pytest.fixture
def store_group():
    return create_store_group(lock_timeout_s=2)


@pytest.fixture
def generator(analysis_json):
    """文本生成替身，默认返回 analysis_json"""
    gen = AsyncMock()
    gen.generate_text = AsyncMock(return_value=analysis_json)
    return gen


@pytest.fixture
def write_prior_report(tmp_report_path: Path):
    """写入历史报告：每个 (task_id, score) 生成一个条目"""

    def _write(*items: tuple[int, float]) -> ComplexityReport:
        report = ComplexityReport(
            meta=ComplexityReportMeta(
                generated_at=datetime(2026, 1, 1, tzinfo=UTC),
                tasks_analyzed=len(items),
                total_tasks=len(items),
                analysis_count=len(items),
                project_name="Prior",
            ),
            complexity_analysis=[
                ComplexityAnalysisEntry(
                    task_id=task_id,
                    task_title=f"Old {task_id}",
                    complexity_score=score,
                    recommended_subtasks=3,
                    reasoning="prior",
                )
                for task_id, score in items
            ],
        )
        tmp_report_path.parent.mkdir(parents=True, exist_ok=True)
        tmp_report_path.write_text(
            json.dumps(report.to_json_dict(), indent=2),
            encoding="utf-8",
        )
        return report

    return _write
