"""复杂度报告合并与统计测试"""

from datetime import UTC, datetime
from types import MappingProxyType

import pytest
from taskforge.core.report import (
    build_report,
    index_by_task_id,
    merge_complexity_entries,
    summarize_complexity,
)


class TestMergeComplexityEntries:
    """merge_complexity_entries() 性质"""

    def test_merge_with_itself_is_noop(self, three_entry_report):
        """用报告自身的条目合并，结果不变"""
        merged = merge_complexity_entries(
            three_entry_report.complexity_analysis, three_entry_report
        )
        assert merged == three_entry_report.complexity_analysis

    def test_new_entry_replaces_old(self, three_entry_report, entry_factory):
        """新 id=3 条目覆盖旧条目，且只保留一条"""
        new = entry_factory(3, 4.5, title="Rewritten")
        merged = merge_complexity_entries([new], three_entry_report)
        id3 = [e for e in merged if e.task_id == 3]
        assert id3 == [new]
        assert [e.task_id for e in merged] == [1, 2, 3]

    def test_kept_entries_come_first(self, three_entry_report, entry_factory):
        new = entry_factory(2, 8)
        merged = merge_complexity_entries([new], three_entry_report)
        assert [e.task_id for e in merged] == [1, 3, 2]

    def test_disjoint_batches_commute(self, report_factory, entry_factory):
        """互不相交的批次合并顺序不影响条目集合"""
        base = report_factory(entry_factory(1))
        a = [entry_factory(2)]
        b = [entry_factory(3)]
        ab = merge_complexity_entries(b, merge_complexity_entries(a, base))
        ba = merge_complexity_entries(a, merge_complexity_entries(b, base))
        assert {e.task_id: e for e in ab} == {e.task_id: e for e in ba}

    def test_never_shrinks(self, three_entry_report, entry_factory):
        merged = merge_complexity_entries([entry_factory(9)], three_entry_report)
        assert len(merged) == 4

    def test_no_prior(self, entry_factory):
        new = [entry_factory(1), entry_factory(2)]
        assert merge_complexity_entries(new, None) == new


class TestIndexByTaskId:
    def test_immutable_mapping(self, three_entry_report):
        index = index_by_task_id(three_entry_report)
        assert isinstance(index, MappingProxyType)
        assert set(index) == {1, 2, 3}
        with pytest.raises(TypeError):
            index[4] = index[1]  # type: ignore[index]

    def test_none_report(self):
        assert dict(index_by_task_id(None)) == {}


class TestSummaryAndBuild:
    def test_summary_bands(self, entry_factory):
        entries = [entry_factory(1, 9), entry_factory(2, 8), entry_factory(3, 7.9), entry_factory(4, 5), entry_factory(5, 4.9)]
        summary = summarize_complexity(entries)
        assert (summary.total, summary.high, summary.medium, summary.low) == (5, 2, 2, 1)

    def test_build_report_meta(self, entry_factory):
        now = datetime(2026, 3, 1, tzinfo=UTC)
        report = build_report(
            [entry_factory(1), entry_factory(2)],
            tasks_analyzed=1,
            total_tasks=10,
            threshold_score=6,
            project_name="Demo",
            used_research=True,
            generated_at=now,
        )
        meta = report.to_json_dict()["meta"]
        assert meta["analysisCount"] == 2
        assert meta["tasksAnalyzed"] == 1
        assert meta["totalTasks"] == 10
        assert meta["thresholdScore"] == 6
        assert meta["projectName"] == "Demo"
        assert meta["usedResearch"] is True
        assert meta["generatedAt"].startswith("2026-03-01T00:00:00")
