"""JSON 文件存储测试 -- 任务读取、报告读写、报告锁"""

import asyncio
import json
import os
from unittest.mock import patch

import pytest
from structlog.testing import capture_logs
from taskforge.core.exceptions import InputError, ReportLockTimeoutError
from taskforge.core.store import (
    JsonReportStore,
    JsonTaskStore,
    ReportLock,
    create_store_group,
    lock_path_for,
)


class TestJsonTaskStore:
    """read_tasks() 行为"""

    async def test_read_tasks(self, write_tasks_file, sample_tasks):
        path = write_tasks_file(sample_tasks)
        tasks_file = await JsonTaskStore().read_tasks(path)
        assert [t.id for t in tasks_file.tasks] == [1, 2, 3]
        assert tasks_file.tasks[2].subtasks[1].dependencies == [1]

    async def test_missing_file(self, tmp_path):
        with pytest.raises(InputError) as exc_info:
            await JsonTaskStore().read_tasks(tmp_path / "nope.json")
        assert exc_info.value.path.endswith("nope.json")

    async def test_invalid_json(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(InputError):
            await JsonTaskStore().read_tasks(path)

    async def test_missing_tasks_key(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"items": []}), encoding="utf-8")
        with pytest.raises(InputError):
            await JsonTaskStore().read_tasks(path)

    async def test_schema_violation(self, write_tasks_file):
        path = write_tasks_file([{"id": "abc", "title": "bad"}])
        with pytest.raises(InputError):
            await JsonTaskStore().read_tasks(path)

    async def test_null_fields_use_defaults(self, write_tasks_file):
        """外部工具写入的 null 字段不导致整个文件校验失败"""
        path = write_tasks_file(
            [
                {"id": 2, "title": "a", "status": None, "details": None, "priority": None},
                {"id": 3, "title": "b", "status": "pending", "subtasks": [{"id": 1, "status": None}]},
            ]
        )
        tasks_file = await JsonTaskStore().read_tasks(path)
        first, second = tasks_file.tasks
        assert (first.status, first.details, first.priority) == ("pending", "", "medium")
        assert second.subtasks[0].status == "pending"

    async def test_empty_task_list(self, write_tasks_file):
        path = write_tasks_file([])
        with pytest.raises(InputError, match="No tasks found"):
            await JsonTaskStore().read_tasks(path)


class TestJsonReportStore:
    """报告读写"""

    async def test_missing_report_returns_none(self, tmp_report_path):
        assert await JsonReportStore().load_report(tmp_report_path) is None

    async def test_save_then_load(self, tmp_report_path, three_entry_report):
        store = JsonReportStore()
        await store.save_report(tmp_report_path, three_entry_report)

        loaded = await store.load_report(tmp_report_path)
        assert loaded == three_entry_report

        raw = json.loads(tmp_report_path.read_text(encoding="utf-8"))
        assert set(raw) == {"meta", "complexityAnalysis"}
        assert raw["complexityAnalysis"][0]["taskId"] == 1

    async def test_save_leaves_no_temp_file(self, tmp_report_path, three_entry_report):
        await JsonReportStore().save_report(tmp_report_path, three_entry_report)
        assert [p.name for p in tmp_report_path.parent.iterdir()] == [tmp_report_path.name]

    async def test_unreadable_report_treated_as_absent(self, tmp_report_path):
        """损坏的报告记录告警并视为无历史报告"""
        tmp_report_path.parent.mkdir(parents=True)
        tmp_report_path.write_text("{broken", encoding="utf-8")
        with capture_logs() as logs:
            assert await JsonReportStore().load_report(tmp_report_path) is None
        assert any(e["event"] == "stale_report_unreadable" for e in logs)

    @pytest.mark.parametrize(
        "payload",
        [{"meta": {}}, {"complexityAnalysis": {"taskId": 1}}, [1, 2]],
    )
    async def test_missing_analysis_array_treated_as_absent(self, tmp_report_path, payload):
        tmp_report_path.parent.mkdir(parents=True)
        tmp_report_path.write_text(json.dumps(payload), encoding="utf-8")
        assert await JsonReportStore().load_report(tmp_report_path) is None

    async def test_invalid_entry_skipped_others_kept(
        self, tmp_report_path, three_entry_report
    ):
        """单条不合法（如 taskTitle 为 null）只跳过该条"""
        raw = three_entry_report.to_json_dict()
        raw["complexityAnalysis"][2]["taskTitle"] = None
        tmp_report_path.parent.mkdir(parents=True)
        tmp_report_path.write_text(json.dumps(raw), encoding="utf-8")

        with capture_logs() as logs:
            loaded = await JsonReportStore().load_report(tmp_report_path)

        assert loaded.task_ids() == [1, 2]
        assert loaded.meta == three_entry_report.meta
        skipped = next(e for e in logs if e["event"] == "stale_report_entry_skipped")
        assert skipped["task_id"] == 3
        assert skipped["index"] == 2

    async def test_missing_meta_defaulted(self, tmp_report_path, three_entry_report):
        raw = three_entry_report.to_json_dict()
        del raw["meta"]
        tmp_report_path.parent.mkdir(parents=True)
        tmp_report_path.write_text(json.dumps(raw), encoding="utf-8")

        with capture_logs() as logs:
            loaded = await JsonReportStore().load_report(tmp_report_path)

        assert loaded.task_ids() == [1, 2, 3]
        assert loaded.meta.analysis_count == 3
        assert any(e["event"] == "stale_report_meta_defaulted" for e in logs)

    async def test_failed_replace_removes_temp_file(self, tmp_report_path, three_entry_report):
        tmp_path = tmp_report_path.with_name(tmp_report_path.name + ".tmp")
        with patch("taskforge.core.store.json_store.os.replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError, match="disk full"):
                await JsonReportStore().save_report(tmp_report_path, three_entry_report)
        assert not tmp_path.exists()
        assert not tmp_report_path.exists()


class TestReportLock:
    """报告锁"""

    async def test_lock_lifecycle(self, tmp_report_path):
        lock = ReportLock(tmp_report_path)
        async with lock:
            assert lock.held is True
            assert lock.lock_path.read_text(encoding="utf-8") == str(os.getpid())
        assert lock.held is False
        assert lock.lock_path == lock_path_for(tmp_report_path)

    async def test_released_on_error(self, tmp_report_path):
        with pytest.raises(RuntimeError):
            async with ReportLock(tmp_report_path):
                raise RuntimeError("boom")
        async with ReportLock(tmp_report_path, timeout_s=0.1, poll_interval_s=0.01):
            pass

    async def test_leftover_lock_file_does_not_block(self, tmp_report_path):
        """被杀进程遗留的锁文件（无人持有 flock）不阻塞后续获取"""
        lock_path = lock_path_for(tmp_report_path)
        lock_path.parent.mkdir(parents=True)
        lock_path.write_text("999999", encoding="utf-8")

        async with ReportLock(tmp_report_path, timeout_s=0.1, poll_interval_s=0.01):
            assert lock_path.read_text(encoding="utf-8") == str(os.getpid())

    async def test_timeout_when_held(self, tmp_report_path):
        async with ReportLock(tmp_report_path):
            with pytest.raises(ReportLockTimeoutError):
                async with ReportLock(tmp_report_path, timeout_s=0.1, poll_interval_s=0.01):
                    pass
            # 等待失败不影响持有者写入的 PID
            assert lock_path_for(tmp_report_path).read_text(encoding="utf-8") == str(os.getpid())

    async def test_waiter_acquires_after_release(self, tmp_report_path):
        """持有者释放后等待者获得锁"""
        order: list[str] = []
        first = ReportLock(tmp_report_path)
        await first.acquire()

        async def waiter():
            async with ReportLock(tmp_report_path, timeout_s=2, poll_interval_s=0.01):
                order.append("waiter")

        task = asyncio.create_task(waiter())
        await asyncio.sleep(0.05)
        order.append("holder")
        await first.release()
        await task
        assert order == ["holder", "waiter"]

    async def test_store_lock_uses_configured_timeout(self, tmp_report_path):
        group = create_store_group(lock_timeout_s=0.1)
        async with group.report_store.lock(tmp_report_path):
            with pytest.raises(ReportLockTimeoutError):
                async with ReportLock(tmp_report_path, timeout_s=0.05, poll_interval_s=0.01):
                    pass
        assert isinstance(group.task_store, JsonTaskStore)
