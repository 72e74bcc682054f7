"""JSON 文件存储实现 -- 任务文件读取 + 复杂度报告读写

文件 I/O 通过 asyncio.to_thread 执行，不阻塞事件循环。
报告写入先落临时文件再 os.replace，保证读者不会看到半写状态。
"""

import asyncio
import json
import os
from datetime import UTC, datetime
from pathlib import Path

import structlog
from pydantic import ValidationError

from ..exceptions import InputError
from ..models.report import ComplexityAnalysisEntry, ComplexityReport, ComplexityReportMeta
from ..models.task import TasksFile
from .locking import ReportLock

log = structlog.get_logger()


class JsonTaskStore:
    """TaskStore 的 JSON 文件实现"""

    async def read_tasks(self, path: str | Path) -> TasksFile:
        """读取任务文件

        Raises:
            InputError: 文件不存在、不是合法 JSON、结构不符或没有任何任务
        """
        return await asyncio.to_thread(self._read_tasks_sync, Path(path))

    @staticmethod
    def _read_tasks_sync(path: Path) -> TasksFile:
        if not path.exists():
            raise InputError(path, "文件不存在")

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError) as e:
            raise InputError(path, f"读取失败: {e}") from e
        except json.JSONDecodeError as e:
            raise InputError(path, f"不是合法 JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("tasks"), list):
            raise InputError(path, "缺少 tasks 数组")

        try:
            tasks_file = TasksFile.model_validate(data)
        except ValidationError as e:
            raise InputError(path, f"任务结构校验失败: {e}") from e

        if not tasks_file.tasks:
            raise InputError(path, "No tasks found in the tasks file")

        log.debug("tasks_file_loaded", path=str(path), task_count=len(tasks_file.tasks))
        return tasks_file


class JsonReportStore:
    """ReportStore 的 JSON 文件实现"""

    def __init__(self, lock_timeout_s: float | None = None) -> None:
        self._lock_timeout_s = lock_timeout_s

    async def load_report(self, path: str | Path) -> ComplexityReport | None:
        """读取历史报告

        不存在返回 None；无法解码或缺少 complexityAnalysis 数组时记录告警并视为无历史报告。
        单条不合法的条目跳过并告警，meta 缺失或不合法时补默认值。
        """
        return await asyncio.to_thread(self._load_report_sync, Path(path))

    @staticmethod
    def _load_report_sync(path: Path) -> ComplexityReport | None:
        if not path.exists():
            return None
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            log.warning(
                "stale_report_unreadable",
                path=str(path),
                error=str(e),
                error_type=type(e).__name__,
            )
            return None

        raw_entries = data.get("complexityAnalysis") if isinstance(data, dict) else None
        if not isinstance(raw_entries, list):
            log.warning(
                "stale_report_unreadable",
                path=str(path),
                error="缺少 complexityAnalysis 数组",
                error_type="StructureError",
            )
            return None

        # 逐条校验：单条不合法只跳过该条，其余历史条目保留
        entries: list[ComplexityAnalysisEntry] = []
        for index, item in enumerate(raw_entries):
            try:
                entries.append(ComplexityAnalysisEntry.model_validate(item))
            except ValidationError as e:
                log.warning(
                    "stale_report_entry_skipped",
                    path=str(path),
                    index=index,
                    task_id=item.get("taskId") if isinstance(item, dict) else None,
                    error_count=e.error_count(),
                )

        try:
            meta = ComplexityReportMeta.model_validate(data.get("meta"))
        except ValidationError:
            log.warning("stale_report_meta_defaulted", path=str(path))
            meta = ComplexityReportMeta(
                generated_at=datetime.now(UTC),
                analysis_count=len(entries),
            )

        report = ComplexityReport(meta=meta, complexity_analysis=entries)
        log.info(
            "existing_report_loaded",
            path=str(path),
            entry_count=len(entries),
            skipped_count=len(raw_entries) - len(entries),
        )
        return report

    async def save_report(self, path: str | Path, report: ComplexityReport) -> None:
        """原子写入报告（临时文件 + os.replace）"""
        await asyncio.to_thread(self._save_report_sync, Path(path), report)

    @staticmethod
    def _save_report_sync(path: Path, report: ComplexityReport) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        json_str = json.dumps(report.to_json_dict(), ensure_ascii=False, indent=2)

        tmp_path = path.with_name(path.name + ".tmp")
        try:
            tmp_path.write_text(json_str + "\n", encoding="utf-8")
            os.replace(tmp_path, path)
        finally:
            # 写入或替换失败时清理残留临时文件
            tmp_path.unlink(missing_ok=True)

        log.info(
            "report_written",
            path=str(path),
            entry_count=len(report.complexity_analysis),
        )

    def lock(self, path: str | Path) -> ReportLock:
        """报告级作用域锁"""
        if self._lock_timeout_s is None:
            return ReportLock(path)
        return ReportLock(path, timeout_s=self._lock_timeout_s)
