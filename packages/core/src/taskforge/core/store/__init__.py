"""Taskforge Core Store -- JSON 文件持久化实现

提供工厂函数创建 Store 实例组。
"""

from .json_store import JsonReportStore, JsonTaskStore
from .locking import ReportLock, lock_path_for
from .protocols import ReportStore, TaskStore


class StoreGroup:
    """Store 实例组 -- 任务读取 + 报告读写"""

    def __init__(
        self,
        task_store: TaskStore,
        report_store: ReportStore,
    ) -> None:
        self.task_store = task_store
        self.report_store = report_store


def create_store_group(lock_timeout_s: float | None = None) -> StoreGroup:
    """创建基于 JSON 文件的 Store 实例组

    Args:
        lock_timeout_s: 报告锁等待超时，None 使用配置默认值

    Returns:
        StoreGroup 实例
    """
    return StoreGroup(
        task_store=JsonTaskStore(),
        report_store=JsonReportStore(lock_timeout_s=lock_timeout_s),
    )


__all__ = [
    "StoreGroup",
    "create_store_group",
    "TaskStore",
    "ReportStore",
    "JsonTaskStore",
    "JsonReportStore",
    "ReportLock",
    "lock_path_for",
]
