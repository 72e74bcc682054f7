"""Store Protocol 接口定义

定义 TaskStore、ReportStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
"""

from contextlib import AbstractAsyncContextManager
from pathlib import Path
from typing import Protocol

from ..models.report import ComplexityReport
from ..models.task import TasksFile


class TaskStore(Protocol):
    """任务文件读取接口"""

    async def read_tasks(self, path: str | Path) -> TasksFile:
        """读取任务文件；文件缺失或格式错误时抛出 InputError"""
        ...


class ReportStore(Protocol):
    """复杂度报告存储接口

    读-合并-写 由调用方在 lock() 作用域内完成。
    """

    async def load_report(self, path: str | Path) -> ComplexityReport | None:
        """读取历史报告；不存在或不可读时返回 None"""
        ...

    async def save_report(self, path: str | Path, report: ComplexityReport) -> None:
        """原子写入报告"""
        ...

    def lock(self, path: str | Path) -> AbstractAsyncContextManager[None]:
        """报告级作用域锁"""
        ...
