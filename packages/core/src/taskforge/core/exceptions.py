"""Core 异常体系

输入错误在任何生成调用之前即终止流水线。
"""

from pathlib import Path


class CoreError(Exception):
    """Core 包基础异常"""


class InputError(CoreError):
    """任务文件缺失、格式错误或没有任何任务

    此异常在 LOAD_INPUT 阶段抛出，流水线不会发起生成调用。
    """

    def __init__(self, path: str | Path, reason: str) -> None:
        """
        Args:
            path: 任务文件路径
            reason: 失败原因
        """
        super().__init__(f"无法读取任务文件 {path}: {reason}")
        self.path = str(path)
        self.reason = reason


class ReportLockTimeoutError(CoreError):
    """等待报告锁超时（另一个进程正在写同一份报告）"""

    def __init__(self, lock_path: str | Path, timeout_s: float) -> None:
        super().__init__(f"等待报告锁超时 ({timeout_s}s): {lock_path}")
        self.lock_path = str(lock_path)
        self.timeout_s = timeout_s
