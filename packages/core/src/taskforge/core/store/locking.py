"""报告文件锁 -- 基于 fcntl.flock 的跨进程互斥

锁文件与报告同目录（<report>.lock），内容为最近一次持有者 PID（仅供排查）。
互斥由打开文件上的 LOCK_EX 保证：持有进程退出（含被杀）时由操作系统释放，
遗留的锁文件不会阻塞后续运行。锁文件本身不删除，避免等待者锁住已删除的 inode。
获取失败时按固定间隔轮询，超时抛出 ReportLockTimeoutError。
"""

import asyncio
import fcntl
import os
import time
from pathlib import Path
from typing import IO

import structlog

from ..config import REPORT_LOCK_POLL_INTERVAL_S, REPORT_LOCK_TIMEOUT_S
from ..exceptions import ReportLockTimeoutError

log = structlog.get_logger()


def lock_path_for(path: str | Path) -> Path:
    """报告对应的锁文件路径"""
    p = Path(path)
    return p.with_name(p.name + ".lock")


class ReportLock:
    """报告级异步作用域锁

    用法:
        async with ReportLock(report_path):
            ...  # 读-合并-写
    """

    def __init__(
        self,
        path: str | Path,
        timeout_s: float = REPORT_LOCK_TIMEOUT_S,
        poll_interval_s: float = REPORT_LOCK_POLL_INTERVAL_S,
    ) -> None:
        self._lock_path = lock_path_for(path)
        self._timeout_s = timeout_s
        self._poll_interval_s = poll_interval_s
        self._file: IO[str] | None = None

    @property
    def lock_path(self) -> Path:
        return self._lock_path

    @property
    def held(self) -> bool:
        return self._file is not None

    def _try_acquire(self) -> bool:
        self._lock_path.parent.mkdir(parents=True, exist_ok=True)
        # "a+" 不截断：未拿到锁时不能抹掉持有者写入的 PID
        f = open(self._lock_path, "a+", encoding="utf-8")
        try:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
        except BlockingIOError:
            f.close()
            return False

        f.seek(0)
        f.truncate()
        f.write(str(os.getpid()))
        f.flush()
        self._file = f
        return True

    def _release_sync(self) -> None:
        f, self._file = self._file, None
        try:
            fcntl.flock(f.fileno(), fcntl.LOCK_UN)
        finally:
            f.close()

    async def acquire(self) -> None:
        deadline = time.monotonic() + self._timeout_s
        while not await asyncio.to_thread(self._try_acquire):
            if time.monotonic() >= deadline:
                log.error(
                    "report_lock_timeout",
                    lock_path=str(self._lock_path),
                    timeout_s=self._timeout_s,
                )
                raise ReportLockTimeoutError(self._lock_path, self._timeout_s)
            await asyncio.sleep(self._poll_interval_s)
        log.debug("report_lock_acquired", lock_path=str(self._lock_path))

    async def release(self) -> None:
        if self._file is None:
            return
        await asyncio.to_thread(self._release_sync)
        log.debug("report_lock_released", lock_path=str(self._lock_path))

    async def __aenter__(self) -> None:
        await self.acquire()

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.release()
