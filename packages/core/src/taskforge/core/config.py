"""配置常量模块 -- 可通过环境变量覆盖

包含任务文件路径、复杂度报告路径、默认阈值、报告锁超时等可配置常量。
"""

import os
from pathlib import Path


def _get_base_dir() -> Path:
    """获取项目根目录（任务文件与报告的相对路径基准）"""
    return Path(os.environ.get("TASKFORGE_PROJECT_ROOT", "."))


def get_tasks_path() -> Path:
    """获取任务文件路径"""
    return Path(
        os.environ.get(
            "TASKFORGE_TASKS_FILE",
            str(_get_base_dir() / "tasks" / "tasks.json"),
        )
    )


def get_report_path() -> Path:
    """获取复杂度报告输出路径"""
    return Path(
        os.environ.get(
            "TASKFORGE_REPORT_FILE",
            str(_get_base_dir() / "scripts" / "task-complexity-report.json"),
        )
    )


# 复杂度阈值（报告 meta.thresholdScore，供后续 expand 使用）
DEFAULT_THRESHOLD_SCORE: float = float(
    os.environ.get("TASKFORGE_THRESHOLD", "5")
)

# 报告锁等待超时（秒）
REPORT_LOCK_TIMEOUT_S: float = float(
    os.environ.get("TASKFORGE_REPORT_LOCK_TIMEOUT_S", "30")
)

# 报告锁轮询间隔（秒）
REPORT_LOCK_POLL_INTERVAL_S: float = 0.05

# 未配置项目名时使用的默认值
DEFAULT_PROJECT_NAME: str = "Taskforge"
