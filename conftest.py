"""全局 pytest 配置 -- 临时任务文件 / 报告路径 fixture"""

import json
from collections.abc import Callable
from pathlib import Path

import pytest


@pytest.fixture
def tmp_report_path(tmp_path: Path) -> Path:
    """提供临时复杂度报告路径（文件不存在）"""
    return tmp_path / "scripts" / "task-complexity-report.json"


@pytest.fixture
def write_tasks_file(tmp_path: Path) -> Callable[[list[dict]], Path]:
    """写入临时任务文件，返回路径"""

    def _write(tasks: list[dict], name: str = "tasks.json") -> Path:
        path = tmp_path / "tasks" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps({"tasks": tasks}), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def sample_tasks() -> list[dict]:
    """三个主任务：1 已完成，2/3 待处理，3 依赖 2 并带两个子任务"""
    return [
        {
            "id": 1,
            "title": "Project scaffolding",
            "description": "Set up repository layout",
            "status": "done",
            "dependencies": [],
        },
        {
            "id": 2,
            "title": "User Authentication",
            "description": "JWT login and password reset",
            "status": "pending",
            "dependencies": [1],
        },
        {
            "id": 3,
            "title": "Payment API integration",
            "description": "Integrate payment provider",
            "status": "in-progress",
            "dependencies": [2],
            "subtasks": [
                {"id": 1, "title": "Client SDK", "dependencies": []},
                {"id": 2, "title": "Webhooks", "dependencies": [1]},
            ],
        },
    ]
