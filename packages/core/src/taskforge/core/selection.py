"""任务筛选 -- 状态过滤 + 显式 ID 集合 / ID 区间

筛选顺序:
    1. 状态过滤（始终执行）：状态（小写，缺省 pending）属于 ACTIVE_STATUSES
    2. 显式 ID 集合：与状态过滤结果取交集，缺失 ID 仅告警不终止
    3. 否则 ID 区间 [from, to]：闭区间，from 缺省 1，to 缺省为过滤前的最大 ID
"""

from collections.abc import Iterable, Sequence
from typing import Literal

import structlog
from pydantic import BaseModel, Field

from .models.enums import ACTIVE_STATUSES, is_valid_task_status
from .models.task import Task

log = structlog.get_logger()

FilterMode = Literal["status", "ids", "range"]


class TaskSelection(BaseModel):
    """筛选结果"""

    tasks: list[Task] = Field(default_factory=list, description="待分析任务")
    original_task_count: int = Field(ge=0, description="过滤前任务总数")
    filter_mode: FilterMode = Field(default="status", description="生效的筛选模式")
    requested_ids: list[int] = Field(default_factory=list, description="显式请求的 ID")
    missing_ids: list[int] = Field(
        default_factory=list,
        description="请求但不存在或非活跃的 ID",
    )
    range_from: int | None = Field(default=None, description="生效的区间起点")
    range_to: int | None = Field(default=None, description="生效的区间终点")

    @property
    def task_ids(self) -> list[int]:
        return [t.id for t in self.tasks]

    @property
    def skipped_count(self) -> int:
        return self.original_task_count - len(self.tasks)

    @property
    def is_empty(self) -> bool:
        return not self.tasks


def parse_id_list(raw: str | Iterable[int | str] | None) -> list[int]:
    """解析显式 ID 列表

    接受逗号分隔字符串（"1, 2,3"）或 int/str 序列，非数字项忽略，保持顺序去重。
    """
    if raw is None:
        return []
    items = raw.split(",") if isinstance(raw, str) else list(raw)

    ids: list[int] = []
    for item in items:
        try:
            value = int(str(item).strip())
        except ValueError:
            continue
        if value not in ids:
            ids.append(value)
    return ids


def filter_active_tasks(tasks: Iterable[Task]) -> list[Task]:
    """按活跃状态过滤（pending / blocked / in-progress，大小写不敏感）

    既非 TaskStatus 成员也非活跃状态的任务同样跳过，并记录告警。
    """
    active: list[Task] = []
    unrecognized: list[Task] = []
    for task in tasks:
        status = task.normalized_status
        if status in ACTIVE_STATUSES:
            active.append(task)
        elif not is_valid_task_status(status):
            unrecognized.append(task)

    if unrecognized:
        log.warning(
            "unrecognized_task_status",
            task_ids=[t.id for t in unrecognized],
            statuses=sorted({t.normalized_status for t in unrecognized}),
        )
    return active


def select_tasks(
    tasks: Sequence[Task],
    ids: str | Iterable[int | str] | None = None,
    from_id: int | None = None,
    to_id: int | None = None,
) -> TaskSelection:
    """按状态 + ID 集合 / ID 区间筛选任务

    Args:
        tasks: 全部任务（过滤前）
        ids: 显式 ID 集合；非空时优先于区间
        from_id: 区间起点（含），None 表示 1
        to_id: 区间终点（含），None 表示过滤前最大 ID

    Returns:
        TaskSelection，含过滤前任务数与缺失 ID
    """
    original_count = len(tasks)
    active = filter_active_tasks(tasks)
    requested = parse_id_list(ids)

    if requested:
        wanted = set(requested)
        selected = [t for t in active if t.id in wanted]
        found = {t.id for t in selected}
        missing = [i for i in requested if i not in found]
        if missing:
            log.warning(
                "selection_missing_ids",
                missing_ids=missing,
                message="部分请求的任务 ID 不存在或非活跃状态",
            )
        return TaskSelection(
            tasks=selected,
            original_task_count=original_count,
            filter_mode="ids",
            requested_ids=requested,
            missing_ids=missing,
        )

    if from_id is not None or to_id is not None:
        effective_from = from_id if from_id is not None else 1
        if to_id is not None:
            effective_to = to_id
        else:
            effective_to = max((t.id for t in tasks), default=effective_from)
        selected = [t for t in active if effective_from <= t.id <= effective_to]
        if not selected:
            log.warning(
                "selection_empty_range",
                range_from=effective_from,
                range_to=effective_to,
            )
        return TaskSelection(
            tasks=selected,
            original_task_count=original_count,
            filter_mode="range",
            range_from=effective_from,
            range_to=effective_to,
        )

    return TaskSelection(
        tasks=active,
        original_task_count=original_count,
        filter_mode="status",
    )
