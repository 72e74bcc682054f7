"""生成结果解析与修复

1. extract_json_array_text: 去掉 markdown 代码块或前后说明文字，取出 JSON 数组文本
2. parse_complexity_response: 解析为 ComplexityAnalysisEntry 列表
3. reconcile_entries: 与请求的任务集合对齐（补默认条目、丢弃多余条目）
"""

import json
import re
from collections.abc import Sequence

import structlog
from pydantic import BaseModel, Field, ValidationError
from taskforge.core.models import ComplexityAnalysisEntry, Task

from .exceptions import ResponseParseError

log = structlog.get_logger()

_FENCED_BLOCK_RE = re.compile(r"```(?:json)?\s*([\s\S]*?)\s*```")

DEFAULT_COMPLEXITY_SCORE = 5
DEFAULT_RECOMMENDED_SUBTASKS = 3
DEFAULT_REASONING = "Automatically added due to missing analysis in AI response."


def extract_json_array_text(raw: str) -> str:
    """从生成文本中取出 JSON 数组部分

    优先级: 首个 ``` / ```json 代码块内容 > 首个 "[" 到最后一个 "]" > 原文（已 trim）
    """
    text = raw.strip()

    match = _FENCED_BLOCK_RE.search(text)
    if match:
        return match.group(1).strip()

    start = text.find("[")
    end = text.rfind("]")
    if start != -1 and end > start:
        return text[start : end + 1]

    log.warning("response_not_json_array", preview=text[:200])
    return text


def parse_complexity_response(raw: str) -> list[ComplexityAnalysisEntry]:
    """解析生成结果为分析条目

    校验失败的单个条目被丢弃（随后按缺失处理），不影响其余条目。

    Raises:
        ResponseParseError: 不是合法 JSON，或顶层不是数组
    """
    text = extract_json_array_text(raw)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ResponseParseError(
            f"Failed to parse JSON response: {e}",
            original_error=e,
        ) from e

    if not isinstance(data, list):
        raise ResponseParseError(
            f"Expected a JSON array of analyses, got {type(data).__name__}",
        )

    entries: list[ComplexityAnalysisEntry] = []
    for index, item in enumerate(data):
        try:
            entries.append(ComplexityAnalysisEntry.model_validate(item))
        except ValidationError as e:
            log.warning(
                "analysis_entry_invalid",
                index=index,
                task_id=item.get("taskId") if isinstance(item, dict) else None,
                error_count=e.error_count(),
            )
    return entries


def default_entry_for(task: Task) -> ComplexityAnalysisEntry:
    """为生成结果中缺失的任务合成默认分析条目"""
    return ComplexityAnalysisEntry(
        task_id=task.id,
        task_title=task.title,
        complexity_score=DEFAULT_COMPLEXITY_SCORE,
        recommended_subtasks=DEFAULT_RECOMMENDED_SUBTASKS,
        expansion_prompt=f"Break down this task with a focus on {task.title.lower()}.",
        reasoning=DEFAULT_REASONING,
    )


class ReconcileResult(BaseModel):
    """对齐结果 -- entries 的 taskId 集合恰好等于请求的任务集合"""

    entries: list[ComplexityAnalysisEntry] = Field(default_factory=list)
    missing_ids: list[int] = Field(default_factory=list, description="补了默认条目的 ID")
    unexpected_ids: list[int] = Field(default_factory=list, description="被丢弃的未请求 ID")


def reconcile_entries(
    tasks: Sequence[Task],
    entries: Sequence[ComplexityAnalysisEntry],
) -> ReconcileResult:
    """将解析出的条目与请求的任务对齐

    - 同一 taskId 出现多次时后出现者生效
    - 未请求的 taskId 丢弃
    - 缺失的 taskId 补默认条目
    结果按请求任务的顺序排列。
    """
    requested = {t.id for t in tasks}

    by_id: dict[int, ComplexityAnalysisEntry] = {}
    unexpected: list[int] = []
    for entry in entries:
        if entry.task_id in requested:
            by_id[entry.task_id] = entry
        elif entry.task_id not in unexpected:
            unexpected.append(entry.task_id)

    result_entries: list[ComplexityAnalysisEntry] = []
    missing: list[int] = []
    emitted: set[int] = set()
    for task in tasks:
        if task.id in emitted:
            continue
        emitted.add(task.id)
        entry = by_id.get(task.id)
        if entry is None:
            missing.append(task.id)
            entry = default_entry_for(task)
        result_entries.append(entry)

    if missing:
        log.warning(
            "partial_coverage_repaired",
            missing_ids=missing,
            message="生成结果缺少部分任务的分析，已补默认条目",
        )
    if unexpected:
        log.warning("unexpected_analysis_dropped", unexpected_ids=unexpected)

    return ReconcileResult(
        entries=result_entries,
        missing_ids=missing,
        unexpected_ids=unexpected,
    )
