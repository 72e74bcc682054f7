"""枚举定义 -- 任务状态、复杂度模式、分析流水线状态机

包含 TaskStatus、ComplexityMode、PipelineState 枚举，
以及 VALID_PIPELINE_TRANSITIONS 合法流转映射和 TERMINAL_PIPELINE_STATES 终态集合。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """任务状态（由外部任务文件维护）"""

    PENDING = "pending"
    DONE = "done"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DEFERRED = "deferred"
    CANCELLED = "cancelled"


# 参与复杂度分析的活跃状态（blocked 不是 TaskStatus 成员，但任务文件中可能出现）
ACTIVE_STATUSES: frozenset[str] = frozenset({"pending", "blocked", "in-progress"})

# 缺省状态
DEFAULT_TASK_STATUS: str = TaskStatus.PENDING.value


def is_valid_task_status(status: str) -> bool:
    """判断字符串是否为合法的 TaskStatus 值"""
    return status in {s.value for s in TaskStatus}


class ComplexityMode(StrEnum):
    """复杂度分析 prompt 压缩档位

    - standard: 极限压缩，成本最低
    - balanced: 成本与细节平衡（默认）
    - advanced: 完整说明，细节最多
    """

    STANDARD = "standard"
    BALANCED = "balanced"
    ADVANCED = "advanced"


COMPLEXITY_MODE_OPTIONS: list[ComplexityMode] = list(ComplexityMode)

DEFAULT_COMPLEXITY_MODE: ComplexityMode = ComplexityMode.BALANCED


def is_valid_complexity_mode(mode: object) -> bool:
    """判断是否为合法的复杂度模式"""
    return isinstance(mode, str) and mode in {m.value for m in ComplexityMode}


def get_valid_complexity_mode(mode: object) -> ComplexityMode:
    """获取合法的复杂度模式，非法值（含 None）降级为默认模式"""
    if is_valid_complexity_mode(mode):
        return ComplexityMode(mode)
    return DEFAULT_COMPLEXITY_MODE


class PipelineState(StrEnum):
    """复杂度分析流水线状态机"""

    LOAD_INPUT = "LOAD_INPUT"
    FILTER = "FILTER"
    SHORT_CIRCUIT_EMPTY = "SHORT_CIRCUIT_EMPTY"
    LOAD_EXISTING_REPORT = "LOAD_EXISTING_REPORT"
    COMPILE_PROMPT = "COMPILE_PROMPT"
    GENERATE = "GENERATE"
    PARSE = "PARSE"
    RECONCILE = "RECONCILE"
    MERGE = "MERGE"
    PERSIST = "PERSIST"

    # 终态
    DONE = "DONE"
    DONE_NOCHANGE = "DONE_NOCHANGE"
    FAILED = "FAILED"


# 合法状态流转
VALID_PIPELINE_TRANSITIONS: dict[PipelineState, set[PipelineState]] = {
    PipelineState.LOAD_INPUT: {PipelineState.FILTER, PipelineState.FAILED},
    PipelineState.FILTER: {
        PipelineState.SHORT_CIRCUIT_EMPTY,
        PipelineState.LOAD_EXISTING_REPORT,
        PipelineState.FAILED,
    },
    PipelineState.SHORT_CIRCUIT_EMPTY: {PipelineState.DONE_NOCHANGE},
    PipelineState.LOAD_EXISTING_REPORT: {
        PipelineState.COMPILE_PROMPT,
        # 无待分析任务且无历史报告：直接写入空报告
        PipelineState.PERSIST,
        PipelineState.FAILED,
    },
    PipelineState.COMPILE_PROMPT: {PipelineState.GENERATE, PipelineState.FAILED},
    PipelineState.GENERATE: {PipelineState.PARSE, PipelineState.FAILED},
    PipelineState.PARSE: {PipelineState.RECONCILE, PipelineState.FAILED},
    PipelineState.RECONCILE: {PipelineState.MERGE, PipelineState.FAILED},
    PipelineState.MERGE: {PipelineState.PERSIST, PipelineState.FAILED},
    PipelineState.PERSIST: {PipelineState.DONE, PipelineState.FAILED},
    # 终态不可再流转
    PipelineState.DONE: set(),
    PipelineState.DONE_NOCHANGE: set(),
    PipelineState.FAILED: set(),
}

TERMINAL_PIPELINE_STATES: set[PipelineState] = {
    PipelineState.DONE,
    PipelineState.DONE_NOCHANGE,
    PipelineState.FAILED,
}


def validate_pipeline_transition(
    from_state: PipelineState, to_state: PipelineState
) -> bool:
    """验证流水线状态流转是否合法

    Args:
        from_state: 当前状态
        to_state: 目标状态

    Returns:
        True 如果流转合法，否则 False
    """
    allowed = VALID_PIPELINE_TRANSITIONS.get(from_state, set())
    return to_state in allowed
