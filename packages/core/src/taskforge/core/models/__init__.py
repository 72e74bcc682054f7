"""Taskforge Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .enums import (
    ACTIVE_STATUSES,
    COMPLEXITY_MODE_OPTIONS,
    DEFAULT_COMPLEXITY_MODE,
    TERMINAL_PIPELINE_STATES,
    VALID_PIPELINE_TRANSITIONS,
    ComplexityMode,
    PipelineState,
    TaskStatus,
    get_valid_complexity_mode,
    is_valid_complexity_mode,
    is_valid_task_status,
    validate_pipeline_transition,
)
from .identifier import (
    TaskIdentifier,
    is_valid_task_id,
    normalize_dependency_id,
    parse_task_id,
)
from .report import (
    SUBTASK_BANDS,
    ComplexityAnalysisEntry,
    ComplexityReport,
    ComplexityReportMeta,
    recommended_subtask_range,
)
from .task import Subtask, Task, TasksFile

__all__ = [
    # 枚举
    "TaskStatus",
    "ComplexityMode",
    "PipelineState",
    "ACTIVE_STATUSES",
    "COMPLEXITY_MODE_OPTIONS",
    "DEFAULT_COMPLEXITY_MODE",
    "is_valid_task_status",
    "is_valid_complexity_mode",
    "get_valid_complexity_mode",
    # 状态机
    "VALID_PIPELINE_TRANSITIONS",
    "TERMINAL_PIPELINE_STATES",
    "validate_pipeline_transition",
    # 标识符
    "TaskIdentifier",
    "parse_task_id",
    "is_valid_task_id",
    "normalize_dependency_id",
    # Task
    "Task",
    "Subtask",
    "TasksFile",
    # Report
    "ComplexityAnalysisEntry",
    "ComplexityReport",
    "ComplexityReportMeta",
    "SUBTASK_BANDS",
    "recommended_subtask_range",
]
