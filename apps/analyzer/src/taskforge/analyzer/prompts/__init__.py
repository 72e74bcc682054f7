"""复杂度分析 prompt 编译

三档 prompt（standard / balanced / advanced）共享同一评分量表与输出约定，
非法或缺省模式降级为 balanced。
"""

from collections.abc import Sequence

from taskforge.core.models import (
    SUBTASK_BANDS,
    ComplexityMode,
    Task,
    get_valid_complexity_mode,
)

from .advanced import generate_advanced_prompt
from .balanced import generate_balanced_prompt
from .rubric import OUTPUT_FIELDS, RUBRIC_WEIGHTS, SYSTEM_PROMPT
from .standard import generate_standard_prompt

_GENERATORS = {
    ComplexityMode.STANDARD: generate_standard_prompt,
    ComplexityMode.BALANCED: generate_balanced_prompt,
    ComplexityMode.ADVANCED: generate_advanced_prompt,
}


def build_complexity_prompt(tasks: Sequence[Task], mode: str | None = None) -> str:
    """按模式编译复杂度分析 prompt

    Args:
        tasks: 待分析任务（已筛选）
        mode: standard / balanced / advanced，非法或 None 时使用 balanced

    Returns:
        user prompt 文本
    """
    return _GENERATORS[get_valid_complexity_mode(mode)](tasks)


__all__ = [
    "build_complexity_prompt",
    "generate_standard_prompt",
    "generate_balanced_prompt",
    "generate_advanced_prompt",
    "SYSTEM_PROMPT",
    "RUBRIC_WEIGHTS",
    "SUBTASK_BANDS",
    "OUTPUT_FIELDS",
]
