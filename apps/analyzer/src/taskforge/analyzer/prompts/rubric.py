"""复杂度评分量表 -- 三档 prompt 共享的维度权重、分档与输出约定"""

import json
from collections.abc import Sequence

from taskforge.core.models import SUBTASK_BANDS, Task

SYSTEM_PROMPT = (
    "You are an expert software architect and project manager analyzing task "
    "complexity. Respond only with the requested valid JSON array."
)

# 五个评分维度：(缩写, 名称, 权重%)
RUBRIC_WEIGHTS: tuple[tuple[str, str, int], ...] = (
    ("T", "Technical", 25),
    ("I", "Integration", 20),
    ("D", "Domain", 20),
    ("R", "Risk", 20),
    ("M", "Maintenance", 15),
)

OUTPUT_FIELDS: tuple[str, ...] = (
    "taskId",
    "taskTitle",
    "complexityScore",
    "recommendedSubtasks",
    "reasoning",
    "expansionPrompt",
)


def weighted_formula() -> str:
    """T*0.25 + I*0.20 + ... 形式的加权公式"""
    return " + ".join(f"{abbr}*{weight / 100:.2f}" for abbr, _, weight in RUBRIC_WEIGHTS)


def band_table() -> str:
    """分数 -> 子任务数 分档表，如 "1-3 -> 2-3, 4-6 -> 3-5, ..." """
    parts = []
    lower = 1
    for upper, (low_n, high_n) in SUBTASK_BANDS:
        parts.append(f"{lower}-{int(upper)} -> {low_n}-{high_n}")
        lower = int(upper) + 1
    return ", ".join(parts)


def output_contract() -> str:
    """JSON 数组输出约定（附一条示例对象）"""
    example = {
        "taskId": 1,
        "taskTitle": "string",
        "complexityScore": 5,
        "recommendedSubtasks": 4,
        "reasoning": "T:n, I:n, D:n, R:n, M:n = score",
        "expansionPrompt": "1) first subtask 2) second subtask ...",
    }
    return (
        "Respond with a JSON array only, one object per task, no prose and no "
        "markdown. Each object has exactly these keys: "
        + ", ".join(OUTPUT_FIELDS)
        + ".\n"
        + json.dumps([example])
    )


def serialize_tasks(tasks: Sequence[Task]) -> str:
    return json.dumps([t.to_prompt_dict() for t in tasks], indent=2, ensure_ascii=False)
