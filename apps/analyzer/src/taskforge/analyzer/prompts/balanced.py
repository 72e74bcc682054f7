"""balanced 档 -- 成本与分析深度平衡的复杂度分析 prompt（默认）"""

from collections.abc import Sequence

from taskforge.core.models import Task

from .rubric import (
    RUBRIC_WEIGHTS,
    band_table,
    output_contract,
    serialize_tasks,
    weighted_formula,
)

_DIMENSION_NOTES = {
    "T": "algorithms, architecture, performance, system integration",
    "I": "external APIs, cross-system compatibility, data transformation, third-party services",
    "D": "business rules, specialised knowledge, compliance, UX depth",
    "R": "unclear requirements, rework likelihood, external dependencies, failure impact",
    "M": "long-term support, documentation, extensibility, test effort",
}


def generate_balanced_prompt(tasks: Sequence[Task]) -> str:
    dimension_lines = "\n".join(
        f"- {name} ({abbr}) {weight}%: {_DIMENSION_NOTES[abbr]}"
        for abbr, name, weight in RUBRIC_WEIGHTS
    )
    return (
        "Analyze the complexity of each task below using five dimensions, "
        "each scored from 1 to 10.\n"
        "\n"
        "## Dimensions and weights\n"
        f"{dimension_lines}\n"
        "\n"
        "## Process\n"
        "1. Read the requirements carefully.\n"
        "2. Score T, I, D, R and M individually.\n"
        f"3. complexityScore = {weighted_formula()}\n"
        f"4. Recommend subtasks by score band: {band_table()}\n"
        "5. Write a concrete, actionable expansion prompt listing the subtasks.\n"
        "\n"
        "## Examples\n"
        "- Simple form: T:2, I:1, D:3, R:2, M:3 = 2.25 -> 3 subtasks\n"
        "- Payment API integration: T:8, I:9, D:7, R:8, M:7 = 7.85 -> 6 subtasks\n"
        "\n"
        "Tasks:\n"
        f"{serialize_tasks(tasks)}\n"
        "\n"
        "Put the per-dimension scores in reasoning.\n"
        f"{output_contract()}"
    )
