"""standard 档 -- 极限压缩的复杂度分析 prompt，token 成本最低"""

from collections.abc import Sequence

from taskforge.core.models import Task

from .rubric import RUBRIC_WEIGHTS, band_table, output_contract, serialize_tasks, weighted_formula


def generate_standard_prompt(tasks: Sequence[Task]) -> str:
    dims = "|".join(f"{abbr}{weight}%:{name}" for abbr, name, weight in RUBRIC_WEIGHTS)
    return (
        "Score each task 1-10 on 5 weighted dimensions:\n"
        f"{dims}\n"
        "\n"
        "Steps: read reqs -> no inflated complexity -> score T,I,D,R,M -> "
        f"score={weighted_formula()} -> subtasks {band_table()} -> expansion prompt\n"
        "\n"
        "Ex: Login form T:2,I:1,D:3,R:2,M:3=2.25 -> 2-3 subtasks\n"
        "\n"
        "Tasks:\n"
        f"{serialize_tasks(tasks)}\n"
        "\n"
        f"{output_contract()}"
    )
