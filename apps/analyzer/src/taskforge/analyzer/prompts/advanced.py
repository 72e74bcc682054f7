"""advanced 档 -- 完整说明的复杂度分析 prompt

每个维度附评分指引，适合需要细致拆分依据的大型项目。
"""

from collections.abc import Sequence

from taskforge.core.models import Task

from .rubric import (
    RUBRIC_WEIGHTS,
    band_table,
    output_contract,
    serialize_tasks,
    weighted_formula,
)

# 维度 -> (考察点, 评分指引)
_DIMENSION_GUIDES: dict[str, tuple[str, tuple[str, ...]]] = {
    "T": (
        "algorithmic difficulty, architecture and design patterns, performance and "
        "scalability, refactoring of existing code",
        (
            "1-2: simple CRUD or basic UI component",
            "3-4: well-known patterns, moderate algorithms",
            "5-6: non-trivial state management or optimisation",
            "7-8: distributed components or hard algorithms",
            "9-10: novel technology, research needed",
        ),
    ),
    "I": (
        "number of external services, cross-system communication, data format "
        "conversion, auth across systems, third-party libraries",
        (
            "1-2: standalone, no external dependencies",
            "3-4: one API over a standard protocol",
            "5-6: several service integrations",
            "7-8: orchestration or custom protocols",
            "9-10: organisation-wide or legacy integration",
        ),
    ),
    "D": (
        "business rule complexity, domain knowledge, regulatory constraints, "
        "user experience depth",
        (
            "1-2: common patterns, little domain knowledge",
            "3-4: ordinary business logic with clear requirements",
            "5-6: intricate rules, some expertise needed",
            "7-8: deep domain knowledge, compliance critical",
            "9-10: expert-level understanding required",
        ),
    ),
    "R": (
        "requirement stability, feasibility unknowns, dependence on other teams, "
        "scope creep, cost of failure",
        (
            "1-2: well defined, proven approach, low impact",
            "3-4: mostly clear with minor unknowns",
            "5-6: significant unknowns, moderate impact",
            "7-8: high uncertainty, critical impact",
            "9-10: exploratory and business critical",
        ),
    ),
    "M": (
        "documentation, test coverage, readability, likelihood of change, "
        "operational monitoring",
        (
            "1-2: self-contained, little upkeep",
            "3-4: standard tests and docs",
            "5-6: thorough test suite and detailed docs",
            "7-8: complex test scenarios, extensive docs",
            "9-10: critical system with heavy ongoing care",
        ),
    ),
}


def _dimension_section(abbr: str, name: str, weight: int) -> str:
    focus, guide = _DIMENSION_GUIDES[abbr]
    guide_lines = "\n".join(f"- {line}" for line in guide)
    return f"### {name} complexity ({abbr}, weight {weight}%)\nConsider: {focus}.\n{guide_lines}"


def generate_advanced_prompt(tasks: Sequence[Task]) -> str:
    sections = "\n\n".join(
        _dimension_section(abbr, name, weight) for abbr, name, weight in RUBRIC_WEIGHTS
    )
    return (
        "You are a senior software architect estimating the complexity of "
        "software development tasks. Evaluate every task with the five-dimension "
        "framework below.\n"
        "\n"
        "## Dimensions\n"
        "\n"
        f"{sections}\n"
        "\n"
        "## Method\n"
        "1. Read each task's description and details in full.\n"
        "2. Do not inflate scores: judge the work itself, not its wording.\n"
        "3. Score every dimension from 1 to 10 using the guides above.\n"
        f"4. Combine: complexityScore = {weighted_formula()}, rounded to one decimal.\n"
        f"5. Map the score to a subtask count within its band: {band_table()}.\n"
        "6. Write an expansion prompt naming the concrete subtasks in order, "
        "mentioning the riskiest dimension first.\n"
        "\n"
        "## Calibration examples\n"
        "- Input validation on a signup form: T:2, I:1, D:3, R:2, M:3 = 2.25 -> 3 subtasks\n"
        "- User authentication with JWT and password reset: T:7, I:6, D:5, R:6, M:5 = 6.0 -> 4 subtasks\n"
        "- Real-time collaborative editing: T:9, I:8, D:7, R:9, M:8 = 8.25 -> 8 subtasks\n"
        "\n"
        "## Tasks\n"
        f"{serialize_tasks(tasks)}\n"
        "\n"
        "## Output\n"
        "reasoning must show each dimension score and the weighted result, "
        "for example \"T:7, I:6, D:5, R:6, M:5 = 6.0\".\n"
        f"{output_contract()}"
    )
