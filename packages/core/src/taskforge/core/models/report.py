"""复杂度报告模型 -- ComplexityAnalysisEntry / ComplexityReport

JSON 字段统一 camelCase（taskId、complexityScore ...），Python 属性为 snake_case。
一份报告内每个 taskId 至多一条分析记录。
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# 复杂度分数 -> 建议子任务数区间（按上界包含匹配）
SUBTASK_BANDS: tuple[tuple[float, tuple[int, int]], ...] = (
    (3.0, (2, 3)),
    (6.0, (3, 5)),
    (8.0, (5, 7)),
    (10.0, (7, 10)),
)


def recommended_subtask_range(score: float) -> tuple[int, int]:
    """将复杂度分数映射为建议子任务数区间

    [1-3] -> 2-3, [4-6] -> 3-5, [7-8] -> 5-7, [9-10] -> 7-10。
    连续分数按区间上界包含匹配，如 7.85 -> 5-7，3.5 -> 3-5。
    """
    for upper, band in SUBTASK_BANDS:
        if score <= upper:
            return band
    return SUBTASK_BANDS[-1][1]


class _CamelModel(BaseModel):
    """camelCase JSON 字段基类"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class ComplexityAnalysisEntry(_CamelModel):
    """单个任务的复杂度分析结果"""

    task_id: int = Field(gt=0, description="主任务 ID")
    task_title: str = Field(default="", description="任务标题")
    complexity_score: float = Field(ge=1, le=10, description="复杂度分数 1-10")
    recommended_subtasks: int = Field(ge=0, description="建议子任务数")
    reasoning: str = Field(default="", description="评分理由")
    expansion_prompt: str = Field(default="", description="拆分子任务用的扩展 prompt")

    @property
    def subtask_band(self) -> tuple[int, int]:
        """分数对应的建议子任务区间"""
        return recommended_subtask_range(self.complexity_score)


class ComplexityReportMeta(_CamelModel):
    """报告元信息"""

    generated_at: datetime = Field(description="生成时间（ISO-8601）")
    tasks_analyzed: int = Field(default=0, ge=0, description="本次分析的任务数")
    total_tasks: int = Field(default=0, ge=0, description="任务文件中的任务总数")
    analysis_count: int = Field(default=0, ge=0, description="报告中的分析条目数")
    threshold_score: float = Field(default=5.0, description="扩展阈值")
    project_name: str = Field(default="", description="项目名称")
    used_research: bool = Field(default=False, description="是否使用 research 角色")


class ComplexityReport(_CamelModel):
    """持久化的复杂度报告"""

    meta: ComplexityReportMeta
    complexity_analysis: list[ComplexityAnalysisEntry] = Field(
        default_factory=list,
        description="分析条目，taskId 唯一",
    )

    def get_entry(self, task_id: int) -> ComplexityAnalysisEntry | None:
        """按 taskId 查询分析条目"""
        for entry in self.complexity_analysis:
            if entry.task_id == task_id:
                return entry
        return None

    def task_ids(self) -> list[int]:
        return [e.task_id for e in self.complexity_analysis]
