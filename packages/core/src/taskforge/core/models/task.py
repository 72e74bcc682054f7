"""Task Domain Model -- 任务文件中的 Task / Subtask

任务由外部任务文件创建与维护，本包只读取。
未知字段原样保留（extra="allow"），状态字符串不做枚举强校验。
外部工具写入的 null 文本字段按缺省值处理。
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import DEFAULT_TASK_STATUS

DEFAULT_TASK_PRIORITY = "medium"


class Subtask(BaseModel):
    """子任务 -- id 可为同级序号（3）或完整标识符（"5.3"）"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int | str = Field(description="子任务 ID")
    title: str = Field(default="", description="子任务标题")
    description: str = Field(default="", description="子任务描述")
    status: str = Field(default=DEFAULT_TASK_STATUS, description="当前状态")
    dependencies: list[int | str] = Field(
        default_factory=list, description="依赖的任务/子任务标识符"
    )

    @field_validator("title", "description", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def _none_status_to_default(cls, v: Any) -> Any:
        return DEFAULT_TASK_STATUS if v is None else v

    @field_validator("dependencies", mode="before")
    @classmethod
    def _none_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    def full_id(self, parent_id: int | str) -> str:
        """获取完整层级标识符（如 "5.3"）"""
        text = str(self.id)
        if "." in text:
            return text
        return f"{parent_id}.{text}"


class Task(BaseModel):
    """主任务"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: int = Field(gt=0, description="正整数任务 ID")
    title: str = Field(description="任务标题")
    description: str = Field(default="", description="任务描述")
    details: str = Field(default="", description="实现细节")
    status: str = Field(default=DEFAULT_TASK_STATUS, description="当前状态")
    priority: str = Field(default=DEFAULT_TASK_PRIORITY, description="优先级")
    dependencies: list[int | str] = Field(
        default_factory=list, description="依赖的任务标识符"
    )
    subtasks: list[Subtask] = Field(default_factory=list, description="子任务列表")

    @field_validator("description", "details", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return "" if v is None else v

    @field_validator("status", mode="before")
    @classmethod
    def _none_status_to_default(cls, v: Any) -> Any:
        return DEFAULT_TASK_STATUS if v is None else v

    @field_validator("priority", mode="before")
    @classmethod
    def _none_priority_to_default(cls, v: Any) -> Any:
        return DEFAULT_TASK_PRIORITY if v is None else v

    @field_validator("dependencies", "subtasks", mode="before")
    @classmethod
    def _none_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def normalized_status(self) -> str:
        """小写状态，缺省视为 pending"""
        return (self.status or DEFAULT_TASK_STATUS).lower()

    def to_prompt_dict(self) -> dict[str, Any]:
        """序列化为写入 prompt 的字典（保留额外字段）"""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TasksFile(BaseModel):
    """任务文件 -- {"tasks": [...], "metadata": {...}}"""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    tasks: list[Task] = Field(default_factory=list, description="任务列表")
    metadata: dict[str, Any] | None = Field(default=None, description="文件元信息")
