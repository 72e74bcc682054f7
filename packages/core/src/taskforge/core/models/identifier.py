"""任务标识符模型 -- 层级 ID 解析

标识符为点分正整数序列："5" 为主任务，"5.3" 为子任务，"5.3.1" 为孙任务。
解析为纯函数，不抛异常，非法输入返回 is_valid=False 的结果。
"""

import re

from pydantic import BaseModel, Field

_SEGMENT_RE = re.compile(r"[1-9]\d*")


class TaskIdentifier(BaseModel):
    """层级任务标识符解析结果"""

    raw: str = Field(description="原始标识符文本")
    is_valid: bool = Field(description="所有段均为正整数（无前导 0）")
    is_main_task: bool = Field(description="level == 1")
    is_subtask: bool = Field(description="level == 2")
    is_sub_subtask: bool = Field(description="level == 3")
    level: int = Field(ge=0, description="段数")
    parts: list[str] = Field(default_factory=list, description="各段文本")
    parent: str | None = Field(default=None, description="去掉最后一段后的标识符")

    def __str__(self) -> str:
        return self.raw


def parse_task_id(raw: object) -> TaskIdentifier:
    """解析并校验层级任务标识符

    Args:
        raw: 标识符，通常为 str；int 等其他类型按 str() 转换，None 视为非法

    Returns:
        TaskIdentifier（永不抛异常）
    """
    if raw is None:
        return TaskIdentifier(
            raw="",
            is_valid=False,
            is_main_task=False,
            is_subtask=False,
            is_sub_subtask=False,
            level=0,
        )

    text = raw if isinstance(raw, str) else str(raw)
    parts = text.split(".")
    level = len(parts)
    is_valid = all(_SEGMENT_RE.fullmatch(part) for part in parts)

    return TaskIdentifier(
        raw=text,
        is_valid=is_valid,
        is_main_task=level == 1,
        is_subtask=level == 2,
        is_sub_subtask=level == 3,
        level=level,
        parts=parts,
        parent=".".join(parts[:-1]) if level > 1 else None,
    )


def is_valid_task_id(raw: object) -> bool:
    """快捷判断标识符是否合法"""
    return parse_task_id(raw).is_valid


def normalize_dependency_id(dep: int | str, parent_id: str | None = None) -> str:
    """将依赖引用归一化为完整标识符

    规则:
        1. 带点的字符串（"5.2"）原样返回
        2. 子任务内（parent_id 非空）的纯数字引用指向同级子任务：parent_id + "." + n
        3. 主任务内的纯数字引用即主任务 ID

    Args:
        dep: 依赖引用（int 或 str）
        parent_id: 所属主任务 ID；依赖声明在主任务上时为 None

    Returns:
        完整标识符字符串
    """
    text = str(dep).strip()
    if "." in text:
        return text
    if parent_id is not None:
        return f"{parent_id}.{text}"
    return text
