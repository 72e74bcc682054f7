"""AnalysisConfig -- 复杂度分析配置加载"""

import os

import structlog
from pydantic import BaseModel, Field
from taskforge.core.config import DEFAULT_PROJECT_NAME, DEFAULT_THRESHOLD_SCORE
from taskforge.core.models import (
    DEFAULT_COMPLEXITY_MODE,
    ComplexityMode,
    is_valid_complexity_mode,
)

log = structlog.get_logger()


class AnalysisConfig(BaseModel):
    """复杂度分析配置 -- 从环境变量加载，CLI 参数可再覆盖

    环境变量:
        TASKFORGE_COMPLEXITY_MODE: standard / balanced / advanced（默认 balanced）
        TASKFORGE_PROJECT_NAME: 写入报告 meta 的项目名
        TASKFORGE_THRESHOLD: 扩展阈值（默认 5）
    """

    complexity_mode: ComplexityMode = Field(
        default=DEFAULT_COMPLEXITY_MODE,
        description="prompt 档位",
    )
    project_name: str = Field(default=DEFAULT_PROJECT_NAME, description="项目名称")
    threshold_score: float = Field(
        default=DEFAULT_THRESHOLD_SCORE,
        ge=1,
        le=10,
        description="扩展阈值",
    )


def load_analysis_config() -> AnalysisConfig:
    """从环境变量加载分析配置，非法值记录告警后使用默认值"""
    kwargs: dict = {}

    if val := os.environ.get("TASKFORGE_COMPLEXITY_MODE"):
        if is_valid_complexity_mode(val.lower()):
            kwargs["complexity_mode"] = ComplexityMode(val.lower())
        else:
            log.warning(
                "invalid_complexity_mode_config",
                env_var="TASKFORGE_COMPLEXITY_MODE",
                value=val,
                fallback=DEFAULT_COMPLEXITY_MODE.value,
            )

    if val := os.environ.get("TASKFORGE_PROJECT_NAME"):
        kwargs["project_name"] = val

    return AnalysisConfig(**kwargs)
