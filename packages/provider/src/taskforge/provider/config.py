"""ProviderConfig -- Provider 配置加载

从环境变量加载配置；模型名可全部通过环境变量覆盖。
"""

import os

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()

DEFAULT_MAIN_MODEL = "anthropic/claude-3-7-sonnet-20250219"
DEFAULT_RESEARCH_MODEL = "perplexity/sonar-pro"
DEFAULT_TIMEOUT_S = 120


class ProviderConfig(BaseModel):
    """Provider 包配置 -- 从环境变量加载

    环境变量:
        LITELLM_API_BASE: 自定义 API 端点（为空时由 LiteLLM 按模型前缀路由）
        LITELLM_API_KEY: API 密钥（为空时由 LiteLLM 读取各 provider 的标准环境变量）
        TASKFORGE_MAIN_MODEL / TASKFORGE_RESEARCH_MODEL / TASKFORGE_FALLBACK_MODEL
        TASKFORGE_LLM_TIMEOUT_S: 调用超时（秒，默认 120）
    """

    api_base: str = Field(default="", description="API 端点，空表示 provider 默认")
    api_key: SecretStr = Field(default=SecretStr(""), description="API 密钥")
    main_model: str = Field(default=DEFAULT_MAIN_MODEL, description="main 角色模型")
    research_model: str = Field(
        default=DEFAULT_RESEARCH_MODEL,
        description="research 角色模型",
    )
    fallback_model: str = Field(
        default="",
        description="fallback 角色模型，空表示不降级",
    )
    timeout_s: int = Field(default=DEFAULT_TIMEOUT_S, ge=1, description="LLM 调用超时（秒）")


def load_provider_config() -> ProviderConfig:
    """从环境变量加载 Provider 配置

    Returns:
        ProviderConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("LITELLM_API_BASE"):
        kwargs["api_base"] = val

    if val := os.environ.get("LITELLM_API_KEY"):
        kwargs["api_key"] = SecretStr(val)

    if val := os.environ.get("TASKFORGE_MAIN_MODEL"):
        kwargs["main_model"] = val

    if val := os.environ.get("TASKFORGE_RESEARCH_MODEL"):
        kwargs["research_model"] = val

    if val := os.environ.get("TASKFORGE_FALLBACK_MODEL"):
        kwargs["fallback_model"] = val

    if val := os.environ.get("TASKFORGE_LLM_TIMEOUT_S"):
        try:
            timeout_s = int(val)
            if timeout_s < 1:
                raise ValueError(val)
            kwargs["timeout_s"] = timeout_s
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="TASKFORGE_LLM_TIMEOUT_S",
                value=val,
                fallback=DEFAULT_TIMEOUT_S,
            )
            # 使用默认值，不阻塞启动

    return ProviderConfig(**kwargs)
