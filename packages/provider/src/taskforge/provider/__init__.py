"""Taskforge Provider -- LLM 调用抽象层

packages/provider 的公开接口导出。
"""

# 角色注册表
from .alias import (
    FALLBACK_ROLE,
    MAIN_ROLE,
    RESEARCH_ROLE,
    AliasConfig,
    AliasRegistry,
)

# 核心组件
from .client import LiteLLMClient, classify_error

# 配置
from .config import ProviderConfig, load_provider_config
from .cost import CostTracker

# 异常
from .exceptions import (
    AuthenticationError,
    ErrorKind,
    ProviderError,
    ProxyUnreachableError,
    RateLimitError,
)
from .fallback import FallbackManager
from .models import ModelCallResult, TokenUsage

__all__ = [
    "ModelCallResult",
    "TokenUsage",
    "LiteLLMClient",
    "classify_error",
    "AliasConfig",
    "AliasRegistry",
    "MAIN_ROLE",
    "RESEARCH_ROLE",
    "FALLBACK_ROLE",
    "CostTracker",
    "FallbackManager",
    "ProviderConfig",
    "load_provider_config",
    "ErrorKind",
    "ProviderError",
    "AuthenticationError",
    "RateLimitError",
    "ProxyUnreachableError",
]
