"""数据模型 -- TokenUsage + ModelCallResult"""

from pydantic import BaseModel, Field


class TokenUsage(BaseModel):
    """Token 使用统计

    key 命名对齐 OpenAI/LiteLLM 行业标准：
    prompt_tokens / completion_tokens / total_tokens
    """

    prompt_tokens: int = Field(default=0, ge=0, description="输入 token 数")
    completion_tokens: int = Field(default=0, ge=0, description="输出 token 数")
    total_tokens: int = Field(default=0, ge=0, description="总 token 数")


class ModelCallResult(BaseModel):
    """LLM 调用结果

    包含响应内容、路由信息、成本数据、降级标记。
    """

    content: str = Field(description="LLM 响应文本内容")

    # 路由信息
    role: str = Field(default="main", description="请求时使用的角色（main/research/fallback）")
    model_name: str = Field(default="", description="实际调用的模型名称")
    provider: str = Field(default="", description="实际 provider（如 openai/anthropic）")

    duration_ms: int = Field(default=0, ge=0, description="端到端耗时（毫秒）")

    token_usage: TokenUsage = Field(
        default_factory=TokenUsage,
        description="Token 使用详情",
    )

    # 成本数据
    cost_usd: float = Field(default=0.0, ge=0.0, description="本次调用的 USD 成本")
    cost_unavailable: bool = Field(
        default=False,
        description="成本数据是否不可用（双通道均失败时为 True）",
    )

    # 降级信息
    is_fallback: bool = Field(default=False, description="是否为降级调用")
    fallback_reason: str = Field(default="", description="降级原因说明")

    def telemetry_fields(self) -> dict[str, object]:
        """日志与 CLI 摘要使用的遥测字段（不含响应内容）"""
        return {
            "role": self.role,
            "model_name": self.model_name,
            "provider": self.provider,
            "duration_ms": self.duration_ms,
            "total_tokens": self.token_usage.total_tokens,
            "cost_usd": self.cost_usd,
            "cost_unavailable": self.cost_unavailable,
            "is_fallback": self.is_fallback,
        }
