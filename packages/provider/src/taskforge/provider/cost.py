"""CostTracker -- 成本与用量遥测

双通道策略: completion_cost() -> _hidden_params -> (0.0, True)。
遥测失败不影响分析结果，所有方法不抛异常。
"""

import contextlib

import structlog
from litellm import completion_cost as litellm_completion_cost
from pydantic import ValidationError

from .models import TokenUsage

log = structlog.get_logger()


class CostTracker:
    """成本追踪器"""

    @staticmethod
    def calculate_cost(response) -> tuple[float, bool]:
        """从 LiteLLM 响应计算 USD 成本

        Returns:
            (cost_usd, cost_unavailable) 元组
        """
        try:
            cost = litellm_completion_cost(completion_response=response)
            if cost is not None and cost >= 0:
                return float(cost), False
        except Exception as e:
            # 未登记价格的模型会在这里失败
            log.debug("completion_cost_failed", error=str(e))

        hidden = getattr(response, "_hidden_params", None)
        if isinstance(hidden, dict):
            cost = hidden.get("response_cost")
            if isinstance(cost, (int, float)) and cost >= 0:
                return float(cost), False

        log.warning("cost_unavailable")
        return 0.0, True

    @staticmethod
    def parse_usage(response) -> TokenUsage:
        """从 LiteLLM 响应解析 token 使用数据（失败时返回全零）"""
        usage = getattr(response, "usage", None)
        if usage is None:
            return TokenUsage()
        try:
            return TokenUsage(
                prompt_tokens=getattr(usage, "prompt_tokens", 0) or 0,
                completion_tokens=getattr(usage, "completion_tokens", 0) or 0,
                total_tokens=getattr(usage, "total_tokens", 0) or 0,
            )
        except ValidationError as e:
            log.debug("parse_usage_failed", error=str(e))
            return TokenUsage()

    @staticmethod
    def extract_model_info(response) -> tuple[str, str]:
        """提取 (model_name, provider)"""
        model_name = ""
        provider = ""

        with contextlib.suppress(AttributeError, TypeError):
            model_name = response.model or ""

        hidden = getattr(response, "_hidden_params", None)
        if isinstance(hidden, dict):
            provider = hidden.get("custom_llm_provider", "") or ""

        return model_name, provider
