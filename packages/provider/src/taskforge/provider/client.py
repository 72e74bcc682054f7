"""LiteLLMClient -- litellm.acompletion() 调用封装

所有底层异常统一包装为带 ErrorKind 的 ProviderError，
分类依据异常类型（含继承链上的类名），不匹配错误消息文本。
"""

import time

import httpx
import structlog
from litellm import acompletion

from .cost import CostTracker
from .exceptions import (
    AuthenticationError,
    ErrorKind,
    ProviderError,
    ProxyUnreachableError,
    RateLimitError,
)
from .models import ModelCallResult

log = structlog.get_logger()

# 连接类异常类型集合（触发 ProxyUnreachableError，进而触发 FallbackManager 降级）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.TimeoutException,
)

# LiteLLM / OpenAI SDK 异常类名 -> 错误类别
_AUTH_ERROR_NAMES = frozenset({"AuthenticationError", "PermissionDeniedError"})
_RATE_LIMIT_ERROR_NAMES = frozenset({"RateLimitError"})
_CONNECTION_ERROR_NAMES = frozenset({"APIConnectionError", "APITimeoutError", "Timeout"})
_VALIDATION_ERROR_NAMES = frozenset(
    {"BadRequestError", "UnprocessableEntityError", "NotFoundError"}
)


def _error_names(e: Exception) -> set[str]:
    return {cls.__name__ for cls in type(e).__mro__}


def classify_error(e: Exception) -> ErrorKind:
    """判断底层异常的错误类别"""
    names = _error_names(e)
    if names & _AUTH_ERROR_NAMES:
        return ErrorKind.AUTH
    if names & _RATE_LIMIT_ERROR_NAMES:
        return ErrorKind.RATE_LIMIT
    if isinstance(e, _CONNECTION_ERROR_TYPES) or names & _CONNECTION_ERROR_NAMES:
        return ErrorKind.NETWORK
    if names & _VALIDATION_ERROR_NAMES:
        return ErrorKind.VALIDATION
    return ErrorKind.UNKNOWN


class LiteLLMClient:
    """LiteLLM 客户端

    封装 litellm.acompletion() 调用，集成 CostTracker 计算成本。
    """

    def __init__(
        self,
        api_base: str = "",
        api_key: str = "",
        timeout_s: int = 120,
    ) -> None:
        """
        Args:
            api_base: 自定义端点，空时由 LiteLLM 按模型前缀路由
            api_key: API 密钥，空时由 LiteLLM 读取 provider 标准环境变量
            timeout_s: 请求超时（秒）
        """
        self._api_base = api_base.rstrip("/")
        self._api_key = api_key
        self._timeout_s = timeout_s

    async def complete(
        self,
        messages: list[dict[str, str]],
        model: str,
        role: str = "main",
        temperature: float = 0.2,
        max_tokens: int | None = None,
        **kwargs,
    ) -> ModelCallResult:
        """发送 chat completion 请求

        Args:
            messages: 消息列表，格式 [{"role": "user", "content": "..."}]
            model: LiteLLM 模型名（由 AliasRegistry.resolve() 提供）
            role: 调用角色，仅用于结果标注与日志
            temperature: 采样温度
            max_tokens: 最大生成 token 数，None 使用模型默认
            **kwargs: 其他 LiteLLM 支持的参数（如 response_format）

        Returns:
            ModelCallResult，包含完整的响应、成本、路由信息

        Raises:
            AuthenticationError: API key 缺失或无效
            RateLimitError: 触发限流
            ProxyUnreachableError: 端点连接失败或超时
            ProviderError: 其他调用失败（kind 为 validation/unknown）
        """
        start_time = time.monotonic()

        call_kwargs = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "timeout": self._timeout_s,
            **kwargs,
        }
        if self._api_base:
            call_kwargs["api_base"] = self._api_base
        if self._api_key:
            call_kwargs["api_key"] = self._api_key
        if max_tokens is not None:
            call_kwargs["max_tokens"] = max_tokens

        log.debug(
            "litellm_call_start",
            role=role,
            model=model,
            message_count=len(messages),
        )

        try:
            response = await acompletion(**call_kwargs)
        except Exception as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            kind = classify_error(e)
            log.error(
                "litellm_call_failed",
                role=role,
                model=model,
                error=str(e),
                error_type=type(e).__name__,
                error_kind=kind.value,
                duration_ms=duration_ms,
            )
            raise self._wrap_error(e, kind) from e

        duration_ms = int((time.monotonic() - start_time) * 1000)
        content = response.choices[0].message.content or ""

        cost_usd, cost_unavailable = CostTracker.calculate_cost(response)
        token_usage = CostTracker.parse_usage(response)
        model_name, provider = CostTracker.extract_model_info(response)

        log.info(
            "litellm_call_completed",
            role=role,
            model_name=model_name or model,
            provider=provider,
            duration_ms=duration_ms,
            total_tokens=token_usage.total_tokens,
            cost_usd=cost_usd,
        )

        return ModelCallResult(
            content=content,
            role=role,
            model_name=model_name or model,
            provider=provider,
            duration_ms=duration_ms,
            token_usage=token_usage,
            cost_usd=cost_usd,
            cost_unavailable=cost_unavailable,
        )

    def _wrap_error(self, e: Exception, kind: ErrorKind) -> ProviderError:
        if kind == ErrorKind.AUTH:
            return AuthenticationError(f"LLM 鉴权失败: {e}", original_error=e)
        if kind == ErrorKind.RATE_LIMIT:
            return RateLimitError(f"LLM 调用被限流: {e}", original_error=e)
        if kind == ErrorKind.NETWORK:
            return ProxyUnreachableError(api_base=self._api_base, original_error=e)
        if kind == ErrorKind.VALIDATION:
            return ProviderError(f"LLM 请求无效: {e}", kind=kind, recoverable=False)
        return ProviderError(f"LLM 调用失败: {e}", kind=kind, recoverable=True)
