"""FallbackManager -- 降级管理器

Lazy probe 策略：每次调用时先尝试角色对应的模型，
可恢复失败时切换到 fallback 角色模型重试一次。
鉴权与请求无效（AUTH / VALIDATION）不降级，原样抛出。
"""

import structlog

from .alias import FALLBACK_ROLE, AliasRegistry
from .exceptions import NON_FALLBACK_KINDS, ProviderError
from .models import ModelCallResult

log = structlog.get_logger()


class FallbackManager:
    """降级管理器

    降级链: role 模型 -> fallback 模型（未配置或与 role 模型相同则不降级）
    """

    def __init__(self, client, alias_registry: AliasRegistry) -> None:
        """
        Args:
            client: LLM 客户端（LiteLLMClient 或同接口实现）
            alias_registry: 角色 -> 模型 注册表
        """
        self._client = client
        self._alias_registry = alias_registry

    async def call_with_fallback(
        self,
        messages: list[dict[str, str]],
        role: str = "main",
        **kwargs,
    ) -> ModelCallResult:
        """带降级的 LLM 调用

        Returns:
            ModelCallResult
            - primary 成功: is_fallback=False
            - fallback 成功: is_fallback=True, fallback_reason=<错误描述>

        Raises:
            ProviderError: 不可降级的失败、无 fallback 配置，或 fallback 也失败
        """
        primary_model = self._alias_registry.resolve(role)
        try:
            return await self._client.complete(
                messages=messages,
                model=primary_model,
                role=role,
                **kwargs,
            )
        except ProviderError as e:
            primary_error = e

        fallback_model = self._alias_registry.fallback_model()
        if (
            primary_error.kind in NON_FALLBACK_KINDS
            or not primary_error.recoverable
            or fallback_model is None
            or fallback_model == primary_model
        ):
            raise primary_error

        log.warning(
            "primary_failed_attempting_fallback",
            error=str(primary_error),
            error_kind=primary_error.kind.value,
            role=role,
            fallback_model=fallback_model,
        )

        try:
            result = await self._client.complete(
                messages=messages,
                model=fallback_model,
                role=FALLBACK_ROLE,
                **kwargs,
            )
        except ProviderError as fallback_error:
            log.error(
                "both_primary_and_fallback_failed",
                primary_error=str(primary_error),
                fallback_error=str(fallback_error),
            )
            raise ProviderError(
                f"Primary 和 Fallback 均失败。Primary: {primary_error}; Fallback: {fallback_error}",
                kind=fallback_error.kind,
                recoverable=False,
            ) from fallback_error

        log.info(
            "fallback_activated",
            fallback_reason=str(primary_error),
            role=role,
        )
        return result.model_copy(
            update={
                "is_fallback": True,
                "fallback_reason": f"Primary 失败: {primary_error}",
            }
        )
