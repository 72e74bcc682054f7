"""LLMService -- 文本生成能力

通过 FallbackManager 调用 LLM，返回 ModelCallResult。
"""

from typing import Literal

import structlog
from taskforge.provider import FallbackManager, ModelCallResult

log = structlog.get_logger()

OutputFormat = Literal["text", "json"]


class LLMService:
    """LLM 服务 -- 将 prompt + system prompt 组装为 messages 后调用"""

    def __init__(self, fallback_manager: FallbackManager) -> None:
        self._fallback_manager = fallback_manager

    async def generate_text(
        self,
        prompt: str,
        system_prompt: str | None = None,
        role: str = "main",
        output_format: OutputFormat = "text",
    ) -> ModelCallResult:
        """生成文本

        Args:
            prompt: user prompt
            system_prompt: system prompt，None 表示不发送
            role: main / research
            output_format: 期望的输出形态；json 时使用确定性采样

        Returns:
            ModelCallResult

        Raises:
            ProviderError: 调用失败（携带 ErrorKind）
        """
        messages: list[dict[str, str]] = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs = {"temperature": 0.0} if output_format == "json" else {}

        log.debug(
            "generate_text_start",
            role=role,
            output_format=output_format,
            prompt_chars=len(prompt),
        )
        return await self._fallback_manager.call_with_fallback(
            messages=messages,
            role=role,
            **kwargs,
        )
