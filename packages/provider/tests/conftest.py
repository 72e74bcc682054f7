"""Provider 包测试 fixtures"""

from unittest.mock import MagicMock

import pytest


@pytest.fixture
def sample_messages() -> list[dict[str, str]]:
    """标准 messages 格式测试数据"""
    return [
        {"role": "system", "content": "Respond only with JSON."},
        {"role": "user", "content": "Analyze these tasks."},
    ]


@pytest.fixture
def make_litellm_response():
    """构造 Mock LiteLLM acompletion 返回"""

    def _make(
        content: str = "[]",
        model: str = "claude-3-7-sonnet-20250219",
        prompt_tokens: int = 10,
        completion_tokens: int = 20,
        total_tokens: int = 30,
        response_cost: float | None = 0.001,
    ):
        response = MagicMock()
        response.model = model

        choice = MagicMock()
        choice.message.content = content
        response.choices = [choice]

        usage = MagicMock()
        usage.prompt_tokens = prompt_tokens
        usage.completion_tokens = completion_tokens
        usage.total_tokens = total_tokens
        response.usage = usage

        hidden = {"custom_llm_provider": "anthropic"}
        if response_cost is not None:
            hidden["response_cost"] = response_cost
        response._hidden_params = hidden
        return response

    return _make
