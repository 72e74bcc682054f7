"""集成测试共享 fixture -- 完整链路：LiteLLMClient -> FallbackManager -> LLMService -> 流水线"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from taskforge.analyzer.services.complexity_service import ComplexityAnalysisService
from taskforge.analyzer.services.llm_service import LLMService
from taskforge.core.store import create_store_group
from taskforge.provider import (
    AliasRegistry,
    FallbackManager,
    LiteLLMClient,
    ProviderConfig,
)


def make_completion(content: str, model: str = "claude-3-7-sonnet-20250219"):
    """构造模拟的 litellm acompletion 响应"""
    resp = MagicMock()
    resp.choices = [MagicMock()]
    resp.choices[0].message.content = content
    resp.usage = MagicMock()
    resp.usage.prompt_tokens = 400
    resp.usage.completion_tokens = 120
    resp.usage.total_tokens = 520
    resp.model = model
    resp._hidden_params = {"custom_llm_provider": "anthropic", "response_cost": 0.004}
    return resp


@pytest.fixture
def completion_factory():
    return make_completion


@pytest.fixture
def mock_acompletion():
    """可控的 acompletion（成本固定走 _hidden_params 通道）"""
    mock_acomp = AsyncMock()
    with (
        patch("taskforge.provider.client.acompletion", mock_acomp),
        patch(
            "taskforge.provider.cost.litellm_completion_cost",
            side_effect=Exception("no pricing"),
        ),
    ):
        yield mock_acomp


@pytest.fixture
def pipeline(mock_acompletion):
    """组装完整分析流水线，fallback 模型为 openai/gpt-4o-mini"""
    config = ProviderConfig(
        api_base="http://mock-proxy:4000",
        main_model="anthropic/claude-3-7-sonnet-20250219",
        research_model="perplexity/sonar-pro",
        fallback_model="openai/gpt-4o-mini",
        timeout_s=5,
    )
    client = LiteLLMClient(api_base=config.api_base, api_key="test-key", timeout_s=config.timeout_s)
    llm_service = LLMService(FallbackManager(client, AliasRegistry.from_config(config)))
    return ComplexityAnalysisService(create_store_group(lock_timeout_s=2), llm_service)
