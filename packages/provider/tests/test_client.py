"""LiteLLMClient 单元测试

Mock litellm.acompletion()，验证 complete() 返回 ModelCallResult，
以及各类底层异常被包装为带 ErrorKind 的 ProviderError。
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest
from taskforge.provider import exceptions as errors
from taskforge.provider.client import LiteLLMClient, classify_error
from taskforge.provider.models import ModelCallResult

MODEL = "anthropic/claude-3-7-sonnet-20250219"


# 模拟 LiteLLM / OpenAI SDK 异常继承链（按类名分类）
class APIStatusError(Exception):
    pass


class AuthenticationError(APIStatusError):
    pass


class BadRequestError(APIStatusError):
    pass


class ContextWindowExceededError(BadRequestError):
    pass


class APIConnectionError(Exception):
    pass


class RateLimitError(APIStatusError):
    pass


@pytest.fixture
def client():
    return LiteLLMClient(api_base="http://localhost:4000/", api_key="sk-test", timeout_s=30)


@pytest.fixture(autouse=True)
def no_pricing():
    """固定走 _hidden_params 成本通道"""
    with patch(
        "taskforge.provider.cost.litellm_completion_cost",
        side_effect=Exception("no pricing"),
    ):
        yield


class TestLiteLLMClientComplete:
    """complete() 方法测试"""

    @patch("taskforge.provider.client.acompletion", new_callable=AsyncMock)
    async def test_successful_call(self, mock_acompletion, client, sample_messages, make_litellm_response):
        """成功调用返回完整 ModelCallResult"""
        mock_acompletion.return_value = make_litellm_response(content='[{"taskId": 1}]')

        result = await client.complete(sample_messages, model=MODEL, role="research")

        assert isinstance(result, ModelCallResult)
        assert result.content == '[{"taskId": 1}]'
        assert result.role == "research"
        assert result.model_name == "claude-3-7-sonnet-20250219"
        assert result.provider == "anthropic"
        assert result.token_usage.total_tokens == 30
        assert result.cost_usd == pytest.approx(0.001)
        assert result.cost_unavailable is False
        assert result.is_fallback is False

    @patch("taskforge.provider.client.acompletion", new_callable=AsyncMock)
    async def test_call_kwargs(self, mock_acompletion, client, sample_messages, make_litellm_response):
        """模型、端点、密钥、超时传递给 litellm"""
        mock_acompletion.return_value = make_litellm_response()

        await client.complete(sample_messages, model=MODEL, max_tokens=512)

        kwargs = mock_acompletion.call_args.kwargs
        assert kwargs["model"] == MODEL
        assert kwargs["messages"] == sample_messages
        assert kwargs["api_base"] == "http://localhost:4000"
        assert kwargs["api_key"] == "sk-test"
        assert kwargs["timeout"] == 30
        assert kwargs["max_tokens"] == 512

    @patch("taskforge.provider.client.acompletion", new_callable=AsyncMock)
    async def test_empty_endpoint_and_key_not_sent(self, mock_acompletion, sample_messages, make_litellm_response):
        """未配置端点和密钥时交给 LiteLLM 默认路由"""
        mock_acompletion.return_value = make_litellm_response()

        await LiteLLMClient().complete(sample_messages, model=MODEL)

        kwargs = mock_acompletion.call_args.kwargs
        assert "api_base" not in kwargs
        assert "api_key" not in kwargs

    @patch("taskforge.provider.client.acompletion", new_callable=AsyncMock)
    async def test_cost_unavailable(self, mock_acompletion, client, sample_messages, make_litellm_response):
        mock_acompletion.return_value = make_litellm_response(response_cost=None)

        result = await client.complete(sample_messages, model=MODEL)

        assert result.cost_usd == 0.0
        assert result.cost_unavailable is True

    @patch("taskforge.provider.client.acompletion", new_callable=AsyncMock)
    async def test_none_content_becomes_empty(self, mock_acompletion, client, sample_messages, make_litellm_response):
        response = make_litellm_response()
        response.choices[0].message.content = None
        mock_acompletion.return_value = response

        result = await client.complete(sample_messages, model=MODEL)
        assert result.content == ""


class TestLiteLLMClientErrors:
    """异常包装"""

    @pytest.mark.parametrize(
        "error,expected_type,kind",
        [
            (AuthenticationError("invalid x-api-key"), errors.AuthenticationError, errors.ErrorKind.AUTH),
            (RateLimitError("429"), errors.RateLimitError, errors.ErrorKind.RATE_LIMIT),
            (ConnectionError("refused"), errors.ProxyUnreachableError, errors.ErrorKind.NETWORK),
            (TimeoutError("timeout"), errors.ProxyUnreachableError, errors.ErrorKind.NETWORK),
            (APIConnectionError("dns"), errors.ProxyUnreachableError, errors.ErrorKind.NETWORK),
            (BadRequestError("bad"), errors.ProviderError, errors.ErrorKind.VALIDATION),
            (ValueError("weird"), errors.ProviderError, errors.ErrorKind.UNKNOWN),
        ],
    )
    @patch("taskforge.provider.client.acompletion", new_callable=AsyncMock)
    async def test_error_wrapping(self, mock_acompletion, error, expected_type, kind, client, sample_messages):
        mock_acompletion.side_effect = error

        with pytest.raises(expected_type) as exc_info:
            await client.complete(sample_messages, model=MODEL)

        assert exc_info.value.kind == kind
        assert exc_info.value.__cause__ is error

    @patch("taskforge.provider.client.acompletion", new_callable=AsyncMock)
    async def test_auth_not_recoverable(self, mock_acompletion, client, sample_messages):
        mock_acompletion.side_effect = AuthenticationError("no key")

        with pytest.raises(errors.AuthenticationError) as exc_info:
            await client.complete(sample_messages, model=MODEL)
        assert exc_info.value.recoverable is False

    @patch("taskforge.provider.client.acompletion", new_callable=AsyncMock)
    async def test_network_error_mentions_endpoint(self, mock_acompletion, client, sample_messages):
        mock_acompletion.side_effect = httpx.ConnectError("refused")

        with pytest.raises(errors.ProxyUnreachableError) as exc_info:
            await client.complete(sample_messages, model=MODEL)
        assert "localhost:4000" in str(exc_info.value)


class TestClassifyError:
    def test_subclass_of_known_name(self):
        """按继承链上的类名分类"""
        assert classify_error(ContextWindowExceededError("too long")) == errors.ErrorKind.VALIDATION

    def test_httpx_timeout(self):
        assert classify_error(httpx.ReadTimeout("slow")) == errors.ErrorKind.NETWORK
