"""Provider 异常体系

每个 ProviderError 携带结构化的 ErrorKind，调用方按 kind 分支，
不依赖错误消息文本匹配。
"""

from enum import StrEnum


class ErrorKind(StrEnum):
    """生成调用失败类别"""

    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    NETWORK = "network"
    PARSE = "parse"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


# 降级无意义的错误类别（换模型也会失败）
NON_FALLBACK_KINDS: frozenset[ErrorKind] = frozenset(
    {ErrorKind.AUTH, ErrorKind.VALIDATION}
)


class ProviderError(Exception):
    """Provider 包基础异常"""

    def __init__(
        self,
        message: str,
        kind: ErrorKind = ErrorKind.UNKNOWN,
        recoverable: bool = True,
    ) -> None:
        """
        Args:
            message: 错误描述
            kind: 错误类别
            recoverable: 是否可通过重试或降级恢复
        """
        super().__init__(message)
        self.kind = kind
        self.recoverable = recoverable


class AuthenticationError(ProviderError):
    """API key 缺失或无效（401/403）"""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, kind=ErrorKind.AUTH, recoverable=False)
        self.original_error = original_error


class RateLimitError(ProviderError):
    """触发 provider 限流（429）"""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, kind=ErrorKind.RATE_LIMIT, recoverable=True)
        self.original_error = original_error


class ProxyUnreachableError(ProviderError):
    """API 端点不可达（连接失败、超时、DNS 解析失败等）

    此异常触发 FallbackManager 的降级逻辑。
    """

    def __init__(self, api_base: str, original_error: Exception) -> None:
        """
        Args:
            api_base: 尝试连接的端点地址
            original_error: 原始异常
        """
        super().__init__(
            f"LLM 端点不可达: {api_base or '<provider default>'} -- {original_error}",
            kind=ErrorKind.NETWORK,
            recoverable=True,
        )
        self.api_base = api_base
        self.original_error = original_error
