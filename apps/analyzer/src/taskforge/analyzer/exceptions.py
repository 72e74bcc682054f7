"""Analyzer 异常体系"""

from taskforge.provider import ErrorKind


class AnalysisError(Exception):
    """Analyzer 基础异常"""

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.UNKNOWN) -> None:
        super().__init__(message)
        self.kind = kind


class ResponseParseError(AnalysisError):
    """生成结果不是可解析的 JSON 数组

    original_error 保留底层解析异常（如 json.JSONDecodeError），其消息直接透出。
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message, kind=ErrorKind.PARSE)
        self.original_error = original_error
