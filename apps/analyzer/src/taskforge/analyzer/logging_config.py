"""CLI 日志配置 -- structlog 接管标准库 logging

日志统一写 stderr，stdout 只留给命令输出（parse-id 的 JSON 等）。
"""

import logging
import os
import sys

import structlog

# 第三方库的 INFO 日志对 CLI 用户是噪音
_NOISY_LOGGERS = ("LiteLLM", "LiteLLM Router", "httpx", "httpcore")


def _build_renderer(log_format: str) -> structlog.types.Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer(ensure_ascii=False)
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def setup_logging(log_format: str | None = None, log_level: str | None = None) -> None:
    """初始化 structlog

    Args:
        log_format: "dev"（默认，可读输出）或 "json"；None 时读 TASKFORGE_LOG_FORMAT
        log_level: 日志级别名；None 时读 TASKFORGE_LOG_LEVEL（默认 INFO）
    """
    log_format = (log_format or os.environ.get("TASKFORGE_LOG_FORMAT", "dev")).lower()
    log_level = (log_level or os.environ.get("TASKFORGE_LOG_LEVEL", "INFO")).upper()

    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]
    if log_format == "json":
        # JSON 模式下异常展开为字符串字段
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_build_renderer(log_format),
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, log_level, logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
