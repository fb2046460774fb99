# structguard/core/logging.py
"""
structguard 结构化日志系统

要点：
1. 使用 structlog 输出 key/value 结构化日志
2. 日志写到 stderr，CLI 的 stdout 只留给解析结果
3. 级别与渲染格式来自全局配置 (STRUCTGUARD_LOG_LEVEL / STRUCTGUARD_LOG_FORMAT)
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional

import structlog

from structguard.config import get_settings

_initialized = False  # 模块内全局标记，避免重复初始化


def setup_logging(
    level: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    初始化日志系统。

    参数：
        level:
            日志级别字符串，如 "DEBUG" / "INFO" / "WARNING"。
            默认为 settings.log_level。
        force:
            为 True 时强制重新配置（用于测试或运行时调整级别）。
    """
    global _initialized

    if _initialized and not force:
        return

    settings = get_settings()
    level = level or settings.log_level
    log_level = getattr(logging, level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            # 注入日志级别字段
            structlog.processors.add_log_level,
            # 渲染 stack_info（如设置了 stack_info=True）
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            (
                structlog.processors.JSONRenderer()
                if settings.log_format == "json"
                else structlog.dev.ConsoleRenderer(colors=False)
            ),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        # force 重新配置时不能复用已缓存的 logger
        cache_logger_on_first_use=not force,
    )

    _initialized = True


def get_logger(name: str) -> Any:
    """
    获取 structlog Logger 实例。

    使用示例：
        logger = get_logger(__name__)
        logger.info("Parsed with fallback", adapter="JSONAdapter", attempts=2)
    """
    if not _initialized:
        setup_logging()
    return structlog.get_logger(name)


setup_logging()
