# structguard/core/exceptions.py
"""
统一异常基类

- 提供 StructGuardError 及通用子类（配置错误、下游校验错误）
- 解析相关的异常按子系统就近定义：
  structure/errors.py (JSON 提取/修复)、adapters/errors.py (适配器)
- 复用 structguard.core.error_codes 中定义的 ErrorCode / ErrorCategory 等
"""

from __future__ import annotations

from typing import Any

from structguard.core.error_codes import (
    ErrorCode,
    ErrorCategory,
    ErrorInfo,
    get_error_info,
    is_retryable,
    get_message,
)


class StructGuardError(Exception):
    """
    structguard 所有自定义异常的基类。

    属性:
        code: ErrorCode（逻辑错误码，默认为 UNKNOWN）
        context: 额外上下文信息（调试/日志）
    """

    default_code: ErrorCode = ErrorCode.UNKNOWN

    def __init__(self, message: str, **kwargs: Any):
        self.code: ErrorCode = kwargs.pop("code", self.default_code)
        self.context: dict[str, Any] = kwargs.pop("context", {}) or {}
        super().__init__(message)

    @property
    def message(self) -> str:
        return self.args[0] if self.args else ""

    @property
    def retryable(self) -> bool:
        return is_retryable(self.code)

    def __str__(self) -> str:
        base = super().__str__()
        return f"{base} (code={self.code.value})"


class ConfigurationError(StructGuardError):
    """配置错误（未配置适配器、缺少抽取模型等）"""

    default_code = ErrorCode.INVALID_CONFIG


class OutputValidationError(StructGuardError, ValueError):
    """下游校验失败（缺失字段、类型不符、类别不在允许列表中）"""

    default_code = ErrorCode.VALIDATION_FAILED

    def __init__(self, message: str, field_name: str = "", **kwargs: Any):
        super().__init__(message, **kwargs)
        self.field_name = field_name
        if field_name:
            self.context.setdefault("field_name", field_name)


__all__ = [
    # 异常类
    "StructGuardError",
    "ConfigurationError",
    "OutputValidationError",
    # 错误码相关（从 error_codes 复用）
    "ErrorCode",
    "ErrorCategory",
    "ErrorInfo",
    "get_error_info",
    "is_retryable",
    "get_message",
]
