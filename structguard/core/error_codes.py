# structguard/core/error_codes.py
"""
统一错误码系统

为解析、抽取与配置错误提供结构化的分类和标识。
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, NamedTuple


class ErrorCategory(str, Enum):
    """错误类别"""
    GENERAL = "general"
    INPUT = "input"
    PARSE = "parse"
    MODEL = "model"
    CONFIG = "config"
    VALIDATION = "validation"


class ErrorInfo(NamedTuple):
    """错误信息"""
    category: ErrorCategory
    message: str
    retryable: bool
    severity: str  # "info", "warning", "error", "critical"


class ErrorCode(str, Enum):
    """错误码枚举"""
    # 通用
    UNKNOWN = "UNKNOWN"

    # 输入 (Format 阶段)
    MISSING_INPUT_FIELD = "MISSING_INPUT_FIELD"

    # 解析 (Parse 阶段)
    NO_JSON_FOUND = "NO_JSON_FOUND"
    JSON_PARSE_FAILED = "JSON_PARSE_FAILED"
    REQUIRED_MARKER_MISSING = "REQUIRED_MARKER_MISSING"
    ALL_ADAPTERS_FAILED = "ALL_ADAPTERS_FAILED"

    # 两阶段抽取
    EXTRACTION_LM_FAILED = "EXTRACTION_LM_FAILED"
    EXTRACTION_PARSE_FAILED = "EXTRACTION_PARSE_FAILED"

    # 配置
    INVALID_CONFIG = "INVALID_CONFIG"

    # 下游校验
    VALIDATION_FAILED = "VALIDATION_FAILED"


# 错误码元数据
# retryable 仅为提示信息：重试策略由调用方决定
_ERROR_INFO: Dict[ErrorCode, ErrorInfo] = {
    ErrorCode.UNKNOWN: ErrorInfo(
        ErrorCategory.GENERAL, "An unknown error occurred", False, "error"
    ),
    ErrorCode.MISSING_INPUT_FIELD: ErrorInfo(
        ErrorCategory.INPUT, "Required input field is missing", False, "error"
    ),
    ErrorCode.NO_JSON_FOUND: ErrorInfo(
        ErrorCategory.PARSE, "No JSON object found in content", True, "warning"
    ),
    ErrorCode.JSON_PARSE_FAILED: ErrorInfo(
        ErrorCategory.PARSE, "JSON could not be parsed even after repair", True, "warning"
    ),
    ErrorCode.REQUIRED_MARKER_MISSING: ErrorInfo(
        ErrorCategory.PARSE, "Required field marker not found", True, "warning"
    ),
    ErrorCode.ALL_ADAPTERS_FAILED: ErrorInfo(
        ErrorCategory.PARSE, "Every adapter in the fallback chain failed", True, "error"
    ),
    ErrorCode.EXTRACTION_LM_FAILED: ErrorInfo(
        ErrorCategory.MODEL, "Extraction model call failed", True, "error"
    ),
    ErrorCode.EXTRACTION_PARSE_FAILED: ErrorInfo(
        ErrorCategory.PARSE, "Extraction model response could not be parsed", True, "warning"
    ),
    ErrorCode.INVALID_CONFIG: ErrorInfo(
        ErrorCategory.CONFIG, "Invalid configuration", False, "error"
    ),
    ErrorCode.VALIDATION_FAILED: ErrorInfo(
        ErrorCategory.VALIDATION, "Output validation failed", False, "error"
    ),
}


def get_error_info(code: ErrorCode) -> ErrorInfo:
    """获取错误信息"""
    return _ERROR_INFO.get(
        code,
        ErrorInfo(ErrorCategory.GENERAL, str(code), False, "error")
    )


def is_retryable(code: ErrorCode) -> bool:
    """判断错误是否可重试"""
    return get_error_info(code).retryable


def get_message(code: ErrorCode) -> str:
    """获取错误消息"""
    return get_error_info(code).message


__all__ = [
    "ErrorCode",
    "ErrorCategory",
    "ErrorInfo",
    "get_error_info",
    "is_retryable",
    "get_message",
]
