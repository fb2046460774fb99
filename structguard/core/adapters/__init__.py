# structguard/core/adapters/__init__.py
"""
适配器子模块入口

四种策略共用同一协议 {format, parse, format_history}：
- JSONAdapter: 单个 JSON 对象
- ChatAdapter: [[ ## field ## ]] 标记协议
- FallbackAdapter: 按顺序尝试的回退链（默认 Chat -> JSON）
- TwoStepAdapter: 自由生成 + 抽取模型
"""

from structguard.core.adapters.base import Adapter
from structguard.core.adapters.chat_adapter import ChatAdapter
from structguard.core.adapters.coercion import (
    coerce_outputs,
    extract_numeric_value,
    normalize_class_value,
    normalize_key,
    normalize_output_keys,
)
from structguard.core.adapters.errors import (
    AllAdaptersFailedError,
    ExtractionLMError,
    ExtractionParseError,
    MissingInputFieldError,
    RequiredMarkerMissingError,
)
from structguard.core.adapters.fallback import FallbackAdapter, FallbackParseResult
from structguard.core.adapters.heuristics import heuristic_extract
from structguard.core.adapters.json_adapter import JSONAdapter
from structguard.core.adapters.markers import strip_markers
from structguard.core.adapters.two_step import TwoStepAdapter

__all__ = [
    "Adapter",
    "JSONAdapter",
    "ChatAdapter",
    "FallbackAdapter",
    "FallbackParseResult",
    "TwoStepAdapter",
    "coerce_outputs",
    "extract_numeric_value",
    "normalize_class_value",
    "normalize_key",
    "normalize_output_keys",
    "heuristic_extract",
    "strip_markers",
    "MissingInputFieldError",
    "RequiredMarkerMissingError",
    "ExtractionLMError",
    "ExtractionParseError",
    "AllAdaptersFailedError",
]
