# structguard/core/protocols/__init__.py
"""
协议定义入口

- base: 运行时协议检查工具
- model: 两阶段抽取所需的模型协议与生成参数
"""
from structguard.core.protocols.base import check_protocol, get_missing_methods
from structguard.core.protocols.model import (
    CompletionChoice,
    CompletionResponse,
    CompletionUsage,
    ExtractionModelProtocol,
    GenerateOptions,
    get_model_name,
    get_response_content,
    validate_model,
)

__all__ = [
    "check_protocol",
    "get_missing_methods",
    "CompletionChoice",
    "CompletionResponse",
    "CompletionUsage",
    "ExtractionModelProtocol",
    "GenerateOptions",
    "get_model_name",
    "get_response_content",
    "validate_model",
]
