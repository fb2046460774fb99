# structguard/__init__.py
from __future__ import annotations

"""
structguard 顶层包入口

职责：
1. 暴露核心稳定 API：签名、消息、四种适配器、JSON 提取/修复、流式标记过滤
2. 提供统一的版本号 (__version__)
3. 保持 import structguard 即可访问常用类，而无需记复杂子模块路径
"""

from structguard.version import __version__

# ======= 核心对象导出 =======

from structguard.core.signature import Example, Field, FieldType, Signature
from structguard.core.message import History, Message, Role
from structguard.core.adapters import (
    Adapter,
    ChatAdapter,
    FallbackAdapter,
    FallbackParseResult,
    JSONAdapter,
    TwoStepAdapter,
    strip_markers,
)
from structguard.core.structure import extract_json, repair_json
from structguard.core.streaming import StreamingMarkerFilter
from structguard.core.exceptions import (
    ConfigurationError,
    OutputValidationError,
    StructGuardError,
)
from structguard.core.structure.errors import StructureParseError

__all__ = [
    # 版本
    "__version__",
    # 契约
    "Signature",
    "Field",
    "FieldType",
    "Example",
    # 消息
    "Message",
    "Role",
    "History",
    # 适配器
    "Adapter",
    "JSONAdapter",
    "ChatAdapter",
    "FallbackAdapter",
    "FallbackParseResult",
    "TwoStepAdapter",
    "strip_markers",
    # JSON 工具
    "extract_json",
    "repair_json",
    # 流式
    "StreamingMarkerFilter",
    # 异常
    "StructGuardError",
    "ConfigurationError",
    "OutputValidationError",
    "StructureParseError",
]
