# structguard/core/structure/__init__.py
"""
JSON 提取与修复子模块入口

对外主要暴露以下对象：
- extract_json / parse_json: 从脏文本中提取最完整的 JSON 对象
- repair_json: 本地 JSON 修复（失败时原样返回）
- StructureParseError 及其子类
"""

from structguard.core.structure.errors import (
    JSONParseFailureError,
    NoJSONFoundError,
    StructureParseError,
)
from structguard.core.structure.json_extractor import (
    extract_json,
    fix_json_newlines,
    parse_json,
)
from structguard.core.structure.repair import repair_json

__all__ = [
    "StructureParseError",
    "NoJSONFoundError",
    "JSONParseFailureError",
    "extract_json",
    "parse_json",
    "fix_json_newlines",
    "repair_json",
]
