# structguard/core/adapters/errors.py
"""
适配器相关异常

- MissingInputFieldError: format 阶段缺少必填输入
- RequiredMarkerMissingError: ChatAdapter 所有宽松标记与启发式抽取均失败
- ExtractionLMError / ExtractionParseError: 两阶段抽取失败
- AllAdaptersFailedError: 回退链中所有适配器均失败
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from structguard.core.error_codes import ErrorCode
from structguard.core.exceptions import StructGuardError
from structguard.core.structure.errors import StructureParseError


class MissingInputFieldError(StructGuardError, ValueError):
    """非可选输入字段在 inputs 中缺失"""

    default_code = ErrorCode.MISSING_INPUT_FIELD

    def __init__(self, field_name: str, **kwargs: Any):
        super().__init__(f"missing required input field: {field_name}", **kwargs)
        self.field_name = field_name
        self.context.setdefault("field_name", field_name)


class RequiredMarkerMissingError(StructureParseError):
    """必填字段既没有任何形式的标记，也无法通过启发式抽取恢复"""

    default_code = ErrorCode.REQUIRED_MARKER_MISSING

    def __init__(self, field_name: str, raw_content: Optional[str] = None, **kwargs: Any):
        self.field_name = field_name
        self.expected_marker = f"[[ ## {field_name} ## ]]"
        super().__init__(
            f"required field '{field_name}' not found in response "
            f"(expected marker: {self.expected_marker})",
            raw_content=raw_content,
            **kwargs,
        )


class ExtractionLMError(StructGuardError):
    """抽取模型调用失败（原始异常保存在 __cause__ 中）"""

    default_code = ErrorCode.EXTRACTION_LM_FAILED


class ExtractionParseError(StructureParseError):
    """抽取模型的返回无法解析为合法/可修复的 JSON"""

    default_code = ErrorCode.EXTRACTION_PARSE_FAILED


class AllAdaptersFailedError(StructureParseError):
    """
    回退链中每个适配器都解析失败

    attempts 中每个元素形如:
        {"index": "0", "strategy": "ChatAdapter", "error": "..."}
    """

    default_code = ErrorCode.ALL_ADAPTERS_FAILED

    def __init__(self, attempts: List[Dict[str, str]], raw_content: str, **kwargs: Any):
        lines = ["all adapters failed to parse response:"]
        for attempt in attempts:
            lines.append(
                f"  - adapter {attempt['index']} ({attempt['strategy']}): {attempt['error']}"
            )
        message = "\n".join(lines) + (
            f"\n\nRAW RESPONSE (length={len(raw_content)}):\n{raw_content}\n"
        )
        super().__init__(message, attempts=attempts, raw_content=raw_content, **kwargs)
