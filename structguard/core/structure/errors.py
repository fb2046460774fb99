# structguard/core/structure/errors.py
"""
错误类型定义模块

专门存放与结构化解析相关的自定义异常类型，避免在其他模块中
重复定义或产生循环依赖。
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from structguard.core.error_codes import ErrorCode
from structguard.core.exceptions import StructGuardError


class StructureParseError(StructGuardError, ValueError):
    """
    结构化解析失败异常

    设计目标：
    - 一次解析过程中会尝试多种策略（JSON 提取、修复、宽松标记、启发式抽取、
      多个适配器等）。
    - 当所有策略都失败时，用一个统一的异常类型向调用方报告，并附带详细的错误轨迹。

    属性:
        attempts:
            所有尝试的解析策略及其错误信息列表，
            每个元素形如 {"strategy": "...", "error": "..."}。
        raw_content:
            原始内容（通常是 LLM 的输出）。为了避免日志爆炸，应在外部使用时做长度截断。
    """

    default_code = ErrorCode.UNKNOWN

    def __init__(
        self,
        message: str,
        attempts: Optional[List[Dict[str, str]]] = None,
        raw_content: Optional[str] = None,
        **kwargs: Any,
    ):
        super().__init__(message, **kwargs)
        # 保证属性始终存在，便于调用方无脑访问
        self.attempts: List[Dict[str, str]] = attempts or []
        self.raw_content: Optional[str] = raw_content

    def get_detailed_error(self, preview_chars: int = 200) -> str:
        """
        将解析失败过程格式化为可读字符串

        用途：
            - 日志输出
            - 调试时打印详细信息
        """
        lines = [f"Structured parsing failed: {self.message}"]

        if self.attempts:
            lines.append("\nAttempted strategies:")
            for i, attempt in enumerate(self.attempts, 1):
                strategy = attempt.get("strategy", "unknown")
                error = attempt.get("error", "unknown error")
                lines.append(f"  {i}. {strategy}: {error}")

        if self.raw_content:
            preview = self.raw_content[:preview_chars].replace("\n", "\\n")
            lines.append(f"\nRaw content preview: {preview}...")

        return "\n".join(lines)


class NoJSONFoundError(StructureParseError):
    """内容中不存在任何可解析的 JSON 对象"""

    default_code = ErrorCode.NO_JSON_FOUND


class JSONParseFailureError(StructureParseError):
    """找到了 JSON 候选，但修复后仍无法解析"""

    default_code = ErrorCode.JSON_PARSE_FAILED
