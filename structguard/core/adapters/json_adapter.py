# structguard/core/adapters/json_adapter.py
"""
JSON 适配器

提示模型返回单个 JSON 对象；解析时从脏文本中提取最完整的对象，
必要时进行本地修复，然后做键归一化与类型转换。
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from structguard.config import get_settings
from structguard.core.logging import get_logger
from structguard.core.message import History, Message
from structguard.core.signature import Example, FieldType, Signature
from structguard.core.structure import (
    JSONParseFailureError,
    NoJSONFoundError,
    extract_json,
    repair_json,
)
from structguard.core.utils import truncate
from .base import (
    STEP_BY_STEP_INSTRUCTION,
    format_demo_inputs,
    format_history,
    format_inputs_section,
    format_json_field_spec,
)
from .coercion import coerce_outputs, normalize_output_keys

logger = get_logger(__name__)

JSON_REPAIR_KEY = "__json_repair"

_JSON_ONLY_INSTRUCTION = (
    "\nIMPORTANT: Return ONLY valid JSON in your response. "
    "Do not include any markdown formatting, code blocks, or explanatory text.\n"
)


class JSONAdapter:
    """
    示例:
        ```python
        adapter = JSONAdapter().with_reasoning(True)
        messages = adapter.format(sig, {"question": "2 + 2?"})
        outputs = adapter.parse(sig, '{"reasoning": "...", "answer": 4}')
        ```
    """

    def __init__(self, include_reasoning: bool = False):
        self.include_reasoning = include_reasoning

    def with_reasoning(self, include: bool) -> JSONAdapter:
        self.include_reasoning = include
        return self

    # ===== Format =====

    def format(
        self,
        sig: Signature,
        inputs: Dict[str, Any],
        demos: Optional[List[Example]] = None,
    ) -> List[Message]:
        parts: List[str] = []
        if sig.description:
            parts.append(sig.description + "\n\n")
        if self.include_reasoning:
            parts.append(STEP_BY_STEP_INSTRUCTION)

        if demos:
            parts.append("--- Examples ---\n")
            for i, demo in enumerate(demos, 1):
                parts.append(self._format_demo(i, demo) + "\n")
            parts.append("\n")

        parts.append(format_inputs_section(sig, inputs))

        if sig.output_fields:
            parts.append("--- Required Output Format ---\n")
            parts.append("Respond with a JSON object containing:\n")
            if self.include_reasoning:
                parts.append("- reasoning (string): Your step-by-step thought process\n")
            parts.append(format_json_field_spec(sig))
            parts.append(_JSON_ONLY_INSTRUCTION)

        return [Message.user("".join(parts))]

    @staticmethod
    def _format_demo(index: int, demo: Example) -> str:
        text = f"Example {index}:\nInputs:\n" + format_demo_inputs(demo, indent="  ")
        if demo.outputs:
            dumped = json.dumps(demo.outputs, ensure_ascii=False, indent=2, default=str)
            text += "Expected Output:\n" + "\n".join("  " + line for line in dumped.split("\n")) + "\n"
        return text

    # ===== Parse =====

    def parse(self, sig: Signature, content: str) -> Dict[str, Any]:
        repaired = False
        try:
            json_str = extract_json(content)
        except NoJSONFoundError as e:
            self._log_parse_failure(e, content)
            if len(sig.output_fields) == 1 and sig.output_fields[0].type == FieldType.STRING:
                return {sig.output_fields[0].name: content.strip()}
            json_str = self._extract_after_repair(content)
            if json_str is None:
                raise
            repaired = True

        try:
            outputs = json.loads(json_str)
        except json.JSONDecodeError as e:
            try:
                outputs = json.loads(repair_json(json_str))
            except json.JSONDecodeError:
                raise JSONParseFailureError(
                    f"failed to parse JSON output: {e} (content: {json_str})",
                    raw_content=content,
                ) from e
            repaired = True

        if repaired:
            logger.info("JSON repair applied", content_length=len(content))
            outputs[JSON_REPAIR_KEY] = True

        outputs = normalize_output_keys(sig, outputs)
        return coerce_outputs(sig, outputs, allow_array_to_string=True)

    @staticmethod
    def _extract_after_repair(content: str) -> Optional[str]:
        fixed = repair_json(content)
        if fixed == content:
            return None
        try:
            return extract_json(fixed)
        except NoJSONFoundError:
            return None

    @staticmethod
    def _log_parse_failure(error: Exception, content: str) -> None:
        settings = get_settings()
        if not settings.debug_parse:
            return
        logger.debug(
            "JSON parse error",
            error=str(error),
            content_length=len(content),
            content_preview=truncate(content, settings.raw_preview_chars),
        )

    def format_history(self, history: Optional[History]) -> List[Message]:
        return format_history(history)
