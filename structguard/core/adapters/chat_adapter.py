# structguard/core/adapters/chat_adapter.py
"""
标记协议适配器 (ChatAdapter)

输出格式为一系列 [[ ## field ## ]] 标记行，每个标记之后的文本
一直延伸到下一个可识别的标记或文本结尾。
对模型经常输出的残缺标记（缺少结尾括号等）做逐级宽松的匹配，
全部失败时对必填字段做启发式抽取。
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from structguard.core.logging import get_logger
from structguard.core.message import History, Message
from structguard.core.signature import Example, FieldType, Signature
from structguard.core.utils import format_value
from .base import (
    STEP_BY_STEP_INSTRUCTION,
    format_history,
    format_inputs_section,
    output_field_names,
)
from .coercion import coerce_outputs, extract_numeric_value, normalize_output_keys
from .errors import RequiredMarkerMissingError
from .heuristics import heuristic_extract
from .markers import (
    find_marker,
    find_value_end,
    format_marker,
    strip_field_markers,
    strip_field_markers_preserve_json,
)

logger = get_logger(__name__)

_MARKER_INSTRUCTION = (
    "IMPORTANT: Use the exact field marker format shown above. "
    "Start each field with [[ ## field_name ## ]].\n"
)


class ChatAdapter:
    """
    示例:
        ```python
        adapter = ChatAdapter()
        outputs = adapter.parse(sig, "[[ ## answer ## ]]\\n42\\n\\n[[ ## explanation ## ]]\\nbecause")
        # {"answer": 42, "explanation": "because"}
        ```
    """

    def __init__(self, include_reasoning: bool = False):
        self.include_reasoning = include_reasoning

    def with_reasoning(self, include: bool) -> ChatAdapter:
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

        parts.append(format_inputs_section(sig, inputs))

        if sig.output_fields:
            parts.append("--- Required Output Format ---\n")
            parts.append("Respond using the following format with field markers:\n\n")
            if self.include_reasoning:
                parts.append(f"{format_marker('reasoning')}\nYour step-by-step thought process\n\n")
            for f in sig.output_fields:
                hints: List[str] = []
                if f.type == FieldType.CLASS and f.classes:
                    hints.append(f"one of: {', '.join(f.classes)}")
                if f.description:
                    hints.append(f.description)
                if f.optional:
                    hints.append("optional")
                hint_text = f" ({', '.join(hints)})" if hints else ""
                parts.append(f"{format_marker(f.name)}{hint_text}\n\n")
            parts.append(_MARKER_INSTRUCTION)

        messages = self._format_demos(sig, demos or [])
        messages.append(Message.user("".join(parts)))
        return messages

    @staticmethod
    def _format_demos(sig: Signature, demos: List[Example]) -> List[Message]:
        """每个示例渲染为一对 user/assistant 消息，assistant 使用标记格式"""
        messages: List[Message] = []
        for i, demo in enumerate(demos, 1):
            user_text = f"--- Example {i} (Inputs) ---\n" + "".join(
                f"{k}: {format_value(v)}\n" for k, v in demo.inputs.items()
            )
            messages.append(Message.user(user_text))

            if demo.outputs:
                assistant_text = "".join(
                    f"{format_marker(f.name)}\n{format_value(demo.outputs[f.name])}\n\n"
                    for f in sig.output_fields
                    if f.name in demo.outputs
                )
                messages.append(Message.assistant(assistant_text))
        return messages

    # ===== Parse =====

    def parse(self, sig: Signature, content: str) -> Dict[str, Any]:
        outputs: Dict[str, Any] = {}
        names = output_field_names(sig, self.include_reasoning)

        for name in names:
            field = sig.get_output_field(name)
            match = find_marker(content, name)

            if match is None:
                if field is None or field.optional:
                    continue
                extracted = heuristic_extract(content, name)
                if not extracted:
                    raise RequiredMarkerMissingError(name, raw_content=content)
                logger.debug("Field recovered by heuristic extraction", field=name)
                outputs[name] = extracted
                continue

            if match.tier > 1:
                logger.debug("Lenient field marker matched", field=name, tier=match.tier)

            if match.inline_value is not None:
                outputs[name] = match.inline_value
                continue

            value_end = find_value_end(
                content, match.value_start, (n for n in names if n != name)
            )
            value = content[match.value_start:value_end].strip()
            value = value.removeprefix("]").strip()

            if field is not None and field.type == FieldType.JSON:
                value = strip_field_markers_preserve_json(value)
            else:
                value = strip_field_markers(value)

            outputs[name] = self._postprocess(field.type if field else None, value)

        outputs = normalize_output_keys(sig, outputs)
        return coerce_outputs(sig, outputs, allow_array_to_string=False)

    @staticmethod
    def _postprocess(field_type: Optional[FieldType], value: str) -> Any:
        if field_type == FieldType.CLASS:
            words = value.split("\n", 1)[0].split()
            if words:
                return words[0].lower()
            return value

        if field_type in (FieldType.INT, FieldType.FLOAT):
            return extract_numeric_value(value)

        if field_type == FieldType.JSON:
            try:
                return json.loads(value)
            except (json.JSONDecodeError, RecursionError):
                # 保留原字符串，由 coerce/validate 继续处理
                return value

        return value

    def format_history(self, history: Optional[History]) -> List[Message]:
        return format_history(history)
