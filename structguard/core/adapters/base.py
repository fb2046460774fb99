# structguard/core/adapters/base.py
"""
适配器协议与共享的提示词片段

所有适配器都满足同一个鸭子类型协议 {format, parse, format_history}，
不存在继承层次；这里的辅助函数只负责拼装各适配器共用的文本段落。
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from structguard.core.message import History, Message
from structguard.core.signature import Example, Field, FieldType, Signature
from structguard.core.utils import format_value
from .errors import MissingInputFieldError

REASONING_FIELD = "reasoning"

STEP_BY_STEP_INSTRUCTION = "Think through this step-by-step before providing your final answer.\n\n"


@runtime_checkable
class Adapter(Protocol):
    """
    适配器协议

    - format: 构建提示词消息；非可选输入缺失时抛出 MissingInputFieldError
    - parse: 从模型原始输出中提取、归一化并转换输出值
    - format_history: 空历史返回 []，否则原样返回消息序列
    """

    def format(
        self,
        sig: Signature,
        inputs: Dict[str, Any],
        demos: Optional[List[Example]] = None,
    ) -> List[Message]:
        ...

    def parse(self, sig: Signature, content: str) -> Dict[str, Any]:
        ...

    def format_history(self, history: Optional[History]) -> List[Message]:
        ...


def format_history(history: Optional[History]) -> List[Message]:
    if history is None or history.is_empty():
        return []
    return history.get()


def format_inputs_section(sig: Signature, inputs: Dict[str, Any]) -> str:
    """
    渲染 "--- Inputs ---" 段落

    可选输入缺失时跳过；必填输入缺失时抛出 MissingInputFieldError。
    """
    if not sig.input_fields:
        return ""

    lines = ["--- Inputs ---\n"]
    for f in sig.input_fields:
        if f.name not in inputs:
            if not f.optional:
                raise MissingInputFieldError(f.name)
            continue
        value = format_value(inputs[f.name])
        if f.description:
            lines.append(f"{f.name} ({f.description}): {value}\n")
        else:
            lines.append(f"{f.name}: {value}\n")
    lines.append("\n")
    return "".join(lines)


def format_json_field_line(f: Field) -> str:
    """JSON 输出规格中的单行：- name (type)[ (optional)][ [one of: ...]][: desc]"""
    optional = " (optional)" if f.optional else ""
    class_info = ""
    if f.type == FieldType.CLASS and f.classes:
        class_info = f" [one of: {', '.join(f.classes)}]"
    line = f"- {f.name} ({f.type.value}){optional}{class_info}"
    if f.description:
        line += f": {f.description}"
    return line + "\n"


def format_json_field_spec(sig: Signature) -> str:
    return "".join(format_json_field_line(f) for f in sig.output_fields)


def format_demo_inputs(demo: Example, indent: str = "") -> str:
    return "".join(f"{indent}{k}: {format_value(v)}\n" for k, v in demo.inputs.items())


def output_field_names(sig: Signature, include_reasoning: bool) -> List[str]:
    names = [f.name for f in sig.output_fields]
    if include_reasoning and REASONING_FIELD not in names:
        names.insert(0, REASONING_FIELD)
    return names
