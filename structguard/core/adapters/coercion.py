# structguard/core/adapters/coercion.py
"""
输出键归一化与类型强制转换（JSONAdapter / ChatAdapter 共用）

原则：类型转换失败不会在 parse 阶段报错，
无法转换的值原样保留，交由下游校验 (Signature.validate_outputs) 报告。
"""
from __future__ import annotations

import json
import math
import re
from typing import Any, Dict, Optional

from structguard.core.signature import Field, FieldType, Signature
from structguard.core.structure.repair import repair_json

_NUMBER_RE = re.compile(r"-?\d+\.?\d*")

# 定性置信度 -> 数值（常量被测试固定，不要调整）
_CONFIDENCE_WORDS: Dict[str, str] = {
    "very high": "0.95",
    "high": "0.9",
    "medium": "0.7",
    "moderate": "0.7",
    "low": "0.3",
    "very low": "0.1",
}

_TRUE_STRINGS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_STRINGS = {"0", "f", "F", "FALSE", "false", "False"}

_ANSWER_SYNONYMS = ("final", "finalanswer", "finalresult", "result", "response")

_CLASS_PREFIXES = ("one of:", "one of", "one", "answer:", "result:")
_QUOTE_CHARS = "\"'`"


def extract_numeric_value(s: str) -> str:
    """
    从文本中取出第一个数值

    示例:
        "High (95%)" -> "95"
        "very low"   -> "0.1"
        "unclear"    -> "unclear"（原样返回，由后续转换/校验处理）
    """
    match = _NUMBER_RE.search(s)
    if match:
        return match.group(0)

    mapped = _CONFIDENCE_WORDS.get(s.strip().lower())
    if mapped is not None:
        return mapped

    return s


def normalize_key(s: str) -> str:
    """小写并去除空格、下划线、连字符，用于大小写/标点不敏感的键匹配"""
    k = s.strip().lower()
    for ch in (" ", "_", "-"):
        k = k.replace(ch, "")
    return k


def normalize_output_keys(sig: Signature, outputs: Dict[str, Any]) -> Dict[str, Any]:
    """
    将输出键映射为签名中的规范字段名

    - "Answer" / "final_answer" 等变体映射到声明的字段名
    - 签名含 answer 字段时，final / result / response 等同义词映射到 answer，
      但不会覆盖签名中字面存在的同名字段
    - 已存在的规范值不会被覆盖（除非为 None）
    - 无法映射的键原样保留
    """
    norm_to_canon: Dict[str, str] = {normalize_key(f.name): f.name for f in sig.output_fields}

    if "answer" in norm_to_canon:
        for syn in _ANSWER_SYNONYMS:
            norm_to_canon.setdefault(syn, "answer")

    out: Dict[str, Any] = {}
    for key, value in outputs.items():
        canon = norm_to_canon.get(normalize_key(key))
        if canon is None:
            out[key] = value
        elif out.get(canon) is None:
            out[canon] = value

    for f in sig.output_fields:
        if isinstance(out.get(f.name), str):
            out[f.name] = out[f.name].strip()

    return out


def _match_class(text: str, field: Field) -> Optional[str]:
    v = text.strip().lower()
    for cls in field.classes:
        if v == cls.lower():
            return cls
    return field.class_aliases.get(v)


def normalize_class_value(value: str, field: Field) -> str:
    """
    将模型输出的类别文本归一化为允许列表中的规范写法

    依次尝试：大小写不敏感精确匹配 / 别名 -> 去除引号反引号 ->
    去除 "one of:" "answer:" 等前缀 -> 整词包含 -> 子串包含。
    全部失败时返回原值，由下游校验报告不匹配。
    """
    if not field.classes and not field.class_aliases:
        return value

    found = _match_class(value, field)
    if found is not None:
        return found

    cleaned = value.strip().strip(_QUOTE_CHARS).strip()
    found = _match_class(cleaned, field)
    if found is not None:
        return found

    lowered = cleaned.lower()
    for prefix in _CLASS_PREFIXES:
        if lowered.startswith(prefix):
            rest = cleaned[len(prefix):].strip().strip(_QUOTE_CHARS).strip()
            found = _match_class(rest, field)
            if found is not None:
                return found

    # 较长的类别优先，避免 "neutral" 被 "neut" 之类的短类别抢先命中
    ordered = sorted(field.classes, key=len, reverse=True)
    for cls in ordered:
        if re.search(rf"\b{re.escape(cls.lower())}\b", lowered):
            return cls
    for cls in ordered:
        if cls and cls.lower() in lowered:
            return cls

    return value


def _coerce_value(field: Field, value: Any, allow_array_to_string: bool) -> Any:
    if field.type == FieldType.INT:
        if isinstance(value, str):
            try:
                return int(extract_numeric_value(value).strip())
            except ValueError:
                return value
        if isinstance(value, float) and math.isfinite(value):
            return int(value)
        return value

    if field.type == FieldType.FLOAT:
        if isinstance(value, str):
            try:
                return float(extract_numeric_value(value).strip())
            except ValueError:
                return value
        if isinstance(value, int) and not isinstance(value, bool):
            return float(value)
        return value

    if field.type == FieldType.BOOL:
        if isinstance(value, str):
            s = value.strip()
            if s in _TRUE_STRINGS:
                return True
            if s in _FALSE_STRINGS:
                return False
        return value

    if field.type == FieldType.JSON:
        if isinstance(value, str) and value:
            try:
                return json.loads(value)
            except (json.JSONDecodeError, RecursionError):
                pass
            repaired = repair_json(value)
            if repaired != value:
                try:
                    return json.loads(repaired)
                except (json.JSONDecodeError, RecursionError):
                    pass
        return value

    if field.type in (FieldType.STRING, FieldType.CLASS):
        if allow_array_to_string and isinstance(value, list):
            value = "\n".join(str(item) for item in value)
        if field.type == FieldType.CLASS and isinstance(value, str):
            return normalize_class_value(value, field)
        return value

    return value


def coerce_outputs(
    sig: Signature,
    outputs: Dict[str, Any],
    allow_array_to_string: bool = False,
) -> Dict[str, Any]:
    """
    按签名声明的类型转换输出值，返回新字典

    - Int: 数值字符串（先经 extract_numeric_value）/ float（截断）
    - Float: 数值字符串 / int
    - Bool: 1/t/T/TRUE/true/True 与 0/f/F/FALSE/false/False
    - JSON: 字符串先直接解析，失败则修复后再解析，仍失败保留字符串
    - String/Class: allow_array_to_string 时列表按换行拼接；Class 额外做类别归一化
    - 未在签名中声明的键原样保留
    """
    result: Dict[str, Any] = {}
    for key, value in outputs.items():
        field = sig.get_output_field(key)
        if field is None:
            result[key] = value
            continue
        result[key] = _coerce_value(field, value, allow_array_to_string)
    return result
