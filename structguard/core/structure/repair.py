# structguard/core/structure/repair.py
"""
本地 JSON 修复

对“接近合法”的 JSON 做尽力而为的改写，每一步都感知字符串边界：
1. 去除 Markdown 代码块围栏
2. 智能引号 -> ASCII 引号
3. 单引号字符串 -> 双引号字符串（双引号字符串内部的撇号保持不变）
4. 为裸键补引号；Python 字面量 True/False/None -> true/false/null
5. 删除 '}' / ']' 前的尾随逗号
6. 截取最外层平衡的 {...}

修复结果必须能被 json.loads 解析，否则原样返回输入字符串，
绝不向调用方暴露“修了一半”的结果。
"""
from __future__ import annotations

import json
import re
from typing import List, Tuple

from structguard.core.logging import get_logger
from .json_extractor import find_closing_brace

logger = get_logger(__name__)

_SMART_QUOTES = str.maketrans({
    "“": '"',
    "”": '"',
    "„": '"',
    "‟": '"',
    "‘": "'",
    "’": "'",
    "‚": "'",
    "‛": "'",
})

_FENCE_OPEN = re.compile(r"^\s*```[\w+-]*[ \t]*\n?")
_FENCE_CLOSE = re.compile(r"\n?```\s*$")
_BARE_KEY = re.compile(r"([{,]\s*)([A-Za-z_$][\w$-]*)(\s*:)")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_PY_LITERALS = {"True": "true", "False": "false", "None": "null"}
_PY_LITERAL_RE = re.compile(r"\b(True|False|None)\b")
_JSON_LITERALS = {"true", "false", "null"}

# 单引号字符串的合法开/闭上下文
_OPEN_CONTEXT = "{[,:"
_CLOSE_CONTEXT = ",}]:"


def repair_json(s: str) -> str:
    """
    尝试修复 JSON 字符串

    - 输入已是合法 JSON 时原样返回（幂等）
    - 修复后仍无法解析时返回原始输入
    """
    if _is_valid_json(s):
        return s

    repaired = _strip_fences(s)
    repaired = repaired.translate(_SMART_QUOTES)
    repaired = convert_single_quotes(repaired)
    repaired = _rewrite_outside_strings(repaired)
    repaired = _slice_outermost_object(repaired)

    if _is_valid_json(repaired):
        logger.debug("JSON repaired", original_length=len(s), repaired_length=len(repaired))
        return repaired

    return s


def _is_valid_json(s: str) -> bool:
    try:
        json.loads(s)
        return True
    except (json.JSONDecodeError, RecursionError):
        return False


def _strip_fences(s: str) -> str:
    text = s.strip()
    if "```" not in text:
        return text
    start = text.find("```")
    inner = _FENCE_OPEN.sub("", text[start:], count=1)
    inner = _FENCE_CLOSE.sub("", inner, count=1)
    end = inner.find("```")
    if end != -1:
        inner = inner[:end]
    return (text[:start] + inner).strip()


def _prev_significant(chars: List[str]) -> str:
    for ch in reversed(chars):
        if not ch.isspace():
            return ch
    return ""


def _next_significant(s: str, pos: int) -> str:
    for ch in s[pos:]:
        if not ch.isspace():
            return ch
    return ""


def convert_single_quotes(s: str) -> str:
    """
    将单引号字符串转换为双引号字符串

    仅当 "'" 出现在值/键的起始位置（前一个非空白字符为开头或 {[,: 之一）时
    才视为字符串开始；结束 "'" 之后必须是 ,}]: 或文本结尾，否则视为撇号。
    已在双引号字符串内部的内容不做任何改动。
    """
    out: List[str] = []
    in_double = False
    in_single = False
    escape = False
    i = 0
    n = len(s)

    while i < n:
        ch = s[i]

        if in_double:
            out.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                in_double = False
            i += 1
            continue

        if in_single:
            if ch == "\\" and i + 1 < n:
                nxt = s[i + 1]
                if nxt == "'":
                    out.append("'")
                else:
                    out.append(ch)
                    out.append(nxt)
                i += 2
                continue
            if ch == '"':
                out.append('\\"')
            elif ch == "'" and (_next_significant(s, i + 1) in _CLOSE_CONTEXT):
                # 结尾的空串也在 _CLOSE_CONTEXT 中
                out.append('"')
                in_single = False
            else:
                out.append(ch)
            i += 1
            continue

        if ch == '"':
            in_double = True
            out.append(ch)
        elif ch == "'" and (_prev_significant(out) in _OPEN_CONTEXT):
            in_single = True
            out.append('"')
        else:
            out.append(ch)
        i += 1

    return "".join(out)


def _split_segments(s: str) -> List[Tuple[bool, str]]:
    """按双引号字符串切分，返回 (is_string, text) 列表"""
    segments: List[Tuple[bool, str]] = []
    buf: List[str] = []
    in_string = False
    escape = False

    for ch in s:
        if in_string:
            buf.append(ch)
            if escape:
                escape = False
            elif ch == "\\":
                escape = True
            elif ch == '"':
                segments.append((True, "".join(buf)))
                buf = []
                in_string = False
            continue

        if ch == '"':
            if buf:
                segments.append((False, "".join(buf)))
            buf = [ch]
            in_string = True
        else:
            buf.append(ch)

    if buf:
        segments.append((in_string, "".join(buf)))
    return segments


def _quote_key(match: re.Match) -> str:
    prefix, key, suffix = match.groups()
    if key in _JSON_LITERALS:
        return match.group(0)
    return f'{prefix}"{key}"{suffix}'


def _rewrite_outside_strings(s: str) -> str:
    parts: List[str] = []
    for is_string, text in _split_segments(s):
        if is_string:
            parts.append(text)
            continue
        text = _BARE_KEY.sub(_quote_key, text)
        text = _PY_LITERAL_RE.sub(lambda m: _PY_LITERALS[m.group(1)], text)
        text = _TRAILING_COMMA.sub(r"\1", text)
        parts.append(text)
    return "".join(parts)


def _slice_outermost_object(s: str) -> str:
    start = s.find("{")
    if start == -1:
        return s
    end = find_closing_brace(s, start)
    if end == -1:
        return s
    return s[start : end + 1]
