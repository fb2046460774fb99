# structguard/core/structure/json_extractor.py
"""
JSON 提取模块

负责从模型的脏文本输出中找出“最完整”的 JSON 对象：
1. Markdown 代码块处理：优先 ```json 块；跳过其他语言的代码块。
2. 扫描每一个 '{'，用字符串/转义感知的深度计数找到匹配的 '}'。
3. 逐个候选做 json.loads 校验，保留合法的 JSON 对象。
4. 多个合法候选时，选择顶层键最多的一个。
"""
from __future__ import annotations

import json
from typing import Any, Dict, List

from structguard.config import get_settings
from structguard.core.logging import get_logger
from .errors import JSONParseFailureError, NoJSONFoundError

logger = get_logger(__name__)

_FENCE = "```"
# 不合法外层候选内部的最大下探层数
_MAX_NESTED_RESCAN_DEPTH = 4


# ============================================================================
# 主入口函数
# ============================================================================

def extract_json(
    content: str,
    *,
    fix_newlines: bool = False,
    simple_brace_matching: bool = False,
) -> str:
    """
    从文本中提取 JSON 对象字符串。

    参数:
        content: 模型原始输出
        fix_newlines: 校验前先转义字符串内部的裸换行
        simple_brace_matching: 使用不感知字符串的简单括号匹配

    返回:
        通过 json.loads 校验的 JSON 对象字符串（已去除首尾空白）

    异常:
        NoJSONFoundError: 没有任何候选能通过校验
    """
    max_len = get_settings().max_text_length
    if max_len is not None and len(content) > max_len:
        logger.warning(
            "Text too long for JSON extraction, truncating",
            original_length=len(content),
            max_length=max_len,
        )
        content = content[:max_len]

    text = _reduce_to_code_block(content.strip())

    candidates = extract_all_json_objects(
        text,
        fix_newlines=fix_newlines,
        simple_brace_matching=simple_brace_matching,
    )
    if not candidates:
        raise NoJSONFoundError(
            "no JSON object found in content",
            raw_content=content,
        )

    return select_best_json(candidates).strip()


def parse_json(content: str, **options: Any) -> Dict[str, Any]:
    """提取并解析 JSON 对象"""
    json_str = extract_json(content, **options)
    try:
        return json.loads(json_str)
    except json.JSONDecodeError as e:
        raise JSONParseFailureError(
            f"failed to parse JSON output: {e} (content: {json_str})",
            raw_content=content,
        ) from e


# ============================================================================
# 辅助提取工具
# ============================================================================

def _reduce_to_code_block(text: str) -> str:
    """
    根据 Markdown 代码块缩小搜索范围

    - 存在 ```json 块：取其内部
    - 存在带非 JSON 语言标记的块（python 等）：跳过该块，在其后的文本中查找
    - 存在无语言标记的块：取其内部
    """
    if _FENCE + "json" in text:
        start = text.index(_FENCE + "json") + len(_FENCE) + 4
        end = text.find(_FENCE, start)
        if end > start:
            return text[start:end]
        return text

    start = text.find(_FENCE)
    if start == -1:
        return text

    line_end = text.find("\n", start)
    if line_end == -1:
        return text

    lang = text[start + len(_FENCE):line_end].strip()
    if lang and not _is_json_like_lang(lang):
        end = text.find(_FENCE, start + len(_FENCE))
        if end != -1:
            after_block = text[end + len(_FENCE):]
            if "{" in after_block:
                return after_block
        return text

    inner_start = start + len(_FENCE)
    end = text.find(_FENCE, inner_start)
    if end > inner_start:
        return text[inner_start:end]
    return text


def _is_json_like_lang(lang: str) -> bool:
    lowered = lang.lower()
    return lowered.startswith("json") or "{" in lang


def extract_all_json_objects(
    text: str,
    *,
    fix_newlines: bool = False,
    simple_brace_matching: bool = False,
) -> List[str]:
    """
    找出文本中所有能通过校验的完整 JSON 对象

    外层候选不合法时会进入其内部继续查找嵌套对象，
    但最多下探 _MAX_NESTED_RESCAN_DEPTH 层；超过后整体跳过该候选，
    保证深度嵌套的输入仍是线性扫描。
    """
    candidates: List[str] = []
    # 正在下探的不合法外层候选的结束位置（栈）
    enclosing: List[int] = []
    pos = 0

    while True:
        start = text.find("{", pos)
        if start == -1:
            break

        while enclosing and start > enclosing[-1]:
            enclosing.pop()

        if simple_brace_matching:
            end = find_closing_brace_simple(text, start)
        else:
            end = find_closing_brace(text, start)

        if end == -1:
            pos = start + 1
            continue

        candidate = text[start : end + 1]
        if fix_newlines:
            candidate = fix_json_newlines(candidate)

        if _is_json_object(candidate):
            candidates.append(candidate)
            pos = end + 1
        elif len(enclosing) < _MAX_NESTED_RESCAN_DEPTH:
            enclosing.append(end)
            pos = start + 1
        else:
            pos = end + 1

    return candidates


def find_closing_brace(text: str, start: int) -> int:
    """
    字符串感知的括号匹配

    '"' 切换字符串状态（被 '\\' 转义时除外）；字符串内部的括号不计入深度。
    返回匹配的 '}' 下标，找不到时返回 -1。
    """
    depth = 0
    in_string = False
    escape = False
    for i in range(start, len(text)):
        ch = text[i]
        if escape:
            escape = False
            continue
        if ch == "\\":
            escape = True
            continue
        if ch == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def find_closing_brace_simple(text: str, start: int) -> int:
    """不感知字符串的括号匹配"""
    depth = 0
    for i in range(start, len(text)):
        ch = text[i]
        if ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
    return -1


def select_best_json(candidates: List[str]) -> str:
    """选择顶层键最多的候选；键数相同时保留靠前的一个"""
    if len(candidates) == 1:
        return candidates[0]

    best_idx = 0
    max_fields = -1
    for idx, candidate in enumerate(candidates):
        try:
            obj = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(obj, dict) and len(obj) > max_fields:
            max_fields = len(obj)
            best_idx = idx

    return candidates[best_idx]


def fix_json_newlines(json_str: str) -> str:
    """转义 JSON 字符串内部未转义的换行（\\r 直接丢弃）"""
    out: List[str] = []
    in_string = False
    escape = False

    for ch in json_str:
        if escape:
            out.append(ch)
            escape = False
            continue
        if ch == "\\":
            out.append(ch)
            escape = True
            continue
        if ch == '"':
            in_string = not in_string
            out.append(ch)
            continue
        if in_string and ch == "\n":
            out.append("\\n")
            continue
        if in_string and ch == "\r":
            continue
        out.append(ch)

    return "".join(out)


def _is_json_object(candidate: str) -> bool:
    try:
        return isinstance(json.loads(candidate), dict)
    except (json.JSONDecodeError, RecursionError):
        return False
