# structguard/core/adapters/heuristics.py
"""
无标记时的启发式字段抽取

仅在 ChatAdapter 找不到任何形式的标记、且字段为必填时使用。
返回空字符串表示抽取失败（调用方随后报告缺失字段）。
"""
from __future__ import annotations

import re
from typing import Dict, List

# 同义词表与阈值均为经验值，保持不变
FIELD_SYNONYMS: Dict[str, List[str]] = {
    "answer": [
        "answer", "final answer", "final_answer", "result",
        "output", "solution", "conclusion", "response",
    ],
    "title": ["title", "heading", "name"],
    "summary": ["summary", "synopsis", "overview"],
    "explanation": ["explanation", "reasoning", "rationale"],
    "sources": ["sources", "source", "references", "citations"],
}

_REACT_PREFIXES = ("thought:", "action:", "observation:")
_FINAL_ANSWER_MARKERS = ("action: none (final answer)", "action: none", "final answer:")

MIN_PARAGRAPH_LENGTH = 20
MIN_STORY_LENGTH = 100
MAX_TITLE_LENGTH = 200


def heuristic_extract(content: str, field_name: str) -> str:
    name = field_name.lower()

    for term in [field_name, *FIELD_SYNONYMS.get(name, [])]:
        value = _labelled_line(content, term)
        if value:
            return value

    lowered = content.lower()
    has_react = any(prefix in lowered for prefix in _REACT_PREFIXES)
    if has_react and name in ("answer", "result"):
        value = _react_final_answer(content)
        if value:
            return value

    if name == "story" and len(content) > MIN_STORY_LENGTH:
        return content.strip()

    if name == "title":
        for line in content.split("\n"):
            line = line.strip()
            if line and "##" not in line and len(line) < MAX_TITLE_LENGTH:
                return line

    return ""


def _labelled_line(content: str, term: str) -> str:
    """查找 "term:"（大小写不敏感），返回其后同一行的内容"""
    match = re.search(re.escape(term + ":"), content, flags=re.IGNORECASE)
    if not match:
        return ""
    return content[match.end():].split("\n", 1)[0].strip()


def _is_scaffolding(line: str) -> bool:
    return line.lower().startswith(_REACT_PREFIXES) or "[[ ##" in line


def _react_final_answer(content: str) -> str:
    lowered = content.lower()
    for marker in _FINAL_ANSWER_MARKERS:
        idx = lowered.find(marker)
        if idx == -1:
            continue
        collected = []
        for line in content[idx + len(marker):].split("\n"):
            trimmed = line.strip()
            if not trimmed or _is_scaffolding(trimmed):
                continue
            collected.append(trimmed)
        result = " ".join(collected).strip()
        if result:
            return result

    # 退而求其次：最后一个足够长、且不是脚手架的段落
    for paragraph in reversed(content.split("\n\n")):
        p = paragraph.strip()
        if (
            p
            and "[[ ##" not in p
            and not p.lower().startswith(("thought:", "action:"))
            and len(p) > MIN_PARAGRAPH_LENGTH
        ):
            return p

    return ""
