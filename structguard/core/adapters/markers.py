# structguard/core/adapters/markers.py
"""
字段标记 [[ ## name ## ]] 的查找与清理

查找顺序（越往后越宽松）：
1. [[ ## name ## ]]
2. [[## name ##]]
3. [[##name##]]
4. [[ ## name ##      （缺少结尾括号；同一行内若紧跟内容则直接作为值）
5. [[ ## name ## ]    （只有一个结尾括号）
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional

_LEADING_MARKER = re.compile(r"^\[\[\s*##\s*\w+\s*##\s*\]\]\s*")
_ANY_MARKER = re.compile(r"\[\[\s*##\s*\w+\s*##\s*\]\]")
_LEADING_FRAGMENT = re.compile(r"^(?:##\s*\]\]|\]\])\s*")


def format_marker(name: str) -> str:
    return f"[[ ## {name} ## ]]"


@dataclass(frozen=True)
class MarkerMatch:
    """
    一次标记查找的结果

    inline_value 非 None 时表示命中了第 4 级的“同行内联”写法，
    值已经确定，不需要再向后截取。
    """
    start: int
    length: int
    tier: int
    inline_value: Optional[str] = None

    @property
    def value_start(self) -> int:
        return self.start + self.length


def find_marker(content: str, name: str) -> Optional[MarkerMatch]:
    for tier, marker in enumerate(
        (f"[[ ## {name} ## ]]", f"[[## {name} ##]]", f"[[##{name}##]]"),
        start=1,
    ):
        idx = content.find(marker)
        if idx != -1:
            return MarkerMatch(start=idx, length=len(marker), tier=tier)

    lenient = f"[[ ## {name} ##"
    idx = content.find(lenient)
    if idx != -1:
        line_end = content.find("\n", idx)
        if line_end != -1 and line_end - idx > len(lenient):
            same_line = content[idx + len(lenient) : line_end].strip()
            if same_line and not same_line.startswith("]"):
                return MarkerMatch(start=idx, length=len(lenient), tier=4, inline_value=same_line)
        # 结尾的 "]" 残留会在取值后统一去除
        return MarkerMatch(start=idx, length=len(lenient), tier=4)

    single = f"[[ ## {name} ## ]"
    idx = content.find(single)
    if idx != -1:
        return MarkerMatch(start=idx, length=len(single), tier=5)

    return None


@lru_cache(maxsize=256)
def _value_end_pattern(name: str) -> re.Pattern:
    """其他字段的标记起始（任意容忍形式）"""
    return re.compile(rf"\[\[\s*##\s*{re.escape(name)}\s*##")


def find_value_end(content: str, value_start: int, other_names: Iterable[str]) -> int:
    """
    值的结束位置：value_start 之后最早出现的其他字段标记（任意容忍形式），
    没有则为文本结尾
    """
    end = len(content)
    for name in other_names:
        match = _value_end_pattern(name).search(content, value_start)
        if match and match.start() < end:
            end = match.start()
    return end


def _strip_common(s: str) -> str:
    s = _LEADING_MARKER.sub("", s)
    s = _ANY_MARKER.sub("", s)
    return _LEADING_FRAGMENT.sub("", s)


def strip_field_markers(s: str) -> str:
    """移除完整标记、开头的标记残片，以及结尾反复出现的 "]]" """
    s = _strip_common(s)
    while s.strip().endswith("]]"):
        s = s.strip()[:-2]
    return s.strip()


def strip_field_markers_preserve_json(s: str) -> str:
    """同 strip_field_markers，但保留结尾的 "]]"（可能是 JSON 数组的一部分）"""
    return _strip_common(s).strip()


def strip_markers(s: str) -> str:
    """清理展示文本中的字段标记"""
    return strip_field_markers(s)
