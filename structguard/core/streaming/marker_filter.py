# structguard/core/streaming/marker_filter.py
"""
流式字段标记过滤器

在流式输出中实时移除 [[ ## field ## ]] 标记，标记可能被切分在多个 chunk 中。

状态机只有两个状态：
- NORMAL: 字符直接输出；遇到 '[' 进入 POSSIBLE_MARKER 并开始缓冲
- POSSIBLE_MARKER: 逐字符追加到缓冲区
    * 缓冲区恰好是完整标记 -> 丢弃，回到 NORMAL
    * 仍可能成为标记 -> 继续缓冲
    * 否则 -> 原样输出缓冲区，回到 NORMAL 并重新处理当前字符

状态完全保存在实例中，因此输出与 chunk 的切分方式无关。
一个实例只属于一条流，不做并发保护。
"""
from __future__ import annotations

import re
from enum import Enum
from typing import Iterable, Iterator, Tuple

_COMPLETE_MARKER = re.compile(r"\[\[\s*##\s*\w+\s*##\s*\]\]")
_MARKER_PREFIX = re.compile(r"\[\[?\s*#?#?\s*\w*\s*#?#?\s*\]?\]?")


class FilterState(str, Enum):
    NORMAL = "normal"
    POSSIBLE_MARKER = "possible_marker"


def is_complete_marker(s: str) -> bool:
    return _COMPLETE_MARKER.fullmatch(s) is not None


def could_be_marker(s: str) -> bool:
    """s 是否可能是标记的前缀（容忍灵活的空白）"""
    if not s.startswith("["):
        return False
    return _MARKER_PREFIX.fullmatch(s) is not None


def transition(state: FilterState, buffer: str, char: str) -> Tuple[FilterState, str, str]:
    """
    单字符状态转移（纯函数）

    返回 (新状态, 新缓冲区, 本步输出的文本)
    """
    if state == FilterState.NORMAL:
        if char == "[":
            return FilterState.POSSIBLE_MARKER, char, ""
        return FilterState.NORMAL, "", char

    candidate = buffer + char
    if is_complete_marker(candidate):
        return FilterState.NORMAL, "", ""
    if could_be_marker(candidate):
        return FilterState.POSSIBLE_MARKER, candidate, ""

    # 确定不是标记：先输出缓冲区，再按 NORMAL 状态处理当前字符
    state, buffer, emitted = transition(FilterState.NORMAL, "", char)
    return state, buffer, candidate[:-1] + emitted


class StreamingMarkerFilter:
    """
    示例:
        ```python
        f = StreamingMarkerFilter()
        for chunk in stream:
            print(f.process_chunk(chunk), end="")
        print(f.flush())
        ```
    """

    def __init__(self) -> None:
        self.state = FilterState.NORMAL
        self._buffer = ""

    @property
    def buffered(self) -> str:
        return self._buffer

    def process_chunk(self, chunk: str) -> str:
        """处理一个 chunk，返回可以展示的文本"""
        out = []
        state, buffer = self.state, self._buffer
        for char in chunk:
            state, buffer, emitted = transition(state, buffer, char)
            if emitted:
                out.append(emitted)
        self.state, self._buffer = state, buffer
        return "".join(out)

    def flush(self) -> str:
        """流结束时调用：未闭合的括号序列不是标记，作为普通文本返回"""
        remaining = self._buffer
        self.reset()
        return remaining

    def reset(self) -> None:
        self.state = FilterState.NORMAL
        self._buffer = ""


def filter_stream(chunks: Iterable[str]) -> Iterator[str]:
    """对 chunk 序列逐个过滤，流结束时输出剩余缓冲"""
    f = StreamingMarkerFilter()
    for chunk in chunks:
        text = f.process_chunk(chunk)
        if text:
            yield text
    tail = f.flush()
    if tail:
        yield tail
