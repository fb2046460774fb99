# structguard/core/utils.py
"""
通用工具函数

- run_sync: 在同步上下文中运行协程（两阶段适配器的同步 parse 入口使用）
- truncate: 诊断信息中的内容截断
- format_value: 提示词中字段值的统一渲染
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")


def run_sync(coro: Coroutine[Any, Any, T], *, async_hint: str = "") -> T:
    """
    在同步上下文中运行协程。

    安全性考虑：
        - 如果当前存在正在运行的事件循环（例如在 FastAPI / Jupyter 中），
          本函数会抛出 RuntimeError，提示调用方改用异步接口，
          以避免错误地嵌套事件循环。
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # 没有运行中的事件循环，可以安全地使用 asyncio.run
        return asyncio.run(coro)

    # 已在异步环境中：关闭协程对象，避免 "never awaited" 警告
    coro.close()
    hint = f" Use `{async_hint}` instead." if async_hint else ""
    raise RuntimeError(
        f"Cannot run synchronously inside a running event loop.{hint}"
    )


def truncate(
    text: str,
    max_length: int = 100,
    suffix: str = "..."
) -> str:
    """
    截断文本

    参数:
        text: 文本
        max_length: 最大长度（包含后缀）
        suffix: 后缀
    """
    if len(text) <= max_length:
        return text

    return text[:max_length - len(suffix)] + suffix


def format_value(value: Any) -> str:
    """
    将字段值渲染为提示词文本

    - 字符串原样输出
    - bool 输出 JSON 风格的 true/false
    - dict / list 输出紧凑 JSON
    - 其他类型使用 str()
    """
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    if isinstance(value, (dict, list)):
        try:
            return json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError):
            return str(value)
    return str(value)
