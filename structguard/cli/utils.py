# structguard/cli/utils.py
"""
CLI 辅助工具模块

职责：
UI 组件：封装 rich 库；结果写 stdout，提示与错误写 stderr。
"""
from __future__ import annotations

import json
from typing import Any, List

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

# 全局 Console 实例 (单例)
console = Console()
err_console = Console(stderr=True)


def echo_json(data: Any) -> None:
    """结果以 JSON 形式写到 stdout（保持可被管道消费，不做着色）"""
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def print_table(title: str, columns: List[str], rows: List[List[str]]) -> None:
    """渲染表格"""
    table = Table(title=title)
    for col in columns:
        table.add_column(col)
    for row in rows:
        table.add_row(*row)
    console.print(table)


def print_error(msg: str) -> None:
    """打印错误信息（红色，stderr）"""
    err_console.print(
        f"[bold red]Error:[/bold red] {escape(msg)}",
        markup=True,
        highlight=False,
        soft_wrap=True,
    )

