# structguard/cli/__init__.py
"""
structguard CLI 工具包入口

职责：
1. 暴露 main 函数作为 entry_point (在 pyproject.toml 中配置)。
2. 处理全局异常，避免向用户展示不友好的 Traceback (除非开启调试模式)。
"""
import os
import sys

import click

from structguard.cli.main import cli


def main():
    """CLI 应用程序入口点"""
    try:
        cli()
    except Exception as e:
        debug_mode = os.getenv("STRUCTGUARD_DEBUG", "0").lower() in ("1", "true", "yes")
        if debug_mode:
            raise
        click.secho(f"Critical Error: {e}", fg="red", err=True)
        click.echo("Hint: Set STRUCTGUARD_DEBUG=1 to see full traceback.", err=True)
        sys.exit(1)


__all__ = ["main"]
