# structguard/cli/commands/config.py
from __future__ import annotations

import click

from structguard.cli.utils import print_error, print_table


@click.command()
def config():
    """显示当前的 structguard 全局配置信息。"""
    try:
        # 延迟导入
        from structguard.config import get_settings

        settings = get_settings()
        rows = [[field, str(value)] for field, value in settings.model_dump().items()]
        print_table("Current Configuration", ["Key", "Value"], rows)
    except Exception as e:
        print_error(f"无法加载配置: {e}")
        raise SystemExit(1)
