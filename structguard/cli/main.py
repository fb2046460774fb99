# structguard/cli/main.py
"""
Click 主命令组定义
"""
from __future__ import annotations

import click

from structguard.version import __version__

# 导入子命令
from structguard.cli.commands.config import config
from structguard.cli.commands.extract_json import extract_json_cmd
from structguard.cli.commands.parse import parse
from structguard.cli.commands.strip import strip


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(version=__version__, prog_name="structguard")
def cli():
    """
    structguard CLI.

    用于调试模型输出的结构化解析：按签名解析、提取 JSON、过滤字段标记。
    """


# 注册子命令
cli.add_command(parse)
cli.add_command(extract_json_cmd)
cli.add_command(strip)
cli.add_command(config)

if __name__ == "__main__":
    cli()
