# structguard/cli/commands/extract_json.py
from __future__ import annotations

import click

from structguard.cli.utils import print_error


@click.command(name="extract-json")
@click.argument("content", type=click.File("r", encoding="utf-8"), default="-")
@click.option("--repair", is_flag=True, help="提取失败时先做本地修复再重试")
def extract_json_cmd(content, repair: bool):
    """从文本中提取最完整的 JSON 对象。"""
    from structguard.core.structure import NoJSONFoundError, extract_json, repair_json

    raw = content.read()
    try:
        result = extract_json(raw)
    except NoJSONFoundError as e:
        if not repair:
            print_error(e.message)
            raise SystemExit(1)
        try:
            result = extract_json(repair_json(raw))
        except NoJSONFoundError as e2:
            print_error(e2.message)
            raise SystemExit(1)

    click.echo(result)
