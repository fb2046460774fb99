# structguard/cli/commands/strip.py
from __future__ import annotations

import click


@click.command()
@click.argument("content", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "--chunk-size",
    type=click.IntRange(min=1),
    default=16,
    show_default=True,
    help="模拟流式输出时每个 chunk 的字符数",
)
def strip(content, chunk_size: int):
    """以流式方式移除文本中的 [[ ## field ## ]] 标记。"""
    from structguard.core.streaming import filter_stream

    raw = content.read()
    chunks = (raw[i : i + chunk_size] for i in range(0, len(raw), chunk_size))
    for text in filter_stream(chunks):
        click.echo(text, nl=False)
    click.echo()
