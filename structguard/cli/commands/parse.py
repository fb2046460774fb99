# structguard/cli/commands/parse.py
from __future__ import annotations

import click

from structguard.cli.utils import echo_json, print_error


@click.command()
@click.argument("signature_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("content", type=click.File("r", encoding="utf-8"), default="-")
@click.option(
    "--adapter",
    "-a",
    type=click.Choice(["chat", "json", "fallback"]),
    default="fallback",
    show_default=True,
    help="解析策略",
)
@click.option("--reasoning", is_flag=True, help="同时提取 reasoning 字段")
def parse(signature_file: str, content, adapter: str, reasoning: bool):
    """
    按签名解析模型原始输出。

    SIGNATURE_FILE 为 JSON 格式的 Signature
    (description / input_fields / output_fields)，
    CONTENT 为模型输出文件，省略或为 "-" 时读取 stdin。
    """
    # 延迟导入
    from pydantic import ValidationError

    from structguard.core.adapters import ChatAdapter, FallbackAdapter, JSONAdapter
    from structguard.core.exceptions import StructGuardError
    from structguard.core.signature import Signature

    try:
        with open(signature_file, "r", encoding="utf-8") as f:
            sig = Signature.model_validate_json(f.read())
    except (OSError, ValidationError) as e:
        print_error(f"无法加载签名文件: {e}")
        raise SystemExit(1)

    adapters = {"chat": ChatAdapter, "json": JSONAdapter, "fallback": FallbackAdapter}
    parser = adapters[adapter]().with_reasoning(reasoning)

    raw = content.read()
    try:
        outputs = parser.parse(sig, raw)
    except StructGuardError as e:
        print_error(str(e))
        raise SystemExit(1)

    echo_json(outputs)
