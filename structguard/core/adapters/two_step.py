# structguard/core/adapters/two_step.py
"""
两阶段适配器 (TwoStepAdapter)

面向推理模型：在格式约束下它们的结构化输出质量较差。
- 阶段 1 (format): 不带任何 JSON/标记约束的自然语言提示
- 阶段 2 (parse): 把阶段 1 的自由文本交给抽取模型，要求其返回 JSON，
  再复用 JSONAdapter 的解析逻辑
"""
from __future__ import annotations

import asyncio
from typing import Any, Dict, List, Optional

from structguard.config import get_settings
from structguard.core.exceptions import ConfigurationError
from structguard.core.logging import get_logger
from structguard.core.message import History, Message
from structguard.core.protocols import (
    ExtractionModelProtocol,
    GenerateOptions,
    get_model_name,
    get_response_content,
    validate_model,
)
from structguard.core.signature import Example, Signature
from structguard.core.structure import StructureParseError
from structguard.core.utils import format_value, run_sync
from .base import format_history, format_inputs_section, format_json_field_spec
from .errors import ExtractionLMError, ExtractionParseError
from .json_adapter import JSONAdapter

logger = get_logger(__name__)

_EXTRACTION_INSTRUCTION = (
    "\nIMPORTANT: Return ONLY valid JSON. "
    "Extract information accurately from the original response.\n"
)


class TwoStepAdapter:
    """
    示例:
        ```python
        adapter = TwoStepAdapter(extraction_lm=small_model)
        messages = adapter.format(sig, inputs)          # 发给推理模型
        outputs = await adapter.aparse(sig, free_text)  # 抽取模型完成结构化
        ```
    """

    def __init__(
        self,
        extraction_lm: Optional[ExtractionModelProtocol] = None,
        include_reasoning: bool = True,
        options: Optional[GenerateOptions] = None,
    ):
        if extraction_lm is not None:
            validate_model(extraction_lm)
        self.extraction_lm = extraction_lm
        self.include_reasoning = include_reasoning
        self.options = options

    def with_reasoning(self, include: bool) -> TwoStepAdapter:
        self.include_reasoning = include
        return self

    # ===== Stage 1 =====

    def format(
        self,
        sig: Signature,
        inputs: Dict[str, Any],
        demos: Optional[List[Example]] = None,
    ) -> List[Message]:
        parts: List[str] = []
        if sig.description:
            parts.append(sig.description + "\n\n")

        parts.append("Please provide a thorough, natural response to the following inputs.\n")
        parts.append("Think carefully and explain your reasoning.\n\n")

        if demos:
            parts.append("--- Examples ---\n")
            for i, demo in enumerate(demos, 1):
                parts.append(f"\nExample {i}:\nInputs:\n")
                parts.extend(f"  {k}: {format_value(v)}\n" for k, v in demo.inputs.items())
                if demo.outputs:
                    parts.append("Response:\n")
                    parts.extend(f"  {k}: {format_value(v)}\n" for k, v in demo.outputs.items())
            parts.append("\n")

        parts.append(format_inputs_section(sig, inputs))

        if sig.output_fields:
            parts.append("--- Please Address ---\n")
            for f in sig.output_fields:
                if f.description:
                    parts.append(f"- {f.name}: {f.description}\n")
                else:
                    parts.append(f"- {f.name}\n")
            parts.append("\nProvide your response in a clear, natural format.\n")

        return [Message.user("".join(parts))]

    # ===== Stage 2 =====

    def build_extraction_prompt(self, sig: Signature, content: str) -> str:
        parts = [
            "Extract structured information from the following response.\n\n",
            "--- Original Response ---\n",
            content,
            "\n\n",
            "--- Required Output Format ---\n",
            "Extract the following fields as a JSON object:\n",
        ]
        if self.include_reasoning:
            parts.append("- reasoning (string): The reasoning or thought process from the response\n")
        parts.append(format_json_field_spec(sig))
        parts.append(_EXTRACTION_INSTRUCTION)
        return "".join(parts)

    async def aparse(self, sig: Signature, content: str) -> Dict[str, Any]:
        """
        异步解析（原生实现）

        异常:
            ConfigurationError: 未配置抽取模型
            ExtractionLMError: 抽取模型调用失败（包括超时）
            ExtractionParseError: 抽取结果不是合法/可修复的 JSON
        """
        if self.extraction_lm is None:
            raise ConfigurationError("TwoStepAdapter requires an extraction LM for Parse")

        messages = [Message.user(self.build_extraction_prompt(sig, content)).to_openai_format()]
        options = self.options or GenerateOptions.default()
        timeout = get_settings().extraction_timeout

        logger.debug(
            "Calling extraction model",
            model=get_model_name(self.extraction_lm),
            content_length=len(content),
        )
        try:
            call = self.extraction_lm.acompletion(messages, **options.to_kwargs())
            if timeout is not None:
                response = await asyncio.wait_for(call, timeout=timeout)
            else:
                response = await call
        except Exception as e:
            raise ExtractionLMError(f"extraction LM failed: {e}") from e

        extracted = get_response_content(response)
        try:
            return JSONAdapter().parse(sig, extracted)
        except StructureParseError as e:
            raise ExtractionParseError(
                f"failed to parse extraction result: {e}",
                raw_content=extracted,
            ) from e

    def parse(self, sig: Signature, content: str) -> Dict[str, Any]:
        """同步解析；在运行中的事件循环内调用会抛出 RuntimeError（请改用 aparse）"""
        return run_sync(self.aparse(sig, content), async_hint="await TwoStepAdapter.aparse()")

    def format_history(self, history: Optional[History]) -> List[Message]:
        return format_history(history)
