# structguard/core/adapters/fallback.py
"""
回退链适配器

按顺序尝试多个适配器（默认 ChatAdapter -> JSONAdapter），返回第一个成功结果；
全部失败时汇总每个适配器的错误与原始响应，不会静默接受部分结果。
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from structguard.core.exceptions import ConfigurationError
from structguard.core.logging import get_logger
from structguard.core.message import History, Message
from structguard.core.signature import Example, Signature
from .base import Adapter
from .chat_adapter import ChatAdapter
from .errors import AllAdaptersFailedError
from .json_adapter import JSONAdapter

logger = get_logger(__name__)

ADAPTER_USED_KEY = "__adapter_used"
PARSE_ATTEMPTS_KEY = "__parse_attempts"
FALLBACK_USED_KEY = "__fallback_used"


@dataclass
class FallbackParseResult:
    """
    一次回退链解析的结果

    adapter_index 为成功适配器在链中的下标（从 0 开始），
    attempts 为失败的尝试记录（成功前的每个适配器各一条）。
    """
    outputs: Dict[str, Any]
    adapter_index: int
    adapter_name: str
    attempts: List[Dict[str, str]] = field(default_factory=list)

    @property
    def fallback_used(self) -> bool:
        return self.adapter_index > 0


class FallbackAdapter:
    """
    示例:
        ```python
        adapter = FallbackAdapter()                      # Chat -> JSON
        adapter = FallbackAdapter([JSONAdapter(), ChatAdapter()])
        outputs = adapter.parse(sig, raw)
        outputs["__adapter_used"], adapter.get_last_used_adapter()
        ```

    适配器列表应在并发调用 parse 之前配置完成；
    只有 last_used 下标受锁保护。
    """

    def __init__(self, adapters: Optional[Sequence[Adapter]] = None):
        if adapters:
            self.adapters: List[Adapter] = list(adapters)
        else:
            self.adapters = [ChatAdapter(), JSONAdapter()]
        self._lock = threading.Lock()
        self._last_used = -1

    @classmethod
    def with_chain(cls, *adapters: Adapter) -> FallbackAdapter:
        return cls(list(adapters))

    def with_reasoning(self, include: bool) -> FallbackAdapter:
        for adapter in self.adapters:
            setter = getattr(adapter, "with_reasoning", None)
            if callable(setter):
                setter(include)
        return self

    def format(
        self,
        sig: Signature,
        inputs: Dict[str, Any],
        demos: Optional[List[Example]] = None,
    ) -> List[Message]:
        if not self.adapters:
            raise ConfigurationError("no adapters configured")
        return self.adapters[0].format(sig, inputs, demos)

    def parse_with_result(self, sig: Signature, content: str) -> FallbackParseResult:
        """依次尝试每个适配器，以返回值的形式给出成功的下标"""
        if not self.adapters:
            raise ConfigurationError("no adapters configured")

        attempts: List[Dict[str, str]] = []
        for i, adapter in enumerate(self.adapters):
            name = type(adapter).__name__
            try:
                outputs = adapter.parse(sig, content)
            except Exception as e:
                attempts.append({"index": str(i), "strategy": name, "error": str(e)})
                continue

            if i > 0:
                logger.info(
                    "Fallback adapter succeeded",
                    adapter=name,
                    attempt=i + 1,
                )
            return FallbackParseResult(
                outputs=outputs,
                adapter_index=i,
                adapter_name=name,
                attempts=attempts,
            )

        logger.warning("All adapters failed to parse response", attempts=len(attempts))
        raise AllAdaptersFailedError(attempts, raw_content=content)

    def parse(self, sig: Signature, content: str) -> Dict[str, Any]:
        result = self.parse_with_result(sig, content)
        with self._lock:
            self._last_used = result.adapter_index

        outputs = dict(result.outputs)
        outputs[ADAPTER_USED_KEY] = result.adapter_name
        outputs[PARSE_ATTEMPTS_KEY] = result.adapter_index + 1
        outputs[FALLBACK_USED_KEY] = result.fallback_used
        return outputs

    def format_history(self, history: Optional[History]) -> List[Message]:
        if not self.adapters:
            return []
        return self.adapters[0].format_history(history)

    def get_last_used_adapter(self) -> int:
        """最近一次 parse 成功的适配器下标；尚未成功过时为 -1"""
        with self._lock:
            return self._last_used
