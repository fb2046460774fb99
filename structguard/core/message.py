# structguard/core/message.py
"""
消息与对话历史

- Message: 兼容 OpenAI Chat Completion 格式的消息对象，由 Adapter.format 产出
- History: 多轮对话历史；适配器只读（通过 get() / is_empty()）
"""
from __future__ import annotations

import json
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

Role = Literal["system", "user", "assistant", "tool"]


class Message(BaseModel):
    """
    标准消息对象

    示例:
        ```python
        msg = Message.user("Hello!")
        msg = Message.assistant("[[ ## answer ## ]]\\n42")
        msg = Message.tool_result(tool_call_id="call_1", content={"ok": True}, tool_name="search")
        ```
    """
    role: Role
    content: str = Field(default="")
    name: Optional[str] = None
    tool_calls: Optional[List[Dict[str, Any]]] = None
    tool_call_id: Optional[str] = None

    @field_validator("content", mode="before")
    @classmethod
    def validate_content(cls, v):
        """None 视为空内容"""
        if v is None:
            return ""
        return v

    # ===== 工厂方法 =====

    @classmethod
    def user(cls, text: str = "", name: Optional[str] = None) -> Message:
        """创建用户消息"""
        return cls(role="user", content=text, name=name)

    @classmethod
    def assistant(
        cls,
        content: str = "",
        tool_calls: Optional[List[Dict[str, Any]]] = None,
        name: Optional[str] = None
    ) -> Message:
        """创建助手消息"""
        return cls(
            role="assistant",
            content=content,
            tool_calls=tool_calls,
            name=name
        )

    @classmethod
    def system(cls, content: str) -> Message:
        """创建系统消息"""
        return cls(role="system", content=content)

    @classmethod
    def tool_result(
        cls,
        tool_call_id: str,
        content: Any,
        tool_name: Optional[str] = None
    ) -> Message:
        """
        创建工具返回消息

        content 为 dict / list 时自动序列化为 JSON
        """
        if isinstance(content, str):
            serialized = content
        elif isinstance(content, (dict, list)):
            serialized = json.dumps(content, ensure_ascii=False, indent=2)
        else:
            serialized = str(content)

        return cls(
            role="tool",
            content=serialized,
            tool_call_id=tool_call_id,
            name=tool_name
        )

    @property
    def safe_tool_calls(self) -> List[Dict[str, Any]]:
        """安全获取 tool_calls，确保返回列表而不是 None"""
        return self.tool_calls or []

    def to_openai_format(self) -> Dict[str, Any]:
        """转换为 OpenAI API 格式（省略值为 None 的字段）"""
        return self.model_dump(exclude_none=True, mode="json")

    def __str__(self) -> str:
        preview = self.content if len(self.content) <= 50 else self.content[:47] + "..."
        return f"Message(role={self.role}, content={preview!r})"


class History:
    """
    对话历史

    - 保持消息顺序
    - max_size > 0 时，超出上限会丢弃最早的消息
    - get() 返回副本，调用方修改返回值不影响历史本身
    """

    def __init__(self, max_size: int = 0, messages: Optional[List[Message]] = None):
        self.max_size = max_size
        self._messages: List[Message] = []
        for msg in messages or []:
            self.add(msg)

    def add(self, message: Message) -> None:
        self._messages.append(message)
        if self.max_size > 0 and len(self._messages) > self.max_size:
            self._messages = self._messages[-self.max_size:]

    def add_user_message(self, content: str) -> None:
        self.add(Message.user(content))

    def add_assistant_message(self, content: str) -> None:
        self.add(Message.assistant(content))

    def add_system_message(self, content: str) -> None:
        self.add(Message.system(content))

    def get(self) -> List[Message]:
        return list(self._messages)

    def get_last(self, n: int) -> List[Message]:
        if n <= 0:
            return []
        return list(self._messages[-n:])

    def clear(self) -> None:
        self._messages = []

    def is_empty(self) -> bool:
        return not self._messages

    def clone(self) -> History:
        return History(
            max_size=self.max_size,
            messages=[m.model_copy(deep=True) for m in self._messages],
        )

    def truncate(self, n: int) -> None:
        """只保留最近的 n 条消息"""
        if n <= 0:
            self._messages = []
        elif len(self._messages) > n:
            self._messages = self._messages[-n:]

    def __len__(self) -> int:
        return len(self._messages)

    def __repr__(self) -> str:
        return f"History(messages={len(self._messages)}, max_size={self.max_size})"
