"""
抽取模型相关协议与数据结构

两阶段适配器 (TwoStepAdapter) 的第二阶段需要调用一个“抽取模型”，
这里定义它需要满足的最小接口以及生成参数。
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, Field

from structguard.config import get_settings
from structguard.core.protocols.base import get_missing_methods

# ====================== 模型响应格式 ======================


class CompletionChoice(BaseModel):
    """单个补全选择"""
    index: int = 0
    message: Dict[str, Any]
    finish_reason: Optional[str] = None


class CompletionUsage(BaseModel):
    """Token 使用统计"""
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class CompletionResponse(BaseModel):
    """标准的模型补全响应格式"""
    id: str = Field(default="", description="响应 ID")
    model: str = Field(default="", description="模型名称")
    choices: List[CompletionChoice] = Field(default_factory=list)
    usage: Optional[CompletionUsage] = Field(default=None)

    @classmethod
    def from_text(cls, content: str, model: str = "") -> CompletionResponse:
        """便捷构造：只有一条 assistant 文本的响应"""
        return cls(
            model=model,
            choices=[CompletionChoice(message={"role": "assistant", "content": content})],
        )


# ====================== 生成参数 ======================


class GenerateOptions(BaseModel):
    """
    生成参数

    default() 读取全局配置中的 extraction_* 项，
    未配置时为 temperature=0.7 / max_tokens=2048。
    """
    temperature: float = 0.7
    max_tokens: int = 2048
    top_p: float = 1.0
    stop: List[str] = Field(default_factory=list)
    response_format: str = "text"
    tool_choice: str = "auto"
    stream: bool = False
    frequency_penalty: float = 0.0
    presence_penalty: float = 0.0

    @classmethod
    def default(cls) -> GenerateOptions:
        settings = get_settings()
        return cls(
            temperature=settings.extraction_temperature,
            max_tokens=settings.extraction_max_tokens,
        )

    def to_kwargs(self) -> Dict[str, Any]:
        """转换为 acompletion 的关键字参数（省略空的 stop 列表）"""
        data = self.model_dump()
        if not data["stop"]:
            data.pop("stop")
        return data


# ====================== 模型协议 ======================


@runtime_checkable
class ExtractionModelProtocol(Protocol):
    """两阶段抽取所需的模型协议"""
    async def acompletion(self, messages: List[Dict[str, Any]], **kwargs) -> CompletionResponse:
        ...


# ====================== 工具函数 ======================


def get_model_name(model: Any) -> str:
    if hasattr(model, "model_name"):
        return model.model_name
    if hasattr(model, "name") and isinstance(model.name, str):
        return model.name
    return model.__class__.__name__


def get_response_content(response: Any) -> str:
    """
    从补全响应中取出首个选择的文本内容

    同时兼容：
        - choices[0].message 为 dict（CompletionResponse / OpenAI 原始字典）
        - choices[0].message 为带 content 属性的对象（SDK 对象）
    """
    choices = getattr(response, "choices", None)
    if choices is None and isinstance(response, dict):
        choices = response.get("choices")
    if not choices:
        return ""

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else getattr(first, "message", None)
    if message is None:
        return ""
    if isinstance(message, dict):
        content = message.get("content")
    else:
        content = getattr(message, "content", None)
    return content if isinstance(content, str) else ""


def validate_model(model: Any) -> None:
    """
    验证模型是否满足 ExtractionModelProtocol（鸭子类型检查）

    基于 get_missing_methods，自定义模型只要实现必要方法即可通过验证。
    """
    missing = get_missing_methods(model, ExtractionModelProtocol)
    if missing:
        raise TypeError(
            "Model does not implement ExtractionModelProtocol. "
            f"Missing methods: {', '.join(missing)}"
        )
