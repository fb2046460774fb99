# tests/conftest.py
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from structguard.config import reset_settings
from structguard.core.protocols import CompletionResponse, ExtractionModelProtocol
from structguard.core.signature import FieldType, Signature


@pytest.fixture(autouse=True)
def clean_settings():
    """
    自动清理配置单例与 STRUCTGUARD_ 环境变量，防止测试之间互相污染
    """
    reset_settings()
    old_environ = dict(os.environ)
    for key in list(os.environ.keys()):
        if key.startswith("STRUCTGUARD_"):
            del os.environ[key]

    yield

    os.environ.clear()
    os.environ.update(old_environ)
    reset_settings()


# ========== 签名 ==========

@pytest.fixture
def qa_signature():
    """question -> answer (int) + explanation (string)"""
    return (
        Signature(description="Answer the arithmetic question")
        .add_input("question", FieldType.STRING, "The question to answer")
        .add_output("answer", FieldType.INT, "The numeric answer")
        .add_output("explanation", FieldType.STRING)
    )


@pytest.fixture
def single_string_signature():
    return Signature(description="Summarize").add_input("text").add_output("summary")


@pytest.fixture
def sentiment_signature():
    return (
        Signature(description="Classify sentiment")
        .add_input("review", FieldType.STRING, "Customer review")
        .add_class_output(
            "sentiment",
            ["positive", "negative", "neutral"],
            "Overall sentiment",
            aliases={"pos": "positive", "neg": "negative"},
        )
        .add_output("confidence", FieldType.FLOAT)
    )


@pytest.fixture
def mixed_signature():
    """覆盖所有基础类型"""
    return (
        Signature()
        .add_input("query")
        .add_output("count", FieldType.INT)
        .add_output("score", FieldType.FLOAT)
        .add_output("valid", FieldType.BOOL)
        .add_output("data", FieldType.JSON)
        .add_optional_output("note", FieldType.STRING, "Extra notes")
    )


# ========== 抽取模型 ==========

@pytest.fixture
def extraction_response():
    """可调整返回内容的响应构造器"""
    def _make(content: str) -> CompletionResponse:
        return CompletionResponse.from_text(content, model="mock-extractor")
    return _make


@pytest.fixture
def mock_extraction_lm(extraction_response):
    """
    Mock 抽取模型
    acompletion 默认返回一个合法的 JSON 对象
    """
    lm = MagicMock(spec=ExtractionModelProtocol)
    lm.acompletion = AsyncMock(
        return_value=extraction_response('{"reasoning": "2 + 2 = 4", "answer": 4, "explanation": "basic sum"}')
    )
    return lm
