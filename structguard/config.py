# structguard/config.py
"""
全局配置系统

所有配置项都有默认值，默认行为即为协议规定的行为；
仅在需要调试或调整抽取调用参数时才需要通过环境变量 (STRUCTGUARD_*) 覆盖。
"""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StructGuardSettings(BaseSettings):
    # ================= 1. Parsing (解析) =================
    debug_parse: bool = Field(
        default=False,
        description="JSON 解析失败时输出详细诊断日志 (内容长度、截断预览)",
    )
    max_text_length: Optional[int] = Field(
        default=None,
        ge=1000,
        description="JSON 提取前的输入长度上限，超出部分被截断；None 表示不截断",
    )
    raw_preview_chars: int = Field(
        default=500,
        ge=20,
        description="诊断信息中原始内容预览的最大字符数",
    )

    # ================= 2. Two-step extraction (两阶段抽取) =================
    extraction_temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    extraction_max_tokens: int = Field(default=2048, ge=1)
    extraction_timeout: Optional[float] = Field(
        default=None,
        gt=0.0,
        description="抽取调用超时(秒)，None 表示完全继承调用方的取消语义",
    )

    # ================= 3. System (系统层) =================
    log_level: str = Field(default="INFO", description="日志级别")
    log_format: Literal["text", "json"] = Field(default="text", description="日志格式")

    model_config = SettingsConfigDict(
        env_prefix="STRUCTGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"log_level must be one of {valid}")
        return v.upper()


# Singleton
_default_settings: Optional[StructGuardSettings] = None


def get_settings(force_reload: bool = False) -> StructGuardSettings:
    global _default_settings
    if _default_settings is None or force_reload:
        _default_settings = StructGuardSettings()
    return _default_settings


def configure_settings(**overrides) -> StructGuardSettings:
    global _default_settings
    _default_settings = StructGuardSettings(**overrides)
    return _default_settings


def reset_settings():
    global _default_settings
    _default_settings = None


settings = get_settings()
