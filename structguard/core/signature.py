# structguard/core/signature.py
"""
签名 (Signature) 与示例 (Example) 定义

Signature 是一次 format/parse 调用所依据的输入/输出契约：
- 有序的输入字段 / 输出字段列表（同一方向内字段名唯一）
- 一段自由文本描述

Example 是渲染进提示词的 few-shot 示例，构建后不可变。

下游校验 (validate_outputs / validate_outputs_partial) 消费适配器产出的输出字典，
类型强制转换失败的值会在这里以完整的字段上下文报告出来。
"""
from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field as PydanticField, model_validator

from structguard.core.exceptions import OutputValidationError


class FieldType(str, Enum):
    """字段类型"""
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    JSON = "json"
    CLASS = "class"
    IMAGE = "image"
    DATETIME = "datetime"


# 在值层面按字符串处理的类型
STRING_LIKE_TYPES = (FieldType.STRING, FieldType.CLASS, FieldType.IMAGE, FieldType.DATETIME)


class Field(BaseModel):
    """
    签名字段

    classes 仅对 CLASS 类型有意义；为空时跳过类别校验。
    class_aliases 为类别同义词映射（如 "pos" -> "positive"），键按小写匹配。
    """
    name: str
    type: FieldType = FieldType.STRING
    description: str = ""
    optional: bool = False
    classes: List[str] = PydanticField(default_factory=list)
    class_aliases: Dict[str, str] = PydanticField(default_factory=dict)


class ValidationDiagnostics(BaseModel):
    """部分校验的诊断结果"""
    missing_fields: List[str] = PydanticField(default_factory=list)
    type_errors: Dict[str, str] = PydanticField(default_factory=dict)
    class_errors: Dict[str, str] = PydanticField(default_factory=dict)

    def has_errors(self) -> bool:
        return bool(self.missing_fields or self.type_errors or self.class_errors)


class Signature(BaseModel):
    """
    输入/输出契约

    示例:
        ```python
        sig = (
            Signature(description="Classify the sentiment of a review")
            .add_input("review", FieldType.STRING, "Customer review text")
            .add_class_output("sentiment", ["positive", "negative", "neutral"])
            .add_output("confidence", FieldType.FLOAT, "0.0 - 1.0")
        )
        ```
    """
    description: str = ""
    input_fields: List[Field] = PydanticField(default_factory=list)
    output_fields: List[Field] = PydanticField(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_names(self) -> Signature:
        for direction, fields in (("input", self.input_fields), ("output", self.output_fields)):
            seen = set()
            for f in fields:
                if f.name in seen:
                    raise ValueError(f"duplicate {direction} field: {f.name}")
                seen.add(f.name)
        return self

    # ===== 构建方法 =====

    def _append(self, fields: List[Field], field: Field, direction: str) -> Signature:
        if any(f.name == field.name for f in fields):
            raise ValueError(f"duplicate {direction} field: {field.name}")
        fields.append(field)
        return self

    def add_input(self, name: str, field_type: FieldType = FieldType.STRING, description: str = "") -> Signature:
        return self._append(
            self.input_fields,
            Field(name=name, type=field_type, description=description),
            "input",
        )

    def add_optional_input(self, name: str, field_type: FieldType = FieldType.STRING, description: str = "") -> Signature:
        return self._append(
            self.input_fields,
            Field(name=name, type=field_type, description=description, optional=True),
            "input",
        )

    def add_output(self, name: str, field_type: FieldType = FieldType.STRING, description: str = "") -> Signature:
        return self._append(
            self.output_fields,
            Field(name=name, type=field_type, description=description),
            "output",
        )

    def add_optional_output(self, name: str, field_type: FieldType = FieldType.STRING, description: str = "") -> Signature:
        return self._append(
            self.output_fields,
            Field(name=name, type=field_type, description=description, optional=True),
            "output",
        )

    def add_class_output(
        self,
        name: str,
        classes: List[str],
        description: str = "",
        aliases: Optional[Dict[str, str]] = None,
    ) -> Signature:
        return self._append(
            self.output_fields,
            Field(
                name=name,
                type=FieldType.CLASS,
                description=description,
                classes=list(classes),
                class_aliases={k.lower(): v for k, v in (aliases or {}).items()},
            ),
            "output",
        )

    # ===== 查询方法 =====

    def get_input_field(self, name: str) -> Optional[Field]:
        for f in self.input_fields:
            if f.name == name:
                return f
        return None

    def get_output_field(self, name: str) -> Optional[Field]:
        for f in self.output_fields:
            if f.name == name:
                return f
        return None

    def to_json_schema(self) -> Dict[str, Any]:
        """根据输出字段生成 JSON Schema（用于支持结构化输出模式的模型）"""
        type_map = {
            FieldType.INT: "integer",
            FieldType.FLOAT: "number",
            FieldType.BOOL: "boolean",
            FieldType.JSON: "object",
        }
        properties: Dict[str, Any] = {}
        required: List[str] = []

        for f in self.output_fields:
            prop: Dict[str, Any] = {"type": type_map.get(f.type, "string")}
            if f.type == FieldType.CLASS and f.classes:
                prop["enum"] = list(f.classes)
            if f.description:
                prop["description"] = f.description
            properties[f.name] = prop
            if not f.optional:
                required.append(f.name)

        schema: Dict[str, Any] = {"type": "object", "properties": properties}
        if required:
            schema["required"] = required
        if self.description:
            schema["description"] = self.description
        return schema

    # ===== 校验 =====

    def validate_inputs(self, inputs: Dict[str, Any]) -> None:
        """校验必填输入是否存在、类型是否匹配"""
        for f in self.input_fields:
            if f.name not in inputs:
                if not f.optional:
                    raise OutputValidationError(
                        f"missing required input field: {f.name}", field_name=f.name
                    )
                continue
            error = check_field_type(f, inputs[f.name])
            if error:
                raise OutputValidationError(error, field_name=f.name)

    def validate_outputs(self, outputs: Dict[str, Any]) -> None:
        """
        严格校验输出字典。

        CLASS 字段的值经 normalize_class_value 归一化后若命中允许列表，
        会被就地替换为规范写法。
        """
        # 延迟导入以避免循环依赖
        from structguard.core.adapters.coercion import normalize_class_value

        for f in self.output_fields:
            if f.name not in outputs:
                if not f.optional:
                    raise OutputValidationError(
                        f"missing required output field: {f.name}", field_name=f.name
                    )
                continue

            value = outputs[f.name]
            if f.type == FieldType.CLASS and f.classes and value is not None:
                normalized = normalize_class_value(str(value), f)
                if normalized not in f.classes:
                    raise OutputValidationError(
                        f"field {f.name} has invalid class value: {value} (must be one of {f.classes})",
                        field_name=f.name,
                    )
                outputs[f.name] = normalized
                value = normalized

            error = check_field_type(f, value)
            if error:
                raise OutputValidationError(error, field_name=f.name)

    def validate_outputs_partial(self, outputs: Dict[str, Any]) -> ValidationDiagnostics:
        """
        宽松校验：不抛异常，收集诊断信息。

        缺失的必填字段在 outputs 中被置为 None。
        """
        from structguard.core.adapters.coercion import normalize_class_value

        diag = ValidationDiagnostics()
        for f in self.output_fields:
            if f.name not in outputs:
                if not f.optional:
                    diag.missing_fields.append(f.name)
                    outputs[f.name] = None
                continue

            value = outputs[f.name]
            if value is None:
                continue

            if f.type == FieldType.CLASS and f.classes:
                normalized = normalize_class_value(str(value), f)
                if normalized in f.classes:
                    outputs[f.name] = normalized
                    value = normalized
                else:
                    diag.class_errors[f.name] = (
                        f"invalid class value: {value} (must be one of {f.classes})"
                    )

            error = check_field_type(f, value)
            if error:
                diag.type_errors[f.name] = error

        return diag


def check_field_type(field: Field, value: Any) -> Optional[str]:
    """基础类型检查，返回错误描述；通过时返回 None"""
    if value is None:
        if field.optional:
            return None
        return f"field {field.name} cannot be None"

    type_name = type(value).__name__
    if field.type in STRING_LIKE_TYPES:
        if not isinstance(value, str):
            return f"field {field.name} expected string, got {type_name}"
    elif field.type == FieldType.INT:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return f"field {field.name} expected int-like (int/float), got {type_name}"
    elif field.type == FieldType.FLOAT:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return f"field {field.name} expected float-like (float/int), got {type_name}"
    elif field.type == FieldType.BOOL:
        if not isinstance(value, bool):
            return f"field {field.name} expected bool, got {type_name}"
    elif field.type == FieldType.JSON:
        if not isinstance(value, (dict, list, str)):
            return f"field {field.name} expected JSON (dict/list/str), got {type_name}"
    return None


class Example(BaseModel):
    """
    few-shot 示例（不可变）

    with_* 方法返回修改后的副本。
    """
    model_config = ConfigDict(frozen=True)

    inputs: Dict[str, Any] = PydanticField(default_factory=dict)
    outputs: Dict[str, Any] = PydanticField(default_factory=dict)
    label: str = ""
    weight: float = 1.0
    description: str = ""

    def with_label(self, label: str) -> Example:
        return self.model_copy(update={"label": label})

    def with_weight(self, weight: float) -> Example:
        return self.model_copy(update={"weight": weight})

    def with_description(self, description: str) -> Example:
        return self.model_copy(update={"description": description})
