# tests/core/test_signature.py
"""
Signature / Example 单元测试
"""
import pytest
from pydantic import ValidationError

from structguard.core.exceptions import OutputValidationError
from structguard.core.signature import Example, Field, FieldType, Signature, check_field_type


class TestBuilder:

    def test_fluent_builder_keeps_order(self):
        sig = (
            Signature(description="d")
            .add_input("a")
            .add_optional_input("b", FieldType.INT)
            .add_output("x", FieldType.FLOAT, "desc")
            .add_optional_output("y")
        )
        assert [f.name for f in sig.input_fields] == ["a", "b"]
        assert [f.name for f in sig.output_fields] == ["x", "y"]
        assert sig.get_input_field("b").optional is True
        assert sig.get_output_field("x").description == "desc"
        assert sig.get_output_field("missing") is None

    def test_duplicate_names_rejected(self):
        sig = Signature().add_input("a")
        with pytest.raises(ValueError, match="duplicate input field: a"):
            sig.add_input("a")

    def test_same_name_in_both_directions_allowed(self):
        sig = Signature().add_input("text").add_output("text")
        assert sig.get_input_field("text") is not None
        assert sig.get_output_field("text") is not None

    def test_duplicate_names_rejected_on_construction(self):
        with pytest.raises(ValidationError):
            Signature(output_fields=[Field(name="a"), Field(name="a")])

    def test_class_output_aliases_lowercased(self):
        sig = Signature().add_class_output("c", ["Yes", "No"], aliases={"Y": "Yes"})
        field = sig.get_output_field("c")
        assert field.type == FieldType.CLASS
        assert field.classes == ["Yes", "No"]
        assert field.class_aliases == {"y": "Yes"}

    def test_json_round_trip(self, sentiment_signature):
        restored = Signature.model_validate_json(sentiment_signature.model_dump_json())
        assert restored == sentiment_signature

    def test_field_type_from_string(self):
        sig = Signature.model_validate({"output_fields": [{"name": "n", "type": "int"}]})
        assert sig.output_fields[0].type is FieldType.INT


class TestJSONSchema:

    def test_schema(self, sentiment_signature):
        schema = sentiment_signature.add_optional_output("n", FieldType.INT).to_json_schema()
        assert schema["type"] == "object"
        assert schema["description"] == "Classify sentiment"
        assert schema["properties"]["sentiment"] == {
            "type": "string",
            "enum": ["positive", "negative", "neutral"],
            "description": "Overall sentiment",
        }
        assert schema["properties"]["confidence"] == {"type": "number"}
        assert schema["properties"]["n"] == {"type": "integer"}
        assert schema["required"] == ["sentiment", "confidence"]


class TestValidation:

    def test_validate_inputs(self, qa_signature):
        qa_signature.validate_inputs({"question": "q"})
        with pytest.raises(OutputValidationError, match="missing required input field: question"):
            qa_signature.validate_inputs({})
        with pytest.raises(OutputValidationError, match="expected string"):
            qa_signature.validate_inputs({"question": 3})

    def test_validate_outputs_ok(self, qa_signature):
        qa_signature.validate_outputs({"answer": 4.0, "explanation": "e", "__meta": 1})

    def test_validate_outputs_missing(self, qa_signature):
        with pytest.raises(OutputValidationError) as exc_info:
            qa_signature.validate_outputs({"answer": 4})
        assert exc_info.value.field_name == "explanation"

    def test_validate_outputs_type_error(self, qa_signature):
        with pytest.raises(OutputValidationError, match="expected int-like"):
            qa_signature.validate_outputs({"answer": "four", "explanation": "e"})

    def test_bool_is_not_a_number(self, qa_signature):
        with pytest.raises(OutputValidationError):
            qa_signature.validate_outputs({"answer": True, "explanation": "e"})

    def test_class_value_normalized_in_place(self, sentiment_signature):
        outputs = {"sentiment": "The answer is Positive", "confidence": 0.9}
        sentiment_signature.validate_outputs(outputs)
        assert outputs["sentiment"] == "positive"

    def test_invalid_class_value(self, sentiment_signature):
        with pytest.raises(OutputValidationError, match="invalid class value: angry"):
            sentiment_signature.validate_outputs({"sentiment": "angry", "confidence": 0.1})

    def test_partial_validation(self, sentiment_signature):
        outputs = {"sentiment": "furious"}
        diag = sentiment_signature.validate_outputs_partial(outputs)
        assert diag.has_errors()
        assert diag.missing_fields == ["confidence"]
        assert outputs["confidence"] is None
        assert "sentiment" in diag.class_errors
        assert diag.type_errors == {}

    def test_partial_validation_clean(self, qa_signature):
        diag = qa_signature.validate_outputs_partial({"answer": 1, "explanation": "x"})
        assert not diag.has_errors()

    @pytest.mark.parametrize(
        "field_type, value, ok",
        [
            (FieldType.STRING, "s", True),
            (FieldType.STRING, 1, False),
            (FieldType.INT, 1.5, True),
            (FieldType.FLOAT, 2, True),
            (FieldType.BOOL, 0, False),
            (FieldType.JSON, [1], True),
            (FieldType.JSON, 1, False),
            (FieldType.DATETIME, "2024-01-01", True),
        ],
    )
    def test_check_field_type(self, field_type, value, ok):
        error = check_field_type(Field(name="f", type=field_type), value)
        assert (error is None) is ok

    def test_none_allowed_only_for_optional(self):
        assert check_field_type(Field(name="f", optional=True), None) is None
        assert check_field_type(Field(name="f"), None) == "field f cannot be None"


class TestExample:

    def test_immutable(self):
        demo = Example(inputs={"q": 1})
        with pytest.raises(ValidationError):
            demo.label = "x"

    def test_with_methods_return_copies(self):
        demo = Example(inputs={"q": 1}, outputs={"a": 2})
        labelled = demo.with_label("easy").with_weight(2.0).with_description("simple")
        assert (labelled.label, labelled.weight, labelled.description) == ("easy", 2.0, "simple")
        assert demo.label == ""
        assert demo.weight == 1.0
