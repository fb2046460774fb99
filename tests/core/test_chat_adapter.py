# tests/core/test_chat_adapter.py
"""
ChatAdapter (标记协议) 单元测试

覆盖范围：
1. format：标记格式的输出规格、示例的 user/assistant 消息对
2. parse：标准标记、空白变体、残缺标记、内联值、启发式抽取
3. 每种类型的后处理与类型转换
"""
import pytest

from structguard.core.adapters import (
    ChatAdapter,
    MissingInputFieldError,
    RequiredMarkerMissingError,
    strip_markers,
)
from structguard.core.adapters.heuristics import heuristic_extract
from structguard.core.adapters.markers import (
    _value_end_pattern,
    find_marker,
    find_value_end,
    strip_field_markers_preserve_json,
)
from structguard.core.error_codes import ErrorCode
from structguard.core.signature import Example, FieldType, Signature
from structguard.core.structure import StructureParseError


class TestFormat:

    def test_output_section(self, sentiment_signature):
        sig = sentiment_signature.add_optional_output("note", FieldType.STRING, "Anything else")
        messages = ChatAdapter().format(sig, {"review": "Loved it"})

        assert len(messages) == 1
        prompt = messages[0].content
        assert "--- Inputs ---\nreview (Customer review): Loved it\n\n" in prompt
        assert "Respond using the following format with field markers:\n\n" in prompt
        assert "[[ ## sentiment ## ]] (one of: positive, negative, neutral, Overall sentiment)\n\n" in prompt
        assert "[[ ## confidence ## ]]\n\n" in prompt
        assert "[[ ## note ## ]] (Anything else, optional)\n\n" in prompt
        assert prompt.endswith(
            "IMPORTANT: Use the exact field marker format shown above. "
            "Start each field with [[ ## field_name ## ]].\n"
        )

    def test_reasoning_block(self, qa_signature):
        prompt = ChatAdapter(include_reasoning=True).format(qa_signature, {"question": "q"})[-1].content
        assert "Think through this step-by-step" in prompt
        assert "[[ ## reasoning ## ]]\nYour step-by-step thought process\n\n[[ ## answer ## ]]" in prompt

    def test_demos_as_message_pairs(self, qa_signature):
        demos = [
            Example(inputs={"question": "1 + 1?"}, outputs={"answer": 2, "explanation": "one and one"}),
            Example(inputs={"question": "no outputs"}),
        ]
        messages = ChatAdapter().format(qa_signature, {"question": "3 + 3?"}, demos)

        assert [m.role for m in messages] == ["user", "assistant", "user", "user"]
        assert messages[0].content == "--- Example 1 (Inputs) ---\nquestion: 1 + 1?\n"
        assert messages[1].content == (
            "[[ ## answer ## ]]\n2\n\n[[ ## explanation ## ]]\none and one\n\n"
        )
        assert messages[2].content.startswith("--- Example 2 (Inputs) ---")
        assert "3 + 3?" in messages[-1].content

    def test_missing_input(self, qa_signature):
        with pytest.raises(MissingInputFieldError):
            ChatAdapter().format(qa_signature, {"other": 1})


class TestParse:

    def test_standard_markers(self, qa_signature):
        content = "[[ ## answer ## ]]\n42\n\n[[ ## explanation ## ]]\nSix times seven."
        assert ChatAdapter().parse(qa_signature, content) == {
            "answer": 42,
            "explanation": "Six times seven.",
        }

    def test_fields_out_of_order(self, qa_signature):
        content = "[[ ## explanation ## ]]\nfirst\n[[ ## answer ## ]]\n7"
        assert ChatAdapter().parse(qa_signature, content) == {"answer": 7, "explanation": "first"}

    @pytest.mark.parametrize(
        "answer_marker, explanation_marker",
        [
            ("[[## answer ##]]", "[[## explanation ##]]"),
            ("[[##answer##]]", "[[##explanation##]]"),
            ("[[ ## answer ## ]", "[[ ## explanation ## ]"),
            ("[[ ## answer ##", "[[ ## explanation ##"),
        ],
    )
    def test_degraded_marker_forms(self, qa_signature, answer_marker, explanation_marker):
        content = f"{answer_marker}\n6\n\n{explanation_marker}\ntext"
        assert ChatAdapter().parse(qa_signature, content) == {"answer": 6, "explanation": "text"}

    def test_single_closing_bracket_both_fields(self, qa_signature):
        content = "[[ ## answer ## ]\n6\n\n[[ ## explanation ## ]\ntext"
        assert ChatAdapter().parse(qa_signature, content) == {"answer": 6, "explanation": "text"}

    def test_inline_value_after_incomplete_marker(self, qa_signature):
        content = "[[ ## answer ## 12\n[[ ## explanation ## ]]\nbecause"
        assert ChatAdapter().parse(qa_signature, content) == {"answer": 12, "explanation": "because"}

    def test_trailing_marker_fragments_removed(self, qa_signature):
        content = "[[ ## answer ## ]]\n5 ]]\n[[ ## explanation ## ]]\ndone ]] ]]"
        assert ChatAdapter().parse(qa_signature, content) == {"answer": 5, "explanation": "done"}

    def test_reasoning_extracted_first(self, qa_signature):
        content = (
            "[[ ## reasoning ## ]]\nAdd them.\n\n"
            "[[ ## answer ## ]]\n4\n\n[[ ## explanation ## ]]\nsum"
        )
        out = ChatAdapter(include_reasoning=True).parse(qa_signature, content)
        assert out == {"reasoning": "Add them.", "answer": 4, "explanation": "sum"}

    def test_class_first_word_lowercased(self, sentiment_signature):
        content = (
            "[[ ## sentiment ## ]]\nPositive - the reviewer loved it\nsecond line\n\n"
            "[[ ## confidence ## ]]\nVery High"
        )
        out = ChatAdapter().parse(sentiment_signature, content)
        assert out == {"sentiment": "positive", "confidence": 0.95}

    def test_class_alias(self, sentiment_signature):
        content = "[[ ## sentiment ## ]]\nNeg\n[[ ## confidence ## ]]\n0.4"
        assert ChatAdapter().parse(sentiment_signature, content) == {"sentiment": "negative", "confidence": 0.4}

    def test_class_outside_allow_list_passed_through(self, sentiment_signature):
        content = "[[ ## sentiment ## ]]\nMixed feelings\n[[ ## confidence ## ]]\n0.5"
        out = ChatAdapter().parse(sentiment_signature, content)
        assert out["sentiment"] == "mixed"

    def test_json_field_keeps_brackets(self):
        sig = Signature().add_output("matrix", FieldType.JSON).add_output("label")
        content = "[[ ## matrix ## ]]\n[[1, 2], [3, 4]]\n\n[[ ## label ## ]]\ngrid"
        assert ChatAdapter().parse(sig, content) == {"matrix": [[1, 2], [3, 4]], "label": "grid"}

    def test_invalid_json_field_kept_as_string(self):
        sig = Signature().add_output("data", FieldType.JSON)
        out = ChatAdapter().parse(sig, "[[ ## data ## ]]\nnot json")
        assert out == {"data": "not json"}

    def test_list_value_not_joined(self):
        """ChatAdapter 不做 list -> string 转换"""
        sig = Signature().add_output("items", FieldType.STRING)
        out = ChatAdapter().parse(sig, '[[ ## items ## ]]\n["a", "b"]')
        assert out == {"items": '["a", "b"]'}

    def test_optional_field_omitted(self, mixed_signature):
        content = (
            "[[ ## count ## ]]\n3\n[[ ## score ## ]]\n0.5\n"
            "[[ ## valid ## ]]\nTrue\n[[ ## data ## ]]\n{\"a\": 1}"
        )
        out = ChatAdapter().parse(mixed_signature, content)
        assert out == {"count": 3, "score": 0.5, "valid": True, "data": {"a": 1}}
        assert "note" not in out

    def test_missing_required_marker(self, qa_signature):
        with pytest.raises(RequiredMarkerMissingError) as exc_info:
            ChatAdapter().parse(qa_signature, "[[ ## answer ## ]]\n4")
        err = exc_info.value
        assert err.field_name == "explanation"
        assert err.expected_marker == "[[ ## explanation ## ]]"
        assert err.message == (
            "required field 'explanation' not found in response "
            "(expected marker: [[ ## explanation ## ]])"
        )
        assert err.code == ErrorCode.REQUIRED_MARKER_MISSING

    @pytest.mark.parametrize("content", ["", "   ", "[[", "]]]]", "[[ ## ## ]]", "\x00\x01"])
    def test_adversarial_input_raises_cleanly(self, qa_signature, content):
        with pytest.raises(RequiredMarkerMissingError):
            ChatAdapter().parse(qa_signature, content)

    def test_heuristic_recovers_labelled_fields(self, qa_signature):
        content = "Answer: 9\nExplanation: three squared"
        assert ChatAdapter().parse(qa_signature, content) == {"answer": 9, "explanation": "three squared"}

    def test_deeply_nested_json_field_kept_as_text(self):
        sig = Signature().add_output("data", FieldType.JSON)
        content = "[[ ## data ## ]]\n" + "[" * 100000 + "]" * 100000
        outputs = ChatAdapter().parse(sig, content)
        assert isinstance(outputs["data"], str)
        assert outputs["data"].startswith("[[[")

    @pytest.mark.parametrize(
        "value",
        [
            "[" * 100000 + "]" * 100000,
            "{" * 2000,
            "[1e999, NaN, -Infinity]",
            "{'a': [1,}",
            '{"a": "\\',
        ],
    )
    def test_adversarial_json_field_raises_cleanly(self, value):
        sig = Signature().add_output("data", FieldType.JSON).add_output("answer", FieldType.INT)
        content = f"[[ ## data ## ]]\n{value}\n\n[[ ## answer ## ]]\n1e999"
        try:
            outputs = ChatAdapter().parse(sig, content)
        except StructureParseError:
            return
        assert set(outputs) >= {"data", "answer"}


class TestHeuristics:

    def test_synonym_label(self):
        assert heuristic_extract("Final Answer: Paris", "answer") == "Paris"

    def test_label_case_insensitive(self):
        assert heuristic_extract("SUMMARY: short", "summary") == "short"

    def test_react_final_answer(self):
        content = (
            "Thought: I know this.\n"
            "Action: None (Final Answer)\n"
            "The capital of France\n\n"
            "is Paris.\n"
            "Observation: done"
        )
        assert heuristic_extract(content, "answer") == "The capital of France is Paris."

    def test_react_last_paragraph(self):
        content = (
            "Thought: looking things up\n\n"
            "Observation: got data\n\n"
            "Paris is the capital city of France."
        )
        assert heuristic_extract(content, "answer") == "Paris is the capital city of France."

    def test_no_react_no_label(self):
        assert heuristic_extract("Paris is the capital city of France.", "answer") == ""

    def test_story_field(self):
        story = "Once upon a time " * 10
        assert heuristic_extract(story, "story") == story.strip()
        assert heuristic_extract("too short", "story") == ""

    def test_title_field(self):
        content = "\n## not this\nThe Great Adventure\nbody text"
        assert heuristic_extract(content, "title") == "The Great Adventure"


class TestMarkers:

    def test_find_marker_tiers(self):
        assert find_marker("[[ ## a ## ]]", "a").tier == 1
        assert find_marker("[[## a ##]]", "a").tier == 2
        assert find_marker("[[##a##]]", "a").tier == 3
        assert find_marker("[[ ## a ## ]\nx", "a").tier == 4
        assert find_marker("no marker", "a") is None

    def test_inline_value(self):
        match = find_marker("[[ ## a ## value here\nnext", "a")
        assert match.inline_value == "value here"

    def test_strip_markers(self):
        assert strip_markers("[[ ## answer ## ]] 42 [[ ## done ## ]]") == "42"
        assert strip_markers("## ]] tail text ]]") == "tail text"
        assert strip_markers("plain") == "plain"

    def test_strip_preserve_json(self):
        assert strip_field_markers_preserve_json("[[1, 2]]") == "[[1, 2]]"
        assert strip_markers("[[1, 2]]") == "[[1, 2"

    def test_value_end_uses_any_tolerated_marker_form(self):
        content = "[[ ## a ## ]]\nvalue\n[[## b ##]] rest"
        assert find_value_end(content, 13, ["b"]) == content.index("[[## b")
        assert find_value_end(content, 13, []) == len(content)

    def test_value_end_patterns_are_cached(self):
        _value_end_pattern.cache_clear()
        find_value_end("[[ ## x ## ]] 1", 0, ["y", "z"])
        find_value_end("[[ ## y ## ]] 2", 0, ["y", "z"])
        info = _value_end_pattern.cache_info()
        assert info.misses == 2
        assert info.hits == 2
