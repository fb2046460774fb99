# tests/core/test_structure_repair.py
"""
本地 JSON 修复单元测试

覆盖范围：
1. 典型的生产环境畸形 JSON（单引号、裸键、尾随逗号、代码块、智能引号）
2. 幂等性：合法 JSON 原样返回
3. 失败时返回原始字符串，而不是修了一半的结果
"""
import json

import pytest

from structguard.core.structure import extract_json, repair_json
from structguard.core.structure.repair import convert_single_quotes


class TestRepairJSON:

    @pytest.mark.parametrize(
        "broken, expected",
        [
            ("Thought: analyzing\n{'answer': 'correct'}", {"answer": "correct"}),
            ("```\n{result: 'success', code: 200}\n```", {"result": "success", "code": 200}),
            ('{"valid": true,} // this is the result', {"valid": True}),
            ('{"items": [1, 2, 3,],}', {"items": [1, 2, 3]}),
            ("{“name”: “Bob”}", {"name": "Bob"}),
            ("{'flag': True, 'missing': None, 'off': False}", {"flag": True, "missing": None, "off": False}),
            ("```json\n{name: \"x\", nested: {inner_key: 1}}\n```", {"name": "x", "nested": {"inner_key": 1}}),
        ],
    )
    def test_production_cases(self, broken, expected):
        repaired = repair_json(broken)
        assert json.loads(repaired) == expected

    def test_idempotent_on_valid_json(self):
        for valid in ['{"a": 1}', "[1, 2]", '"text"', "42", '{"s": "it\'s fine"}']:
            assert repair_json(valid) == valid

    def test_repair_of_repaired_is_stable(self):
        once = repair_json("{a: 1, 'b': 'two',}")
        assert repair_json(once) == once

    @pytest.mark.parametrize(
        "hopeless",
        ["not json at all", "{'unterminated: ", "{a: [1, 2}", "", "{{{"],
    )
    def test_returns_original_when_unrepairable(self, hopeless):
        assert repair_json(hopeless) == hopeless

    def test_apostrophe_inside_double_quoted_string_survives(self):
        repaired = repair_json("{\"msg\": \"don't stop\", 'k': 'v',}")
        assert json.loads(repaired) == {"msg": "don't stop", "k": "v"}

    def test_apostrophe_inside_single_quoted_string(self):
        repaired = repair_json("{'msg': 'it's here'}")
        assert json.loads(repaired) == {"msg": "it's here"}

    def test_double_quotes_inside_single_quoted_string_are_escaped(self):
        repaired = repair_json("{'msg': 'say \"hi\"'}")
        assert json.loads(repaired) == {"msg": 'say "hi"'}

    def test_literals_inside_strings_untouched(self):
        repaired = repair_json("{note: 'True story, None left', ok: True}")
        assert json.loads(repaired) == {"note": "True story, None left", "ok": True}

    def test_repair_then_extract(self):
        content = "The answer is {answer: 'yes', score: 3,} as requested."
        assert json.loads(extract_json(repair_json(content))) == {"answer": "yes", "score": 3}


class TestConvertSingleQuotes:

    def test_basic(self):
        assert convert_single_quotes("{'a': 'b'}") == '{"a": "b"}'

    def test_escaped_single_quote(self):
        assert convert_single_quotes("{'a': 'it\\'s'}") == '{"a": "it\'s"}'

    def test_leaves_double_quoted_strings(self):
        assert convert_single_quotes('{"a": "it\'s"}') == '{"a": "it\'s"}'
