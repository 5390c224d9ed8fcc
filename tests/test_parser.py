"""Tests for llm_json/parser.py"""

import json

from llm_json.config import ParserConfig, RepairRule
from llm_json.models import ErrorCode, WarningCode
from llm_json.parser import create_instance, parse, parse_with_schema, strict_loads


class TestParse:
    def test_common_llm_outputs(self, llm_outputs):
        for text, expected in llm_outputs:
            result = parse(text)
            assert result.ok, f"{text!r}: {result}"
            assert result.data == expected

    def test_mixed_quotes(self):
        result = parse("{'key': \"user's data\"}")
        assert result.ok
        assert result.data == {"key": "user's data"}
        assert WarningCode.SINGLE_QUOTES_REPLACED in [w.code for w in result.warnings]

    def test_valid_json_has_no_warnings(self):
        result = parse('{"a": 1}')
        assert result.warnings == []

    def test_repairs_reported_as_warnings(self):
        result = parse('{"a": 1,}')
        assert [w.code for w in result.warnings] == [WarningCode.TRAILING_COMMA_REMOVED]

    def test_empty_input(self):
        result = parse("")
        assert not result.ok
        assert result.error.code == ErrorCode.NO_JSON_FOUND

    def test_none_input(self):
        assert parse(None).error.code == ErrorCode.NO_JSON_FOUND

    def test_no_json(self):
        assert parse("This has no JSON at all.").error.code == ErrorCode.NO_JSON_FOUND

    def test_unrepairable(self):
        result = parse('{"key" value}')
        assert result.error.code == ErrorCode.INVALID_JSON
        assert result.error.position is not None
        assert result.partial is None

    def test_surrounding_prose_value_returned_verbatim(self):
        value = {"outer": {"inner": [1, 2, 3]}, "s": "a } b"}
        text = f"Model says:\n{json.dumps(value)}\nHope that helps!"
        assert parse(text).data == value

    def test_repeated_trailing_commas(self):
        result = parse('{"a": 1,,}')
        assert result.ok
        assert result.data == {"a": 1}

    def test_escaped_quotes(self):
        result = parse('{"key": "value with \\"quotes\\""}')
        assert result.data == {"key": 'value with "quotes"'}


class TestParseWithSchema:
    def test_matches(self, user_schema):
        result = parse_with_schema('{name: "Ada", age: 36}', user_schema)
        assert result.ok
        assert result.data == {"name": "Ada", "age": 36}

    def test_mismatch(self):
        schema = {"type": "object", "properties": {"name": {"type": "string"}}}
        result = parse('{"name": 123}', schema)
        assert not result.ok
        assert result.error.code == ErrorCode.SCHEMA_MISMATCH
        violations = json.loads(result.error.context)
        assert violations[0]["path"] == "/name"
        assert violations[0]["code"] == "type_error"

    def test_invalid_schema_is_reported_not_raised(self):
        result = parse('{"a": 1}', {"type": "mystery"})
        assert result.error.code == ErrorCode.SCHEMA_MISMATCH
        assert result.error.message == "Invalid schema"


class TestConfiguredInstance:
    def test_collect_warnings_disabled(self):
        result = parse('{"a": 1,}', config=ParserConfig(collect_warnings=False))
        assert result.ok
        assert result.warnings == []

    def test_custom_repairs(self):
        rule = RepairRule(name="undefined", pattern=r"\bundefined\b", replacement="null")
        parser = create_instance(ParserConfig(custom_repairs=(rule,)))
        assert parser.parse('{"a": undefined}').data == {"a": None}
        assert parser.repair('{"a": undefined}').strictly_valid

    def test_instance_exposes_every_operation(self, user_schema):
        parser = create_instance()
        assert parser.extract('x {"a": 1}').candidate == '{"a": 1}'
        assert len(parser.extract_all("[1] [2]").candidates) == 2
        assert parser.parse_partial('{"a": "b').data == {"a": "b"}
        assert parser.validate({"name": 1}, user_schema) != []
        assert parser.parse_with_schema('{"name": "x"}', user_schema).ok

    def test_session_inherits_config(self):
        config = ParserConfig(max_buffer_size=4)
        session = create_instance(config).create_session()
        assert session.config is config


class TestStrictLoads:
    def test_success(self):
        assert strict_loads("[1]").data == [1]

    def test_failure_carries_context(self):
        result = strict_loads('{"a": nope}')
        assert result.error.code == ErrorCode.INVALID_JSON
        assert result.error.position == 6
        assert "nope" in result.error.context
