"""Shared test fixtures for the llm_json test suite."""

import pytest

from llm_json.config import ParserConfig
from llm_json.streaming import StreamingSession


@pytest.fixture
def user_schema():
    """Object schema used across parser, streaming and API tests."""
    return {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "age": {"type": "number"},
            "role": {"type": "string", "enum": ["admin", "dev"]},
        },
        "required": ["name"],
    }


@pytest.fixture
def llm_outputs():
    """Typical malformed model responses and the value each should yield."""
    return [
        ('{"a": 1}', {"a": 1}),
        ('```json\n{"a": 1}\n```', {"a": 1}),
        ('Here is the JSON: {"a": 1}', {"a": 1}),
        ('{"a": 1}\nLet me know if you need more.', {"a": 1}),
        ("{'a': 'b'}", {"a": "b"}),
        ('{name: "test"}', {"name": "test"}),
        ('{"a": 1,}', {"a": 1}),
        ("{a: None, b: True, c: False}", {"a": None, "b": True, "c": False}),
        ('Sure!\n```json\n[1, 2, 3,]\n```', [1, 2, 3]),
    ]


@pytest.fixture
def session():
    return StreamingSession()


@pytest.fixture
def small_config():
    return ParserConfig(max_buffer_size=16)
