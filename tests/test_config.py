"""Tests for llm_json/config.py"""

import logging
import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from llm_json.config import DEFAULT_MAX_BUFFER_SIZE, ParserConfig, RepairRule


def _clean_env(**overrides):
    env = {k: v for k, v in os.environ.items() if not k.startswith("LLM_JSON_")}
    env.update(overrides)
    return patch.dict(os.environ, env, clear=True)


class TestParserConfig:
    def test_defaults(self):
        config = ParserConfig()
        assert config.max_buffer_size == 1_048_576
        assert config.collect_warnings is True
        assert config.custom_repairs == ()

    def test_frozen(self):
        config = ParserConfig()
        with pytest.raises(ValidationError):
            config.collect_warnings = False

    def test_rejects_non_positive_buffer(self):
        with pytest.raises(ValidationError):
            ParserConfig(max_buffer_size=0)

    def test_custom_repairs_from_dicts(self):
        config = ParserConfig(custom_repairs=[{"name": "nan", "pattern": r"\bNaN\b", "replacement": "null"}])
        assert config.custom_repairs == (RepairRule(name="nan", pattern=r"\bNaN\b", replacement="null"),)


class TestFromEnv:
    def test_defaults_when_unset(self):
        with _clean_env():
            config = ParserConfig.from_env()
        assert config == ParserConfig()

    def test_reads_env(self):
        with _clean_env(LLM_JSON_MAX_BUFFER_SIZE="2048", LLM_JSON_COLLECT_WARNINGS="false"):
            config = ParserConfig.from_env()
        assert config.max_buffer_size == 2048
        assert config.collect_warnings is False

    @pytest.mark.parametrize("raw", ["1", "true", "YES", " on "])
    def test_truthy_values(self, raw):
        with _clean_env(LLM_JSON_COLLECT_WARNINGS=raw):
            assert ParserConfig.from_env().collect_warnings is True

    def test_invalid_size_falls_back(self, caplog):
        with _clean_env(LLM_JSON_MAX_BUFFER_SIZE="lots"):
            with caplog.at_level(logging.WARNING, logger="llm_json.config"):
                config = ParserConfig.from_env()
        assert config.max_buffer_size == DEFAULT_MAX_BUFFER_SIZE
        assert "LLM_JSON_MAX_BUFFER_SIZE" in caplog.text

    def test_negative_size_falls_back(self):
        with _clean_env(LLM_JSON_MAX_BUFFER_SIZE="-5"):
            assert ParserConfig.from_env().max_buffer_size == DEFAULT_MAX_BUFFER_SIZE
