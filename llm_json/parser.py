"""
Parser Facade — extract, repair, parse and validate in one call.

The pipeline is a fixed sequence of stages, each producing an outcome the
next stage consumes:

    extract -> strict parse -> repair -> strict parse -> validate

LlmJson bundles every operation behind one explicit ParserConfig.
"""

import json
import logging
from typing import Any, AsyncIterable, Iterable

from pydantic import ValidationError

from llm_json.config import ParserConfig
from llm_json.extract import extract, extract_all
from llm_json.models import (
    ErrorCode,
    ExtractionResult,
    ParseOutcome,
    ParseWarning,
    PartialParseOptions,
    RepairResult,
    Success,
    failure,
)
from llm_json.partial import parse_partial
from llm_json.repair import repair
from llm_json.schemas import Schema, SchemaViolation, schema_from_dict, validate

logger = logging.getLogger(__name__)

CONTEXT_CHARS = 40


def strict_loads(text: str) -> ParseOutcome:
    """json.loads as an outcome instead of an exception."""
    try:
        return Success(data=json.loads(text))
    except json.JSONDecodeError as e:
        start = max(e.pos - CONTEXT_CHARS, 0)
        return failure(
            ErrorCode.INVALID_JSON,
            e.msg,
            position=e.pos,
            context=text[start:e.pos + CONTEXT_CHARS],
        )
    except RecursionError:
        return failure(ErrorCode.INVALID_JSON, "Nesting too deep to parse")


def resolve_schema(schema: Schema | dict | None) -> Schema | None:
    """Accept a Schema model or its dict form. Raises pydantic.ValidationError."""
    if isinstance(schema, dict):
        return schema_from_dict(schema)
    return schema


def check_schema(outcome: ParseOutcome, schema: Schema | None) -> ParseOutcome:
    """Turn a Success into a schema_mismatch Failure when validation fails."""
    if schema is None or not outcome.ok:
        return outcome
    violations = validate(outcome.data, schema)
    if not violations:
        return outcome
    return failure(
        ErrorCode.SCHEMA_MISMATCH,
        f"Schema mismatch ({len(violations)} violation(s))",
        context=json.dumps([v.model_dump(mode="json") for v in violations]),
    )


def attach_warnings(outcome: ParseOutcome, warnings: list[ParseWarning],
                    config: ParserConfig) -> ParseOutcome:
    if outcome.ok and config.collect_warnings and warnings:
        return outcome.model_copy(update={"warnings": list(warnings)})
    return outcome


def parse(text: str | None, schema: Schema | dict | None = None,
          config: ParserConfig | None = None) -> ParseOutcome:
    """
    Parse LLM output into structured data. Never raises.

    Extracts JSON from the text, repairs common issues when a strict parse
    fails, and validates against `schema` when one is given.
    """
    config = config or ParserConfig()
    try:
        schema = resolve_schema(schema)
    except ValidationError as e:
        return failure(ErrorCode.SCHEMA_MISMATCH, "Invalid schema", context=str(e))

    if not text:
        return failure(ErrorCode.NO_JSON_FOUND, "Empty input")

    extracted = extract(text)
    if extracted.candidate is None:
        return failure(ErrorCode.NO_JSON_FOUND, "No JSON object or array found")

    outcome = strict_loads(extracted.candidate)
    if outcome.ok:
        return check_schema(outcome, schema)

    logger.debug("Strict parse failed (%s), attempting repair", outcome.error.message)
    repaired = repair(extracted.candidate, config.custom_repairs)
    outcome = strict_loads(repaired.output)
    if not outcome.ok:
        logger.debug("Repaired text still invalid: %s", outcome.error.message)
        return outcome

    outcome = attach_warnings(outcome, repaired.warnings, config)
    return check_schema(outcome, schema)


def parse_with_schema(text: str | None, schema: Schema | dict,
                      config: ParserConfig | None = None) -> ParseOutcome:
    """parse() with a mandatory schema."""
    return parse(text, schema, config=config)


class LlmJson:
    """
    Every public operation bound to one ParserConfig.

    Example:
        parser = create_instance(ParserConfig(collect_warnings=False))
        outcome = parser.parse(text)
    """

    def __init__(self, config: ParserConfig | None = None):
        self.config = config or ParserConfig()

    def parse(self, text: str | None, schema: Schema | dict | None = None) -> ParseOutcome:
        return parse(text, schema, config=self.config)

    def parse_with_schema(self, text: str | None, schema: Schema | dict) -> ParseOutcome:
        return parse_with_schema(text, schema, config=self.config)

    def extract(self, text: str | None) -> ExtractionResult:
        return extract(text)

    def extract_all(self, text: str | None) -> ExtractionResult:
        return extract_all(text)

    def repair(self, text: str | None) -> RepairResult:
        return repair(text, self.config.custom_repairs)

    def parse_partial(self, text: str | None,
                      options: PartialParseOptions | None = None) -> ParseOutcome:
        return parse_partial(text, options)

    def validate(self, value: Any, schema: Schema | dict) -> list[SchemaViolation]:
        return validate(value, schema)

    def create_session(self, schema: Schema | dict | None = None, **callbacks):
        from llm_json.streaming import StreamingSession
        return StreamingSession(schema=schema, config=self.config, **callbacks)

    async def parse_stream(self, chunks: AsyncIterable | Iterable,
                           schema: Schema | dict | None = None, **callbacks) -> ParseOutcome:
        from llm_json.streaming import parse_stream
        return await parse_stream(chunks, schema=schema, config=self.config, **callbacks)


def create_instance(config: ParserConfig | None = None) -> LlmJson:
    return LlmJson(config)
