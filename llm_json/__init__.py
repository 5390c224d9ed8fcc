"""
llm_json — Recover structured JSON from malformed LLM output.

Every operation returns a result object; none raise on bad input.
"""

from llm_json.config import ParserConfig, RepairRule
from llm_json.extract import extract, extract_all, extract_partial
from llm_json.models import (
    Confidence,
    ErrorCode,
    ExtractionResult,
    Failure,
    ParseError,
    ParseOutcome,
    ParseWarning,
    PartialParseOptions,
    PartialSnapshot,
    RepairResult,
    SessionState,
    Success,
    WarningCode,
)
from llm_json.parser import LlmJson, create_instance, parse, parse_with_schema
from llm_json.partial import parse_partial
from llm_json.repair import repair
from llm_json.schemas import (
    ArraySchema,
    LiteralSchema,
    ObjectSchema,
    PrimitiveSchema,
    Schema,
    SchemaViolation,
    UnionSchema,
    schema_from_dict,
    validate,
)
from llm_json.streaming import StreamingSession, parse_chunks, parse_stream

__version__ = "0.1.0"

__all__ = [
    "ArraySchema",
    "Confidence",
    "ErrorCode",
    "ExtractionResult",
    "Failure",
    "LiteralSchema",
    "LlmJson",
    "ObjectSchema",
    "ParseError",
    "ParseOutcome",
    "ParseWarning",
    "ParserConfig",
    "PartialParseOptions",
    "PartialSnapshot",
    "PrimitiveSchema",
    "RepairResult",
    "RepairRule",
    "Schema",
    "SchemaViolation",
    "SessionState",
    "StreamingSession",
    "Success",
    "UnionSchema",
    "WarningCode",
    "create_instance",
    "extract",
    "extract_all",
    "extract_partial",
    "parse",
    "parse_chunks",
    "parse_partial",
    "parse_stream",
    "parse_with_schema",
    "repair",
    "schema_from_dict",
    "validate",
]
