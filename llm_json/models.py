"""
Result Models — Tagged outcomes for every public operation.

All models use Pydantic v2 so they serialize directly into API responses.
Nothing in the pipeline raises across a module boundary: callers inspect
`outcome.ok` and then either `outcome.data` or `outcome.error`.
"""

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class WarningCode(str, Enum):
    """Categories of non-fatal textual repairs."""
    TRAILING_COMMA_REMOVED = "trailing_comma_removed"
    SINGLE_QUOTES_REPLACED = "single_quotes_replaced"
    UNQUOTED_KEY_FIXED = "unquoted_key_fixed"
    PYTHON_LITERAL_CONVERTED = "python_literal_converted"
    # Reserved, not emitted by the current repair pass
    MISSING_COMMA_ADDED = "missing_comma_added"
    MARKDOWN_FENCE_STRIPPED = "markdown_fence_stripped"
    PROSE_STRIPPED = "prose_stripped"
    TRUNCATED_STRING_CLOSED = "truncated_string_closed"
    UNESCAPED_QUOTE_FIXED = "unescaped_quote_fixed"


class ErrorCode(str, Enum):
    """Categories of unrecoverable outcomes."""
    NO_JSON_FOUND = "no_json_found"
    INVALID_JSON = "invalid_json"
    SCHEMA_MISMATCH = "schema_mismatch"
    TRUNCATED = "truncated"
    TYPE_ERROR = "type_error"
    MISSING_REQUIRED = "missing_required"
    BUFFER_OVERFLOW = "buffer_overflow"


class Confidence(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ParseWarning(BaseModel):
    """A successful, non-fatal repair applied to the input."""
    code: WarningCode
    message: str = ""
    position: int | None = None


class ParseError(BaseModel):
    """Why a call could not produce a value."""
    code: ErrorCode
    message: str
    position: int | None = None
    context: str | None = None


class PartialSnapshot(BaseModel):
    """Best-effort view of a value that could not be fully parsed."""
    confidence: Confidence = Confidence.LOW
    complete: Any = None
    pending: list[str] = Field(default_factory=list)


class Success(BaseModel):
    ok: Literal[True] = True
    data: Any = None
    warnings: list[ParseWarning] = Field(default_factory=list)


class Failure(BaseModel):
    ok: Literal[False] = False
    error: ParseError
    partial: PartialSnapshot | None = None


ParseOutcome = Success | Failure


def failure(code: ErrorCode, message: str, **kwargs) -> Failure:
    """Shorthand for building a Failure with an optional snapshot."""
    partial = kwargs.pop("partial", None)
    return Failure(error=ParseError(code=code, message=message, **kwargs), partial=partial)


class ExtractionResult(BaseModel):
    """
    Bracketed region(s) located in text.

    `start`/`end` index into the fence-stripped text, `end` exclusive.
    """
    candidate: str | None = None
    start: int = 0
    end: int = 0
    candidates: list[str] = Field(default_factory=list)


class RepairResult(BaseModel):
    output: str
    warnings: list[ParseWarning] = Field(default_factory=list)
    strictly_valid: bool = False


class PartialParseOptions(BaseModel):
    """Which trailing constructs may be left unterminated."""
    allow_partial_strings: bool = True
    allow_partial_objects: bool = True
    allow_partial_arrays: bool = True
    allow_partial_numbers: bool = False


class SessionState(str, Enum):
    IDLE = "idle"
    IN_PROGRESS = "in_progress"
    CLOSED = "closed"
