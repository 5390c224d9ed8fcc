"""
API request/response models for the llm-json service.

All models use Pydantic v2 for validation and serialization. Result bodies
reuse the library's own models so the HTTP shape matches the Python one.
"""

from pydantic import BaseModel, ConfigDict, Field

from llm_json.models import Failure, PartialParseOptions, Success
from llm_json.schemas import Schema


# --- Requests ---

class ParseRequest(BaseModel):
    """Request body for full parsing."""
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(
        ...,
        description="Raw LLM output (may contain prose, fences, malformed JSON)",
        json_schema_extra={"example": "Here you go: {name: 'John', age: 30,}"},
    )
    output_schema: Schema | None = Field(
        default=None,
        alias="schema",
        description="Optional schema the parsed value must satisfy",
    )


class ExtractRequest(BaseModel):
    """Request body for bracket extraction."""
    model_config = ConfigDict(populate_by_name=True)

    text: str
    extract_all: bool = Field(
        default=False,
        alias="all",
        description="Return every top-level JSON region instead of the first",
    )


class RepairRequest(BaseModel):
    """Request body for textual repair."""
    text: str


class PartialRequest(BaseModel):
    """Request body for truncation-tolerant parsing."""
    text: str
    options: PartialParseOptions = Field(default_factory=PartialParseOptions)


class StreamRequest(BaseModel):
    """Request body replaying a chunked stream through one session."""
    model_config = ConfigDict(populate_by_name=True)

    chunks: list[str] = Field(..., min_length=1)
    output_schema: Schema | None = Field(default=None, alias="schema")


# --- Responses ---

class StreamResponse(BaseModel):
    """Preview after every chunk plus the final result."""
    previews: list[Success | Failure]
    final: Success | Failure
    total_chunks: int


class HealthResponse(BaseModel):
    """Service health status."""
    status: str
    version: str
    max_buffer_size: int
    collect_warnings: bool
