"""
Streaming Session — Incremental parsing over chunked LLM output.

A session owns a growing buffer plus the nesting/string state of
everything written so far. Each write() extends that state by scanning
only the new chunk, then re-runs extract -> repair -> partial parse ->
validate over the whole buffer to return a live preview. Previews are not
stable: fields may appear, change or disappear as more text arrives.

finish() demands that the structure is closed before producing a final,
strictly parsed result.

Byte streams are decoded by the drivers at the bottom of this module,
never by the session itself.
"""

import codecs
import logging
import threading
from collections.abc import AsyncIterable, Iterable, Iterator
from typing import Any, Callable

from pydantic import ValidationError

from llm_json.config import ParserConfig
from llm_json.extract import CLOSERS, OPENERS, extract_partial
from llm_json.models import (
    ErrorCode,
    Failure,
    ParseOutcome,
    ParseWarning,
    PartialParseOptions,
    SessionState,
    failure,
)
from llm_json.parser import attach_warnings, check_schema, parse, resolve_schema
from llm_json.partial import parse_partial, snapshot
from llm_json.repair import repair
from llm_json.schemas import Schema

logger = logging.getLogger(__name__)

PREVIEW_OPTIONS = PartialParseOptions()


class StreamingSession:
    """
    Stateful incremental parser. One writer at a time.

    Example:
        session = StreamingSession(schema=schema)
        for chunk in llm_stream:
            preview = session.write(chunk)
            if preview.ok:
                update_ui(preview.data)
        final = session.finish()
    """

    def __init__(
        self,
        schema: Schema | dict | None = None,
        config: ParserConfig | None = None,
        on_update: Callable[[ParseOutcome], None] | None = None,
        on_json_start: Callable[[], None] | None = None,
        on_json_complete: Callable[[Any], None] | None = None,
        on_warning: Callable[[ParseWarning], None] | None = None,
    ):
        self.config = config or ParserConfig()
        self.on_update = on_update
        self.on_json_start = on_json_start
        self.on_json_complete = on_json_complete
        self.on_warning = on_warning

        self._schema_error: Failure | None = None
        try:
            self.schema = resolve_schema(schema)
        except ValidationError as e:
            self.schema = None
            self._schema_error = failure(
                ErrorCode.SCHEMA_MISMATCH, "Invalid schema", context=str(e)
            )

        self._lock = threading.Lock()
        self._clear()

    def _clear(self):
        self._buffer = ""
        self._depth = 0
        self._in_string = False
        self._escape_next = False
        self._started = False

    # --- Read-only state ---

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def started(self) -> bool:
        return self._started

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def in_string(self) -> bool:
        return self._in_string

    @property
    def state(self) -> SessionState:
        if not self._started:
            return SessionState.IDLE
        if self._depth > 0 or self._in_string:
            return SessionState.IN_PROGRESS
        return SessionState.CLOSED

    # --- Scanning ---

    def _scan(self, chunk: str) -> bool:
        """Advance nesting state over `chunk`. Returns True if JSON just started."""
        just_started = False
        for ch in chunk:
            if self._escape_next:
                self._escape_next = False
                continue
            if self._in_string:
                if ch == "\\":
                    self._escape_next = True
                elif ch == '"':
                    self._in_string = False
                continue
            if ch == '"':
                self._in_string = True
            elif ch in OPENERS:
                if self._depth == 0 and not self._started:
                    self._started = True
                    just_started = True
                self._depth += 1
            elif ch in CLOSERS and self._depth > 0:
                self._depth -= 1
        return just_started

    def _preview(self) -> ParseOutcome:
        extracted = extract_partial(self._buffer)
        if extracted.candidate is None:
            return failure(ErrorCode.TRUNCATED, "No JSON found yet")

        repaired = repair(extracted.candidate, self.config.custom_repairs)
        outcome = parse_partial(repaired.output, PREVIEW_OPTIONS)
        outcome = attach_warnings(outcome, repaired.warnings, self.config)
        return check_schema(outcome, self.schema)

    # --- Public operations ---

    def write(self, chunk: str) -> ParseOutcome:
        """Append a chunk and return a preview of everything so far."""
        if not isinstance(chunk, str):
            return failure(
                ErrorCode.INVALID_JSON,
                f"Invalid chunk: expected str, got {type(chunk).__name__}",
            )
        with self._lock:
            if self._schema_error is not None:
                return self._schema_error

            limit = self.config.max_buffer_size
            if len(self._buffer) + len(chunk) > limit:
                logger.warning(
                    "Rejected %d-char chunk: buffer would exceed %d chars",
                    len(chunk), limit,
                )
                return failure(
                    ErrorCode.BUFFER_OVERFLOW,
                    f"Buffer limit of {limit} characters exceeded",
                    position=len(self._buffer),
                )

            self._buffer += chunk
            just_started = self._scan(chunk)
            outcome = self._preview()
            logger.debug(
                "write: %d chars buffered, depth=%d, in_string=%s, ok=%s",
                len(self._buffer), self._depth, self._in_string, outcome.ok,
            )

        if just_started and self.on_json_start:
            self.on_json_start()
        if self.on_update:
            self.on_update(outcome)
        return outcome

    def finish(self) -> ParseOutcome:
        """Produce the final result; fails if the JSON never closed."""
        with self._lock:
            if self._schema_error is not None:
                return self._schema_error
            if not self._started:
                return failure(ErrorCode.NO_JSON_FOUND, "No JSON found in stream")
            if self._depth != 0 or self._in_string:
                extracted = extract_partial(self._buffer)
                repaired = repair(extracted.candidate or "", self.config.custom_repairs)
                return failure(
                    ErrorCode.TRUNCATED,
                    f"Incomplete JSON: {self._depth} unclosed bracket(s)"
                    + (", inside a string" if self._in_string else ""),
                    position=len(self._buffer),
                    partial=snapshot(repaired.output),
                )
            outcome = parse(self._buffer, self.schema, config=self.config)

        if outcome.ok:
            if self.on_warning:
                for warning in outcome.warnings:
                    self.on_warning(warning)
            if self.on_json_complete:
                self.on_json_complete(outcome.data)
        return outcome

    def reset(self):
        """Clear the buffer and all state so the session can be reused."""
        with self._lock:
            self._clear()


# --- Chunk-source drivers ---

def _new_decoder():
    return codecs.getincrementaldecoder("utf-8")(errors="replace")


def decode_chunks(chunks: Iterable[str | bytes]) -> Iterator[str]:
    """
    Yield text chunks, decoding bytes with an incremental UTF-8 decoder so
    multi-byte sequences split across chunks are reassembled.
    """
    decoder = _new_decoder()
    for chunk in chunks:
        text = decoder.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


async def adecode_chunks(chunks: AsyncIterable[str | bytes]):
    """Async counterpart of decode_chunks()."""
    decoder = _new_decoder()
    async for chunk in chunks:
        text = decoder.decode(chunk) if isinstance(chunk, (bytes, bytearray)) else chunk
        if text:
            yield text
    tail = decoder.decode(b"", final=True)
    if tail:
        yield tail


def _is_overflow(outcome: ParseOutcome) -> bool:
    return not outcome.ok and outcome.error.code == ErrorCode.BUFFER_OVERFLOW


def parse_chunks(chunks: Iterable[str | bytes], schema: Schema | dict | None = None,
                 config: ParserConfig | None = None, **callbacks) -> ParseOutcome:
    """Feed a synchronous chunk source through a session and finish it."""
    if isinstance(chunks, (str, bytes, bytearray)):
        chunks = [chunks]
    elif not isinstance(chunks, Iterable):
        return failure(ErrorCode.INVALID_JSON, "Invalid input: expected an iterable of chunks")

    session = StreamingSession(schema=schema, config=config, **callbacks)
    for text in decode_chunks(chunks):
        outcome = session.write(text)
        if _is_overflow(outcome):
            return outcome
    return session.finish()


async def parse_stream(chunks: AsyncIterable[str | bytes] | Iterable[str | bytes],
                       schema: Schema | dict | None = None,
                       config: ParserConfig | None = None, **callbacks) -> ParseOutcome:
    """
    Consume an async (or plain) iterable of chunks and return the final result.

    The only await is on the chunk source; each write() runs synchronously.
    """
    if not isinstance(chunks, AsyncIterable):
        return parse_chunks(chunks, schema=schema, config=config, **callbacks)

    session = StreamingSession(schema=schema, config=config, **callbacks)
    async for text in adecode_chunks(chunks):
        outcome = session.write(text)
        if _is_overflow(outcome):
            return outcome
    return session.finish()
