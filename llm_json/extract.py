"""
Extractor — Locate JSON regions in LLM output.

Handles the usual wrapping patterns: markdown code fences, preamble prose,
trailing commentary. Brackets inside double-quoted strings do not count
toward nesting.

Known limitation: extraction runs before repair, so single-quoted strings
are not recognized yet. A literal `{` inside a single-quoted value can be
miscounted.
"""

import re

from llm_json.models import ExtractionResult

FENCE_PATTERN = re.compile(r"```(?:json)?\s*\n?(.*?)\n?```", re.DOTALL)

OPENERS = "{["
CLOSERS = "}]"


def strip_markdown_fences(text: str) -> str:
    """Replace every fenced block with its content and trim the result."""
    return FENCE_PATTERN.sub(r"\1", text).strip()


def _scan(text: str, find_all: bool) -> tuple[list[tuple[int, int]], int]:
    """
    Walk `text` once, returning closed (start, end) spans and the start
    offset of a still-open top-level region (-1 if none).
    """
    spans = []
    depth = 0
    in_string = False
    escape_next = False
    start = -1

    for i, ch in enumerate(text):
        if escape_next:
            escape_next = False
            continue
        if in_string:
            if ch == "\\":
                escape_next = True
            elif ch == '"':
                in_string = False
            continue
        if ch == '"':
            in_string = True
        elif ch in OPENERS:
            if depth == 0:
                start = i
            depth += 1
        elif ch in CLOSERS and depth > 0:
            depth -= 1
            if depth == 0:
                spans.append((start, i + 1))
                start = -1
                if not find_all:
                    break

    return spans, start


def _build_result(text: str, spans: list[tuple[int, int]]) -> ExtractionResult:
    if not spans:
        return ExtractionResult()
    candidates = [text[s:e] for s, e in spans]
    first_start, first_end = spans[0]
    return ExtractionResult(
        candidate=candidates[0],
        start=first_start,
        end=first_end,
        candidates=candidates,
    )


def extract(text: str | None) -> ExtractionResult:
    """
    Extract the first balanced JSON object or array from text.

    Example:
        extract('Result: {"a": 1}').candidate == '{"a": 1}'
    """
    if not text:
        return ExtractionResult()
    stripped = strip_markdown_fences(text)
    spans, _ = _scan(stripped, find_all=False)
    return _build_result(stripped, spans)


def extract_all(text: str | None) -> ExtractionResult:
    """Extract every non-overlapping top-level JSON region, in order."""
    if not text:
        return ExtractionResult()
    stripped = strip_markdown_fences(text)
    spans, _ = _scan(stripped, find_all=True)
    return _build_result(stripped, spans)


def extract_partial(text: str | None) -> ExtractionResult:
    """
    Like extract(), but when no region is closed yet, return the unclosed
    tail starting at the first top-level opening bracket.

    Used for streaming previews, where the buffer is usually mid-value.
    """
    if not text:
        return ExtractionResult()
    stripped = strip_markdown_fences(text)
    spans, open_start = _scan(stripped, find_all=False)
    if spans:
        return _build_result(stripped, spans)
    if open_start < 0:
        return ExtractionResult()
    tail = stripped[open_start:]
    return ExtractionResult(
        candidate=tail,
        start=open_start,
        end=len(stripped),
        candidates=[tail],
    )
