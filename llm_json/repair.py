"""
Repairer — Rewrite JSON-like LLM output into strict JSON.

Fixes, in one left-to-right pass over the text:
- single-quoted strings (apostrophes inside double-quoted strings survive)
- unquoted object keys
- Python literals (None, True, False)
followed by cleanup of trailing and repeated commas. Markdown fence markers
and // or /* */ comments are stripped up front.

Quote escaping is only guaranteed one level deep.
"""

import json
import logging
import re
from typing import Iterable

from llm_json.config import RepairRule
from llm_json.models import ParseWarning, RepairResult, WarningCode

logger = logging.getLogger(__name__)

FENCE_MARKER = re.compile(r"```(?:json)?[ \t]*\n?", re.IGNORECASE)
IDENTIFIER = re.compile(r"[A-Za-z_$][\w$]*")
PYTHON_LITERAL = re.compile(r"(None|True|False)(?![\w$])")
TRAILING_COMMA = re.compile(r",\s*([}\]])")
REPEATED_COMMAS = re.compile(r",(?:\s*,)+")

RESERVED_LITERALS = {"true", "false", "null", "undefined", "None", "True", "False"}
PYTHON_TO_JSON = {"None": "null", "True": "true", "False": "false"}


def is_strict_json(text: str) -> bool:
    try:
        json.loads(text)
    except (ValueError, RecursionError):
        return False
    return True


def _strip_comments(s: str) -> str:
    """Remove // and /* */ comments that sit outside string literals."""
    out = []
    i = 0
    n = len(s)
    quote = None
    escape_next = False
    while i < n:
        ch = s[i]
        if quote is not None:
            out.append(ch)
            if escape_next:
                escape_next = False
            elif ch == "\\":
                escape_next = True
            elif ch == quote:
                quote = None
            i += 1
            continue
        if ch in "\"'":
            quote = ch
        elif s.startswith("//", i):
            end = s.find("\n", i)
            i = n if end == -1 else end
            continue
        elif s.startswith("/*", i):
            end = s.find("*/", i + 2)
            i = n if end == -1 else end + 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def _apply_custom_repairs(s: str, rules: Iterable[RepairRule]) -> str:
    for rule in rules:
        try:
            s, count = re.subn(rule.pattern, rule.replacement, s)
        except re.error as e:
            logger.warning("Skipping repair rule %r with bad pattern: %s", rule.name, e)
            continue
        if count:
            logger.debug("Repair rule %r applied %d time(s)", rule.name, count)
    return s


def _at_word_start(s: str, i: int) -> bool:
    if i == 0:
        return True
    prev = s[i - 1]
    return not (prev.isalnum() or prev in "_$")


def _normalize(s: str, warnings: list[ParseWarning]) -> str:
    """
    The quote/key/literal pass.

    Tracks the active string delimiter so that only text outside strings is
    rewritten. Single-quoted strings are re-emitted with double quotes.
    """
    out = []
    i = 0
    n = len(s)
    quote = None
    escape_next = False
    replaced_single = False

    while i < n:
        ch = s[i]

        if quote is not None:
            if escape_next:
                escape_next = False
                if quote == "'":
                    if ch == "'":
                        out.append("'")
                    elif ch == '"':
                        out.append('\\"')
                    else:
                        out.append("\\" + ch)
                else:
                    out.append(ch)
            elif ch == "\\":
                escape_next = True
                if quote == '"':
                    out.append(ch)
            elif ch == quote:
                out.append('"')
                quote = None
            elif ch == '"':
                # bare double quote inside a single-quoted string
                out.append('\\"')
            else:
                out.append(ch)
            i += 1
            continue

        if ch in "\"'":
            quote = ch
            if ch == "'":
                replaced_single = True
            out.append('"')
            i += 1
            continue

        if ch in "{,":
            out.append(ch)
            i += 1
            while i < n and s[i].isspace():
                out.append(s[i])
                i += 1
            match = IDENTIFIER.match(s, i)
            if match and match.group(0) not in RESERVED_LITERALS:
                key = match.group(0)
                out.append(f'"{key}"')
                warnings.append(ParseWarning(
                    code=WarningCode.UNQUOTED_KEY_FIXED,
                    message=f"Quoted bare key '{key}'",
                    position=i,
                ))
                i = match.end()
            continue

        if ch in "NTF" and _at_word_start(s, i):
            match = PYTHON_LITERAL.match(s, i)
            if match:
                literal = match.group(1)
                out.append(PYTHON_TO_JSON[literal])
                warnings.append(ParseWarning(
                    code=WarningCode.PYTHON_LITERAL_CONVERTED,
                    message=f"Converted {literal} to {PYTHON_TO_JSON[literal]}",
                    position=i,
                ))
                i = match.end()
                continue

        out.append(ch)
        i += 1

    if replaced_single:
        warnings.append(ParseWarning(
            code=WarningCode.SINGLE_QUOTES_REPLACED,
            message="Replaced single-quote string delimiters with double quotes",
        ))
    return "".join(out)


def _sub_outside_strings(pattern: re.Pattern, repl: str, s: str) -> tuple[str, int]:
    """re.subn restricted to the parts of `s` outside double-quoted strings."""
    parts = []
    total = 0
    segment_start = 0
    i = 0
    n = len(s)
    while i < n:
        if s[i] != '"':
            i += 1
            continue
        outside, count = pattern.subn(repl, s[segment_start:i])
        parts.append(outside)
        total += count

        j = i + 1
        while j < n:
            if s[j] == "\\":
                j += 2
                continue
            if s[j] == '"':
                break
            j += 1
        j = min(j + 1, n)
        parts.append(s[i:j])
        segment_start = i = j

    outside, count = pattern.subn(repl, s[segment_start:])
    parts.append(outside)
    total += count
    return "".join(parts), total


def repair(text: str | None, custom_repairs: Iterable[RepairRule] = ()) -> RepairResult:
    """
    Repair common JSON issues from LLM output. Never raises.

    Example:
        repair("{name: 'John',}").output == '{"name": "John"}'
    """
    if not text:
        return RepairResult(output="", warnings=[], strictly_valid=False)

    warnings: list[ParseWarning] = []
    s = FENCE_MARKER.sub("", text.strip()).strip()
    s = _strip_comments(s)
    s = _apply_custom_repairs(s, custom_repairs)
    s = _normalize(s, warnings)

    s, _ = _sub_outside_strings(REPEATED_COMMAS, ",", s)
    s, removed = _sub_outside_strings(TRAILING_COMMA, r"\1", s)
    if removed:
        warnings.append(ParseWarning(
            code=WarningCode.TRAILING_COMMA_REMOVED,
            message=f"Removed {removed} trailing comma(s)",
        ))

    valid = is_strict_json(s)
    logger.debug("Repair produced %d warning(s), strictly_valid=%s", len(warnings), valid)
    return RepairResult(output=s, warnings=warnings, strictly_valid=valid)
