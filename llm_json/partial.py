"""
Partial Value Parser — Parse JSON that may be cut off mid-value.

A recursive-descent parser for a single JSON value that tolerates an
unterminated string, array, object or number at the end of the input,
each under its own permission flag. Malformed text that is not merely
incomplete (an unexpected character where a value should start) is always
a hard failure.
"""

import json
import logging
import re

from llm_json.models import (
    Confidence,
    ErrorCode,
    ParseOutcome,
    PartialParseOptions,
    PartialSnapshot,
    Success,
    failure,
)

logger = logging.getLogger(__name__)

WHITESPACE = " \t\n\r"
INTEGER = re.compile(r"-?[0-9]+")
DIGITS = "0123456789"
ESCAPES = {
    '"': '"',
    "\\": "\\",
    "/": "/",
    "b": "\b",
    "f": "\f",
    "n": "\n",
    "r": "\r",
    "t": "\t",
}
LITERALS = (("true", True), ("false", False), ("null", None))
# repair only converts these once complete, so a cut one reaches the parser
PYTHON_LITERALS = ("True", "False", "None")

PERMISSIVE = PartialParseOptions(
    allow_partial_strings=True,
    allow_partial_objects=True,
    allow_partial_arrays=True,
    allow_partial_numbers=True,
)


class PartialParseError(Exception):
    """Raised inside the parser; converted to a Failure at the module edge."""

    def __init__(self, code: ErrorCode, message: str, position: int):
        super().__init__(message)
        self.code = code
        self.message = message
        self.position = position


class EndOfInput(PartialParseError):
    """Input ended where a value was expected to start."""

    def __init__(self, position: int):
        super().__init__(ErrorCode.TRUNCATED, "Unexpected end of input", position)


def pointer(parts: list[str]) -> str:
    """Render a path as a /-separated pointer; the root is "/"."""
    return "/" + "/".join(parts)


class _PartialParser:
    def __init__(self, text: str, options: PartialParseOptions):
        self.text = text
        self.length = len(text)
        self.options = options
        self.pos = 0
        self.path: list[str] = []
        self.pending: list[str] = []
        self.scalar_cut = False

    def parse(self):
        return self.parse_value()

    def skip_ws(self):
        while self.pos < self.length and self.text[self.pos] in WHITESPACE:
            self.pos += 1

    def _mark_pending(self, parts: list[str], scalar: bool):
        self.pending.append(pointer(parts))
        if scalar:
            self.scalar_cut = True

    def _unterminated(self, value, allowed: bool, kind: str):
        if not allowed:
            raise PartialParseError(ErrorCode.TRUNCATED, f"Unterminated {kind}", self.pos)
        self._mark_pending(self.path, scalar=False)
        return value

    def parse_value(self):
        self.skip_ws()
        if self.pos >= self.length:
            raise EndOfInput(self.pos)

        ch = self.text[self.pos]
        if ch == "{":
            return self.parse_object()
        if ch == "[":
            return self.parse_array()
        if ch == '"':
            return self.parse_string()
        if ch == "-" or ch in DIGITS:
            return self.parse_number()
        return self.parse_literal()

    def parse_literal(self):
        for word, value in LITERALS:
            if self.text.startswith(word, self.pos):
                self.pos += len(word)
                return value

        rest = self.text[self.pos:].rstrip()
        if (any(word.startswith(rest) for word, _ in LITERALS)
                or any(word.startswith(rest) and word != rest for word in PYTHON_LITERALS)):
            self.scalar_cut = True
            raise EndOfInput(self.pos)
        raise PartialParseError(
            ErrorCode.INVALID_JSON,
            f"Unexpected character {self.text[self.pos]!r} at position {self.pos}",
            self.pos,
        )

    def read_string(self) -> tuple[str, bool]:
        """Consume a string starting at its opening quote. Returns (content, closed)."""
        text = self.text
        self.pos += 1
        chars = []
        while self.pos < self.length:
            ch = text[self.pos]
            self.pos += 1
            if ch == '"':
                return "".join(chars), True
            if ch != "\\":
                chars.append(ch)
                continue

            if self.pos >= self.length:
                break
            esc = text[self.pos]
            self.pos += 1
            if esc != "u":
                chars.append(ESCAPES.get(esc, esc))
                continue

            digits = text[self.pos:self.pos + 4]
            if len(digits) < 4:
                # cut inside a \uXXXX escape
                self.pos = self.length
                break
            try:
                code = int(digits, 16)
            except ValueError:
                chars.append(esc)
                continue
            self.pos += 4
            if 0xD800 <= code <= 0xDBFF and text.startswith("\\u", self.pos):
                low_digits = text[self.pos + 2:self.pos + 6]
                try:
                    low = int(low_digits, 16) if len(low_digits) == 4 else -1
                except ValueError:
                    low = -1
                if 0xDC00 <= low <= 0xDFFF:
                    code = 0x10000 + ((code - 0xD800) << 10) + (low - 0xDC00)
                    self.pos += 6
            chars.append(chr(code))
        return "".join(chars), False

    def parse_string(self) -> str:
        start = self.pos
        content, closed = self.read_string()
        if closed:
            return content
        if not self.options.allow_partial_strings:
            raise PartialParseError(ErrorCode.TRUNCATED, "Unterminated string", start)
        self._mark_pending(self.path, scalar=True)
        return content

    def parse_number(self):
        text = self.text
        start = self.pos

        def digits():
            while self.pos < self.length and text[self.pos] in DIGITS:
                self.pos += 1

        if text[self.pos] == "-":
            self.pos += 1
        digits()
        if self.pos < self.length and text[self.pos] == ".":
            self.pos += 1
            digits()
        if self.pos < self.length and text[self.pos] in "eE":
            self.pos += 1
            if self.pos < self.length and text[self.pos] in "+-":
                self.pos += 1
            digits()

        literal = text[start:self.pos]
        if self.options.allow_partial_numbers and literal.endswith("."):
            literal = literal[:-1]
        try:
            value = int(literal) if INTEGER.fullmatch(literal) else float(literal)
        except ValueError:
            raise PartialParseError(
                ErrorCode.TRUNCATED, f"Incomplete number {literal!r}", start
            ) from None

        if self.pos >= self.length:
            # more digits may still arrive
            self._mark_pending(self.path, scalar=True)
        return value

    def parse_array(self) -> list:
        self.pos += 1
        allowed = self.options.allow_partial_arrays
        items = []
        while True:
            self.skip_ws()
            if self.pos >= self.length:
                return self._unterminated(items, allowed, "array")
            ch = self.text[self.pos]
            if ch == "]":
                self.pos += 1
                return items
            if ch == ",":
                self.pos += 1
                continue

            self.path.append(str(len(items)))
            try:
                items.append(self.parse_value())
            except EndOfInput:
                if not allowed:
                    raise PartialParseError(
                        ErrorCode.TRUNCATED, "Unterminated array", self.pos
                    ) from None
                self._mark_pending(self.path, scalar=False)
                return items
            finally:
                self.path.pop()

    def _drop_key(self, obj: dict, key: str, allowed: bool) -> dict:
        if not allowed:
            raise PartialParseError(
                ErrorCode.TRUNCATED, f"Object ended before value of key {key!r}", self.pos
            )
        self._mark_pending(self.path + [key], scalar=True)
        return obj

    def parse_object(self) -> dict:
        self.pos += 1
        allowed = self.options.allow_partial_objects
        obj = {}
        while True:
            self.skip_ws()
            if self.pos >= self.length:
                return self._unterminated(obj, allowed, "object")
            ch = self.text[self.pos]
            if ch == "}":
                self.pos += 1
                return obj
            if ch == ",":
                self.pos += 1
                continue
            if ch != '"':
                raise PartialParseError(
                    ErrorCode.INVALID_JSON,
                    f"Expected string key at position {self.pos}",
                    self.pos,
                )

            key, closed = self.read_string()
            if not closed:
                return self._drop_key(obj, key, allowed)
            self.skip_ws()
            if self.pos >= self.length:
                return self._drop_key(obj, key, allowed)
            if self.text[self.pos] != ":":
                raise PartialParseError(
                    ErrorCode.INVALID_JSON,
                    f"Expected ':' after key {key!r} at position {self.pos}",
                    self.pos,
                )
            self.pos += 1

            self.path.append(key)
            try:
                value = self.parse_value()
            except EndOfInput:
                self.path.pop()
                return self._drop_key(obj, key, allowed)
            self.path.pop()
            obj[key] = value


def snapshot(text: str) -> PartialSnapshot:
    """
    Re-parse with every allowance enabled to describe what is recoverable.

    confidence is HIGH when only containers were left open, MEDIUM when a
    scalar or key was cut off, LOW when nothing could be recovered.
    """
    parser = _PartialParser(text, PERMISSIVE)
    try:
        complete = parser.parse()
    except (PartialParseError, RecursionError):
        return PartialSnapshot(confidence=Confidence.LOW, complete=None, pending=[pointer([])])
    confidence = Confidence.MEDIUM if parser.scalar_cut else Confidence.HIGH
    return PartialSnapshot(confidence=confidence, complete=complete, pending=parser.pending)


def parse_partial(text: str | None, options: PartialParseOptions | None = None) -> ParseOutcome:
    """
    Parse possibly-incomplete JSON.

    Example:
        parse_partial('{"users": [{"name": "Al').data == {"users": [{"name": "Al"}]}
    """
    if not text or not text.strip():
        return failure(ErrorCode.NO_JSON_FOUND, "Empty input")

    try:
        return Success(data=json.loads(text))
    except (ValueError, RecursionError):
        pass

    parser = _PartialParser(text, options or PartialParseOptions())
    try:
        data = parser.parse()
    except PartialParseError as e:
        logger.debug("Partial parse failed: %s", e.message)
        partial = snapshot(text) if e.code == ErrorCode.TRUNCATED else None
        return failure(e.code, e.message, position=e.position, partial=partial)
    except RecursionError:
        return failure(ErrorCode.INVALID_JSON, "Nesting too deep to parse")
    return Success(data=data)
