"""
LLM JSON Recovery — Command-line driver

Reads LLM output from a file (or stdin) and runs one stage of the
recovery pipeline over it, printing the result object as JSON.

Usage:
    python main.py response.txt                    # full parse
    python main.py response.txt --mode repair      # repair only
    python main.py --mode extract-all < dump.txt   # every JSON region
    python main.py response.txt --mode stream --chunk-size 8
    python main.py response.txt --schema schema.json
"""

import argparse
import json
import logging
import sys

from dotenv import load_dotenv
from pydantic import ValidationError

from llm_json.config import ParserConfig
from llm_json.logging_config import setup_logging
from llm_json.parser import LlmJson
from llm_json.schemas import schema_from_dict

logger = logging.getLogger(__name__)

MODES = ["parse", "repair", "extract", "extract-all", "partial", "stream"]


def load_schema(path: str | None):
    """Load a schema file, exiting with a message if it is unusable."""
    if not path:
        return None
    try:
        with open(path) as f:
            return schema_from_dict(json.load(f))
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        print(f"Could not load schema from {path}: {exc}", file=sys.stderr)
        sys.exit(2)


def chunked(text: str, size: int) -> list[str]:
    return [text[i:i + size] for i in range(0, len(text), size)]


def run_stream(parser: LlmJson, text: str, schema, chunk_size: int):
    """Feed the text through a session, printing each preview as it arrives."""
    session = parser.create_session(schema=schema)
    for i, chunk in enumerate(chunked(text, chunk_size), 1):
        preview = session.write(chunk)
        status = "ok" if preview.ok else preview.error.code.value
        shown = json.dumps(preview.data) if preview.ok else preview.error.message
        print(f"[{i:>4}] depth={session.depth} {status}: {shown}", file=sys.stderr)
    return session.finish()


def main():
    load_dotenv()
    parser = argparse.ArgumentParser(description="Recover JSON from LLM output")
    parser.add_argument("file", nargs="?",
                        help="File containing LLM output (default: stdin)")
    parser.add_argument("--mode", choices=MODES, default="parse",
                        help="Pipeline stage to run (default: parse)")
    parser.add_argument("--schema",
                        help="JSON file holding a schema to validate against")
    parser.add_argument("--chunk-size", type=int, default=16,
                        help="Chunk size for --mode stream (default: 16)")
    parser.add_argument("--log-level", default=None,
                        help="Override LOG_LEVEL for this run")
    args = parser.parse_args()
    setup_logging(args.log_level)

    if args.chunk_size < 1:
        parser.error("--chunk-size must be positive")

    if args.file:
        with open(args.file, encoding="utf-8") as f:
            text = f.read()
    else:
        text = sys.stdin.read()

    schema = load_schema(args.schema)
    llm_json = LlmJson(ParserConfig.from_env())
    logger.debug("Running mode=%s on %d chars", args.mode, len(text))

    if args.mode == "parse":
        result = llm_json.parse(text, schema)
    elif args.mode == "repair":
        result = llm_json.repair(text)
    elif args.mode == "extract":
        result = llm_json.extract(text)
    elif args.mode == "extract-all":
        result = llm_json.extract_all(text)
    elif args.mode == "partial":
        result = llm_json.parse_partial(text)
    else:
        result = run_stream(llm_json, text, schema, args.chunk_size)

    print(result.model_dump_json(indent=2))

    if getattr(result, "ok", True) is False:
        sys.exit(1)


if __name__ == "__main__":
    main()
