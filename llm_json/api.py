"""
FastAPI REST API for the llm-json recovery pipeline.

Provides /parse, /extract, /repair, /parse-partial, /stream and /health
with optional API key authentication. Every parsing endpoint answers 200
with a result body; malformed input is reported in the body, not as an
HTTP error.

Usage:
    uvicorn llm_json.api:app --reload
    # or
    python -m llm_json.api
"""

import logging
import os
import time

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, HTTPException, Request, Security
from fastapi.security import APIKeyHeader

from llm_json import __version__
from llm_json.api_models import (
    ExtractRequest,
    HealthResponse,
    ParseRequest,
    PartialRequest,
    RepairRequest,
    StreamRequest,
    StreamResponse,
)
from llm_json.config import ParserConfig
from llm_json.logging_config import setup_logging
from llm_json.models import ExtractionResult, Failure, RepairResult, Success
from llm_json.parser import LlmJson

load_dotenv()
setup_logging()
logger = logging.getLogger(__name__)

# --- App setup ---

app = FastAPI(
    title="LLM JSON Recovery API",
    description="Extract, repair and incrementally parse JSON from LLM output",
    version=__version__,
)

# --- Auth ---

API_KEY_HEADER = APIKeyHeader(name="X-API-Key", auto_error=False)


def verify_api_key(api_key: str = Security(API_KEY_HEADER)) -> str:
    """
    Validate the API key from the X-API-Key header.

    The expected key is set via the API_KEY environment variable.
    If API_KEY is not set, auth is disabled (development mode).
    """
    expected = os.environ.get("API_KEY")
    if expected is None:
        return "dev"
    if not api_key or api_key != expected:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")
    return api_key


# --- Parser lifecycle ---

_parser: LlmJson | None = None


def get_parser() -> LlmJson:
    """Get the configured parser, building it from the environment on first call."""
    global _parser
    if _parser is None:
        config = ParserConfig.from_env()
        logger.info(
            "Initializing parser (max_buffer_size=%d, collect_warnings=%s)",
            config.max_buffer_size, config.collect_warnings,
        )
        _parser = LlmJson(config)
    return _parser


# --- Request logging middleware ---

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log every request with timing."""
    start = time.time()
    response = await call_next(request)
    elapsed = time.time() - start
    logger.info(
        "%s %s status=%d time=%.3fs",
        request.method, request.url.path, response.status_code, elapsed,
    )
    return response


# --- Routes ---

@app.get("/health", response_model=HealthResponse)
def health(parser: LlmJson = Depends(get_parser)):
    """Service health check."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        max_buffer_size=parser.config.max_buffer_size,
        collect_warnings=parser.config.collect_warnings,
    )


@app.post(
    "/parse",
    response_model=Success | Failure,
    dependencies=[Depends(verify_api_key)],
)
def parse_text(req: ParseRequest, parser: LlmJson = Depends(get_parser)):
    """Extract, repair and validate JSON from raw LLM output."""
    outcome = parser.parse(req.text, req.output_schema)
    if not outcome.ok:
        logger.info("Parse failed: %s", outcome.error.code.value)
    return outcome


@app.post(
    "/extract",
    response_model=ExtractionResult,
    dependencies=[Depends(verify_api_key)],
)
def extract_text(req: ExtractRequest, parser: LlmJson = Depends(get_parser)):
    """Locate the first (or every) balanced JSON region in the text."""
    if req.extract_all:
        return parser.extract_all(req.text)
    return parser.extract(req.text)


@app.post(
    "/repair",
    response_model=RepairResult,
    dependencies=[Depends(verify_api_key)],
)
def repair_text(req: RepairRequest, parser: LlmJson = Depends(get_parser)):
    """Rewrite JSON-like text into strict JSON without parsing it."""
    return parser.repair(req.text)


@app.post(
    "/parse-partial",
    response_model=Success | Failure,
    dependencies=[Depends(verify_api_key)],
)
def parse_partial_text(req: PartialRequest, parser: LlmJson = Depends(get_parser)):
    """Parse possibly-truncated JSON under the given allowances."""
    return parser.parse_partial(req.text, req.options)


@app.post(
    "/stream",
    response_model=StreamResponse,
    dependencies=[Depends(verify_api_key)],
)
def stream_chunks(req: StreamRequest, parser: LlmJson = Depends(get_parser)):
    """Replay chunks through one streaming session, returning every preview."""
    session = parser.create_session(schema=req.output_schema)
    previews = [session.write(chunk) for chunk in req.chunks]
    final = session.finish()
    logger.info("Stream replay: %d chunks, final ok=%s", len(req.chunks), final.ok)
    return StreamResponse(previews=previews, final=final, total_chunks=len(req.chunks))


# --- Entrypoint for python -m ---

if __name__ == "__main__":
    import uvicorn
    uvicorn.run("llm_json.api:app", host="0.0.0.0", port=8000, reload=True)
