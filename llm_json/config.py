"""
Parser Configuration

An immutable settings value passed explicitly into LlmJson instances and
streaming sessions. `ParserConfig.from_env()` builds one from environment
variables for the API and CLI entry points.
"""

import logging
import os

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_MAX_BUFFER_SIZE = 1024 * 1024

_TRUTHY = {"1", "true", "yes", "on"}


class RepairRule(BaseModel):
    """A caller-supplied regex rewrite applied before the repair pass."""
    model_config = ConfigDict(frozen=True)

    name: str
    pattern: str
    replacement: str = ""


class ParserConfig(BaseModel):
    """Settings shared by every operation of one LlmJson instance."""
    model_config = ConfigDict(frozen=True)

    max_buffer_size: int = Field(default=DEFAULT_MAX_BUFFER_SIZE, gt=0)
    collect_warnings: bool = True
    custom_repairs: tuple[RepairRule, ...] = ()

    @classmethod
    def from_env(cls) -> "ParserConfig":
        """
        Read LLM_JSON_MAX_BUFFER_SIZE and LLM_JSON_COLLECT_WARNINGS.

        Unparseable values fall back to the defaults with a warning.
        """
        max_buffer_size = DEFAULT_MAX_BUFFER_SIZE
        raw_size = os.environ.get("LLM_JSON_MAX_BUFFER_SIZE")
        if raw_size:
            try:
                max_buffer_size = int(raw_size)
            except ValueError:
                logger.warning(
                    "Ignoring invalid LLM_JSON_MAX_BUFFER_SIZE=%r, using %d",
                    raw_size, DEFAULT_MAX_BUFFER_SIZE,
                )
            if max_buffer_size <= 0:
                max_buffer_size = DEFAULT_MAX_BUFFER_SIZE

        raw_collect = os.environ.get("LLM_JSON_COLLECT_WARNINGS", "true")
        collect_warnings = raw_collect.strip().lower() in _TRUTHY

        return cls(max_buffer_size=max_buffer_size, collect_warnings=collect_warnings)
