"""
Logging Configuration

setup_logging() is called once by each entry point (API, CLI, demo).
Library modules only ever call logging.getLogger(__name__).
"""

import logging
import os

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: str | None = None):
    """
    Configure the root logger.

    The level comes from the `level` argument, else the LOG_LEVEL env var,
    else INFO. Unknown level names fall back to INFO.
    """
    level_name = (level or os.environ.get("LOG_LEVEL", "INFO")).upper()
    resolved = getattr(logging, level_name, None)
    if not isinstance(resolved, int):
        resolved = logging.INFO

    logging.basicConfig(
        level=resolved,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
