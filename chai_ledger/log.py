"""Loguru sink setup shared by the CLI and embedding applications."""
from __future__ import annotations
import sys
from typing import Optional
from loguru import logger

from .config import ChaiLedgerConfig


def configure_logging(config: Optional[ChaiLedgerConfig] = None, verbose: bool = False) -> None:
    """
    Replace loguru's default sink.

    Logs go to stderr at the configured level (DEBUG when verbose), and
    additionally to ``config.log_file`` when one is set.
    """
    config = config or ChaiLedgerConfig.from_env()
    level = "DEBUG" if verbose else config.log_level.upper()

    logger.remove()
    logger.add(sys.stderr, level=level)
    if config.log_file:
        logger.add(config.log_file, level=level, rotation="10 MB", retention=5)
