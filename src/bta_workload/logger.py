"""
Logging setup with loguru.

Library modules log through `from loguru import logger`; entry points call
setup_logger() once to choose the level and format.
"""

import sys

from loguru import logger


def setup_logger(level: str = "INFO"):
    """
    Configure loguru with a single stderr sink.
    """
    logger.remove()
    logger.add(
        sys.stderr,
        colorize=True,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
        level=level,
    )
    return logger
