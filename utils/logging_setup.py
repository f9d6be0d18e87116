"""Logging configuration for the session daemon and CLI"""

import logging
import os
from pathlib import Path
from typing import Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

# Third-party loggers that are noisy at DEBUG
_QUIET_LOGGERS = ("httpx", "httpcore", "aiohttp.access")


def configure_logging(level: str = "info", debug: bool = False, log_file: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger.

    A console handler is always installed. In debug mode the level is forced
    to DEBUG and records are also appended to ``log_file``.

    Args:
        level: Level name used outside debug mode
        debug: Whether debug mode is enabled
        log_file: Debug log file path (only used in debug mode)

    Returns:
        The configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO))

    # Clear existing handlers to avoid duplicates
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    formatter = logging.Formatter(LOG_FORMAT)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if debug and log_file:
        log_path = Path(os.path.abspath(os.path.expanduser(log_file)))
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, mode='a', encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)
        root_logger.info(f"Debug logging enabled - appending to {log_path}")

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
