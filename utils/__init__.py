"""Shared utilities package for the Waystation session daemon"""

from .logging_setup import configure_logging

__all__ = [
    "configure_logging",
]
