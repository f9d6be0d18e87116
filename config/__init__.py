"""Configuration management package for the Waystation session daemon"""

from .loader import ConfigLoader, get_config_loader

__all__ = [
    "ConfigLoader",
    "get_config_loader",
]
