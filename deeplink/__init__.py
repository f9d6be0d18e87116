"""Deep link handling"""

from .router import DeepLinkRouter, LinkAction, resolve_link

__all__ = [
    "DeepLinkRouter",
    "LinkAction",
    "resolve_link",
]
