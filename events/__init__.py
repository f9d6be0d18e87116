"""
Inbound event listener and its client
"""
from .server import (
    AUTH_ERROR_PATH,
    AUTH_SUCCESS_PATH,
    DEEP_LINK_PATH,
    SESSION_PATH,
    EventListenerServer,
    describe_state,
    start_event_listener,
)
from .client import EventClient, ListenerUnavailable

__all__ = [
    "AUTH_ERROR_PATH",
    "AUTH_SUCCESS_PATH",
    "DEEP_LINK_PATH",
    "SESSION_PATH",
    "EventListenerServer",
    "describe_state",
    "start_event_listener",
    "EventClient",
    "ListenerUnavailable",
]
