"""Guarded cell holding the current session state"""

import threading

from .models import SessionState


class CredentialStore:
    """Holds at most one credential; ``set`` is an atomic swap"""

    def __init__(self, initial: SessionState = None):
        self._lock = threading.Lock()
        self._state: SessionState = initial

    def get(self) -> SessionState:
        """Return the latest committed state"""
        with self._lock:
            return self._state

    def set(self, state: SessionState) -> SessionState:
        """Replace the stored state and return the previous one"""
        with self._lock:
            previous = self._state
            self._state = state
            return previous
