"""CLI package for the Waystation session daemon

Runs the session daemon and forwards deep links and session commands to
a running instance.
"""

from cli.cli_app import SessionCLI
from cli.main import main

__all__ = [
    "SessionCLI",
    "main",
]
