"""Session status display for CLI"""

import time
from datetime import datetime
from typing import Any, Dict, Optional

from rich.table import Table


def format_expiry(expires_at: Optional[int], now: Optional[float] = None) -> str:
    """
    Human-readable time until (or since) expiry

    Args:
        expires_at: Expiry as Unix epoch seconds
        now: Current Unix time (defaults to time.time())

    Returns:
        e.g. "1h 5m", "12m", "3m ago" or "No expiry"
    """
    if expires_at is None:
        return "No expiry"

    current_time = int(now if now is not None else time.time())
    remaining = expires_at - current_time

    if remaining <= 0:
        elapsed = -remaining
        hours_since = elapsed // 3600
        mins_since = (elapsed % 3600) // 60
        if hours_since > 0:
            return f"{hours_since}h {mins_since}m ago"
        return f"{mins_since}m ago"

    hours = remaining // 3600
    minutes = (remaining % 3600) // 60
    days = hours // 24

    if days > 0:
        return f"{days}d {hours % 24}h"
    if hours > 0:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


def build_status_table(status: Dict[str, Any], now: Optional[float] = None) -> Table:
    """
    Build a table for a session summary as served by the event listener

    Args:
        status: Redacted session summary
        now: Current Unix time (for tests)

    Returns:
        Rich table
    """
    table = Table(title="Session Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value")

    if not status.get("authenticated"):
        table.add_row("Auth Status", "[red]✗ Not authenticated[/red]")
        return table

    table.add_row("Auth Status", "[green]✓ Authenticated[/green]")
    if status.get("name"):
        table.add_row("Name", status["name"])
    if status.get("email"):
        table.add_row("Email", status["email"])
    if status.get("subject"):
        table.add_row("Subject", f"[dim]{status['subject']}[/dim]")

    expires_at = status.get("expires_at")
    if expires_at is not None:
        table.add_row("Expires At", datetime.fromtimestamp(expires_at).isoformat())
    table.add_row("Time Until Expiry", format_expiry(expires_at, now))
    table.add_row("Auto Refresh", "Yes" if status.get("has_refresh_token") and expires_at else "No")

    return table
