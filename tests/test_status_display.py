"""Tests for CLI session status rendering"""

from rich.console import Console

from cli.status_display import build_status_table, format_expiry
from tests.conftest import NOW


def render(table) -> str:
    console = Console(record=True, width=120)
    console.print(table)
    return console.export_text()


def test_format_expiry():
    assert format_expiry(None, NOW) == "No expiry"
    assert format_expiry(int(NOW) + 3900, NOW) == "1h 5m"
    assert format_expiry(int(NOW) + 720, NOW) == "12m"
    assert format_expiry(int(NOW) + 2 * 86400 + 3 * 3600, NOW) == "2d 3h"
    assert format_expiry(int(NOW) - 180, NOW) == "3m ago"
    assert format_expiry(int(NOW) - 3 * 3600 - 60, NOW) == "3h 1m ago"


def test_unauthenticated_table():
    text = render(build_status_table({"authenticated": False}, NOW))

    assert "Not authenticated" in text


def test_authenticated_table():
    status = {
        "authenticated": True,
        "subject": "user_1",
        "name": "Ada Lovelace",
        "email": "ada@example.com",
        "expires_at": int(NOW) + 3900,
        "has_refresh_token": True,
        "has_id_token": False,
    }

    text = render(build_status_table(status, NOW))

    assert "Authenticated" in text
    assert "Ada Lovelace" in text
    assert "ada@example.com" in text
    assert "1h 5m" in text
    assert "Yes" in text
