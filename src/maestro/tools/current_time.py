"""Current date and time in a given IANA timezone."""

from __future__ import annotations

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

DETAILS = {
    "description": "Get the current date and time. Defaults to UTC.",
    "parameters": {
        "type": "object",
        "properties": {
            "timezone": {
                "type": "string",
                "description": "IANA timezone name, e.g. 'Europe/Paris'",
            },
        },
    },
}


def execute(tz_name: str = "UTC") -> dict:
    tz = timezone.utc if tz_name in ("", "UTC") else ZoneInfo(tz_name)
    now = datetime.now(tz)
    return {"timezone": tz_name or "UTC", "iso": now.isoformat(), "weekday": now.strftime("%A")}
