from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

Clock = Callable[[], datetime]

# Matches Intl "pt-BR" toLocaleString output, e.g. "19/10/2026, 14:05:09".
DISPLAY_FORMAT = "%d/%m/%Y, %H:%M:%S"


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_display(value: datetime, *, timezone: str) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(ZoneInfo(timezone)).strftime(DISPLAY_FORMAT)
