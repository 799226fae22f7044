"""General utility helper functions."""

from __future__ import annotations

import logging
from datetime import UTC, datetime

__all__ = ["format_duration", "parse_aware_datetime", "utc_now"]

_UNITS = (("d", 86400), ("h", 3600), ("m", 60))


def format_duration(total_seconds: int | float | None) -> str:
    """Return a compact ``1d 2h 3m 4s`` rendering of a duration in seconds.

    Leading zero units are dropped, inner ones kept ("1h 0m 5s"). Negative
    durations render as "expired".

    Examples:
      65 -> "1m 5s"
      3605 -> "1h 0m 5s"
      -3 -> "expired"
    """
    if total_seconds is None:
        return "unknown"
    remaining = int(total_seconds)
    if remaining < 0:
        return "expired"
    parts: list[str] = []
    for suffix, size in _UNITS:
        value, remaining = divmod(remaining, size)
        if value or parts:
            parts.append(f"{value}{suffix}")
    parts.append(f"{remaining}s")
    return " ".join(parts)


def parse_aware_datetime(raw: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp, accepting only timezone-aware values."""
    if not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        logging.debug("🔍 Unparseable timestamp ignored")
        return None
    return parsed if parsed.tzinfo is not None else None


def utc_now() -> datetime:
    return datetime.now(UTC)
