"""Utility functions package for authcore.

Exposed functions:
    format_duration: Formats time durations into human-readable strings.
    parse_aware_datetime: Strict ISO-8601 parsing for persisted expiries.
    utc_now: Timezone-aware current time.
    retry_async: Tenacity-backed async retry with exponential backoff.
"""

from .helpers import format_duration, parse_aware_datetime, utc_now
from .retry import RetryExhaustedError, retry_async

__all__ = [
    "format_duration",
    "parse_aware_datetime",
    "utc_now",
    "retry_async",
    "RetryExhaustedError",
]
