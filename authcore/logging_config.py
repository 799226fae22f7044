"""
Logging setup for authcore.

The library itself only logs through the stdlib ``logging`` module. Hosts call
``LoggerConfigurator().configure()`` once to get colored output with
credential redaction; ``log_structured_error`` adds categorized error lines
and feeds the process-wide ``error_aggregator``.
"""

import logging
import os
import re
import sys
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Any

import colorlog

from .constants import ERROR_ALERT_RATE_PER_HOUR, ERROR_HISTORY_LIMIT

SENSITIVE_KEYS = {
    "access_token",
    "accessToken",
    "refresh_token",
    "refreshToken",
    "authorization",
    "Authorization",
    "password",
}

_BEARER_RE = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/]+=*", re.IGNORECASE)
_JWT_RE = re.compile(r"\beyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*")


def redact_sensitive(data: Any) -> Any:
    """Recursively redact credential fields in a dict/list before logging."""
    if isinstance(data, dict):
        return {
            k: ("[REDACTED]" if k in SENSITIVE_KEYS else redact_sensitive(v))
            for k, v in data.items()
        }
    if isinstance(data, list | tuple):
        return [redact_sensitive(v) for v in data]
    if isinstance(data, str):
        return redact_text(data)
    return data


def redact_text(text: str) -> str:
    text = _BEARER_RE.sub(r"\1[REDACTED]", text)
    return _JWT_RE.sub("[REDACTED-JWT]", text)


class CredentialRedactingFilter(logging.Filter):
    """Masks bearer tokens and JWTs that slipped into a log message."""

    def filter(self, record):
        message = record.getMessage()
        redacted = redact_text(message)
        if redacted != message:
            record.msg = redacted
            record.args = None
        return True


@dataclass(frozen=True)
class ErrorOccurrence:
    timestamp: float
    message: str
    context: dict[str, Any] = field(default_factory=dict)


class ErrorAggregator:
    """Counts structured errors per category.

    Grouping by category means a burst of identical failures (a storage
    outage, a refresh endpoint down) shows up as a rate instead of as
    unrelated lines. Totals are unbounded; the occurrence history per
    category is capped, so ``recent_count`` saturates at ``history_limit``.

    Args:
        history_limit: Occurrences kept per category.
        alert_rate_per_hour: Rate above which ``should_alert`` is true.
    """

    def __init__(
        self,
        history_limit: int = ERROR_HISTORY_LIMIT,
        alert_rate_per_hour: float = ERROR_ALERT_RATE_PER_HOUR,
    ) -> None:
        self.history_limit = history_limit
        self.alert_rate_per_hour = alert_rate_per_hour
        self._lock = threading.Lock()
        self._history: dict[str, deque[ErrorOccurrence]] = {}
        self._totals: dict[str, int] = {}
        self._started = time.time()

    def record_error(
        self, error_type: str, message: str, context: dict[str, Any] | None = None
    ) -> None:
        occurrence = ErrorOccurrence(time.time(), message, dict(context or {}))
        with self._lock:
            history = self._history.get(error_type)
            if history is None:
                history = deque(maxlen=self.history_limit)
                self._history[error_type] = history
            history.append(occurrence)
            self._totals[error_type] = self._totals.get(error_type, 0) + 1

    def get_error_summary(self) -> dict[str, dict[str, Any]]:
        """Per-category totals, last-hour counts, hourly rate and last occurrence."""
        now = time.time()
        hours = max((now - self._started) / 3600, 1)
        with self._lock:
            return {
                error_type: {
                    "total_count": self._totals[error_type],
                    "recent_count": sum(1 for o in history if now - o.timestamp < 3600),
                    "rate_per_hour": self._totals[error_type] / hours,
                    "last_occurrence": history[-1] if history else None,
                }
                for error_type, history in self._history.items()
            }

    def should_alert(self, error_type: str) -> bool:
        stats = self.get_error_summary().get(error_type)
        return stats is not None and stats["rate_per_hour"] > self.alert_rate_per_hour

    def reset(self) -> None:
        with self._lock:
            self._history.clear()
            self._totals.clear()
            self._started = time.time()

    def log_summary_report(self) -> None:
        summary = self.get_error_summary()
        if not summary:
            logging.info("📊 No errors recorded in current session")
            return
        logging.warning("🚨 ERROR SUMMARY REPORT")
        for error_type, stats in sorted(summary.items()):
            logging.warning(
                f"  {error_type}: {stats['total_count']} total, "
                f"{stats['recent_count']} in last hour, "
                f"{stats['rate_per_hour']:.1f}/hour"
            )
            last = stats["last_occurrence"]
            if last is not None:
                logging.warning(f"    Last: {last.message}")


# Process-wide aggregator fed by log_structured_error
error_aggregator = ErrorAggregator()


def log_structured_error(
    error_type: str,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
) -> None:
    """Log ``[TYPE] message | Exception: ... | Context: k=v`` and aggregate it.

    Args:
        error_type: Category (``network``, ``auth``, ``storage`` ...).
        message: Descriptive message.
        exception: The exception that occurred, if any.
        context: Extra key/value context; credential fields are redacted.
        level: Logging level for the record.
    """
    safe_context = redact_sensitive(context) if context else {}
    safe_message = redact_text(message)
    parts = [f"[{error_type.upper()}] {safe_message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {redact_text(str(exception))}")
    if safe_context:
        parts.append("Context: " + " | ".join(f"{k}={v}" for k, v in safe_context.items()))
    logging.log(level, " | ".join(parts))

    error_aggregator.record_error(error_type, safe_message, safe_context)
    if error_aggregator.should_alert(error_type):
        rate = error_aggregator.get_error_summary()[error_type]["rate_per_hour"]
        logging.critical(f"🚨 HIGH ERROR RATE ALERT: {error_type} occurring at {rate:.1f}/hour")


class LoggerConfigurator:
    """Installs a colorlog handler with credential redaction on the root logger.

    Level resolution: ``config["level"]``, then the ``AUTHCORE_LOG_LEVEL`` env
    var (a level name), then ``DEBUG`` (truthy -> DEBUG), else INFO.
    """

    def __init__(self, config=None):
        self.config = config or {}

    def resolve_level(self) -> int:
        name = self.config.get("level") or os.environ.get("AUTHCORE_LOG_LEVEL", "")
        if name:
            level = logging.getLevelName(str(name).upper())
            if isinstance(level, int):
                return level
        debug_env = os.environ.get("DEBUG", "").lower()
        return logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

    def configure(self):
        log_level = self.resolve_level()
        formatter = colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )

        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(formatter)
        handler.addFilter(CredentialRedactingFilter())

        root_logger = logging.getLogger()
        for existing in list(root_logger.handlers):
            if getattr(existing, "_authcore_handler", False):
                root_logger.removeHandler(existing)
        handler._authcore_handler = True
        root_logger.addHandler(handler)
        root_logger.setLevel(log_level)

        # aiohttp client debug output drowns the refresh flow
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        return log_level
