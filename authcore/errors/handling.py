from __future__ import annotations

import logging

from ..logging_config import log_structured_error
from .internal import (
    AuthExpiredError,
    HttpStatusError,
    InternalError,
    NetworkError,
    ParsingError,
    RequestCancelledError,
    StorageError,
)


def error_category(error: BaseException) -> str:
    """Return the aggregation category for an exception."""
    if isinstance(error, NetworkError | OSError | ConnectionError | TimeoutError):
        return "network"
    if isinstance(error, AuthExpiredError):
        return "auth"
    if isinstance(error, HttpStatusError):
        return "auth" if error.status == 401 else "http"
    if isinstance(error, ParsingError):
        return "parsing"
    if isinstance(error, StorageError):
        return "storage"
    if isinstance(error, RequestCancelledError):
        return "cancelled"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict | None = None,
    level: int = logging.ERROR,
) -> None:
    """Logs an error message with the associated exception details.

    Formats and logs an error message along with the string representation
    of the exception using structured logging for better error tracking
    and aggregation.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        level: Logging level for the record.

    Returns:
        None
    """
    log_structured_error(
        error_type=error_category(error),
        message=f"{message}: {str(error)}",
        exception=error,
        context=context,
        level=level,
    )
