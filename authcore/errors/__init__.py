"""Error types and error logging helpers."""

from .handling import error_category, log_error
from .internal import (
    AuthExpiredError,
    HttpStatusError,
    InternalError,
    NetworkError,
    ParsingError,
    RequestCancelledError,
    StorageError,
    UnknownRequestError,
)

__all__ = [
    "AuthExpiredError",
    "HttpStatusError",
    "InternalError",
    "NetworkError",
    "ParsingError",
    "RequestCancelledError",
    "StorageError",
    "UnknownRequestError",
    "error_category",
    "log_error",
]
