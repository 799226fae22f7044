"""Centralized internal error hierarchy.

These exceptions are what callers of the authenticated client actually see.
Raw aiohttp / JSON / OS errors never cross the package boundary; transports
capture them as data and the classifier turns them into one of these.

Classes:
  InternalError          – Base for all internal errors.
  NetworkError           – No response was received (timeout, DNS, refused).
  HttpStatusError        – A response was received with status >= 400.
  UnknownRequestError    – Outcome that could not be classified.
  ParsingError           – Response parsing / schema validation issues.
  AuthExpiredError       – Token refresh failed; the session is over.
  RequestCancelledError  – Request abandoned because of an explicit logout.
  StorageError           – Persistent secure store failure.
"""

from __future__ import annotations

from collections.abc import Mapping


class InternalError(Exception):
    """Base class for all internal errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class NetworkError(InternalError):
    """Exception raised when no response was received.

    Covers connection timeouts, refused connections, DNS failures and any
    transport sentinel status (``-1`` / ``0``). Never raised when a response
    object exists, whatever its status.
    """


class HttpStatusError(InternalError):
    """Exception raised when the server answered with status >= 400.

    Args:
        status: HTTP status code of the response.
        body: Raw response body.
        message: Optional override; defaults to the user-facing status text.
    """

    def __init__(self, status: int, body: bytes = b"", message: str | None = None):
        # Local import: classifier depends on this module.
        from ..http.classifier import status_message

        self.status = status
        self.body = body
        self.message = message or status_message(status)
        super().__init__(
            f"HTTP {status}: {self.message}", data={"status": status}
        )


class UnknownRequestError(InternalError):
    """Exception raised for outcomes that are neither a response nor a network failure."""


class ParsingError(InternalError):
    """Exception raised for response parsing or schema validation errors."""


class AuthExpiredError(InternalError):
    """Exception raised when the session can no longer be refreshed.

    Raised to every request that was waiting on a refresh which failed, and
    to any 401 observed while the coordinator sits in the failed state.
    """

    def __init__(self, message: str = "Session expired, please log in again"):
        super().__init__(message)


class RequestCancelledError(InternalError):
    """Exception raised for requests abandoned because of an explicit logout."""

    def __init__(self, message: str = "Request cancelled by logout"):
        super().__init__(message)


class StorageError(InternalError):
    """Exception raised when the persistent secure store cannot be read or written."""


__all__ = [
    "InternalError",
    "NetworkError",
    "HttpStatusError",
    "UnknownRequestError",
    "ParsingError",
    "AuthExpiredError",
    "RequestCancelledError",
    "StorageError",
]
