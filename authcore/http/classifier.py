"""Pure classification of request outcomes.

A present response always classifies by its status; an absent response is
always a network failure, whatever sentinel the transport attached. The
coordinator only ever sees the tagged variants below, never sentinels.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..errors.internal import (
    HttpStatusError,
    NetworkError,
    UnknownRequestError,
)
from .models import HttpResponse, RawOutcome

_STATUS_MESSAGES = {
    -1: "Connection Timeout",
    0: "Connection Error!",
    400: "Bad Request. Please try again later.",
    401: "Unauthorized Access, please login again.",
    403: "Access Denied.",
    404: "Resource Not Found.",
    500: "Internal Server Error.",
}


def status_message(status: int | None) -> str:
    """User-facing message for a status code or transport sentinel."""
    return _STATUS_MESSAGES.get(status, "Something went wrong.")


@dataclass(frozen=True)
class Success:
    response: HttpResponse


@dataclass(frozen=True)
class NetworkFailure:
    """No response was received."""

    reason: str
    sentinel: int | None = None
    error: BaseException | None = field(default=None, compare=False)

    def to_exception(self) -> NetworkError:
        exc = NetworkError(
            f"No response received: {self.reason}",
            data={"sentinel": self.sentinel},
        )
        if self.error is not None:
            exc.__cause__ = self.error
        return exc


@dataclass(frozen=True)
class HttpError:
    """A response was received with status >= 400 or outside the HTTP range."""

    status: int
    body: bytes = b""
    response: HttpResponse | None = field(default=None, compare=False)

    def to_exception(self) -> HttpStatusError:
        return HttpStatusError(self.status, self.body)


@dataclass(frozen=True)
class Unknown:
    """Anything else; never retried and never refreshed."""

    detail: str

    def to_exception(self) -> UnknownRequestError:
        return UnknownRequestError(f"Unclassifiable request outcome: {self.detail}")


Classification = Success | NetworkFailure | HttpError | Unknown
Failure = NetworkFailure | HttpError | Unknown


def _int_status(status: Any) -> bool:
    return isinstance(status, int) and not isinstance(status, bool)


def classify(outcome: Any) -> Classification:
    """Turn a raw transport outcome into a tagged classification.

    Args:
        outcome: Normally a ``RawOutcome``; anything else is ``Unknown``.

    Returns:
        ``Success`` for status 100-399, ``HttpError`` for any other integer
        status, ``NetworkFailure`` whenever no response is present, ``Unknown``
        for non-integer statuses or foreign outcome objects.
    """
    if not isinstance(outcome, RawOutcome):
        return Unknown(f"unexpected outcome type {type(outcome).__name__}")
    response = outcome.response
    if response is None:
        if outcome.error is not None:
            reason = f"{type(outcome.error).__name__}: {outcome.error}"
        elif outcome.sentinel is not None:
            reason = status_message(outcome.sentinel)
        else:
            reason = "no response"
        return NetworkFailure(reason, outcome.sentinel, outcome.error)
    if not _int_status(response.status):
        return Unknown(f"invalid status {response.status!r}")
    if 100 <= response.status < 400:
        return Success(response)
    # Out-of-range codes still came from a server.
    return HttpError(response.status, response.body, response)


def is_unauthorized(result: Classification) -> bool:
    return isinstance(result, HttpError) and result.status == 401
