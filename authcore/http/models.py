"""Transport-neutral request/response models."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from ..errors.internal import ParsingError


@dataclass(frozen=True)
class RequestConfig:
    """Description of one outgoing request.

    Immutable: the pipeline returns a decorated copy, so the caller's original
    config can be replayed later with a different token.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, str] | None = None
    json_body: Any = None
    data: Any = None
    timeout: float | None = None

    def with_header(self, name: str, value: str) -> RequestConfig:
        headers = {k: v for k, v in self.headers.items() if k.lower() != name.lower()}
        headers[name] = value
        return replace(self, headers=headers)

    def header(self, name: str) -> str | None:
        for k, v in self.headers.items():
            if k.lower() == name.lower():
                return v
        return None


@dataclass(frozen=True)
class HttpResponse:
    """A received HTTP response, fully read."""

    status: int
    body: bytes = b""
    headers: Mapping[str, str] = field(default_factory=dict)
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400

    def text(self, encoding: str = "utf-8") -> str:
        return self.body.decode(encoding, errors="replace")

    def json(self) -> Any:
        try:
            return json.loads(self.body or b"null")
        except ValueError as e:
            raise ParsingError(
                f"Response body is not valid JSON (status={self.status})"
            ) from e


@dataclass(frozen=True)
class RawOutcome:
    """Raw result of one transport attempt, before classification.

    Exactly what the transport observed: a response when one arrived, or the
    captured error and an optional out-of-band sentinel status when not.
    """

    response: HttpResponse | None = None
    error: BaseException | None = None
    sentinel: int | None = None
