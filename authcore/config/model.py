from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from ..constants import (
    DEFAULT_REFRESH_PATH,
    HTTP_REQUEST_TIMEOUT_SECONDS,
    PERSIST_MAX_ATTEMPTS,
    REFRESH_REQUEST_TIMEOUT_SECONDS,
    STORAGE_KEY_ACCESS_TOKEN,
    STORAGE_KEY_EXPIRES_AT,
    STORAGE_KEY_REFRESH_TOKEN,
)


class StorageKeys(BaseModel):
    """Keys under which the token pair is mirrored in secure storage."""

    access_token: str = Field(default=STORAGE_KEY_ACCESS_TOKEN, min_length=1)
    refresh_token: str = Field(default=STORAGE_KEY_REFRESH_TOKEN, min_length=1)
    expires_at: str = Field(default=STORAGE_KEY_EXPIRES_AT, min_length=1)

    @model_validator(mode="after")
    def validate_distinct(self) -> StorageKeys:
        keys = [self.access_token, self.refresh_token, self.expires_at]
        if len(set(keys)) != len(keys):
            raise ValueError("storage keys must be distinct")
        return self

    def all(self) -> list[str]:
        return [self.access_token, self.refresh_token, self.expires_at]


class AuthClientConfig(BaseModel):
    """Settings for an authenticated client context.

    Attributes:
        base_url: Origin that relative request paths are joined to.
        refresh_path: Path (relative to base_url) of the refresh endpoint.
        refresh_timeout_seconds: Hard bound on a single refresh call.
        request_timeout_seconds: Default timeout for ordinary requests.
        persist_max_attempts: Attempts for each durable write of the token pair.
        storage_keys: Secure storage key names.
    """

    base_url: str
    refresh_path: str = DEFAULT_REFRESH_PATH
    refresh_timeout_seconds: float = Field(default=REFRESH_REQUEST_TIMEOUT_SECONDS, gt=0)
    request_timeout_seconds: float = Field(default=HTTP_REQUEST_TIMEOUT_SECONDS, gt=0)
    persist_max_attempts: int = Field(default=PERSIST_MAX_ATTEMPTS, ge=1)
    storage_keys: StorageKeys = Field(default_factory=StorageKeys)

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith(("http://", "https://")):
            raise ValueError("base_url must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("refresh_path")
    @classmethod
    def validate_refresh_path(cls, v: str) -> str:
        v = v.strip()
        if not v.startswith("/"):
            raise ValueError("refresh_path must start with '/'")
        return v

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> AuthClientConfig:
        return cls.model_validate(dict(data))

    @classmethod
    def from_env(
        cls, prefix: str = "AUTHCORE_", environ: Mapping[str, str] | None = None
    ) -> AuthClientConfig:
        """Build a config from ``<prefix>BASE_URL``, ``<prefix>REFRESH_PATH``, etc.

        Unset variables keep their defaults; invalid values raise
        ``pydantic.ValidationError``.
        """
        env = os.environ if environ is None else environ
        data: dict[str, Any] = {}
        for field_name in (
            "base_url",
            "refresh_path",
            "refresh_timeout_seconds",
            "request_timeout_seconds",
            "persist_max_attempts",
        ):
            value = env.get(f"{prefix}{field_name.upper()}")
            if value is not None:
                data[field_name] = value
        return cls.model_validate(data)
