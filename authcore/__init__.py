"""Token lifecycle and authenticated-request core.

Typical use::

    ctx = await AuthContext.create(AuthClientConfig(base_url=...), storage, on_expired)
    await ctx.initialize()
    response = await ctx.client.get("/api/user/profile")
"""

from .auth_token.types import RefreshState, Session, TokenPair
from .config.model import AuthClientConfig, StorageKeys
from .context import AuthContext
from .errors.internal import (
    AuthExpiredError,
    HttpStatusError,
    InternalError,
    NetworkError,
    ParsingError,
    RequestCancelledError,
    StorageError,
    UnknownRequestError,
)
from .http.models import HttpResponse, RequestConfig
from .session.storage import JsonFileSecureStorage, MemorySecureStorage, SecureStorage

__all__ = [
    "AuthClientConfig",
    "AuthContext",
    "AuthExpiredError",
    "HttpResponse",
    "HttpStatusError",
    "InternalError",
    "JsonFileSecureStorage",
    "MemorySecureStorage",
    "NetworkError",
    "ParsingError",
    "RefreshState",
    "RequestCancelledError",
    "RequestConfig",
    "SecureStorage",
    "Session",
    "StorageError",
    "StorageKeys",
    "TokenPair",
    "UnknownRequestError",
]
