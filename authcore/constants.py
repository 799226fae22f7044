"""
Configuration constants for the authcore token/session core

This module contains all tunable constants used throughout the package.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Refresh endpoint
DEFAULT_REFRESH_PATH = os.getenv("DEFAULT_REFRESH_PATH", "/api/auth/refresh")
REFRESH_REQUEST_TIMEOUT_SECONDS = _get_env_float(
    "REFRESH_REQUEST_TIMEOUT_SECONDS", 10.0
)  # Upper bound for a single refresh call, including transport overhead

# Network/HTTP constants
HTTP_REQUEST_TIMEOUT_SECONDS = _get_env_float(
    "HTTP_REQUEST_TIMEOUT_SECONDS", 30.0
)  # Default timeout for ordinary authenticated requests

# Token lifetime handling
DEFAULT_ACCESS_TOKEN_LIFETIME_SECONDS = _get_env_int(
    "DEFAULT_ACCESS_TOKEN_LIFETIME_SECONDS", 900
)  # Used when neither expiresIn nor an exp claim is available (15m)
TOKEN_EXPIRY_SKEW_SECONDS = _get_env_int(
    "TOKEN_EXPIRY_SKEW_SECONDS", 30
)  # Treat tokens as expired this many seconds early

# Persistence (durable mirror of the token store)
PERSIST_MAX_ATTEMPTS = _get_env_int("PERSIST_MAX_ATTEMPTS", 3)
PERSIST_RETRY_BASE_SECONDS = _get_env_float("PERSIST_RETRY_BASE_SECONDS", 0.1)
PERSIST_RETRY_MAX_BACKOFF_SECONDS = _get_env_float(
    "PERSIST_RETRY_MAX_BACKOFF_SECONDS", 2.0
)

# Default secure storage keys
STORAGE_KEY_ACCESS_TOKEN = "accessToken"
STORAGE_KEY_REFRESH_TOKEN = "refreshToken"
STORAGE_KEY_EXPIRES_AT = "expiresAt"

# Out-of-band status sentinels reported by transports when no response exists
TRANSPORT_SENTINEL_TIMEOUT = -1
TRANSPORT_SENTINEL_CONNECTION_ERROR = 0

# One-shot action keys
SESSION_EXPIRED_ACTION_KEY = "session_expired"

# Structured error aggregation
ERROR_HISTORY_LIMIT = _get_env_int("ERROR_HISTORY_LIMIT", 1000)  # per category
ERROR_ALERT_RATE_PER_HOUR = _get_env_float("ERROR_ALERT_RATE_PER_HOUR", 10.0)
