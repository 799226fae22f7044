import os

import pytest

# Set test-friendly defaults for constants that affect test performance
os.environ.setdefault("PERSIST_RETRY_BASE_SECONDS", "0")
os.environ.setdefault("PERSIST_RETRY_MAX_BACKOFF_SECONDS", "0")

from authcore.logging_config import error_aggregator  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_error_aggregator():
    """Keep structured-error counts from leaking between tests."""
    error_aggregator.reset()
    yield
    error_aggregator.reset()
