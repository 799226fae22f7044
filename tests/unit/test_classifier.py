"""
Unit tests for outcome classification.
"""

import pytest

from authcore.errors.internal import HttpStatusError, NetworkError, UnknownRequestError
from authcore.http.classifier import (
    HttpError,
    NetworkFailure,
    Success,
    Unknown,
    classify,
    is_unauthorized,
    status_message,
)
from authcore.http.models import HttpResponse, RawOutcome
from tests.fixtures.fake_transport import (
    connection_error_outcome,
    json_outcome,
    timeout_outcome,
)


class TestClassify:
    """Test class for classify functionality."""

    @pytest.mark.parametrize("status", [200, 201, 204, 302, 399])
    def test_status_below_400_is_success(self, status):
        outcome = json_outcome(status)

        result = classify(outcome)

        assert result == Success(outcome.response)

    @pytest.mark.parametrize("status", [400, 401, 403, 404, 429, 500, 503])
    def test_status_400_and_above_is_http_error(self, status):
        result = classify(json_outcome(status, {"message": "nope"}))

        assert isinstance(result, HttpError)
        assert result.status == status
        assert b"nope" in result.body

    def test_timeout_without_response_is_network_failure(self):
        result = classify(timeout_outcome())

        assert isinstance(result, NetworkFailure)
        assert result.sentinel == -1

    def test_connection_error_is_network_failure(self):
        result = classify(connection_error_outcome())

        assert isinstance(result, NetworkFailure)
        assert result.sentinel == 0
        assert "ConnectionRefusedError" in result.reason

    def test_missing_response_without_details_is_network_failure(self):
        assert isinstance(classify(RawOutcome()), NetworkFailure)

    def test_response_wins_over_sentinel(self):
        # A response is present: its status decides, never the sentinel.
        outcome = RawOutcome(response=HttpResponse(401), sentinel=0)

        result = classify(outcome)

        assert isinstance(result, HttpError)
        assert result.status == 401

    @pytest.mark.parametrize("status", [0, -1, 99, 600, 999])
    def test_response_with_out_of_range_status_is_http_error(self, status):
        result = classify(RawOutcome(response=HttpResponse(status)))

        assert isinstance(result, HttpError)
        assert result.status == status

    @pytest.mark.parametrize("status", [True, "200", None])
    def test_response_with_non_integer_status_is_unknown(self, status):
        result = classify(RawOutcome(response=HttpResponse(status)))

        assert isinstance(result, Unknown)

    def test_foreign_object_is_unknown(self):
        result = classify({"status": 200})

        assert isinstance(result, Unknown)
        assert "dict" in result.detail

    def test_classify_is_deterministic(self):
        outcome = json_outcome(500)
        assert classify(outcome) == classify(outcome)


class TestToException:
    """Test class for classification -> exception mapping."""

    def test_network_failure_maps_to_network_error_with_cause(self):
        outcome = timeout_outcome()

        exc = classify(outcome).to_exception()

        assert isinstance(exc, NetworkError)
        assert exc.data["sentinel"] == -1
        assert exc.__cause__ is outcome.error

    def test_http_error_maps_to_status_error(self):
        exc = classify(json_outcome(404)).to_exception()

        assert isinstance(exc, HttpStatusError)
        assert exc.status == 404
        assert exc.message == "Resource Not Found."
        assert str(exc) == "HTTP 404: Resource Not Found."

    def test_unknown_maps_to_unknown_request_error(self):
        exc = Unknown("weird").to_exception()

        assert isinstance(exc, UnknownRequestError)
        assert "weird" in str(exc)


class TestHelpers:
    """Test class for status helpers."""

    @pytest.mark.parametrize(
        "status,expected",
        [
            (-1, "Connection Timeout"),
            (0, "Connection Error!"),
            (401, "Unauthorized Access, please login again."),
            (403, "Access Denied."),
            (500, "Internal Server Error."),
            (418, "Something went wrong."),
            (None, "Something went wrong."),
        ],
    )
    def test_status_message(self, status, expected):
        assert status_message(status) == expected

    def test_is_unauthorized_only_for_401(self):
        assert is_unauthorized(HttpError(401))
        assert not is_unauthorized(HttpError(403))
        assert not is_unauthorized(NetworkFailure("down", 0))
        assert not is_unauthorized(Success(HttpResponse(200)))
