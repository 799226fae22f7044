"""
Tests for AiohttpTransport against a fake aiohttp session.
"""

import aiohttp
import pytest

from authcore.http.classifier import HttpError, NetworkFailure, Success, classify
from authcore.http.models import RequestConfig
from authcore.http.transport import AiohttpTransport, Transport, join_url
from tests.fixtures.fake_http import FakeResp, FakeSession


class TestAiohttpTransport:
    """Test class for the aiohttp-backed transport."""

    @pytest.mark.asyncio
    async def test_send_returns_full_response(self):
        session = FakeSession(FakeResp(200, b'{"ok": true}', {"Content-Type": "application/json"}))
        transport = AiohttpTransport(session, "https://api.example.com/")

        outcome = await transport.send(
            RequestConfig(
                "get",
                "/api/profile",
                headers={"Authorization": "Bearer abc"},
                params={"page": "2"},
            )
        )

        assert isinstance(classify(outcome), Success)
        assert outcome.response.json() == {"ok": True}
        assert outcome.response.headers["Content-Type"] == "application/json"
        method, url, kwargs = session.requests[0]
        assert (method, url) == ("GET", "https://api.example.com/api/profile")
        assert kwargs["headers"] == {"Authorization": "Bearer abc"}
        assert kwargs["params"] == {"page": "2"}

    @pytest.mark.asyncio
    async def test_send_passes_json_body_and_timeout(self):
        session = FakeSession(FakeResp(201))
        transport = AiohttpTransport(session, default_timeout=7)

        await transport.send(RequestConfig("POST", "https://other.example.com/x", json_body={"a": 1}))
        await transport.send(RequestConfig("POST", "https://other.example.com/x", timeout=2))

        first, second = (kwargs for _, _, kwargs in session.requests)
        assert first["json"] == {"a": 1}
        assert first["timeout"].total == 7
        assert second["timeout"].total == 2
        assert session.requests[0][1] == "https://other.example.com/x"

    @pytest.mark.asyncio
    async def test_error_status_is_still_a_response(self):
        transport = AiohttpTransport(FakeSession(FakeResp(500, b"boom")))

        outcome = await transport.send(RequestConfig("GET", "/x"))

        result = classify(outcome)
        assert isinstance(result, HttpError)
        assert result.status == 500

    @pytest.mark.asyncio
    async def test_timeout_is_captured_with_sentinel(self):
        transport = AiohttpTransport(FakeSession(error=TimeoutError()))

        outcome = await transport.send(RequestConfig("GET", "/x"))

        assert outcome.response is None
        assert outcome.sentinel == -1
        assert isinstance(classify(outcome), NetworkFailure)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [aiohttp.ClientConnectionError("refused"), aiohttp.ClientPayloadError("truncated"), OSError("unreachable")],
    )
    async def test_connection_errors_are_captured(self, error):
        transport = AiohttpTransport(FakeSession(error=error))

        outcome = await transport.send(RequestConfig("GET", "/x"))

        assert outcome.error is error
        assert outcome.sentinel == 0
        assert isinstance(classify(outcome), NetworkFailure)

    def test_requires_session(self):
        with pytest.raises(TypeError):
            AiohttpTransport(None)

    def test_satisfies_transport_protocol(self):
        assert isinstance(AiohttpTransport(FakeSession()), Transport)

    @pytest.mark.parametrize(
        "base,url,expected",
        [
            ("https://a.b", "/x", "https://a.b/x"),
            ("https://a.b/", "x", "https://a.b/x"),
            ("", "/x", "/x"),
            ("https://a.b", "https://c.d/y", "https://c.d/y"),
        ],
    )
    def test_join_url(self, base, url, expected):
        assert join_url(base, url) == expected
