"""Unit tests for gridcontext.fetcher."""

from __future__ import annotations

import httpx
import pytest
import respx

from gridcontext import __version__
from gridcontext.config import HttpSettings
from gridcontext.errors import ContentValidationError, ErrorCode, TransportError
from gridcontext.fetcher import Fetcher, _is_transient, build_http_client

# ---------------------------------------------------------------------------
# build_http_client
# ---------------------------------------------------------------------------


class TestBuildHttpClient:
    async def test_client_configuration(self) -> None:
        client = build_http_client()
        try:
            assert isinstance(client, httpx.AsyncClient)
            assert client.follow_redirects is True
            assert client.headers["User-Agent"] == f"gridcontext/{__version__}"
            assert client.headers["Accept"] == "application/json"
        finally:
            await client.aclose()

    async def test_settings_override_defaults(self) -> None:
        client = build_http_client(HttpSettings(timeout_seconds=5.0, user_agent="docs-bot/1"))
        try:
            assert client.headers["User-Agent"] == "docs-bot/1"
            assert client.timeout.read == 5.0
        finally:
            await client.aclose()


class TestIsTransient:
    def test_server_errors(self) -> None:
        assert _is_transient(500)
        assert _is_transient(503)

    def test_throttling_and_timeouts(self) -> None:
        assert _is_transient(429)
        assert _is_transient(408)

    def test_client_errors(self) -> None:
        assert not _is_transient(404)
        assert not _is_transient(403)


# ---------------------------------------------------------------------------
# Fetcher
# ---------------------------------------------------------------------------


class TestFetcher:
    async def test_successful_fetch(self) -> None:
        with respx.mock:
            respx.get("https://example.com/versions.json").mock(
                return_value=httpx.Response(200, json=[{"version": "34.0.0"}])
            )
            async with httpx.AsyncClient() as client:
                fetcher = Fetcher(client)
                result = await fetcher.fetch_json("https://example.com/versions.json")
                assert result == [{"version": "34.0.0"}]

    async def test_404_raises_transport_error(self) -> None:
        with respx.mock:
            respx.get("https://example.com/missing.json").mock(return_value=httpx.Response(404))
            async with httpx.AsyncClient() as client:
                fetcher = Fetcher(client)
                with pytest.raises(TransportError) as exc_info:
                    await fetcher.fetch_json("https://example.com/missing.json")
                assert exc_info.value.code == ErrorCode.FETCH_FAILED
                assert exc_info.value.status_code == 404
                assert exc_info.value.url == "https://example.com/missing.json"
                assert exc_info.value.recoverable is False

    async def test_500_is_recoverable(self) -> None:
        with respx.mock:
            respx.get("https://example.com/error.json").mock(return_value=httpx.Response(500))
            async with httpx.AsyncClient() as client:
                fetcher = Fetcher(client)
                with pytest.raises(TransportError) as exc_info:
                    await fetcher.fetch_json("https://example.com/error.json")
                assert exc_info.value.status_code == 500
                assert exc_info.value.recoverable is True

    async def test_network_error_raises_transport_error(self) -> None:
        with respx.mock:
            respx.get("https://example.com/timeout.json").mock(
                side_effect=httpx.ConnectError("Connection refused")
            )
            async with httpx.AsyncClient() as client:
                fetcher = Fetcher(client)
                with pytest.raises(TransportError) as exc_info:
                    await fetcher.fetch_json("https://example.com/timeout.json")
                assert exc_info.value.status_code is None
                assert exc_info.value.recoverable is True
                assert "Connection refused" in exc_info.value.message

    async def test_invalid_json_raises_validation_error(self) -> None:
        with respx.mock:
            respx.get("https://example.com/broken.json").mock(
                return_value=httpx.Response(200, text="<html>not json</html>")
            )
            async with httpx.AsyncClient() as client:
                fetcher = Fetcher(client)
                with pytest.raises(ContentValidationError) as exc_info:
                    await fetcher.fetch_json("https://example.com/broken.json")
                assert exc_info.value.code == ErrorCode.INVALID_CONTENT
                assert exc_info.value.url == "https://example.com/broken.json"

    async def test_redirect_followed(self) -> None:
        with respx.mock:
            respx.get("https://example.com/old.json").mock(
                return_value=httpx.Response(
                    301, headers={"location": "https://example.com/new.json"}
                )
            )
            respx.get("https://example.com/new.json").mock(
                return_value=httpx.Response(200, json={"groups": []})
            )
            async with httpx.AsyncClient(follow_redirects=True) as client:
                fetcher = Fetcher(client)
                result = await fetcher.fetch_json("https://example.com/old.json")
                assert result == {"groups": []}
