"""Tests for the CloudSearch HTTP client."""

from __future__ import annotations

from unittest.mock import AsyncMock

import httpx
import pytest

from cloudsift.adapters.base.exceptions import ConfigurationError, RemoteRejected, RemoteUnavailable
from cloudsift.adapters.cloudsearch.client import CloudSearchClient
from cloudsift.config.settings import CloudSearchSettings

# ── Fixtures ──────────────────────────────────────────────────────────────────


@pytest.fixture
def cs_settings() -> CloudSearchSettings:
    return CloudSearchSettings(
        search_endpoint="search-shop.example.com",
        document_endpoint="https://doc-shop.example.com/",
    )


@pytest.fixture
def mock_http() -> AsyncMock:
    return AsyncMock(spec=httpx.AsyncClient)


@pytest.fixture
def client(cs_settings: CloudSearchSettings, mock_http: AsyncMock) -> CloudSearchClient:
    return CloudSearchClient(cs_settings, http_client=mock_http)


# ── Lifecycle ─────────────────────────────────────────────────────────────────


class TestLifecycle:
    async def test_initialize_requires_endpoint(self) -> None:
        with pytest.raises(ConfigurationError):
            await CloudSearchClient(CloudSearchSettings()).initialize()

    async def test_initialize_builds_client(self, cs_settings: CloudSearchSettings) -> None:
        client = CloudSearchClient(cs_settings)
        await client.initialize()
        assert isinstance(client._client, httpx.AsyncClient)
        await client.shutdown()
        assert client._client is None

    async def test_uninitialized_raises(self, cs_settings: CloudSearchSettings) -> None:
        with pytest.raises(RemoteUnavailable, match="not initialized"):
            await CloudSearchClient(cs_settings).submit_query("q=%")


# ── Document batches ──────────────────────────────────────────────────────────


class TestSubmitBatch:
    async def test_success(self, client: CloudSearchClient, mock_http: AsyncMock) -> None:
        mock_http.post.return_value = httpx.Response(200, json={"status": "success", "adds": 1, "deletes": 0})

        assert await client.submit_batch("[]") == 200

        mock_http.post.assert_awaited_once()
        args, kwargs = mock_http.post.call_args
        assert args[0] == "https://doc-shop.example.com/2011-02-01/documents/batch"
        assert kwargs["content"] == "[]"
        assert kwargs["headers"]["Content-Type"] == "application/json"

    async def test_error_payload_is_rejected(self, client: CloudSearchClient, mock_http: AsyncMock) -> None:
        mock_http.post.return_value = httpx.Response(
            400,
            json={"status": "error", "errors": [{"message": "Field 'x' is unknown"}, {"message": "second"}]},
        )

        with pytest.raises(RemoteRejected, match="Field 'x' is unknown") as exc_info:
            await client.submit_batch("[]")
        assert exc_info.value.messages == ["Field 'x' is unknown", "second"]

    async def test_http_error_without_payload(self, client: CloudSearchClient, mock_http: AsyncMock) -> None:
        mock_http.post.return_value = httpx.Response(503, text="Service Unavailable")

        with pytest.raises(RemoteUnavailable, match="HTTP 503"):
            await client.submit_batch("[]")

    async def test_transport_error(self, client: CloudSearchClient, mock_http: AsyncMock) -> None:
        mock_http.post.side_effect = httpx.ConnectError("Connection refused")

        with pytest.raises(RemoteUnavailable, match="batch submission failed"):
            await client.submit_batch("[]")


# ── Search ────────────────────────────────────────────────────────────────────


class TestSubmitQuery:
    async def test_returns_body(self, client: CloudSearchClient, mock_http: AsyncMock) -> None:
        mock_http.get.return_value = httpx.Response(200, text='{"hits": {"found": 0, "hit": []}}')

        body = await client.submit_query("q=red%20shoes&start=0")

        assert body == '{"hits": {"found": 0, "hit": []}}'
        mock_http.get.assert_awaited_once_with("http://search-shop.example.com/2011-02-01/search?q=red%20shoes&start=0")

    async def test_client_error_body_passed_through(self, client: CloudSearchClient, mock_http: AsyncMock) -> None:
        mock_http.get.return_value = httpx.Response(400, text='{"error": "info", "messages": []}')

        assert "error" in await client.submit_query("q=%")

    async def test_server_error(self, client: CloudSearchClient, mock_http: AsyncMock) -> None:
        mock_http.get.return_value = httpx.Response(500)

        with pytest.raises(RemoteUnavailable, match="HTTP 500"):
            await client.submit_query("q=%")

    async def test_transport_error(self, client: CloudSearchClient, mock_http: AsyncMock) -> None:
        mock_http.get.side_effect = httpx.ReadTimeout("timed out")

        with pytest.raises(RemoteUnavailable, match="query failed"):
            await client.submit_query("q=%")
