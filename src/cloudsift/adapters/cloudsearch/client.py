"""CloudSearch HTTP client — Document and search endpoints over ``httpx``.

The document service accepts JSON batches at
``<doc endpoint>/<api version>/documents/batch``; the search service
answers ``GET <search endpoint>/<api version>/search?<query string>``.
Neither endpoint is request-signed (access is controlled by the
domain's IP policy), so plain ``httpx`` is enough.

There is no retry here; a call either completes or raises.

Usage::

    client = CloudSearchClient(settings.cloudsearch)
    await client.initialize()
    raw = await client.submit_query("q=red%20shoes&return-fields=text_relevance&start=0")
"""

from __future__ import annotations

import logging
import time
from typing import Any

import httpx

from cloudsift.adapters.base.exceptions import ConfigurationError, RemoteRejected, RemoteUnavailable
from cloudsift.config.settings import CloudSearchSettings

logger = logging.getLogger(__name__)


class CloudSearchClient:
    """Thin async transport for one CloudSearch domain.

    Args:
        settings: Endpoint and timeout configuration.
        http_client: Optional pre-built ``httpx.AsyncClient`` (mainly for tests).
    """

    def __init__(self, settings: CloudSearchSettings, http_client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        self._client = http_client

    @property
    def api_version(self) -> str:
        return self._settings.api_version

    async def initialize(self) -> None:
        """Create the ``httpx.AsyncClient``."""
        if not self._settings.search_endpoint and not self._settings.document_endpoint:
            raise ConfigurationError("No CloudSearch endpoint configured.")
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self._settings.timeout))
        logger.info(
            "CloudSearch client ready (search: %s, documents: %s)",
            self._settings.search_endpoint or "-",
            self._settings.document_endpoint or "-",
        )

    async def shutdown(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    def _require_client(self) -> httpx.AsyncClient:
        if not self._client:
            raise RemoteUnavailable("CloudSearch client not initialized.")
        return self._client

    # ── Documents ────────────────────────────────────────────────────────

    async def submit_batch(self, body: str) -> int:
        """POST one JSON batch to the document service.

        Args:
            body: Serialized JSON array of batch entries.

        Returns:
            The HTTP status code of the accepted batch.

        Raises:
            RemoteUnavailable: Transport failure or a non-JSON error response.
            RemoteRejected: The service reported errors for the batch.
        """
        client = self._require_client()
        if not self._settings.document_endpoint:
            raise ConfigurationError("No CloudSearch document endpoint configured.")
        url = f"{self._settings.document_endpoint}/{self.api_version}/documents/batch"

        try:
            start = time.monotonic()
            resp = await client.post(url, content=body, headers={"Content-Type": "application/json"})
            took_ms = int((time.monotonic() - start) * 1000)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"CloudSearch batch submission failed: {e}") from e

        payload = self._json_or_none(resp)
        if payload is not None and payload.get("status") == "error":
            errors = [str(err.get("message", err)) for err in payload.get("errors", []) if err]
            raise RemoteRejected(errors)
        if resp.status_code >= 400:
            raise RemoteUnavailable(f"CloudSearch document service returned HTTP {resp.status_code}")

        logger.debug("Batch accepted in %d ms: %s", took_ms, payload)
        return resp.status_code

    # ── Search ───────────────────────────────────────────────────────────

    async def submit_query(self, query_string: str) -> str:
        """GET the search service with an already compiled query string.

        Returns:
            The raw response body.  Error payloads (HTTP 4xx) are returned as
            well so the caller can surface the service's own message.

        Raises:
            RemoteUnavailable: Transport failure or an HTTP 5xx response.
        """
        client = self._require_client()
        if not self._settings.search_endpoint:
            raise ConfigurationError("No CloudSearch search endpoint configured.")
        url = f"{self._settings.search_endpoint}/{self.api_version}/search?{query_string}"

        try:
            resp = await client.get(url)
        except httpx.HTTPError as e:
            raise RemoteUnavailable(f"CloudSearch query failed: {e}") from e

        if resp.status_code >= 500:
            raise RemoteUnavailable(f"CloudSearch search service returned HTTP {resp.status_code}")
        return resp.text

    # ── Helpers ──────────────────────────────────────────────────────────

    @staticmethod
    def _json_or_none(resp: httpx.Response) -> dict[str, Any] | None:
        try:
            data = resp.json()
        except ValueError:
            return None
        return data if isinstance(data, dict) else None
