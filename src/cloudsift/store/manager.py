"""Server configuration store — Persisted field mappings per index namespace.

The index synchronizer writes one ``FieldMappingRecord`` per abstract
field; the query compiler and the document batcher read them back so
they never recompute mappings.  Stored shape, per namespace::

    {"fields": {"<field name>": {<FieldMappingRecord>}}}

Concurrent synchronization passes for the same namespace are not safe;
callers serialize them.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from cloudsift.adapters.base.exceptions import ConfigurationError, RemoteUnavailable
from cloudsift.config.settings import StoreSettings
from cloudsift.models.fields import FieldMappingRecord

logger = logging.getLogger(__name__)


class ServerConfigStore:
    """Stores index mappings in Redis or in process memory.

    Attributes:
        settings: Store configuration.
    """

    def __init__(self, settings: StoreSettings | None = None) -> None:
        self.settings = settings or StoreSettings()
        self._client: Any = None
        self._memory: dict[str, dict[str, Any]] = {}

    async def initialize(self) -> None:
        """Initialize the store backend."""
        if self.settings.backend == "redis":
            try:
                import redis.asyncio as aioredis
            except ImportError as e:
                raise ConfigurationError(
                    "redis package is required for the redis store.  Install with: pip install cloudsift[redis]"
                ) from e
            try:
                self._client = aioredis.from_url(self.settings.redis_url, decode_responses=True)
                await self._client.ping()
                logger.info("Connected to Redis config store at %s", self.settings.redis_url)
            except Exception as e:
                raise RemoteUnavailable(f"Failed to connect to Redis config store: {e}") from e
        elif self.settings.backend == "memory":
            logger.info("Using in-memory config store backend")
        else:
            raise ConfigurationError(f"Unknown config store backend: {self.settings.backend}")

    async def shutdown(self) -> None:
        """Close store connections."""
        if self._client:
            await self._client.close()
            self._client = None

    def _key(self, namespace: str) -> str:
        return f"{self.settings.key_prefix}{namespace}"

    async def _load(self, namespace: str) -> dict[str, Any]:
        if self._client:
            raw = await self._client.get(self._key(namespace))
            return json.loads(raw) if raw else {}
        return self._memory.get(namespace, {})

    async def _save(self, namespace: str, data: dict[str, Any]) -> None:
        if self._client:
            await self._client.set(self._key(namespace), json.dumps(data))
        else:
            self._memory[namespace] = data

    async def namespaces(self) -> list[str]:
        """Namespaces that currently have stored mappings."""
        if self._client:
            prefix = self.settings.key_prefix
            return [key[len(prefix) :] async for key in self._client.scan_iter(match=f"{prefix}*")]
        return list(self._memory)

    async def get_index_mapping(self, namespace: str) -> dict[str, FieldMappingRecord]:
        """Return the stored field mappings of one namespace.

        Args:
            namespace: Index namespace.

        Returns:
            Field name -> mapping record.  Empty if nothing was stored yet.
        """
        data = await self._load(namespace)
        return {name: FieldMappingRecord.model_validate(raw) for name, raw in data.get("fields", {}).items()}

    async def set_field_mapping(self, namespace: str, field_name: str, record: FieldMappingRecord) -> None:
        """Store the mapping of one field, keeping the other fields untouched."""
        data = await self._load(namespace)
        fields = dict(data.get("fields", {}))
        fields[field_name] = record.model_dump(mode="json")
        await self._save(namespace, {**data, "fields": fields})

    async def retain_fields(self, namespace: str, field_names: set[str]) -> None:
        """Drop stored mappings for fields the index no longer declares."""
        data = await self._load(namespace)
        fields = {k: v for k, v in data.get("fields", {}).items() if k in field_names}
        await self._save(namespace, {**data, "fields": fields})

    async def delete_index(self, namespace: str) -> None:
        """Forget everything stored for a namespace."""
        if self._client:
            await self._client.delete(self._key(namespace))
        else:
            self._memory.pop(namespace, None)
