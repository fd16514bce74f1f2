"""CloudSearch backend — Wires field mapping, sync, batching and querying together.

Usage::

    backend = CloudSearchBackend(settings, admin=my_signed_admin_client)
    await backend.initialize()
    report = await backend.sync_index("products", fields)
    result = await backend.search("products", AbstractQuery(keywords="red shoes", limit=10))
"""

from __future__ import annotations

import time
from collections.abc import Sequence
from datetime import UTC, datetime

from cloudsift.adapters.base.adapter import BackendHealth, DomainStatus, IndexAdministration, SearchBackend
from cloudsift.adapters.base.exceptions import CloudSearchError, ConfigurationError
from cloudsift.adapters.cloudsearch.client import CloudSearchClient
from cloudsift.config.settings import Settings
from cloudsift.core import naming
from cloudsift.core.batcher import (
    VersionClock,
    build_add_entries,
    build_delete_entries,
    chunk_entries,
    serialize_batch,
)
from cloudsift.core.compiler import QueryCompiler
from cloudsift.core.field_mapper import FacetPredicate
from cloudsift.core.synchronizer import IndexSynchronizer
from cloudsift.models.document import BatchEntry, BatchReport, IndexableDocument, SyncReport
from cloudsift.models.fields import AbstractFieldDescriptor
from cloudsift.models.query import AbstractQuery
from cloudsift.models.result import SearchResult
from cloudsift.observability.events import EventSink, StructlogEventSink
from cloudsift.store.manager import ServerConfigStore

DELETE_ALL_PAGE_SIZE = 500


class CloudSearchBackend(SearchBackend):
    """Search backend for Amazon CloudSearch.

    Args:
        settings: Application settings.
        admin: Signed index-definition client; required for ``sync_index``,
            ``remove_index`` and ``domain_status``.
        client: Document/search transport; built from settings when omitted.
        store: Server configuration store; built from settings when omitted.
        sink: Event sink for structured events.
        clock: Version clock for batch entries.
    """

    def __init__(
        self,
        settings: Settings,
        admin: IndexAdministration | None = None,
        *,
        client: CloudSearchClient | None = None,
        store: ServerConfigStore | None = None,
        sink: EventSink | None = None,
        clock: VersionClock | None = None,
    ) -> None:
        self.settings = settings
        self.admin = admin
        self.client = client or CloudSearchClient(settings.cloudsearch)
        self.store = store or ServerConfigStore(settings.store)
        self._sink = sink or StructlogEventSink("cloudsift.backend")
        self._clock = clock or VersionClock()
        self._synchronizer = IndexSynchronizer(admin, self.store, self._sink) if admin else None

    @property
    def name(self) -> str:
        return "cloudsearch"

    async def initialize(self) -> None:
        await self.store.initialize()
        await self.client.initialize()

    async def shutdown(self) -> None:
        await self.client.shutdown()
        await self.store.shutdown()

    # ── Naming ───────────────────────────────────────────────────────────

    def namespace_for(self, index_id: str) -> str:
        ns = self.settings.namespace
        return naming.build_namespace(index_id, ns.site_id if ns.shared else None)

    def configured_namespaces(self) -> set[str]:
        """Namespaces of every index declared in the settings."""
        return {self.namespace_for(index_id) for index_id in self.settings.indexes}

    def _require_synchronizer(self) -> IndexSynchronizer:
        if self._synchronizer is None:
            raise ConfigurationError("No index administration client configured.")
        return self._synchronizer

    # ── Index fields ─────────────────────────────────────────────────────

    def facet_predicate(self, index_id: str, fields: Sequence[AbstractFieldDescriptor] = ()) -> FacetPredicate:
        """Facet membership from the index settings plus fields flagged as facets."""
        facet_fields = set(self.settings.index(index_id).facet_fields)
        facet_fields.update(field.name for field in fields if field.facet_requested)
        return lambda _namespace, field_name: field_name in facet_fields

    async def sync_index(self, index_id: str, fields: Sequence[AbstractFieldDescriptor]) -> SyncReport:
        synchronizer = self._require_synchronizer()
        config = self.settings.index(index_id)
        return await synchronizer.run(
            self.namespace_for(index_id),
            fields,
            sort_fields=config.sort_fields,
            range_fields=config.range_fields,
            is_facet=self.facet_predicate(index_id, fields),
            known_namespaces=self.configured_namespaces(),
        )

    async def remove_index(self, index_id: str) -> SyncReport:
        """Delete an index's documents, then its field definitions and stored mappings."""
        synchronizer = self._require_synchronizer()
        await self.delete_all_documents(index_id)
        return await synchronizer.remove_namespace(self.namespace_for(index_id), self.configured_namespaces())

    # ── Documents ────────────────────────────────────────────────────────

    async def _submit(self, namespace: str, entries: list[BatchEntry], skipped: int = 0) -> BatchReport:
        report = BatchReport(skipped=skipped)
        if not entries:
            self._sink.emit("batch_empty", namespace=namespace, skipped=skipped)
            return report

        for chunk in chunk_entries(entries, self.settings.cloudsearch.max_batch_bytes):
            try:
                await self.client.submit_batch(serialize_batch(chunk))
            except CloudSearchError as e:
                self._sink.emit("batch_failed", namespace=namespace, sent=report.sent, error=str(e))
                raise
            report.sent += len(chunk)
            report.batches += 1

        self._sink.emit("batch_sent", namespace=namespace, sent=report.sent, batches=report.batches)
        return report

    async def index_documents(self, index_id: str, documents: Sequence[IndexableDocument]) -> BatchReport:
        namespace = self.namespace_for(index_id)
        records = await self.store.get_index_mapping(namespace)
        entries, skipped = build_add_entries(
            namespace,
            documents,
            records,
            clock=self._clock,
            language=self.settings.cloudsearch.language,
            excluded_item_types=self.settings.index(index_id).excluded_item_types,
        )
        return await self._submit(namespace, entries, skipped)

    async def delete_documents(self, index_id: str, ids: Sequence[str | int]) -> BatchReport:
        namespace = self.namespace_for(index_id)
        return await self._submit(namespace, build_delete_entries(namespace, ids, clock=self._clock))

    async def delete_all_documents(self, index_id: str) -> BatchReport:
        """Look up every document tagged with the index, then delete them."""
        namespace = self.namespace_for(index_id)
        compiler = QueryCompiler(namespace, restrict_to_index=True)
        ids: list[str] = []
        offset = 0
        while True:
            query = AbstractQuery(offset=offset, limit=DELETE_ALL_PAGE_SIZE)
            result = compiler.parse_response(await self.client.submit_query(compiler.compile(query)))
            ids.extend(hit.id for hit in result.hits)
            offset += DELETE_ALL_PAGE_SIZE
            if not result.hits or offset >= result.total_count:
                break
        return await self.delete_documents(index_id, ids)

    # ── Search ───────────────────────────────────────────────────────────

    async def _compiler(self, index_id: str) -> QueryCompiler:
        namespace = self.namespace_for(index_id)
        return QueryCompiler(
            namespace,
            await self.store.get_index_mapping(namespace),
            restrict_to_index=self.settings.index(index_id).restrict_to_index,
        )

    async def compile_query(self, index_id: str, query: AbstractQuery) -> str:
        """Compile a query without sending it."""
        return (await self._compiler(index_id)).compile(query)

    async def search(self, index_id: str, query: AbstractQuery) -> SearchResult:
        compiler = await self._compiler(index_id)
        query_string = compiler.compile(query)
        self._sink.emit("search_compiled", namespace=compiler.namespace, query_string=query_string)
        try:
            start = time.monotonic()
            result = compiler.parse_response(await self.client.submit_query(query_string))
        except CloudSearchError as e:
            self._sink.emit("search_failed", namespace=compiler.namespace, error=str(e))
            raise
        self._sink.emit(
            "search_finished",
            namespace=compiler.namespace,
            total=result.total_count,
            took_ms=int((time.monotonic() - start) * 1000),
        )
        return result

    # ── Health ───────────────────────────────────────────────────────────

    async def domain_status(self) -> DomainStatus:
        if self.admin is None:
            raise ConfigurationError("No index administration client configured.")
        return await self.admin.get_domain_status()

    async def health_check(self) -> BackendHealth:
        """Report the domain's processing state."""
        if self.admin is None:
            return BackendHealth(status="unhealthy", message="No index administration client configured")

        try:
            start = time.monotonic()
            status = await self.admin.get_domain_status()
            latency_ms = int((time.monotonic() - start) * 1000)
        except Exception as e:
            return BackendHealth(status="unhealthy", message=str(e))

        if status.processing:
            health, message = "degraded", "Domain is applying configuration changes"
        elif status.requires_indexing:
            health, message = "degraded", "Domain requires reindexing"
        else:
            health, message = "healthy", "Domain is active"
        return BackendHealth(
            status=health,
            latency_ms=latency_ms,
            last_check=datetime.now(UTC).isoformat(),
            message=message,
        )
