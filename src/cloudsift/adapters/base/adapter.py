"""Base search backend — Abstract interface for managed search service connectors.

A backend adapts the search abstraction to one remote service.  It is
responsible for:
  1. Keeping the remote index-field definitions in sync with the abstract fields
  2. Submitting documents for indexing and deletion
  3. Compiling abstract queries and mapping raw responses back
  4. Reporting domain health
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, Field

from cloudsift.models.document import BatchReport, IndexableDocument, SyncReport
from cloudsift.models.fields import AbstractFieldDescriptor, ConcreteIndexFieldSpec, RemoteField
from cloudsift.models.query import AbstractQuery
from cloudsift.models.result import SearchResult


class BackendHealth(BaseModel):
    """Health status of a search backend."""

    status: str = Field(description="Health status: healthy, degraded, unhealthy")
    latency_ms: int = Field(default=0, description="Latency of last health check in ms")
    last_check: str | None = Field(default=None, description="ISO timestamp of last health check")
    message: str | None = Field(default=None, description="Additional health message")


class DomainStatus(BaseModel):
    """Processing state of the remote search domain."""

    processing: bool = Field(default=False, description="Configuration changes are being applied")
    requires_indexing: bool = Field(default=False, description="Documents must be reindexed to apply changes")


@runtime_checkable
class IndexAdministration(Protocol):
    """Index-definition operations of the remote service.

    Supplied by the host; requests to this API must be signed, which is
    outside this package.  Implementations raise ``RemoteUnavailable`` or
    ``RemoteRejected`` on failure.
    """

    async def list_fields(self) -> list[RemoteField]: ...

    async def add_or_update_field(self, spec: ConcreteIndexFieldSpec) -> None: ...

    async def remove_field(self, name: str) -> None: ...

    async def trigger_reindex(self) -> None: ...

    async def get_domain_status(self) -> DomainStatus: ...


class SearchBackend(ABC):
    """Abstract base class for search service backends.

    All backends must implement:
      - sync_index(): Bring remote field definitions in line with abstract fields
      - index_documents() / delete_documents() / delete_all_documents()
      - search(): Execute an abstract query
      - health_check(): Report backend health status
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique backend name (e.g., 'cloudsearch')."""

    @abstractmethod
    async def initialize(self) -> None:
        """Open connections and load persisted configuration."""

    @abstractmethod
    async def shutdown(self) -> None:
        """Close connections and release resources."""

    @abstractmethod
    async def sync_index(self, index_id: str, fields: Sequence[AbstractFieldDescriptor]) -> SyncReport:
        """Synchronize the remote field definitions of one index.

        Args:
            index_id: Machine name of the abstract index.
            fields: The abstract fields the index currently declares.

        Returns:
            Aggregate counts of the structural changes made.
        """

    @abstractmethod
    async def index_documents(self, index_id: str, documents: Sequence[IndexableDocument]) -> BatchReport:
        """Submit documents for indexing."""

    @abstractmethod
    async def delete_documents(self, index_id: str, ids: Sequence[str | int]) -> BatchReport:
        """Remove documents by their caller-visible ids."""

    @abstractmethod
    async def delete_all_documents(self, index_id: str) -> BatchReport:
        """Remove every document belonging to one index."""

    @abstractmethod
    async def search(self, index_id: str, query: AbstractQuery) -> SearchResult:
        """Execute an abstract query against one index.

        Raises:
            RemoteUnavailable: The service could not be reached.
            RemoteRejected: The service returned an error payload.
            QueryError: The response was empty or malformed.
        """

    @abstractmethod
    async def health_check(self) -> BackendHealth:
        """Check the health of the remote domain."""
