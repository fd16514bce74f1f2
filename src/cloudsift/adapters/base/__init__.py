"""Base backend interface — Abstract classes for search service connectors."""

from cloudsift.adapters.base.adapter import BackendHealth, DomainStatus, IndexAdministration, SearchBackend

__all__ = ["BackendHealth", "DomainStatus", "IndexAdministration", "SearchBackend"]
