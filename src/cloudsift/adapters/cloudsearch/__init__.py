"""Amazon CloudSearch backend."""

from cloudsift.adapters.cloudsearch.backend import CloudSearchBackend
from cloudsift.adapters.cloudsearch.client import CloudSearchClient

__all__ = ["CloudSearchBackend", "CloudSearchClient"]
