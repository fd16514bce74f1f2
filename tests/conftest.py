"""Shared test fixtures and configuration."""

from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest
import structlog

from cloudsift.adapters.base.adapter import DomainStatus
from cloudsift.config.settings import Settings
from cloudsift.models.fields import AbstractFieldDescriptor, FieldMappingRecord, RemoteField, SemanticType, StorageType
from cloudsift.observability.events import RecordingSink
from cloudsift.observability.logging import HANDLER_NAME
from cloudsift.store.manager import ServerConfigStore


@pytest.fixture(autouse=True)
def reset_logging():
    """Undo logging setup done by a test so later tests start clean."""
    yield
    for name in ("cloudsift", "httpx", "httpcore"):
        logger = logging.getLogger(name)
        for handler in [h for h in logger.handlers if h.get_name() == HANDLER_NAME]:
            logger.removeHandler(handler)
        logger.setLevel(logging.NOTSET)
    structlog.contextvars.clear_contextvars()
    structlog.reset_defaults()


@pytest.fixture
def settings() -> Settings:
    """Create a test Settings instance with defaults."""
    return Settings(
        _env_file=None,  # type: ignore[call-arg]
        debug=True,
        cloudsearch={
            "search_endpoint": "search-shop.us-east-1.cloudsearch.amazonaws.com",
            "document_endpoint": "doc-shop.us-east-1.cloudsearch.amazonaws.com",
        },
        indexes={
            "idx1": {
                "sort_fields": ["price", "created"],
                "range_fields": ["price"],
                "facet_fields": ["color", "price"],
                "excluded_item_types": ["draft"],
            },
        },
    )


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def store() -> ServerConfigStore:
    return ServerConfigStore()


@pytest.fixture
def admin() -> AsyncMock:
    """Index-administration double with an empty remote domain."""
    mock = AsyncMock()
    mock.list_fields.return_value = []
    mock.add_or_update_field.return_value = None
    mock.remove_field.return_value = None
    mock.trigger_reindex.return_value = None
    mock.get_domain_status.return_value = DomainStatus()
    return mock


@pytest.fixture
def tag_field() -> RemoteField:
    return RemoteField(name="search_index", storage_type="literal", search_enabled=True)


@pytest.fixture
def product_fields() -> list[AbstractFieldDescriptor]:
    return [
        AbstractFieldDescriptor(name="title", semantic_type=SemanticType.TEXT),
        AbstractFieldDescriptor(name="color", semantic_type=SemanticType.STRING),
        AbstractFieldDescriptor(name="price", semantic_type=SemanticType.DECIMAL),
        AbstractFieldDescriptor(name="stock", semantic_type=SemanticType.INTEGER),
    ]


@pytest.fixture
def records() -> dict[str, FieldMappingRecord]:
    """Stored mappings for the ``idx1`` product fields."""
    return {
        "title": FieldMappingRecord(semantic_type="text", storage_type=StorageType.TEXT, encoded_name="idx1_title"),
        "color": FieldMappingRecord(
            semantic_type="string", storage_type=StorageType.LITERAL, encoded_name="idx1_color", facet=True
        ),
        "price": FieldMappingRecord(
            semantic_type="decimal",
            storage_type=StorageType.LITERAL,
            encoded_name="idx1_price",
            facet=True,
            sortable=True,
            ranges=True,
            auxiliary_names=["idx1_sort_price"],
        ),
        "stock": FieldMappingRecord(
            semantic_type="integer", storage_type=StorageType.INT, encoded_name="idx1_stock", sortable=True
        ),
    }
