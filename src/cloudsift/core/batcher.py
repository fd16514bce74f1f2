"""Document batcher — Builds the JSON document batches the service accepts.

Batch entries look like::

    {"type": "add", "id": "shop_42", "version": 1700000000, "lang": "en",
     "fields": {"shop_title": "Red shoes", "search_index": "shop"}}
    {"type": "delete", "id": "shop_42", "version": 1700000001}

A later version always supersedes an earlier one, so every entry gets a
version from a strictly increasing clock.
"""

from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Collection, Iterable, Mapping, Sequence

from cloudsift.core import naming
from cloudsift.core.values import to_index_value
from cloudsift.models.document import BatchEntry, IndexableDocument
from cloudsift.models.fields import FieldMappingRecord

logger = logging.getLogger(__name__)

_SEPARATORS = (",", ":")


class VersionClock:
    """Hands out strictly increasing integer versions seeded from wall-clock seconds."""

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._last = 0

    def next(self) -> int:
        version = max(int(self._clock()), self._last + 1)
        self._last = version
        return version


def is_excluded(document: IndexableDocument, excluded_item_types: Collection[str]) -> bool:
    return document.item_type is not None and document.item_type in excluded_item_types


def document_fields(
    namespace: str,
    document: IndexableDocument,
    records: Mapping[str, FieldMappingRecord],
) -> dict[str, object]:
    fields: dict[str, object] = {}
    for name, value in document.fields.items():
        if value is None or value == [] or value == ():
            continue
        try:
            fields[naming.encode(namespace, name)] = to_index_value(value, records.get(name))
        except ValueError as e:
            logger.warning("Skipping field %s of document %s: %s", name, document.id, e)
    fields[naming.DOCUMENT_TAG_FIELD] = namespace
    return fields


def build_add_entries(
    namespace: str,
    documents: Iterable[IndexableDocument],
    records: Mapping[str, FieldMappingRecord],
    *,
    clock: VersionClock,
    language: str = "en",
    excluded_item_types: Collection[str] = (),
) -> tuple[list[BatchEntry], int]:
    """Build add entries, dropping documents excluded by item type.

    Returns:
        The entries and the number of documents skipped.
    """
    entries: list[BatchEntry] = []
    skipped = 0
    for document in documents:
        if is_excluded(document, excluded_item_types):
            skipped += 1
            continue
        entries.append(
            BatchEntry(
                type="add",
                id=naming.encode_document_id(namespace, document.id),
                version=clock.next(),
                lang=language,
                fields=document_fields(namespace, document, records),
            )
        )
    return entries, skipped


def build_delete_entries(
    namespace: str,
    ids: Iterable[str | int],
    *,
    clock: VersionClock,
) -> list[BatchEntry]:
    return [
        BatchEntry(type="delete", id=naming.encode_document_id(namespace, doc_id), version=clock.next())
        for doc_id in ids
    ]


def chunk_entries(entries: Sequence[BatchEntry], max_bytes: int) -> list[list[BatchEntry]]:
    """Split entries into batches whose JSON array body stays within ``max_bytes``.

    An entry larger than ``max_bytes`` on its own still gets a batch of its own.
    """
    chunks: list[list[BatchEntry]] = []
    current: list[BatchEntry] = []
    size = 2  # "[" and "]"
    for entry in entries:
        entry_size = len(json.dumps(entry.to_wire(), separators=_SEPARATORS).encode("utf-8"))
        extra = entry_size + (1 if current else 0)
        if current and size + extra > max_bytes:
            chunks.append(current)
            current, size = [], 2
            extra = entry_size
        current.append(entry)
        size += extra
    if current:
        chunks.append(current)
    return chunks


def serialize_batch(entries: Sequence[BatchEntry]) -> str:
    return json.dumps([entry.to_wire() for entry in entries], separators=_SEPARATORS)
