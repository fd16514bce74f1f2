"""Field mapper — Abstract field descriptors to concrete index-field specs.

The service cannot sort or range-filter on a field that is also used for
faceting (a facet literal is a single token; ranges need an unsigned
integer).  When a faceted field is also requested sortable or rangeable
the mapper emits a derived ``sort_<name>`` field that copies its value
from the primary at indexing time.

All functions here are pure.
"""

from __future__ import annotations

from collections.abc import Callable, Collection

from pydantic import BaseModel, Field

from cloudsift.core import naming
from cloudsift.models.fields import (
    AbstractFieldDescriptor,
    ConcreteIndexFieldSpec,
    FieldMappingRecord,
    SemanticType,
    StorageType,
    build_spec,
)

FacetPredicate = Callable[[str, str], bool]
"""``(namespace, field_name) -> bool``: whether a field is configured as a facet."""

NUMERIC_TYPES = frozenset({SemanticType.DECIMAL, SemanticType.INTEGER, SemanticType.DATE})

# decimal has no native type on the service and is stored as a literal string
_STORAGE_TABLE: dict[SemanticType, StorageType] = {
    SemanticType.STRING: StorageType.LITERAL,
    SemanticType.TEXT: StorageType.TEXT,
    SemanticType.LIST_TEXT: StorageType.TEXT_ARRAY,
    SemanticType.LIST_INTEGER: StorageType.INT_ARRAY,
    SemanticType.DECIMAL: StorageType.LITERAL,
}

_FACET_SENSITIVE = frozenset({SemanticType.DATE, SemanticType.BOOLEAN, SemanticType.INTEGER})


class FieldMapping(BaseModel):
    """Specs computed for one abstract field, plus the record to persist."""

    primary: ConcreteIndexFieldSpec
    auxiliaries: list[ConcreteIndexFieldSpec] = Field(default_factory=list)
    record: FieldMappingRecord

    @property
    def specs(self) -> list[ConcreteIndexFieldSpec]:
        return [self.primary, *self.auxiliaries]


def _semantic(value: SemanticType | str) -> SemanticType | None:
    try:
        return SemanticType(value)
    except ValueError:
        return None


def storage_type_for(semantic_type: SemanticType | str, facet: bool) -> StorageType:
    """Storage type for a semantic type; unknown types fall back to literal."""
    semantic = _semantic(semantic_type)
    if semantic is None:
        return StorageType.LITERAL
    if semantic in _FACET_SENSITIVE:
        return StorageType.LITERAL if facet else StorageType.INT
    return _STORAGE_TABLE.get(semantic, StorageType.LITERAL)


def needs_sort_auxiliary(sortable: bool, ranges: bool, facet: bool) -> bool:
    return (sortable or ranges) and facet


def map_field(
    namespace: str,
    descriptor: AbstractFieldDescriptor,
    *,
    sort_fields: Collection[str] = (),
    range_fields: Collection[str] = (),
    is_facet: FacetPredicate | None = None,
) -> FieldMapping:
    """Compute the concrete specs for one abstract field.

    Args:
        namespace: Namespace of the owning index.
        descriptor: The abstract field.
        sort_fields: Field names the index configuration requests sortable.
        range_fields: Field names the index configuration requests rangeable.
        is_facet: Facet-membership predicate; defaults to the descriptor's own flag.

    Returns:
        The primary spec, zero or more auxiliary specs and the mapping record.
    """
    name = descriptor.name
    facet = is_facet(namespace, name) if is_facet else descriptor.facet_requested
    sortable = name in sort_fields or descriptor.sort_requested
    ranges = name in range_fields or descriptor.range_requested

    storage = storage_type_for(descriptor.semantic_type, facet)
    encoded = naming.encode(namespace, name)
    primary = build_spec(encoded, storage, facet_enabled=facet, result_enabled=not facet, search_enabled=True)

    auxiliaries: list[ConcreteIndexFieldSpec] = []
    if needs_sort_auxiliary(sortable, ranges, facet):
        aux_storage = StorageType.UINT if _semantic(descriptor.semantic_type) in NUMERIC_TYPES else storage
        auxiliaries.append(
            build_spec(
                naming.encode(namespace, naming.sort_name(name)),
                aux_storage,
                facet_enabled=ranges,
                result_enabled=True,
                search_enabled=False,
                copy_source_field=encoded,
            )
        )

    record = FieldMappingRecord(
        semantic_type=str(getattr(descriptor.semantic_type, "value", descriptor.semantic_type)),
        storage_type=storage,
        encoded_name=encoded,
        facet=facet,
        sortable=sortable,
        ranges=ranges,
        auxiliary_names=[aux.encoded_name for aux in auxiliaries],
    )
    return FieldMapping(primary=primary, auxiliaries=auxiliaries, record=record)
