"""Field models — Abstract field descriptors and concrete index-field specs.

The abstract side describes a field the way the search abstraction sees
it (a name plus a semantic type and a few flags).  The concrete side is
what the remote service stores: an encoded name, a storage type and the
option block that storage type accepts.

Storage options are a closed, discriminated union so that an option the
service would reject for a given storage type (for instance
``SearchEnabled`` on a numeric field) cannot be expressed at all.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class SemanticType(str, Enum):
    """Semantic type of an abstract field."""

    STRING = "string"
    TEXT = "text"
    DATE = "date"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    DECIMAL = "decimal"
    LIST_TEXT = "list<text>"
    LIST_INTEGER = "list<integer>"


class StorageType(str, Enum):
    """Storage type of a concrete index field on the remote service."""

    LITERAL = "literal"
    INT = "int"
    TEXT = "text"
    INT_ARRAY = "int-array"
    TEXT_ARRAY = "text-array"
    UINT = "uint"


class AbstractFieldDescriptor(BaseModel):
    """A field as declared by the search abstraction for one index."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Field name, unique within the index namespace")
    semantic_type: SemanticType | str = Field(description="Semantic type of the field values")
    sort_requested: bool = Field(default=False, description="Field was requested sortable")
    range_requested: bool = Field(default=False, description="Field was requested for range filtering")
    facet_requested: bool = Field(default=False, description="Field is configured as a facet")


# ── Storage options ──────────────────────────────────────────────────────────


class LiteralOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["literal"] = "literal"
    facet_enabled: bool = False
    result_enabled: bool = False
    search_enabled: bool = False

    def to_wire(self) -> dict[str, Any]:
        return {
            "LiteralOptions": {
                "FacetEnabled": self.facet_enabled,
                "ResultEnabled": self.result_enabled,
                "SearchEnabled": self.search_enabled,
            }
        }


class TextOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text"] = "text"
    facet_enabled: bool = False
    result_enabled: bool = False

    def to_wire(self) -> dict[str, Any]:
        return {"TextOptions": {"FacetEnabled": self.facet_enabled, "ResultEnabled": self.result_enabled}}


class TextArrayOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["text-array"] = "text-array"
    facet_enabled: bool = False
    result_enabled: bool = False

    def to_wire(self) -> dict[str, Any]:
        return {"TextArrayOptions": {"FacetEnabled": self.facet_enabled, "ResultEnabled": self.result_enabled}}


class IntOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["int"] = "int"
    facet_enabled: bool = False
    result_enabled: bool = False

    def to_wire(self) -> dict[str, Any]:
        return {"IntOptions": {"FacetEnabled": self.facet_enabled, "ResultEnabled": self.result_enabled}}


class IntArrayOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["int-array"] = "int-array"
    facet_enabled: bool = False
    result_enabled: bool = False

    def to_wire(self) -> dict[str, Any]:
        return {"IntArrayOptions": {"FacetEnabled": self.facet_enabled, "ResultEnabled": self.result_enabled}}


class UintOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal["uint"] = "uint"
    facet_enabled: bool = False
    result_enabled: bool = False

    def to_wire(self) -> dict[str, Any]:
        return {"UIntOptions": {"FacetEnabled": self.facet_enabled, "ResultEnabled": self.result_enabled}}


FieldOptions = Annotated[
    LiteralOptions | TextOptions | TextArrayOptions | IntOptions | IntArrayOptions | UintOptions,
    Field(discriminator="kind"),
]

OPTIONS_BY_STORAGE: dict[StorageType, type[BaseModel]] = {
    StorageType.LITERAL: LiteralOptions,
    StorageType.TEXT: TextOptions,
    StorageType.TEXT_ARRAY: TextArrayOptions,
    StorageType.INT: IntOptions,
    StorageType.INT_ARRAY: IntArrayOptions,
    StorageType.UINT: UintOptions,
}


class ConcreteIndexFieldSpec(BaseModel):
    """A concrete index field as it should exist on the remote service.

    ``copy_source_field`` is set on derived (auxiliary) fields whose value
    the service copies from another field at indexing time.  Derived
    fields are never searched directly.
    """

    model_config = ConfigDict(frozen=True)

    encoded_name: str = Field(description="Namespaced field name on the remote service")
    options: FieldOptions = Field(description="Storage type and its option block")
    copy_source_field: str | None = Field(default=None, description="Encoded name this field copies its value from")

    @property
    def storage_type(self) -> StorageType:
        return StorageType(self.options.kind)

    @property
    def facet_enabled(self) -> bool:
        return self.options.facet_enabled

    @property
    def result_enabled(self) -> bool:
        return self.options.result_enabled

    @property
    def search_enabled(self) -> bool:
        if isinstance(self.options, LiteralOptions):
            return self.options.search_enabled
        return self.copy_source_field is None

    def to_index_field(self) -> dict[str, Any]:
        """Serialize to the service's ``DefineIndexField`` request shape."""
        payload: dict[str, Any] = {
            "IndexFieldName": self.encoded_name,
            "IndexFieldType": self.storage_type.value,
            **self.options.to_wire(),
        }
        if self.copy_source_field:
            payload["SourceAttributes"] = [
                {
                    "SourceDataFunction": "Copy",
                    "SourceDataCopy": {"SourceName": self.copy_source_field},
                }
            ]
        return payload


def build_spec(
    encoded_name: str,
    storage_type: StorageType,
    *,
    facet_enabled: bool,
    result_enabled: bool,
    search_enabled: bool = True,
    copy_source_field: str | None = None,
) -> ConcreteIndexFieldSpec:
    """Create a spec, keeping ``search_enabled`` only where the storage type accepts it."""
    options_cls = OPTIONS_BY_STORAGE[storage_type]
    kwargs: dict[str, Any] = {"facet_enabled": facet_enabled, "result_enabled": result_enabled}
    if options_cls is LiteralOptions:
        kwargs["search_enabled"] = search_enabled
    return ConcreteIndexFieldSpec(
        encoded_name=encoded_name,
        options=options_cls(**kwargs),
        copy_source_field=copy_source_field,
    )


class RemoteField(BaseModel):
    """Snapshot of one index field as currently defined on the remote service."""

    name: str = Field(description="Encoded field name")
    storage_type: str = Field(description="Raw storage type string reported by the service")
    facet_enabled: bool = Field(default=False)
    search_enabled: bool = Field(default=False)
    result_enabled: bool = Field(default=False)
    source_field: str | None = Field(default=None, description="Copy source, if any")
    pending_deletion: bool = Field(default=False, description="Field is scheduled for deletion")


class FieldMappingRecord(BaseModel):
    """Persisted outcome of mapping one abstract field.

    Written by the index synchronizer into the server configuration
    store and read back by the query compiler and the document batcher.
    """

    semantic_type: str = Field(description="Semantic type of the abstract field")
    storage_type: StorageType = Field(description="Storage type of the primary field")
    encoded_name: str = Field(description="Encoded name of the primary field")
    facet: bool = Field(default=False)
    sortable: bool = Field(default=False)
    ranges: bool = Field(default=False)
    auxiliary_names: list[str] = Field(default_factory=list, description="Encoded names of derived fields")

    @property
    def has_sort_auxiliary(self) -> bool:
        return bool(self.auxiliary_names)
