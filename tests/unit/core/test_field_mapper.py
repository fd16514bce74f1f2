"""Tests for the field mapper."""

from __future__ import annotations

import pytest

from cloudsift.core.field_mapper import map_field, needs_sort_auxiliary, storage_type_for
from cloudsift.models.fields import (
    AbstractFieldDescriptor,
    LiteralOptions,
    SemanticType,
    StorageType,
    UintOptions,
    build_spec,
)


def _facets(*names: str):
    return lambda _ns, name: name in names


class TestStorageType:
    @pytest.mark.parametrize(
        ("semantic", "facet", "expected"),
        [
            (SemanticType.STRING, False, StorageType.LITERAL),
            (SemanticType.TEXT, False, StorageType.TEXT),
            (SemanticType.LIST_TEXT, False, StorageType.TEXT_ARRAY),
            (SemanticType.LIST_INTEGER, False, StorageType.INT_ARRAY),
            (SemanticType.DECIMAL, False, StorageType.LITERAL),
            (SemanticType.DATE, False, StorageType.INT),
            (SemanticType.DATE, True, StorageType.LITERAL),
            (SemanticType.BOOLEAN, False, StorageType.INT),
            (SemanticType.BOOLEAN, True, StorageType.LITERAL),
            (SemanticType.INTEGER, False, StorageType.INT),
            (SemanticType.INTEGER, True, StorageType.LITERAL),
        ],
    )
    def test_table(self, semantic: SemanticType, facet: bool, expected: StorageType) -> None:
        assert storage_type_for(semantic, facet) is expected

    def test_unknown_type_is_literal(self) -> None:
        assert storage_type_for("geo_point", False) is StorageType.LITERAL

    def test_string_semantic_value_accepted(self) -> None:
        assert storage_type_for("list<text>", False) is StorageType.TEXT_ARRAY


class TestSortAuxiliary:
    @pytest.mark.parametrize(
        ("sortable", "ranges", "facet", "expected"),
        [
            (True, False, True, True),
            (False, True, True, True),
            (True, True, False, False),
            (False, False, True, False),
        ],
    )
    def test_needs_sort_auxiliary(self, sortable: bool, ranges: bool, facet: bool, expected: bool) -> None:
        assert needs_sort_auxiliary(sortable, ranges, facet) is expected


class TestMapField:
    def test_plain_text_field(self) -> None:
        mapping = map_field("idx1", AbstractFieldDescriptor(name="title", semantic_type=SemanticType.TEXT))

        assert mapping.primary.encoded_name == "idx1_title"
        assert mapping.primary.storage_type is StorageType.TEXT
        assert mapping.primary.result_enabled
        assert not mapping.primary.facet_enabled
        assert mapping.auxiliaries == []
        assert mapping.record.storage_type is StorageType.TEXT
        assert mapping.record.semantic_type == "text"

    def test_string_field_is_search_enabled_literal(self) -> None:
        mapping = map_field("idx1", AbstractFieldDescriptor(name="sku", semantic_type=SemanticType.STRING))

        assert isinstance(mapping.primary.options, LiteralOptions)
        assert mapping.primary.search_enabled
        assert mapping.primary.result_enabled

    def test_facet_predicate_overrides_descriptor(self) -> None:
        descriptor = AbstractFieldDescriptor(name="color", semantic_type=SemanticType.STRING, facet_requested=True)
        mapping = map_field("idx1", descriptor, is_facet=_facets())

        assert not mapping.primary.facet_enabled
        assert not mapping.record.facet

    def test_facet_field_is_not_result_enabled(self) -> None:
        descriptor = AbstractFieldDescriptor(name="color", semantic_type=SemanticType.STRING)
        mapping = map_field("idx1", descriptor, is_facet=_facets("color"))

        assert mapping.primary.facet_enabled
        assert not mapping.primary.result_enabled

    def test_sortable_numeric_facet_gets_uint_auxiliary(self) -> None:
        descriptor = AbstractFieldDescriptor(name="price", semantic_type=SemanticType.DECIMAL)
        mapping = map_field(
            "idx1", descriptor, sort_fields=["price"], range_fields=["price"], is_facet=_facets("price")
        )

        assert len(mapping.auxiliaries) == 1
        aux = mapping.auxiliaries[0]
        assert aux.encoded_name == "idx1_sort_price"
        assert isinstance(aux.options, UintOptions)
        assert aux.facet_enabled
        assert aux.result_enabled
        assert not aux.search_enabled
        assert aux.copy_source_field == "idx1_price"
        assert mapping.record.auxiliary_names == ["idx1_sort_price"]
        assert mapping.record.has_sort_auxiliary
        assert mapping.record.sortable and mapping.record.ranges

    def test_sortable_string_facet_keeps_primary_storage(self) -> None:
        descriptor = AbstractFieldDescriptor(name="brand", semantic_type=SemanticType.STRING, sort_requested=True)
        mapping = map_field("idx1", descriptor, is_facet=_facets("brand"))

        aux = mapping.auxiliaries[0]
        assert aux.storage_type is StorageType.LITERAL
        assert not aux.facet_enabled
        assert not aux.search_enabled

    def test_sortable_without_facet_has_no_auxiliary(self) -> None:
        descriptor = AbstractFieldDescriptor(name="stock", semantic_type=SemanticType.INTEGER)
        mapping = map_field("idx1", descriptor, sort_fields=["stock"])

        assert mapping.primary.storage_type is StorageType.INT
        assert mapping.auxiliaries == []
        assert mapping.record.sortable

    def test_colon_in_name_is_escaped(self) -> None:
        mapping = map_field("idx1", AbstractFieldDescriptor(name="author:name", semantic_type="string"))

        assert mapping.primary.encoded_name == "idx1_author_x3aname"

    def test_specs_lists_primary_first(self) -> None:
        descriptor = AbstractFieldDescriptor(name="price", semantic_type=SemanticType.INTEGER, sort_requested=True)
        mapping = map_field("idx1", descriptor, is_facet=_facets("price"))

        assert [spec.encoded_name for spec in mapping.specs] == ["idx1_price", "idx1_sort_price"]


class TestIndexFieldPayload:
    def test_literal_payload(self) -> None:
        mapping = map_field("idx1", AbstractFieldDescriptor(name="sku", semantic_type="string"))

        assert mapping.primary.to_index_field() == {
            "IndexFieldName": "idx1_sku",
            "IndexFieldType": "literal",
            "LiteralOptions": {"FacetEnabled": False, "ResultEnabled": True, "SearchEnabled": True},
        }

    @pytest.mark.parametrize("storage", list(StorageType))
    def test_every_storage_uses_result_enabled(self, storage: StorageType) -> None:
        spec = build_spec("idx1_f", storage, facet_enabled=False, result_enabled=True)

        options = next(value for key, value in spec.to_index_field().items() if key.endswith("Options"))
        assert options["ResultEnabled"] is True
        assert "ReturnEnabled" not in options

    def test_auxiliary_payload_copies_source(self) -> None:
        descriptor = AbstractFieldDescriptor(name="stock", semantic_type="integer", range_requested=True)
        aux = map_field("idx1", descriptor, is_facet=_facets("stock")).auxiliaries[0]

        payload = aux.to_index_field()
        assert payload["IndexFieldType"] == "uint"
        assert payload["UIntOptions"] == {"FacetEnabled": True, "ResultEnabled": True}
        assert payload["SourceAttributes"] == [
            {"SourceDataFunction": "Copy", "SourceDataCopy": {"SourceName": "idx1_stock"}}
        ]
