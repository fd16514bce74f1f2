"""Tests for the name codec."""

from __future__ import annotations

import pytest

from cloudsift.core import naming


class TestEncodeDecode:
    def test_encode_prefixes_namespace(self) -> None:
        assert naming.encode("idx1", "title") == "idx1_title"

    def test_encode_escapes_colons(self) -> None:
        assert naming.encode("idx1", "author:name") == "idx1_author_x3aname"

    def test_decode_strips_prefix_once(self) -> None:
        assert naming.decode("idx1", "idx1_idx1_title") == "idx1_title"

    def test_decode_reverses_escape(self) -> None:
        assert naming.decode("idx1", "idx1_author_x3aname") == "author:name"

    def test_decode_without_prefix_returns_remainder(self) -> None:
        assert naming.decode("idx1", "other_title") == "other_title"

    @pytest.mark.parametrize(
        "name",
        ["title", "author:name", "a:b:c", ":", "_co:", "x_x3:", "field_color", "sort_price", ""],
    )
    def test_round_trip(self, name: str) -> None:
        assert naming.decode("idx1", naming.encode("idx1", name)) == name

    def test_round_trip_shared_namespace(self) -> None:
        ns = naming.build_namespace("idx1", "site1")
        assert ns == "site1_idx1"
        assert naming.decode(ns, naming.encode(ns, "tags:name")) == "tags:name"


class TestNamespace:
    def test_build_namespace_without_site(self) -> None:
        assert naming.build_namespace("idx1") == "idx1"
        assert naming.build_namespace("idx1", None) == "idx1"

    def test_belongs_to(self) -> None:
        assert naming.belongs_to("idx1", "idx1_title")
        assert not naming.belongs_to("idx1", "idx2_title")
        assert not naming.belongs_to("idx1", "idx1")

    def test_owned_by_prefers_longer_namespace(self) -> None:
        known = {"shop", "shop_archive"}
        assert naming.owned_by("shop", "shop_title", known)
        assert not naming.owned_by("shop", "shop_archive_title", known)
        assert naming.owned_by("shop_archive", "shop_archive_title", known)

    def test_owned_by_without_known_namespaces(self) -> None:
        assert naming.owned_by("shop", "shop_archive_title")
        assert not naming.owned_by("shop", "other_title")

    def test_owned_by_shared_site(self) -> None:
        known = {naming.build_namespace("a", "s1"), naming.build_namespace("a_b", "s1")}
        assert not naming.owned_by("s1_a", "s1_a_b_title", known)
        assert naming.owned_by("s1_a_b", "s1_a_b_title", known)

    def test_sort_name(self) -> None:
        assert naming.sort_name("price") == "sort_price"


class TestDocumentIds:
    def test_encode_document_id(self) -> None:
        assert naming.encode_document_id("idx1", 1) == "idx1_1"

    def test_decode_document_id(self) -> None:
        assert naming.decode_document_id("idx1", "idx1_42") == "42"

    def test_decode_foreign_document_id_untouched(self) -> None:
        assert naming.decode_document_id("idx1", "idx2_42") == "idx2_42"
