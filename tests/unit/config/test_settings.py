"""Tests for application settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from cloudsift.config.settings import CloudSearchSettings, IndexSettings, Settings


class TestCloudSearchSettings:
    def test_defaults(self) -> None:
        s = CloudSearchSettings()
        assert s.api_version == "2011-02-01"
        assert s.language == "en"
        assert s.max_batch_bytes == 5 * 1024 * 1024

    def test_endpoint_gets_scheme(self) -> None:
        s = CloudSearchSettings(search_endpoint="search-shop.example.com/")
        assert s.search_endpoint == "http://search-shop.example.com"

    def test_endpoint_keeps_scheme(self) -> None:
        s = CloudSearchSettings(document_endpoint="https://doc-shop.example.com")
        assert s.document_endpoint == "https://doc-shop.example.com"


class TestIndexSettings:
    def test_comma_separated_lists(self) -> None:
        s = IndexSettings(sort_fields="price, created", excluded_item_types="draft")
        assert s.sort_fields == ["price", "created"]
        assert s.excluded_item_types == ["draft"]


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings(_env_file=None)  # type: ignore[call-arg]
        assert s.app_name == "CloudSift"
        assert s.store.backend == "memory"
        assert not s.namespace.shared

    def test_unknown_index_uses_defaults(self, settings: Settings) -> None:
        assert settings.index("other") == IndexSettings()
        assert settings.index("idx1").range_fields == ["price"]

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLOUDSIFT_CLOUDSEARCH__TIMEOUT", "5")
        monkeypatch.setenv("CLOUDSIFT_NAMESPACE__SHARED", "true")
        monkeypatch.setenv("CLOUDSIFT_NAMESPACE__SITE_ID", "site1")

        s = Settings(_env_file=None)  # type: ignore[call-arg]

        assert s.cloudsearch.timeout == 5.0
        assert s.namespace.shared
        assert s.namespace.site_id == "site1"

    def test_from_yaml(self, tmp_path: Path) -> None:
        config = tmp_path / "cloudsift.yaml"
        config.write_text(
            "cloudsearch:\n"
            "  search_endpoint: search-shop.example.com\n"
            "indexes:\n"
            "  products:\n"
            "    facet_fields: [color]\n"
            "    restrict_to_index: true\n"
        )

        s = Settings.from_yaml(config)

        assert s.cloudsearch.search_endpoint == "http://search-shop.example.com"
        assert s.index("products").facet_fields == ["color"]
        assert s.index("products").restrict_to_index

    def test_from_yaml_missing(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            Settings.from_yaml(tmp_path / "missing.yaml")
