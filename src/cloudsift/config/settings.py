"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. Environment variables (CLOUDSIFT_ prefix)
  2. YAML config file (if specified)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class CloudSearchSettings(BaseModel):
    """Remote CloudSearch domain endpoints and request limits."""

    search_endpoint: str = Field(default="", description="Search service endpoint (host or URL)")
    document_endpoint: str = Field(default="", description="Document service endpoint (host or URL)")
    api_version: str = Field(default="2011-02-01", description="CloudSearch API version path segment")
    timeout: float = Field(default=30.0, gt=0, description="HTTP request timeout in seconds")
    language: str = Field(default="en", description="Language code sent with every added document")
    max_batch_bytes: int = Field(default=5 * 1024 * 1024, gt=0, description="Upper bound on one batch body")

    @field_validator("search_endpoint", "document_endpoint")
    @classmethod
    def _with_scheme(cls, v: str) -> str:
        """Endpoints are reported without a scheme by the service; default to http."""
        v = v.strip().rstrip("/")
        if v and "://" not in v:
            return f"http://{v}"
        return v


class NamespaceSettings(BaseModel):
    """How field and document names are namespaced on a shared domain."""

    shared: bool = Field(default=False, description="Several sites share one domain")
    site_id: str | None = Field(default=None, description="Site identifier used in shared mode")


class IndexSettings(BaseModel):
    """Per-index options."""

    sort_fields: list[str] = Field(default_factory=list, description="Fields requested sortable")
    range_fields: list[str] = Field(default_factory=list, description="Fields requested for range filters")
    facet_fields: list[str] = Field(default_factory=list, description="Fields configured as facets")
    excluded_item_types: list[str] = Field(default_factory=list, description="Item types never sent for indexing")
    restrict_to_index: bool = Field(default=False, description="Limit queries to this index's documents")

    @field_validator("sort_fields", "range_fields", "facet_fields", "excluded_item_types", mode="before")
    @classmethod
    def _parse_list(cls, v: Any) -> list[str]:
        """Accept comma-separated strings (env vars) as well as lists."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return list(v)


class StoreSettings(BaseModel):
    """Server configuration store backend."""

    backend: str = Field(default="memory", description="Store backend: memory, redis")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL for the redis backend")
    key_prefix: str = Field(default="cloudsift:config:", description="Key prefix for stored index mappings")


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root application settings.

    Configuration is loaded from environment variables with the CLOUDSIFT_ prefix.
    Nested settings use double underscores: CLOUDSIFT_CLOUDSEARCH__TIMEOUT=10

    Example:
        CLOUDSIFT_CLOUDSEARCH__SEARCH_ENDPOINT=search-shop-abc.us-east-1.cloudsearch.amazonaws.com
        CLOUDSIFT_NAMESPACE__SHARED=true
        CLOUDSIFT_NAMESPACE__SITE_ID=site1
    """

    model_config = {
        "env_prefix": "CLOUDSIFT_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    app_name: str = Field(default="CloudSift", description="Application name")
    version: str = Field(default="0.1.0", description="Application version")
    debug: bool = Field(default=False, description="Debug mode")

    cloudsearch: CloudSearchSettings = Field(default_factory=CloudSearchSettings)
    namespace: NamespaceSettings = Field(default_factory=NamespaceSettings)
    indexes: dict[str, IndexSettings] = Field(default_factory=dict, description="Per-index options by machine name")
    store: StoreSettings = Field(default_factory=StoreSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    def index(self, index_id: str) -> IndexSettings:
        """Options for one index, falling back to defaults for unknown indexes."""
        return self.indexes.get(index_id) or IndexSettings()

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file are used as defaults; environment variables
        still take precedence.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
