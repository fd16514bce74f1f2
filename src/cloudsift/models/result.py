"""Search result models — What a compiled query returns to the caller."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class SearchHit(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Caller-visible document identifier (namespace stripped)")
    score: float = Field(default=0.0, description="Relevance score reported by the service")


class FacetCount(BaseModel):
    model_config = ConfigDict(frozen=True)

    value: str = Field(description='Facet value, wrapped in double quotes (e.g. \'"red"\')')
    count: int = Field(default=0, ge=0)


class SearchResult(BaseModel):
    """Result of one query.

    Built fresh for every call and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    total_count: int = Field(default=0, ge=0, description="Total number of matching documents")
    hits: list[SearchHit] = Field(default_factory=list)
    facets: dict[str, list[FacetCount]] = Field(default_factory=dict, description="Decoded field name -> counts")
