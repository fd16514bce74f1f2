"""Abstract query models — Keywords, filter trees, sorts and pagination."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

RELEVANCE_SORT = "relevance"
ID_SORT = "id"


class Conjunction(str, Enum):
    AND = "AND"
    OR = "OR"
    NOT = "NOT"


class FilterCondition(BaseModel):
    """A leaf of the filter tree: one field compared with one value.

    For ``operator="range"`` the value is a ``(low, high)`` pair; either
    bound may be ``None`` for an open-ended range.
    """

    field: str = Field(description="Abstract field name")
    operator: Literal["equals", "range"] = Field(default="equals")
    value: Any = Field(description="Value to match, or (low, high) for ranges")

    @model_validator(mode="after")
    def check_range_pair(self) -> FilterCondition:
        if self.operator == "range":
            if not isinstance(self.value, list | tuple) or len(self.value) != 2:
                raise ValueError(f"Range on '{self.field}' needs a (low, high) pair, got {self.value!r}")
            self.value = tuple(self.value)
        return self


class FilterGroup(BaseModel):
    """An inner node of the filter tree."""

    conjunction: Conjunction = Field(default=Conjunction.AND)
    children: list[FilterGroup | FilterCondition] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.children


FilterNode = FilterGroup | FilterCondition


class KeywordGroup(BaseModel):
    """Nested boolean keyword structure.

    ``terms`` holds raw strings and nested groups.  Strings may contain
    several words; the compiler tokenizes them.
    """

    conjunction: Literal["AND", "OR"] = Field(default="AND")
    negation: bool = Field(default=False)
    terms: list[str | KeywordGroup] = Field(default_factory=list)


class SortSpec(BaseModel):
    """One sort criterion."""

    field: str = Field(description=f"Field name, or '{RELEVANCE_SORT}' / '{ID_SORT}'")
    direction: Literal["asc", "desc"] = Field(default="asc")


class AbstractQuery(BaseModel):
    """A search request expressed in the abstraction's terms."""

    keywords: str | KeywordGroup | None = Field(default=None, description="Free text or nested keyword groups")
    filter_tree: FilterGroup | None = Field(default=None, description="Root of the boolean filter tree")
    sort: list[SortSpec] = Field(default_factory=list, description="Ordered sort criteria")
    facets: list[str] = Field(default_factory=list, description="Field names to compute facets for")
    offset: int = Field(default=0, ge=0, description="Index of the first hit to return")
    limit: int | None = Field(default=None, ge=0, description="Maximum number of hits (None or 0 = service default)")


FilterGroup.model_rebuild()
KeywordGroup.model_rebuild()
