"""Tests for the abstract query models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from cloudsift.models.query import FilterCondition


class TestFilterCondition:
    def test_equals_takes_any_value(self) -> None:
        assert FilterCondition(field="color", value="red").value == "red"

    def test_range_pair_becomes_tuple(self) -> None:
        condition = FilterCondition(field="price", operator="range", value=[10, None])
        assert condition.value == (10, None)

    @pytest.mark.parametrize("value", [5, "10..20", (1, 2, 3), [], None])
    def test_range_needs_pair(self, value) -> None:
        with pytest.raises(ValidationError, match="needs a \\(low, high\\) pair"):
            FilterCondition(field="price", operator="range", value=value)
