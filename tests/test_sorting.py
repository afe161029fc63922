"""Tests for magic_yarn.listing.sorting."""
from __future__ import annotations

import pytest

from magic_yarn.listing.sorting import (
    SortSpec,
    apply_sort,
    filter_by_query,
    next_sort_params,
    parse_sort,
    to_sort_dir,
)

ALLOWED = ("name", "frequency")

ROWS = [
    {"name": "Beta", "frequency": 3},
    {"name": "alpha", "frequency": 1},
    {"name": "Gamma", "frequency": 3},
    {"name": "Delta", "frequency": 1},
]

KEYS = {
    "name": lambda row: row["name"].casefold(),
    "frequency": lambda row: row["frequency"],
}


class TestParse:
    def test_unknown_key_means_unsorted(self) -> None:
        assert parse_sort("colour", "desc", ALLOWED).key is None
        assert parse_sort(None, None, ALLOWED) == SortSpec(key=None, direction="asc")

    @pytest.mark.parametrize("raw, expected", [("desc", "desc"), ("asc", "asc"), ("DESC", "asc"), (None, "asc")])
    def test_dir_is_asc_unless_desc(self, raw, expected) -> None:
        assert to_sort_dir(raw) == expected

    def test_desc_default(self) -> None:
        assert to_sort_dir(None, default="desc") == "desc"
        assert to_sort_dir("asc", default="desc") == "asc"


class TestApplySort:
    def test_unsorted_keeps_load_order(self) -> None:
        assert apply_sort(ROWS, SortSpec(key=None), KEYS) == ROWS

    def test_ascending_by_name(self) -> None:
        result = apply_sort(ROWS, parse_sort("name", "asc", ALLOWED), KEYS)
        assert [row["name"] for row in result] == ["alpha", "Beta", "Delta", "Gamma"]

    def test_ties_keep_load_order_in_both_directions(self) -> None:
        ascending = apply_sort(ROWS, parse_sort("frequency", "asc", ALLOWED), KEYS)
        descending = apply_sort(ROWS, parse_sort("frequency", "desc", ALLOWED), KEYS)

        assert [row["name"] for row in ascending] == ["alpha", "Delta", "Beta", "Gamma"]
        assert [row["name"] for row in descending] == ["Beta", "Gamma", "alpha", "Delta"]


class TestHeaderCycle:
    def test_new_column_starts_at_default_direction(self) -> None:
        assert next_sort_params(SortSpec(key=None), "name") == {"sort": "name", "dir": "asc"}
        assert next_sort_params(SortSpec(key="name"), "updated", "desc") == {"sort": "updated", "dir": "desc"}

    def test_ascending_flips_then_clears(self) -> None:
        assert next_sort_params(SortSpec("name", "asc"), "name") == {"sort": "name", "dir": "desc"}
        assert next_sort_params(SortSpec("name", "desc"), "name") == {}


def test_filter_by_query_is_case_insensitive_substring():
    rows = ["Boston Children's", "Portland Clinic", "boston medical"]
    assert filter_by_query(rows, "  BOSTON ", lambda row: row) == ["Boston Children's", "boston medical"]
    assert filter_by_query(rows, "", lambda row: row) == rows
