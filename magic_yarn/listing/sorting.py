"""Sortable list views driven by ``sort`` / ``dir`` query parameters.

List endpoints load rows in a natural order and then apply an optional
user-chosen sort.  Sorting is stable: rows that compare equal keep their
loaded order in both directions.  Clicking a column header cycles
unsorted -> default direction -> ... -> unsorted (see
:func:`next_sort_params`).
"""
from __future__ import annotations

from collections.abc import Callable, Collection, Iterable, Sequence
from dataclasses import dataclass
from typing import Any, TypeVar

RowT = TypeVar("RowT")

ASC = "asc"
DESC = "desc"


@dataclass(frozen=True, slots=True)
class SortSpec:
    key: str | None
    direction: str = ASC

    @property
    def descending(self) -> bool:
        return self.direction == DESC


def to_sort_key(value: str | None, allowed: Collection[str]) -> str | None:
    if not value:
        return None
    return value if value in allowed else None


def to_sort_dir(value: str | None, default: str = ASC) -> str:
    """Normalize a ``dir`` parameter; anything other than the non-default direction maps to *default*."""
    other = DESC if default == ASC else ASC
    return other if value == other else default


def parse_sort(
    sort: str | None,
    direction: str | None,
    allowed: Collection[str],
    default_dir: str = ASC,
) -> SortSpec:
    return SortSpec(key=to_sort_key(sort, allowed), direction=to_sort_dir(direction, default_dir))


def apply_sort(
    rows: Iterable[RowT],
    spec: SortSpec,
    key_funcs: dict[str, Callable[[RowT], Any]],
) -> list[RowT]:
    """Return *rows* ordered by *spec*; unchanged order when no key is set."""
    items = list(rows)
    if spec.key is None or spec.key not in key_funcs:
        return items
    return sorted(items, key=key_funcs[spec.key], reverse=spec.descending)


def next_sort_params(current: SortSpec, clicked: str, default_dir: str = ASC) -> dict[str, str]:
    """Query parameters after clicking the *clicked* column header.

    A new column starts at *default_dir*; an ascending column flips to
    descending; a descending column clears the sort (empty dict).
    """
    if current.key != clicked:
        return {"sort": clicked, "dir": default_dir}
    if current.direction == ASC:
        return {"sort": clicked, "dir": DESC}
    return {}


def text_key(value: str | None) -> str:
    return (value or "").casefold()


def filter_by_query(rows: Sequence[RowT], query: str | None, haystack: Callable[[RowT], str]) -> list[RowT]:
    """Case-insensitive substring filter; a blank query keeps every row."""
    needle = (query or "").strip().lower()
    if not needle:
        return list(rows)
    return [row for row in rows if needle in haystack(row).lower()]
