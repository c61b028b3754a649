"""Translate filter rows into search parameters."""

from __future__ import annotations

import re
from dataclasses import dataclass, field, replace
from typing import Any, Iterable, Literal

from vector_desk.metadata.codec import parse_number
from vector_desk.models.entities import DocumentRecord, SearchDocumentsParams
from vector_desk.utils.ids import new_id

MetadataOperator = Literal["$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin"]
FilterRowType = Literal["search", "metadata", "id"]

OPERATORS: tuple[str, ...] = ("$eq", "$ne", "$gt", "$gte", "$lt", "$lte", "$in", "$nin")
_COMPARISON = {"$gt", "$gte", "$lt", "$lte"}
_LIST = {"$in", "$nin"}
NUMERIC_RE = re.compile(r"^-?\d+(\.\d+)?$")


@dataclass(slots=True)
class FilterRow:
    id: str
    type: FilterRowType = "search"
    search_value: str = ""
    metadata_key: str = ""
    operator: MetadataOperator = "$eq"
    metadata_value: str = ""

    @property
    def is_active(self) -> bool:
        if self.type == "metadata":
            return bool(self.metadata_key.strip() and self.metadata_value.strip())
        return bool(self.search_value.strip())


@dataclass(slots=True)
class SearchPlan:
    """Server-side parameters plus the filters applied to the response."""

    params: SearchDocumentsParams
    id_contains: str | None = None

    def apply(self, records: Iterable[DocumentRecord]) -> list[DocumentRecord]:
        return filter_by_id(records, self.id_contains)


def _numeric(value: str) -> int | float | None:
    if NUMERIC_RE.match(value):
        return parse_number(value)
    return None


def coerce_filter_value(value: str, operator: str) -> Any:
    """Coerce a typed-in filter value for ``operator``."""
    value = value.strip()
    if operator in _LIST:
        parts = [part.strip() for part in value.split(",")]
        numbers = [_numeric(part) for part in parts]
        if all(number is not None for number in numbers):
            return numbers
        return parts
    if operator not in _COMPARISON:
        if value == "true":
            return True
        if value == "false":
            return False
    number = _numeric(value)
    return number if number is not None else value


def build_where_clause(rows: Iterable[FilterRow]) -> dict[str, Any] | None:
    predicates = [
        {row.metadata_key.strip(): {row.operator: coerce_filter_value(row.metadata_value, row.operator)}}
        for row in rows
        if row.type == "metadata" and row.is_active
    ]
    if not predicates:
        return None
    if len(predicates) == 1:
        return predicates[0]
    return {"$and": predicates}


def filter_by_id(records: Iterable[DocumentRecord], needle: str | None) -> list[DocumentRecord]:
    if not needle:
        return list(records)
    lowered = needle.lower()
    return [record for record in records if lowered in record.id.lower()]


def _default_row() -> FilterRow:
    return FilterRow(id=new_id("flt"), type="search")


@dataclass(slots=True)
class FilterState:
    """Filter rows of one documents view. There is always at least one row."""

    n_results: int = 10
    rows: list[FilterRow] = field(default_factory=lambda: [_default_row()])

    def add_row(self, row_type: FilterRowType = "metadata") -> FilterRow:
        row = FilterRow(id=new_id("flt"), type=row_type)
        self.rows.append(row)
        return row

    def update_row(self, row_id: str, **changes: Any) -> FilterRow:
        for idx, row in enumerate(self.rows):
            if row.id == row_id:
                updated = replace(row, **changes)
                self.rows[idx] = updated
                return updated
        raise KeyError(row_id)

    def remove_row(self, row_id: str) -> None:
        remaining = [row for row in self.rows if row.id != row_id]
        self.rows = remaining or [_default_row()]

    def clear(self) -> None:
        self.rows = [_default_row()]

    @property
    def has_active_filters(self) -> bool:
        return any(row.is_active for row in self.rows)

    def build_search_plan(self, collection_name: str) -> SearchPlan:
        search_row = next((row for row in self.rows if row.type == "search" and row.is_active), None)
        id_row = next((row for row in self.rows if row.type == "id" and row.is_active), None)
        params = SearchDocumentsParams(
            collection_name=collection_name,
            query_text=search_row.search_value.strip() if search_row else None,
            n_results=self.n_results,
            metadata_filter=build_where_clause(self.rows),
        )
        return SearchPlan(params=params, id_contains=id_row.search_value.strip() if id_row else None)


__all__ = [
    "OPERATORS",
    "MetadataOperator",
    "FilterRowType",
    "FilterRow",
    "FilterState",
    "SearchPlan",
    "coerce_filter_value",
    "build_where_clause",
    "filter_by_id",
]
