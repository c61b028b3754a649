"""Freshness-window cache for collection and document reads."""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Callable, Hashable

import orjson

from vector_desk.core.metrics import CACHE_LOOKUPS
from vector_desk.models.entities import SearchDocumentsParams

Clock = Callable[[], float]
CacheKey = tuple[Hashable, ...]


@dataclass(slots=True, frozen=True)
class DocumentsKey:
    """Hashable identity of a document search."""

    collection_name: str
    query_text: str | None
    n_results: int
    metadata_filter: str | None
    limit: int | None
    offset: int | None

    @classmethod
    def from_params(cls, params: SearchDocumentsParams) -> "DocumentsKey":
        filter_json = None
        if params.metadata_filter:
            filter_json = orjson.dumps(params.metadata_filter, option=orjson.OPT_SORT_KEYS).decode("utf-8")
        return cls(
            collection_name=params.collection_name,
            query_text=params.query_text,
            n_results=params.n_results,
            metadata_filter=filter_json,
            limit=params.limit,
            offset=params.offset,
        )


def collections_key(profile_id: str) -> CacheKey:
    return ("collections", profile_id)


def documents_key(profile_id: str, params: SearchDocumentsParams) -> CacheKey:
    return ("documents", profile_id, DocumentsKey.from_params(params))


def documents_of_collection(profile_id: str, collection_name: str) -> Callable[[CacheKey], bool]:
    """Predicate matching every cached search over one collection."""

    def predicate(key: CacheKey) -> bool:
        return (
            key[0] == "documents"
            and key[1] == profile_id
            and isinstance(key[2], DocumentsKey)
            and key[2].collection_name == collection_name
        )

    return predicate


@dataclass(slots=True)
class _Entry:
    value: Any
    fetched_at: float
    stale_after: float


class QueryCache:
    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._entries: dict[CacheKey, _Entry] = {}
        self._clock = clock

    def get(self, key: CacheKey) -> tuple[bool, Any]:
        """Return ``(True, value)`` for a fresh entry, ``(False, None)`` otherwise."""
        kind = str(key[0])
        entry = self._entries.get(key)
        if entry is None or self._clock() - entry.fetched_at >= entry.stale_after:
            CACHE_LOOKUPS.labels(kind=kind, result="miss").inc()
            return False, None
        CACHE_LOOKUPS.labels(kind=kind, result="hit").inc()
        return True, entry.value

    def set(self, key: CacheKey, value: Any, stale_after: float) -> None:
        self._entries[key] = _Entry(value=value, fetched_at=self._clock(), stale_after=stale_after)

    def invalidate(self, predicate: Callable[[CacheKey], bool]) -> int:
        stale = [key for key in self._entries if predicate(key)]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def invalidate_key(self, key: CacheKey) -> bool:
        return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        self._entries.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


__all__ = [
    "QueryCache",
    "DocumentsKey",
    "CacheKey",
    "collections_key",
    "documents_key",
    "documents_of_collection",
]
