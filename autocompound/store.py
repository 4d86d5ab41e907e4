"""An ordered in-memory key-value store and page-wise reading of it."""

from __future__ import annotations

import copy
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any

from .errors import InvalidRequestError

DEFAULT_LIMIT = 100


class KVStore:
    """Byte-keyed store that iterates in key order.

    Values are copied on the way in and out, so callers never share state
    with what is stored.
    """

    def __init__(self) -> None:
        self._data: dict[bytes, Any] = {}

    def set(self, key: bytes, value: Any) -> None:
        if not key:
            raise ValueError("key is nil")
        if value is None:
            raise ValueError("value is nil")
        self._data[bytes(key)] = copy.deepcopy(value)

    def get(self, key: bytes) -> Any:
        """Return a copy of the stored value, or None when absent."""
        value = self._data.get(bytes(key))
        return None if value is None else copy.deepcopy(value)

    def delete(self, key: bytes) -> None:
        self._data.pop(bytes(key), None)

    def iterate(self, prefix: bytes = b"") -> Iterator[tuple[bytes, Any]]:
        """Yield ``(key, value)`` under ``prefix`` in ascending key order.

        Keys are yielded with the prefix removed.
        """
        keys = sorted(key for key in self._data if key.startswith(prefix))
        for key in keys:
            if key in self._data:
                yield key[len(prefix):], copy.deepcopy(self._data[key])


@dataclass
class PageRequest:
    """Which page of results to return."""

    key: bytes | None = None
    offset: int = 0
    limit: int = 0
    count_total: bool = False
    reverse: bool = False


@dataclass
class PageResponse:
    """Where the next page starts and, if counted, how many entries exist."""

    next_key: bytes | None = None
    total: int = 0


def paginate(
    store: KVStore, prefix: bytes, page_request: PageRequest | None = None
) -> tuple[list[Any], PageResponse]:
    """Return one page of values under ``prefix`` and the page response.

    Pages are selected either by a start key or by an offset, never both. A
    limit of zero means the default limit with the total counted.
    """
    request = page_request or PageRequest()
    if request.offset > 0 and request.key is not None:
        raise InvalidRequestError("either offset or key is expected, got both")

    limit = request.limit
    count_total = request.count_total
    if limit == 0:
        limit = DEFAULT_LIMIT
        count_total = True

    entries = list(store.iterate(prefix))
    if request.reverse:
        entries.reverse()

    if request.key:
        start = request.key
        if request.reverse:
            selected = [(k, v) for k, v in entries if k <= start]
        else:
            selected = [(k, v) for k, v in entries if k >= start]
        next_key = selected[limit][0] if len(selected) > limit else None
        return [value for _, value in selected[:limit]], PageResponse(next_key=next_key)

    end = request.offset + limit
    page = entries[request.offset:end]
    next_key = entries[end][0] if len(entries) > end else None
    total = len(entries) if count_total else 0
    return [value for _, value in page], PageResponse(next_key=next_key, total=total)