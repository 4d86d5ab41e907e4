import pytest

from autocompound.errors import InvalidRequestError
from autocompound.store import KVStore, PageRequest, PageResponse, paginate

PREFIX = b"CompoundSetting/value/"


def _filled_store(count=5):
    store = KVStore()
    items = [f"item-{number}" for number in range(count)]
    for number, item in enumerate(items):
        store.set(PREFIX + str(number).encode() + b"/", item)
    store.set(b"Other/" + b"x", "unrelated")
    return store, items


def test_set_get_delete():
    store = KVStore()
    store.set(b"key", {"delegator": "0"})
    assert store.get(b"key") == {"delegator": "0"}
    store.delete(b"key")
    assert store.get(b"key") is None


def test_delete_missing_key_is_harmless():
    store = KVStore()
    store.set(b"a", 1)
    store.delete(b"b")
    assert store.get(b"a") == 1


def test_values_are_copied():
    store = KVStore()
    value = ["cosmosval1"]
    store.set(b"key", value)
    value.append("cosmosval2")
    fetched = store.get(b"key")
    fetched.append("cosmosval3")
    assert store.get(b"key") == ["cosmosval1"]


def test_set_rejects_empty_key_and_none_value():
    store = KVStore()
    with pytest.raises(ValueError):
        store.set(b"", 1)
    with pytest.raises(ValueError):
        store.set(b"key", None)


def test_iterate_is_ordered_and_strips_prefix():
    store = KVStore()
    store.set(b"p/b", 2)
    store.set(b"p/a", 1)
    store.set(b"q/c", 3)
    assert list(store.iterate(b"p/")) == [(b"a", 1), (b"b", 2)]


def test_iterate_tolerates_deletion_while_iterating():
    store, items = _filled_store()
    seen = []
    for key, value in store.iterate(PREFIX):
        seen.append(value)
        store.delete(PREFIX + key)
    assert seen == items
    assert list(store.iterate(PREFIX)) == []


def test_paginate_by_offset():
    store, items = _filled_store()
    step = 2
    collected = []
    for offset in range(0, len(items), step):
        page, _ = paginate(store, PREFIX, PageRequest(offset=offset, limit=step))
        assert len(page) <= step
        assert set(page) <= set(items)
        collected.extend(page)
    assert collected == items


def test_paginate_by_key():
    store, items = _filled_store()
    step = 2
    collected = []
    next_key = None
    for _ in range(0, len(items), step):
        page, response = paginate(store, PREFIX, PageRequest(key=next_key, limit=step))
        assert len(page) <= step
        collected.extend(page)
        next_key = response.next_key
    assert collected == items
    assert next_key is None


def test_paginate_total_with_zero_limit():
    store, items = _filled_store()
    page, response = paginate(store, PREFIX, PageRequest(count_total=True))
    assert response.total == len(items)
    assert sorted(page) == sorted(items)


def test_paginate_without_request_counts_everything():
    store, items = _filled_store()
    page, response = paginate(store, PREFIX, None)
    assert page == items
    assert response == PageResponse(next_key=None, total=len(items))


def test_paginate_total_not_counted_unless_asked():
    store, items = _filled_store()
    page, response = paginate(store, PREFIX, PageRequest(limit=2))
    assert page == items[:2]
    assert response.total == 0
    assert response.next_key is not None and response.next_key.startswith(b"2")


def test_paginate_rejects_offset_and_key():
    store, _ = _filled_store()
    with pytest.raises(InvalidRequestError):
        paginate(store, PREFIX, PageRequest(key=b"1/", offset=1, limit=2))


def test_paginate_reverse():
    store, items = _filled_store()
    page, _ = paginate(store, PREFIX, PageRequest(reverse=True))
    assert page == list(reversed(items))


def test_paginate_reverse_by_key():
    store, items = _filled_store()
    first, response = paginate(store, PREFIX, PageRequest(limit=2, reverse=True))
    second, _ = paginate(store, PREFIX, PageRequest(key=response.next_key, limit=2, reverse=True))
    assert first + second == list(reversed(items))[:4]


def test_paginate_offset_past_end():
    store, items = _filled_store()
    page, response = paginate(store, PREFIX, PageRequest(offset=len(items) + 3, limit=2, count_total=True))
    assert page == []
    assert response.total == len(items)