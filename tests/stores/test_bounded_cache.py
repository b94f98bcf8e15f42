"""Tests for the oldest-inserted eviction cache."""

from __future__ import annotations

import pytest

from repoprofile.stores.bounded_cache import BoundedCache


def test_evicts_oldest_inserted_entry() -> None:
    cache: BoundedCache[str, int] = BoundedCache(2)
    cache.store("a", 1)
    cache.store("b", 2)
    cache.store("c", 3)

    assert "a" not in cache
    assert cache.keys() == ["b", "c"]
    assert len(cache) == 2


def test_reads_do_not_refresh_recency() -> None:
    cache: BoundedCache[str, int] = BoundedCache(2)
    cache.store("a", 1)
    cache.store("b", 2)
    assert cache.get("a") == 1

    cache.store("c", 3)

    # Strict LRU would have kept "a" after the read.
    assert cache.get("a") is None
    assert cache.get("b") == 2


def test_overwrite_keeps_original_slot() -> None:
    cache: BoundedCache[str, int] = BoundedCache(2)
    cache.store("a", 1)
    cache.store("b", 2)
    cache.store("a", 10)
    cache.store("c", 3)

    assert cache.keys() == ["b", "c"]


def test_clear_and_invalid_size() -> None:
    cache: BoundedCache[str, int] = BoundedCache(1)
    cache.store("a", 1)
    cache.clear()
    assert len(cache) == 0

    with pytest.raises(ValueError):
        BoundedCache(0)
