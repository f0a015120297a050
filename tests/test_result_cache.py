"""Tests for the single-slot result cache."""

from __future__ import annotations

from rlcomplete.services.result_cache import MISS, CacheKey, ResultCache


def test_empty_cache_misses():
    cache = ResultCache()
    assert cache.lookup(CacheKey("s1", "git in", 0, 0)) is MISS
    assert not cache.has_entry


def test_hit_after_store():
    cache = ResultCache()
    key = CacheKey("s1", "git in", 0, 0)
    cache.store(key, "value")
    assert cache.lookup(CacheKey("s1", "git in", 0, 0)) == "value"


def test_stored_none_is_a_hit():
    cache = ResultCache()
    key = CacheKey("s1", "git zz", 0, 0)
    cache.store(key, None)
    assert cache.lookup(key) is None


def test_new_key_evicts_old():
    cache = ResultCache()
    first = CacheKey("s1", "git in", 0, 0)
    cache.store(first, "one")
    cache.store(CacheKey("s1", "git co", 0, 0), "two")
    assert cache.lookup(first) is MISS


def test_every_key_field_matters():
    cache = ResultCache()
    cache.store(CacheKey("s1", "git in", 0, 0), "value")
    assert cache.lookup(CacheKey("s2", "git in", 0, 0)) is MISS
    assert cache.lookup(CacheKey("s1", "git i", 0, 0)) is MISS
    assert cache.lookup(CacheKey("s1", "git in", 3, 0)) is MISS
    assert cache.lookup(CacheKey("s1", "git in", 0, 1)) is MISS


def test_clear():
    cache = ResultCache()
    key = CacheKey("s1", "git in", 0, 0)
    cache.store(key, "value")
    cache.clear()
    assert cache.lookup(key) is MISS
