import time

import pytest

from growth_context.utils.response_cache import OldestFirstEviction, ResponseCache, build_key, normalize_key


def test_set_then_get(fake_clock):
    cache = ResponseCache(clock=fake_clock)
    cache.set('hello there', 'hi!')

    assert cache.get('hello there') == 'hi!'
    assert cache.stats['hits'] == 1


def test_missing_key_is_a_miss(fake_clock):
    cache = ResponseCache(clock=fake_clock)

    assert cache.get('nope') is None
    assert cache.stats['misses'] == 1


def test_entries_expire_at_ttl(fake_clock):
    cache = ResponseCache(clock=fake_clock)
    cache.set('k', 'v', ttl_ms=10)

    fake_clock.advance(9)
    assert cache.get('k') == 'v'

    fake_clock.advance(1)
    assert cache.get('k') is None
    assert len(cache) == 0
    assert cache.stats['expired'] == 1


def test_ttl_with_real_clock():
    cache = ResponseCache()
    cache.set('k', 'v', 10)
    time.sleep(0.011)

    assert cache.get('k') is None


def test_near_duplicate_inputs_share_a_key(fake_clock):
    cache = ResponseCache(clock=fake_clock)
    cache.set("I'm stressed!!", 'breathe')

    assert normalize_key("I'm stressed!!") == 'im_stressed'
    assert cache.get('im stressed') == 'breathe'


def test_keys_are_truncated():
    assert len(normalize_key('word ' * 40)) == 50
    assert len(normalize_key('word ' * 40, length=10)) == 10


def test_build_key_survives_truncation():
    key = normalize_key(build_key('coach', 'x' * 200, 'excited'))
    assert key.startswith('coach_excited_')


def test_overflow_evicts_oldest_fifth(fake_clock):
    cache = ResponseCache(max_size=10, clock=fake_clock)
    for i in range(11):
        cache.set(f'key {i}', f'value {i}')
        fake_clock.advance(1)

    assert len(cache) == 9
    assert 'key 0' not in cache
    assert 'key 1' not in cache
    assert 'key 2' in cache
    assert cache.stats['evicted'] == 2


def test_size_never_exceeds_capacity(fake_clock):
    cache = ResponseCache(max_size=10, clock=fake_clock)
    for i in range(100):
        cache.set(f'key {i}', 'v')
        fake_clock.advance(1)
        assert len(cache) <= 10


def test_custom_eviction_policy(fake_clock):

    class DropNewest:

        def select_victims(self, entries, max_size):
            if len(entries) <= max_size:
                return []
            return [max(entries, key=lambda e: e.inserted_at).key]

    cache = ResponseCache(max_size=2, policy=DropNewest(), clock=fake_clock)
    for i in range(3):
        cache.set(f'key {i}', 'v')
        fake_clock.advance(1)

    assert 'key 0' in cache
    assert 'key 1' in cache
    assert 'key 2' not in cache


def test_eviction_fraction_must_be_valid():
    with pytest.raises(ValueError):
        OldestFirstEviction(0)
    with pytest.raises(ValueError):
        OldestFirstEviction(1.5)
