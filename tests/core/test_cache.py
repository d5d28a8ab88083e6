# tests/core/test_cache.py

from costkube.core.cache import AggregationCache, aggregation_cache_key


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self):
        return self.now


def test_cache_key_fingerprints_every_parameter():
    key = aggregation_cache_key("1d", "1h", "prod", "east", "label", "team", True)

    assert key == "aggregate:1d:1h:prod:east:label:team:true"
    assert aggregation_cache_key("1d", "", "", "", "namespace", "", False) == "aggregate:1d::::namespace::false"


def test_get_returns_value_until_ttl_expires():
    clock = FakeClock()
    cache = AggregationCache(ttl_seconds=60, clock=clock)
    cache.set("k", {"a": 1})

    clock.now += 59
    assert cache.get("k") == ({"a": 1}, True)

    clock.now += 1
    assert cache.get("k") == (None, False)
    assert len(cache) == 0


def test_missing_key_is_a_miss():
    assert AggregationCache().get("nothing") == (None, False)


def test_flush_removes_everything():
    cache = AggregationCache()
    cache.set("a", 1)
    cache.set("b", 2)

    cache.flush()

    assert len(cache) == 0


def test_delete_expired_keeps_live_entries():
    clock = FakeClock()
    cache = AggregationCache(ttl_seconds=10, clock=clock)
    cache.set("old", 1)
    clock.now += 5
    cache.set("new", 2)
    clock.now += 6

    assert cache.delete_expired() == 1
    assert cache.get("new") == (2, True)
    assert cache.get("old") == (None, False)
