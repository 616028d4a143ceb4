import threading

import pytest

from wickdb.cache import Cache, LRUCache, ShardedCache

CACHE_SIZE = 100


def _tracked(capacity):
    """Build an LRU cache whose evictions are recorded in a list."""
    deleted = []
    cache = LRUCache(capacity, lambda k, v: deleted.append((k, v)))
    return cache, deleted


def test_hit_and_miss():
    cache, deleted = _tracked(CACHE_SIZE)
    assert cache.get(100) is None
    cache.insert(100, 101, 1)
    assert cache.get(100) == 101
    assert cache.get(200) is None
    assert cache.get(300) is None

    cache.insert(200, 201, 1)
    assert cache.get(100) == 101
    assert cache.get(200) == 201
    assert cache.get(300) is None

    cache.insert(100, 102, 1)
    assert cache.get(100) == 102
    assert cache.get(200) == 201
    assert cache.get(300) is None

    assert deleted == [(100, 101)]


def test_insert_returns_replaced_value():
    cache = LRUCache(CACHE_SIZE)
    assert cache.insert("a", 1, 1) is None
    assert cache.insert("a", 2, 1) == 1
    assert cache.get("a") == 2


def test_erase():
    cache, deleted = _tracked(CACHE_SIZE)
    cache.erase(200)
    assert deleted == []

    cache.insert(100, 101, 1)
    cache.insert(200, 201, 1)
    cache.erase(100)
    assert cache.get(100) is None
    assert cache.get(200) == 201
    assert deleted == [(100, 101)]

    cache.erase(100)
    assert cache.get(100) is None
    assert cache.get(200) == 201
    assert len(deleted) == 1


def test_entries_are_pinned():
    cache, deleted = _tracked(CACHE_SIZE)
    cache.insert(100, 101, 1)
    v1 = cache.get(100)
    assert v1 == 101
    cache.insert(100, 102, 1)
    v2 = cache.get(100)
    assert v2 == 102
    assert deleted == [(100, 101)]

    cache.erase(100)
    assert v1 == 101
    assert v2 == 102
    assert cache.get(100) is None
    assert deleted == [(100, 101), (100, 102)]


def test_eviction_policy():
    cache, _ = _tracked(CACHE_SIZE)
    cache.insert(100, 101, 1)
    cache.insert(200, 201, 1)
    cache.insert(300, 301, 1)

    fresh = []
    frequent = []
    for i in range(CACHE_SIZE + 100):
        cache.insert(1000 + i, 2000 + i, 1)
        fresh.append(cache.get(1000 + i))
        frequent.append(cache.get(100))
    assert fresh == [2000 + i for i in range(CACHE_SIZE + 100)]
    assert frequent == [101] * (CACHE_SIZE + 100)
    assert len(cache) == CACHE_SIZE
    assert cache.get(100) == 101
    assert cache.get(200) is None
    assert cache.get(300) is None


def test_use_exceeds_cache_size():
    cache, _ = _tracked(CACHE_SIZE)
    extra = 100
    total = CACHE_SIZE + extra
    for i in range(total):
        cache.insert(1000 + i, 2000 + i, 1)
    found = [cache.get(1000 + i) for i in range(total)]
    expected = [None] * extra + [2000 + i for i in range(extra, total)]
    assert found == expected


def test_heavy_entries():
    cache, _ = _tracked(CACHE_SIZE)
    light, heavy = 1, 10
    added = 0
    index = 0
    while added < 2 * CACHE_SIZE:
        weight = light if index % 2 == 0 else heavy
        cache.insert(index, 1000 + index, weight)
        added += weight
        index += 1
    found = {i: cache.get(i) for i in range(index)}
    present = {i: v for i, v in found.items() if v is not None}
    assert present
    assert present == {i: 1000 + i for i in present}
    cache_weight = sum(light if i % 2 == 0 else heavy for i in present)
    assert cache_weight <= cache.total_charge()
    assert cache.total_charge() < 2 * CACHE_SIZE


def test_zero_size_cache():
    cache, _ = _tracked(0)
    cache.insert(100, 101, 1)
    assert cache.get(100) is None
    assert cache.total_charge() == 0


def test_total_charge_tracks_inserts_and_erases():
    cache = LRUCache(CACHE_SIZE)
    cache.insert("a", "x", 3)
    cache.insert("b", "y", 4)
    assert cache.total_charge() == 7
    cache.erase("a")
    assert cache.total_charge() == 4
    assert len(cache) == 1


def test_negative_capacity_rejected():
    with pytest.raises(ValueError):
        LRUCache(-1)


def test_cache_is_abstract():
    with pytest.raises(TypeError):
        Cache()


def test_sharded_empty_shards_rejected():
    with pytest.raises(ValueError):
        ShardedCache([])


def test_sharded_get_and_erase():
    cache = ShardedCache([LRUCache(1 << 20) for _ in range(4)])
    inserted = [cache.insert(f"k{i}", f"v{i}", 2) for i in range(50)]
    assert inserted == [None] * 50
    assert cache.total_charge() == 100
    assert cache.get("k7") == "v7"
    cache.erase("k7")
    assert cache.get("k7") is None
    assert cache.total_charge() == 98
    assert cache.insert("k8", "new", 2) == "v8"


def test_concurrent_insert():
    cache = ShardedCache([LRUCache(1 << 20) for _ in range(8)])
    threads_count = 4
    repeated = 10
    expected = {
        str(i) * x: str(i) * x
        for i in range(threads_count)
        for x in range(1, repeated + 1)
    }
    expected_charge = threads_count * sum(range(1, repeated + 1))
    results = []
    results_lock = threading.Lock()

    def worker(i):
        for x in range(1, repeated + 1):
            k = str(i) * x
            replaced = cache.insert(k, k, x)
            with results_lock:
                results.append(replaced)

    threads = [threading.Thread(target=worker, args=(i,)) for i in range(threads_count)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results == [None] * (threads_count * repeated)
    assert cache.total_charge() == expected_charge
    assert {k: cache.get(k) for k in expected} == expected