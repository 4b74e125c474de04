import threading
import time

import pytest

from PaintMixer.MixCache import MixCache
from PaintMixer.Utils.CustomTypes import CacheEntry, ResultColor


def entry(L):
    return CacheEntry(ResultColor((float(L), 0.0, 0.0), (0, 0, 0)))


def fp(n):
    return (("Acme:1", n),)


def test_get_put():
    cache = MixCache(max_size=10)
    assert cache.get(fp(1)) is None
    cache.put(fp(1), entry(10))
    assert cache.get(fp(1)) == entry(10)
    assert cache.hits == 1 and cache.misses == 1
    assert fp(1) in cache
    assert len(cache) == 1


def test_least_recently_used_entry_is_evicted():
    cache = MixCache(max_size=2)
    cache.put(fp(1), entry(1))
    cache.put(fp(2), entry(2))
    cache.get(fp(1))
    cache.put(fp(3), entry(3))
    assert fp(1) in cache
    assert fp(2) not in cache
    assert fp(3) in cache
    assert len(cache) == 2


def test_entries_expire():
    now = [0.0]
    cache = MixCache(max_size=10, max_age=5.0, clock=lambda: now[0])
    cache.put(fp(1), entry(1))
    now[0] = 4.0
    assert cache.get(fp(1)) is not None
    now[0] = 6.0
    assert cache.get(fp(1)) is None
    assert len(cache) == 0


def test_target_keys_are_separate():
    cache = MixCache()
    cache.put(fp(1), entry(1))
    cache.put(fp(1), CacheEntry(entry(1).color, 3.0), target_key=(500000, 0, 0))
    assert cache.get(fp(1)).distance is None
    assert cache.get(fp(1), target_key=(500000, 0, 0)).distance == 3.0
    assert cache.get(fp(1), target_key=(400000, 0, 0)) is None


def test_partly_cached_batch_is_recomputed():
    cache = MixCache()
    cache.put(fp(1), entry(1))
    assert cache.get_or_compute_many([fp(1), fp(2)], lambda: [entry(1), entry(2)]) == [entry(1), entry(2)]
    assert cache.hits == 1 and cache.misses == 1
    assert cache.get(fp(2)) == entry(2)


def test_get_or_compute_computes_once():
    cache = MixCache()
    calls = []

    def compute():
        calls.append(1)
        return entry(5)

    assert cache.get_or_compute(fp(1), compute) == entry(5)
    assert cache.get_or_compute(fp(1), compute) == entry(5)
    assert len(calls) == 1


def test_concurrent_requests_share_one_computation():
    cache = MixCache()
    started = threading.Event()
    release = threading.Event()
    calls = []

    def compute():
        calls.append(1)
        started.set()
        release.wait(5)
        return entry(7)

    results = []
    owner = threading.Thread(target=lambda: results.append(cache.get_or_compute(fp(1), compute)))
    owner.start()
    assert started.wait(5)
    waiters = [threading.Thread(target=lambda: results.append(cache.get_or_compute(fp(1), compute)))
               for _ in range(3)]
    for t in waiters:
        t.start()
    time.sleep(0.05)
    release.set()
    for t in [owner] + waiters:
        t.join(5)
    assert len(calls) == 1
    assert results == [entry(7)] * 4


def test_failed_computation_stores_nothing():
    cache = MixCache()

    def fail():
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        cache.get_or_compute(fp(1), fail)
    assert len(cache) == 0
    assert cache.get_or_compute(fp(1), lambda: entry(2)) == entry(2)


def test_clear():
    cache = MixCache()
    cache.put(fp(1), entry(1))
    cache.clear()
    assert len(cache) == 0
    assert cache.hits == 0


def test_invalid_size():
    with pytest.raises(ValueError):
        MixCache(max_size=0)


def test_get_or_compute_many_computes_missing_batches_once():
    cache = MixCache()
    calls = []

    def compute():
        calls.append(1)
        return [entry(1), entry(2)]

    assert cache.get_or_compute_many([fp(1), fp(2)], compute) == [entry(1), entry(2)]
    assert cache.get_or_compute_many([fp(1), fp(2)], compute) == [entry(1), entry(2)]
    assert len(calls) == 1
    assert cache.hits == 2 and cache.misses == 2
    assert cache.get_or_compute(fp(2), lambda: entry(9)) == entry(2)


def test_single_key_waits_for_batch_in_flight():
    cache = MixCache()
    started = threading.Event()
    release = threading.Event()
    calls = []

    def compute_batch():
        calls.append("batch")
        started.set()
        release.wait(5)
        return [entry(1), entry(2), entry(3)]

    def compute_single():
        calls.append("single")
        return entry(99)

    results = {}
    owner = threading.Thread(target=lambda: results.update(
        batch=cache.get_or_compute_many([fp(1), fp(2), fp(3)], compute_batch)))
    owner.start()
    assert started.wait(5)
    waiter = threading.Thread(target=lambda: results.update(single=cache.get_or_compute(fp(2), compute_single)))
    waiter.start()
    time.sleep(0.05)
    release.set()
    owner.join(5)
    waiter.join(5)
    assert calls == ["batch"]
    assert results["single"] == entry(2)


def test_waiters_take_over_after_failed_batch():
    cache = MixCache()
    started = threading.Event()
    release = threading.Event()

    def fail():
        started.set()
        release.wait(5)
        raise RuntimeError("boom")

    errors = []

    def run_owner():
        try:
            cache.get_or_compute_many([fp(1), fp(2)], fail)
        except RuntimeError as e:
            errors.append(e)

    owner = threading.Thread(target=run_owner)
    owner.start()
    assert started.wait(5)
    results = []
    waiter = threading.Thread(target=lambda: results.append(
        cache.get_or_compute_many([fp(1), fp(2)], lambda: [entry(1), entry(2)])))
    waiter.start()
    time.sleep(0.05)
    release.set()
    owner.join(5)
    waiter.join(5)
    assert len(errors) == 1
    assert results == [[entry(1), entry(2)]]
    assert len(cache) == 2


def test_batch_must_return_one_entry_per_fingerprint():
    cache = MixCache()
    with pytest.raises(ValueError):
        cache.get_or_compute_many([fp(1), fp(2)], lambda: [entry(1)])
    assert len(cache) == 0
    assert cache.get_or_compute_many([fp(1)], lambda: [entry(1)]) == [entry(1)]
