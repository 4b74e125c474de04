import threading
import time
from collections import OrderedDict
from concurrent.futures import Future, wait
from typing import Callable, Dict, Hashable, List, Optional, Sequence, Tuple

from PaintMixer.Utils.CustomTypes import CacheEntry
from PaintMixer.Utils.Hash import Fingerprint


CacheKey = Tuple[Fingerprint, Optional[Hashable]]


class MixCache:
    """
    Least-recently-used cache of computed mix colors, keyed by mix fingerprint.

    Entries stored without a target key hold only the color and can be reused by any query.
    Entries stored with a target key also hold the distance to that target and are only
    returned for the same target. Entries are derived data: dropping any of them is always safe.
    """

    def __init__(self, max_size: int = 200_000, max_age: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        if max_size < 1:
            raise ValueError("max_size must be at least 1")
        self.max_size = max_size
        self.max_age = max_age
        self._clock = clock
        self._entries: "OrderedDict[CacheKey, Tuple[CacheEntry, float]]" = OrderedDict()
        self._in_flight: Dict[CacheKey, Future] = {}
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def _lookup(self, key: CacheKey) -> Optional[CacheEntry]:
        # caller holds the lock
        item = self._entries.get(key)
        if item is None:
            return None
        entry, stored_at = item
        if self.max_age is not None and self._clock() - stored_at > self.max_age:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return entry

    def _store(self, key: CacheKey, entry: CacheEntry) -> None:
        # caller holds the lock
        self._entries[key] = (entry, self._clock())
        self._entries.move_to_end(key)
        while len(self._entries) > self.max_size:
            self._entries.popitem(last=False)

    def get(self, fingerprint: Fingerprint, target_key: Optional[Hashable] = None) -> Optional[CacheEntry]:
        with self._lock:
            entry = self._lookup((fingerprint, target_key))
            if entry is None:
                self.misses += 1
            else:
                self.hits += 1
            return entry

    def put(self, fingerprint: Fingerprint, entry: CacheEntry, target_key: Optional[Hashable] = None) -> None:
        with self._lock:
            self._store((fingerprint, target_key), entry)

    def get_or_compute(self, fingerprint: Fingerprint, compute: Callable[[], CacheEntry],
                       target_key: Optional[Hashable] = None) -> CacheEntry:
        """
        Return the cached entry, or compute and store it.

        Only one computation of a key is in flight at a time. Threads asking for a key that is
        being computed wait for that computation and then read its result from the cache.
        A failed computation stores nothing and raises in the thread that ran it.
        """
        return self.get_or_compute_many([fingerprint], lambda: [compute()], target_key)[0]

    def get_or_compute_many(self, fingerprints: Sequence[Fingerprint], compute: Callable[[], Sequence[CacheEntry]],
                            target_key: Optional[Hashable] = None) -> List[CacheEntry]:
        """
        Return the cached entries of a batch of fingerprints, computing the whole batch when
        any of them is missing.

        :param compute: returns one entry per fingerprint, in the same order
        """
        keys = [(fp, target_key) for fp in fingerprints]
        while True:
            with self._lock:
                entries = [self._lookup(key) for key in keys]
                found = sum(1 for e in entries if e is not None)
                if found == len(entries):
                    self.hits += found
                    return entries
                pending = {self._in_flight[key] for key in keys if key in self._in_flight}
                if not pending:
                    self.hits += found
                    self.misses += len(entries) - found
                    future = Future()
                    for key in keys:
                        self._in_flight[key] = future
                    break
            # a failed computation leaves its keys free, the next pass takes them over
            wait(pending)

        try:
            entries = list(compute())
            if len(entries) != len(keys):
                raise ValueError(f"Computed {len(entries)} entries for {len(keys)} fingerprints")
        except BaseException as e:
            with self._lock:
                for key in keys:
                    self._in_flight.pop(key, None)
            future.set_exception(e)
            raise

        with self._lock:
            for key, entry in zip(keys, entries):
                self._store(key, entry)
                self._in_flight.pop(key, None)
        future.set_result(entries)
        return entries

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __contains__(self, fingerprint: Fingerprint) -> bool:
        with self._lock:
            return any(key[0] == fingerprint for key in self._entries)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def keys(self):
        with self._lock:
            return list(self._entries.keys())
