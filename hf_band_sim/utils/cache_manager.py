"""
Signal cache for the HF band simulation.

Memoizes signal strength per unordered participant pair. Entries do not expire
individually: the whole cache is cleared on every propagation refresh, which
also advances the cache epoch.
"""

import time
import threading
import logging
from typing import Any, Callable, Dict, Hashable, Optional, Tuple

logger = logging.getLogger(__name__)


def make_pair_key(first: Hashable, second: Hashable) -> Tuple:
    """Order-independent key for a pair of participant ids."""
    return tuple(sorted((first, second), key=repr))


class CacheEntry:
    """Represents a single cache entry with metadata."""

    def __init__(self, key: Tuple, value: float, epoch: int):
        self.key = key
        self.value = value
        self.epoch = epoch
        self.created_at = time.time()
        self.access_count = 0

    def access(self):
        """Mark the entry as accessed."""
        self.access_count += 1

    def get_age(self) -> float:
        """Get the age of the cache entry in seconds."""
        return time.time() - self.created_at


class SignalCache:
    """Per-pair signal strength memo invalidated wholesale on refresh."""

    def __init__(self):
        self.entries: Dict[Tuple, CacheEntry] = {}
        self.epoch = 0
        self.hits = 0
        self.misses = 0
        self.lock = threading.RLock()

    def get(self, first: Hashable, second: Hashable) -> Optional[float]:
        """Get a value from cache."""
        with self.lock:
            entry = self.entries.get(make_pair_key(first, second))
            if entry is None:
                return None
            entry.access()
            return entry.value

    def get_or_compute(self, first: Hashable, second: Hashable,
                       compute_fn: Callable[[], float]) -> float:
        """
        Return the memoized strength for a pair, computing it on a miss.

        The value is only stored if no refresh happened while it was being
        computed, so a stale result never outlives its epoch.
        """
        key = make_pair_key(first, second)
        with self.lock:
            entry = self.entries.get(key)
            if entry is not None:
                entry.access()
                self.hits += 1
                return entry.value
            self.misses += 1
            epoch = self.epoch

        value = compute_fn()

        with self.lock:
            if epoch != self.epoch:
                logger.debug(f"Discarding strength for {key} computed in epoch {epoch}")
                return value
            existing = self.entries.get(key)
            if existing is not None:
                # Another caller stored first
                return existing.value
            self.entries[key] = CacheEntry(key, value, epoch)
            return value

    def clear(self):
        """Drop every entry and start a new epoch."""
        with self.lock:
            self.entries.clear()
            self.epoch += 1

    def __len__(self) -> int:
        with self.lock:
            return len(self.entries)

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self.lock:
            lookups = self.hits + self.misses
            return {
                'entries': len(self.entries),
                'epoch': self.epoch,
                'hits': self.hits,
                'misses': self.misses,
                'accesses': sum(entry.access_count for entry in self.entries.values()),
                'hit_rate': round(self.hits / lookups, 2) if lookups else 0.0,
                'oldest_entry_age': round(max((e.get_age() for e in self.entries.values()), default=0.0), 2),
            }
