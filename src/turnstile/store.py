"""In-memory counter store for fixed-window rate limiting.

Counters live in a plain dict guarded by a single lock. The lock is only ever
held for work on one key, so a long sweep never blocks admission checks for
more than one removal at a time.

The store is per process. Running several workers multiplies the effective
limit, and a restart resets every quota.
"""

import threading

from turnstile.models import CounterEntry


class CounterStore:
    """Mapping of composite key to ``CounterEntry`` with atomic per-key updates."""

    def __init__(self) -> None:
        self._entries: dict[str, CounterEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def hit(self, key: str, window_ms: int, now: int) -> tuple[int, int]:
        """
        Record one request for ``key`` and return its window state.

        A missing entry, or one whose window ended at or before ``now``, is
        replaced by a fresh window opened at ``now``. Otherwise the existing
        count is incremented and the window end is left untouched.

        Returns: (count, reset_at)
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None or entry.reset_at <= now:
                entry = CounterEntry(count=1, reset_at=now + window_ms)
                self._entries[key] = entry
            else:
                entry.count += 1
            return entry.count, entry.reset_at

    def get(self, key: str) -> tuple[int, int] | None:
        """Return (count, reset_at) for a key without touching it."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            return entry.count, entry.reset_at

    def sweep(self, now: int) -> int:
        """Remove entries whose window ended before ``now``. Returns the count removed."""
        with self._lock:
            snapshot = list(self._entries.items())
        candidates = [key for key, entry in snapshot if entry.reset_at < now]

        removed = 0
        for key in candidates:
            with self._lock:
                entry = self._entries.get(key)
                # A concurrent hit may have reopened the window since the scan
                if entry is not None and entry.reset_at < now:
                    del self._entries[key]
                    removed += 1
        return removed

    def clear(self) -> None:
        """Drop every counter."""
        with self._lock:
            self._entries.clear()
