"""Unit tests for the in-memory counter store."""

import threading

import pytest

from turnstile.models import CounterEntry
from turnstile.store import CounterStore

NOW = 1_700_000_000_000
WINDOW = 60_000


class TestCounterStore:
    """Tests for CounterStore."""

    @pytest.fixture
    def store(self):
        return CounterStore()

    def test_first_hit_opens_window(self, store):
        count, reset_at = store.hit("k", WINDOW, NOW)

        assert count == 1
        assert reset_at == NOW + WINDOW
        assert len(store) == 1
        assert "k" in store

    def test_hits_increment_within_window(self, store):
        store.hit("k", WINDOW, NOW)
        store.hit("k", WINDOW, NOW + 10)
        count, reset_at = store.hit("k", WINDOW, NOW + 20)

        assert count == 3
        # Window end is fixed by the first hit
        assert reset_at == NOW + WINDOW

    def test_hit_at_window_end_reopens(self, store):
        """An entry whose reset_at equals now is already expired."""
        store.hit("k", WINDOW, NOW)
        store.hit("k", WINDOW, NOW)

        count, reset_at = store.hit("k", WINDOW, NOW + WINDOW)

        assert count == 1
        assert reset_at == NOW + 2 * WINDOW

    def test_keys_are_independent(self, store):
        store.hit("a", WINDOW, NOW)
        store.hit("a", WINDOW, NOW)
        count, _ = store.hit("b", WINDOW, NOW)

        assert count == 1

    def test_get(self, store):
        assert store.get("k") is None

        store.hit("k", WINDOW, NOW)

        assert store.get("k") == (1, NOW + WINDOW)

    def test_sweep_removes_only_expired(self, store):
        store.hit("old", WINDOW, NOW)
        store.hit("new", WINDOW, NOW + 30_000)

        removed = store.sweep(NOW + WINDOW + 1)

        assert removed == 1
        assert "old" not in store
        assert "new" in store

    def test_sweep_keeps_entry_ending_now(self, store):
        """Sweep removes entries that ended strictly before now."""
        store.hit("k", WINDOW, NOW)

        assert store.sweep(NOW + WINDOW) == 0
        assert "k" in store

    def test_sweep_empty_store(self, store):
        assert store.sweep(NOW) == 0

    def test_sweep_skips_entry_reopened_after_scan(self, store):
        """An entry refreshed between the scan and the delete is kept."""
        store.hit("k", WINDOW, NOW)
        later = NOW + WINDOW + 1

        class ReopenOnSecondAcquire:
            def __init__(self):
                self._lock = threading.Lock()
                self.acquired = 0

            def __enter__(self):
                self.acquired += 1
                if self.acquired == 2:
                    store._entries["k"] = CounterEntry(count=1, reset_at=later + WINDOW)
                self._lock.acquire()

            def __exit__(self, *exc):
                self._lock.release()

        store._lock = ReopenOnSecondAcquire()

        assert store.sweep(later) == 0
        assert store.get("k") == (1, later + WINDOW)

    def test_clear(self, store):
        store.hit("a", WINDOW, NOW)
        store.hit("b", WINDOW, NOW)

        store.clear()

        assert len(store) == 0
