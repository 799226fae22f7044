"""
Unit tests for TokenStore.
"""

import threading

import pytest

from authcore.auth_token.store import TokenStore
from tests.fixtures.auth_fixtures import NEW_ACCESS, NEW_REFRESH, make_pair


class TestTokenStore:
    """Test class for TokenStore functionality."""

    def setup_method(self):
        self.store = TokenStore()

    def test_get_returns_none_when_empty(self):
        assert self.store.get() is None

    def test_set_then_get_returns_same_pair(self):
        pair = make_pair()

        self.store.set(pair)

        assert self.store.get() is pair

    def test_set_rejects_non_pair(self):
        with pytest.raises(TypeError):
            self.store.set({"access_token": "x"})

    def test_clear_empties_store(self):
        self.store.set(make_pair())

        self.store.clear()

        assert self.store.get() is None

    def test_version_bumps_on_every_change(self):
        start = self.store.version
        self.store.set(make_pair())
        self.store.set(make_pair(NEW_ACCESS, NEW_REFRESH))
        self.store.clear()
        assert self.store.version == start + 3

    def test_subscribers_notified_before_set_returns(self):
        seen = []
        self.store.subscribe(seen.append)
        pair = make_pair()

        self.store.set(pair)

        assert seen == [pair]

    def test_subscribers_notified_with_none_on_clear(self):
        seen = []
        self.store.set(make_pair())
        self.store.subscribe(seen.append)

        self.store.clear()

        assert seen == [None]

    def test_subscriber_can_read_store_without_deadlock(self):
        observed = []
        self.store.subscribe(lambda _pair: observed.append(self.store.get()))
        pair = make_pair()

        self.store.set(pair)

        assert observed == [pair]

    def test_unsubscribe_stops_notifications(self):
        seen = []
        unsubscribe = self.store.subscribe(seen.append)
        unsubscribe()
        unsubscribe()  # idempotent

        self.store.set(make_pair())

        assert seen == []

    @pytest.mark.parametrize(
        "error", [RuntimeError("listener exploded"), KeyError("missing"), AttributeError("nope")]
    )
    def test_failing_subscriber_does_not_block_others(self, error):
        seen = []

        def broken(_pair):
            raise error

        self.store.subscribe(broken)
        self.store.subscribe(seen.append)
        pair = make_pair()

        self.store.set(pair)

        assert seen == [pair]
        assert self.store.get() is pair

    def test_concurrent_readers_never_see_mixed_pair(self):
        pairs = [make_pair(f"access-{i}", f"refresh-{i}") for i in range(50)]
        mismatches = []
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                current = self.store.get()
                if current is not None and current.access_token[7:] != current.refresh_token[8:]:
                    mismatches.append(current)

        def writer():
            for _ in range(20):
                for pair in pairs:
                    self.store.set(pair)

        readers = [threading.Thread(target=reader) for _ in range(4)]
        for t in readers:
            t.start()
        writer_thread = threading.Thread(target=writer)
        writer_thread.start()
        writer_thread.join()
        stop.set()
        for t in readers:
            t.join()

        assert mismatches == []
        assert self.store.get() is pairs[-1]
