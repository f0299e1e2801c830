"""Tests for the per-session result cache and stale-response guard."""
from __future__ import annotations

from cartfinder.services.search_session import SearchSessionStore


class TestSearchSessionStore:
    def test_request_ids_increase(self):
        store = SearchSessionStore()
        first = store.begin("s1")
        second = store.begin("s1")
        third = store.begin("s2")
        assert first < second < third

    def test_latest_result_cached(self):
        store = SearchSessionStore()
        request_id = store.begin("s1")
        assert store.complete("s1", request_id, "result")
        assert store.get("s1") == "result"

    def test_stale_result_discarded(self):
        store = SearchSessionStore()
        slow = store.begin("s1")
        fast = store.begin("s1")
        assert store.complete("s1", fast, "newer")
        assert not store.complete("s1", slow, "older")
        assert store.get("s1") == "newer"

    def test_new_search_drops_previous_result(self):
        store = SearchSessionStore()
        store.complete("s1", store.begin("s1"), "first")
        store.begin("s1")
        assert store.get("s1") is None

    def test_sessions_are_independent(self):
        store = SearchSessionStore()
        a = store.begin("a")
        store.begin("b")
        assert store.is_latest("a", a)
        assert store.complete("a", a, "a-result")

    def test_no_session_is_never_cached(self):
        store = SearchSessionStore()
        request_id = store.begin(None)
        assert store.complete(None, request_id, "result")
        assert len(store) == 0

    def test_clear(self):
        store = SearchSessionStore()
        store.complete("s1", store.begin("s1"), "result")
        assert store.clear("s1")
        assert store.get("s1") is None
        assert not store.clear("s1")

    def test_cleared_session_rejects_in_flight_result(self):
        store = SearchSessionStore()
        request_id = store.begin("s1")
        store.clear("s1")
        assert not store.complete("s1", request_id, "late")
        assert store.get("s1") is None

    def test_oldest_session_evicted(self):
        store = SearchSessionStore(max_sessions=2)
        store.begin("a")
        store.begin("b")
        store.begin("c")
        assert len(store) == 2
        assert not store.is_latest("a", 1)
