"""
Per-client search result cache with a stale-response guard.

Every search action is tagged with a monotonically increasing request id
before its deal fetch starts. When the fetch resolves, its result is only
cached if no newer search was started for the same session in the meantime,
so a slow earlier request can never overwrite a newer one. Starting a
search drops the session's previous result, so a failed search leaves
nothing cached.
"""
from __future__ import annotations

import itertools
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_SESSIONS = 1000


@dataclass
class _SessionState(Generic[T]):
    latest_request_id: int
    result: Optional[T] = None


class SearchSessionStore(Generic[T]):
    """In-memory, app-owned; accessed only from the event loop thread."""

    def __init__(self, max_sessions: int = DEFAULT_MAX_SESSIONS) -> None:
        self._ids = itertools.count(1)
        self._sessions: OrderedDict[str, _SessionState[T]] = OrderedDict()
        self._max_sessions = max_sessions

    def begin(self, session_id: Optional[str]) -> int:
        """Issue a request id; it becomes the latest for ``session_id``."""
        request_id = next(self._ids)
        if session_id is None:
            return request_id

        state = self._sessions.get(session_id)
        if state is None:
            self._sessions[session_id] = _SessionState(latest_request_id=request_id)
            self._evict()
        else:
            state.latest_request_id = request_id
            state.result = None
            self._sessions.move_to_end(session_id)
        return request_id

    def is_latest(self, session_id: Optional[str], request_id: int) -> bool:
        if session_id is None:
            return True
        state = self._sessions.get(session_id)
        return state is not None and state.latest_request_id == request_id

    def complete(self, session_id: Optional[str], request_id: int, result: T) -> bool:
        """Cache ``result`` unless a newer request was issued. Returns acceptance."""
        if session_id is None:
            return True
        if not self.is_latest(session_id, request_id):
            logger.info(
                f"Discarding stale result for session={session_id} request_id={request_id}"
            )
            return False
        self._sessions[session_id].result = result
        return True

    def get(self, session_id: str) -> Optional[T]:
        state = self._sessions.get(session_id)
        return state.result if state else None

    def clear(self, session_id: str) -> bool:
        return self._sessions.pop(session_id, None) is not None

    def __len__(self) -> int:
        return len(self._sessions)

    def _evict(self) -> None:
        while len(self._sessions) > self._max_sessions:
            self._sessions.popitem(last=False)


_store: SearchSessionStore = SearchSessionStore()


def get_search_sessions() -> SearchSessionStore:
    return _store


__all__ = ["SearchSessionStore", "get_search_sessions"]
