"""
services/follow_up.py

Session-scoped follow-up bucket for the at-risk list.
Printing a warning letter moves a student here. Nothing is persisted: the bucket
lives in process memory, keyed by session token, and is gone on logout or restart.
"""

import threading
from typing import Dict, Set


class FollowUpBucket:
    def __init__(self):
        self._by_session: Dict[str, Set[str]] = {}
        self._lock = threading.Lock()

    def add(self, token: str, student_id: str) -> None:
        with self._lock:
            self._by_session.setdefault(token, set()).add(student_id)

    def remove(self, token: str, student_id: str) -> None:
        with self._lock:
            self._by_session.get(token, set()).discard(student_id)

    def ids(self, token: str) -> Set[str]:
        with self._lock:
            return set(self._by_session.get(token, ()))

    def clear(self, token: str) -> None:
        with self._lock:
            self._by_session.pop(token, None)


follow_up = FollowUpBucket()
