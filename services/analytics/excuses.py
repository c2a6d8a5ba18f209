"""
services/analytics/excuses.py

Excuse reconciliation: which excuse request (if any) covers a student's absence on a date.

Lookup is two-step:
  1) student_id + date
  2) student_name + date, for legacy requests filed before student_id was populated.
The second step is logged every time it is used; do not drop it.

Two predicates over the reconciled status are kept separate:
  - is_unexcused(status)    : status != APPROVED   (summary counts)
  - has_live_excuse(status) : status not in (None, REJECTED)   (risk-list suppression, missing excuses)
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Tuple

from schemas.enums import RequestStatus

logger = logging.getLogger(__name__)


class ExcuseIndex:
    """First-match index over an excuse-request snapshot (any objects with student_id/student_name/date/status)."""

    def __init__(self, requests: Iterable):
        self._by_id: Dict[Tuple[str, str], object] = {}
        self._by_name: Dict[Tuple[str, str], object] = {}
        for req in requests:
            if req.student_id:
                self._by_id.setdefault((req.student_id, req.date), req)
            if req.student_name:
                self._by_name.setdefault((req.student_name, req.date), req)

    def find(self, student_id: Optional[str], student_name: Optional[str], date: str):
        if student_id:
            match = self._by_id.get((student_id, date))
            if match is not None:
                return match
        if student_name:
            match = self._by_name.get((student_name, date))
            if match is not None:
                logger.warning(
                    "excuse request %s matched by name fallback (student_id=%r, name=%r, date=%s)",
                    getattr(match, "id", None), student_id, student_name, date,
                )
                return match
        return None

    def status(self, student_id: Optional[str], student_name: Optional[str], date: str) -> Optional[RequestStatus]:
        match = self.find(student_id, student_name, date)
        if match is None:
            return None
        return RequestStatus(match.status)


def reconcile(student_id: Optional[str], student_name: Optional[str], date: str, requests: Iterable) -> Optional[RequestStatus]:
    """Excuse status for one attendance entry, or None when nothing was filed."""
    return ExcuseIndex(requests).status(student_id, student_name, date)


def is_unexcused(status: Optional[RequestStatus]) -> bool:
    return status != RequestStatus.APPROVED


def has_live_excuse(status: Optional[RequestStatus]) -> bool:
    return status is not None and status != RequestStatus.REJECTED
