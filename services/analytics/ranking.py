"""
services/analytics/ranking.py

Generic "top K by count" reducer used by every leaderboard
(most absent / late / violations / observations, most frequent violation names, top points).
"""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional

from pydantic import BaseModel


class RankEntry(BaseModel):
    key: str
    name: str = ""
    grade: str = ""
    class_name: str = ""
    count: int = 0


def count_by(
    items: Iterable,
    key: Callable[[object], Optional[str]],
    describe: Optional[Callable[[object], dict]] = None,
    increment: Callable[[object], int] = lambda item: 1,
) -> Dict[str, RankEntry]:
    """
    key → RankEntry, in first-seen order.
    - key returns None to skip an item
    - describe supplies name/grade/class_name the first time a key is seen
    """
    counts: Dict[str, RankEntry] = {}
    for item in items:
        k = key(item)
        if k is None:
            continue
        entry = counts.get(k)
        if entry is None:
            entry = RankEntry(key=k, **(describe(item) if describe else {"name": k}))
            counts[k] = entry
        entry.count += increment(item)
    return counts


def top_k(counts: Dict[str, RankEntry], k: int = 5, drop_zero: bool = True) -> List[RankEntry]:
    """Descending by count; ties keep first-seen order."""
    ranked = sorted(counts.values(), key=lambda e: e.count, reverse=True)
    if drop_zero:
        ranked = [e for e in ranked if e.count > 0]
    return ranked[:k]


def top_n(
    items: Iterable,
    key: Callable[[object], Optional[str]],
    describe: Optional[Callable[[object], dict]] = None,
    increment: Callable[[object], int] = lambda item: 1,
    k: int = 5,
    drop_zero: bool = True,
) -> List[RankEntry]:
    return top_k(count_by(items, key, describe, increment), k, drop_zero)


def describe_student(item) -> dict:
    """Name/grade/class of a row carrying student_name, grade, class_name."""
    return {
        "name": getattr(item, "student_name", "") or "",
        "grade": getattr(item, "grade", "") or "",
        "class_name": getattr(item, "class_name", "") or "",
    }
