"""
Exclusion filtering.

Users can suppress individual generated deadlines. An exclusion matches
a deadline when the lower-cased, trimmed task names are equal and both
dates fall on the same calendar day. Blank names and unparseable dates
never produce a key, so they never exclude anything.
"""

from __future__ import annotations

import logging
from typing import Iterable, Optional

from deadline_engine.calendar_math import coerce_date
from deadline_engine.models import DateInput, DeadlineExclusion, GeneratedDeadline

logger = logging.getLogger(__name__)


def normalize_task_name(task_name: Optional[str]) -> str:
    return (task_name or "").strip().lower()


def exclusion_key(task_name: Optional[str], due_date: DateInput) -> Optional[str]:
    """Lookup key 'task name|YYYY-MM-DD', or None if either part is invalid."""
    name = normalize_task_name(task_name)
    if not name:
        return None
    day = coerce_date(due_date)
    if day is None:
        return None
    return f"{name}|{day.isoformat()}"


def build_exclusion_keys(
    exclusions: Optional[Iterable[DeadlineExclusion]],
) -> set[str]:
    keys: set[str] = set()
    for item in exclusions or ():
        key = exclusion_key(item.task_name, item.statutory_due_date)
        if key:
            keys.add(key)
    return keys


class ExclusionFilter:
    """Drops generated deadlines the caller has excluded."""

    def filter(
        self,
        deadlines: list[GeneratedDeadline],
        exclusions: Optional[Iterable[DeadlineExclusion]],
    ) -> list[GeneratedDeadline]:
        keys = build_exclusion_keys(exclusions)
        if not keys:
            return list(deadlines)

        kept = [
            d
            for d in deadlines
            if exclusion_key(d.exclusion_name, d.date) not in keys
        ]
        logger.debug(
            "Excluded %d of %d deadlines", len(deadlines) - len(kept), len(deadlines)
        )
        return kept


def add_exclusion(
    exclusions: list[DeadlineExclusion], candidate: DeadlineExclusion
) -> list[DeadlineExclusion]:
    """
    Return exclusions with candidate appended, unless it is invalid or
    already covered by an existing entry.
    """
    key = exclusion_key(candidate.task_name, candidate.statutory_due_date)
    if key is None or key in build_exclusion_keys(exclusions):
        return list(exclusions)
    return [*exclusions, candidate]
