"""
Recurrence expansion for deadline rules.

Produces the bounded, ordered list of occurrence base dates for a rule
before its offset is applied.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from deadline_engine.calendar_math import add_months_clamped
from deadline_engine.models import DeadlineRule, Frequency

logger = logging.getLogger(__name__)

# Months between consecutive occurrences
STEP_MONTHS: dict[Frequency, int] = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.ANNUALLY: 12,
}

# Occurrences generated when a recurring rule leaves generateOccurrences
# unset. Product default pending confirmation; see DESIGN.md.
DEFAULT_OCCURRENCES: dict[Frequency, int] = {
    Frequency.MONTHLY: 3,
    Frequency.QUARTERLY: 3,
    Frequency.ANNUALLY: 3,
}

PER_RULE_CAP = 12


def effective_frequency(rule: DeadlineRule) -> Frequency:
    """Frequency actually used for expansion.

    Non-recurring rules are one-time; a recurring rule without a
    frequency repeats annually.
    """
    if not rule.is_recurring:
        return Frequency.ONE_TIME
    return rule.frequency or Frequency.ANNUALLY


def step_months(frequency: Frequency) -> int:
    return STEP_MONTHS.get(frequency, 0)


class RecurrenceExpander:
    """Expands an anchor into per-occurrence base dates."""

    def __init__(
        self,
        per_rule_cap: int = PER_RULE_CAP,
        defaults: Optional[dict[Frequency, int]] = None,
    ) -> None:
        self.per_rule_cap = per_rule_cap
        self.defaults = dict(defaults or DEFAULT_OCCURRENCES)

    def occurrence_count(self, rule: DeadlineRule) -> int:
        freq = effective_frequency(rule)
        if freq == Frequency.ONE_TIME:
            return 1
        requested = rule.generate_occurrences
        if requested is None or requested <= 0:
            requested = self.defaults[freq]
        count = min(requested, self.per_rule_cap)
        if count < requested:
            logger.debug(
                "Clamped %s from %d to %d occurrences",
                rule.task_name,
                requested,
                count,
            )
        return count

    def step(self, anchor: date, rule: DeadlineRule, index: int) -> date:
        """Anchor advanced by index recurrence steps (clamped months)."""
        return add_months_clamped(
            anchor, index * step_months(effective_frequency(rule))
        )

    def expand(self, anchor: date, rule: DeadlineRule) -> list[date]:
        """Return occurrence base dates, oldest first."""
        return [
            self.step(anchor, rule, i)
            for i in range(self.occurrence_count(rule))
        ]
