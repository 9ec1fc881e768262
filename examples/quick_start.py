#!/usr/bin/env python3
"""
Quick Start Example
===================

Previews the deadlines of a small rule set for a company with a
31 December financial year end and prints the timeline.

Usage:
    python examples/quick_start.py
"""

from datetime import date

from deadline_engine.models import (
    AnchorType,
    CompanyAnchorData,
    DeadlineRule,
    Frequency,
    RuleType,
)
from deadline_engine.preview import PreviewAggregator


def main() -> None:
    company = CompanyAnchorData(fye_month=12, fye_day=31, fye_year=2024)

    rules = [
        DeadlineRule(
            task_name="Annual General Meeting",
            rule_type=RuleType.RULE_BASED,
            anchor_type=AnchorType.FYE,
            offset_months=6,
            is_recurring=True,
            frequency=Frequency.ANNUALLY,
        ),
        DeadlineRule(
            task_name="Monthly Bookkeeping",
            rule_type=RuleType.RULE_BASED,
            anchor_type=AnchorType.MONTH_END,
            offset_days=15,
            is_recurring=True,
            frequency=Frequency.MONTHLY,
        ),
        # No incorporation date on file: produces a warning, not dates
        DeadlineRule(
            task_name="Incorporation Anniversary Review",
            rule_type=RuleType.RULE_BASED,
            anchor_type=AnchorType.INCORPORATION,
        ),
    ]

    result = PreviewAggregator().aggregate(
        rules, company=company, now=date(2025, 1, 10)
    )

    for d in result.deadlines:
        flag = "PAST " if d.is_past else ("TODAY" if d.is_today else "     ")
        print(f"{flag} {d.date_string:<18} {d.task_name} ({d.relative_label})")

    print(f"\nTotal: {result.total_count}  Hidden: {result.hidden_count}  "
          f"Overdue: {result.overdue_count}")

    for w in result.warnings:
        print(f"Warning: {w}")


if __name__ == "__main__":
    main()
