"""
Anchor resolution.

Maps a rule's anchor type plus company data to the concrete calendar
date for a given occurrence index, or to a RuleWarning when the data
needed to ground the anchor is missing or invalid.

Anchor per occurrence i:
- FYE             (fye_year or current year) + i, fye_month, fye_day
- INCORPORATION   incorporation date advanced by i recurrence steps
- SERVICE_START   service start date advanced by i recurrence steps
- MONTH_END       last day of the month i months after the current month
- QUARTER_END     last day of the quarter i quarters after the current one
- FIXED_CALENDAR  current year + i, fixed_month, fixed_day
- IPC_EXPIRY      never resolved here
"""

from __future__ import annotations

from datetime import date
from typing import Optional, Union

from deadline_engine.calendar_math import clamped_date, coerce_date, month_end
from deadline_engine.diagnostics import (
    ContractViolation,
    RuleWarning,
    WarningCode,
    make_warning,
)
from deadline_engine.models import (
    AnchorType,
    CompanyAnchorData,
    DateInput,
    DeadlineRule,
)
from deadline_engine.recurrence import RecurrenceExpander

AnchorResult = Union[date, RuleWarning]

# Anchors that start from a single known date and advance by the rule's
# recurrence step; the others are derived from the calendar per index.
STEPPED_ANCHORS = frozenset({AnchorType.INCORPORATION, AnchorType.SERVICE_START})


def _valid_month_day(month: Optional[int], day: Optional[int]) -> bool:
    return month is not None and day is not None and 1 <= month <= 12 and 1 <= day <= 31


class AnchorResolver:
    """Resolves rule anchors relative to an injected current date."""

    def __init__(
        self, today: date, expander: Optional[RecurrenceExpander] = None
    ) -> None:
        self.today = today
        self.expander = expander or RecurrenceExpander()

    def resolve(
        self,
        rule: DeadlineRule,
        company: CompanyAnchorData,
        service_start_date: DateInput = None,
        occurrence_index: int = 0,
        task_name: Optional[str] = None,
    ) -> AnchorResult:
        name = task_name if task_name is not None else rule.task_name
        anchor = rule.anchor_type
        i = occurrence_index

        if anchor is None:
            return make_warning(WarningCode.MISSING_ANCHOR_TYPE, name)

        if anchor == AnchorType.FYE:
            if company.fye_month is None or company.fye_day is None:
                return make_warning(WarningCode.MISSING_FYE, name)
            if not _valid_month_day(company.fye_month, company.fye_day):
                return make_warning(
                    WarningCode.INVALID_FYE,
                    name,
                    f"month={company.fye_month}, day={company.fye_day}",
                )
            base_year = (
                company.fye_year if company.fye_year is not None else self.today.year
            )
            return clamped_date(base_year + i, company.fye_month, company.fye_day)

        if anchor == AnchorType.INCORPORATION:
            if company.incorporation_date in (None, ""):
                return make_warning(WarningCode.MISSING_INCORPORATION_DATE, name)
            inc = coerce_date(company.incorporation_date)
            if inc is None:
                return make_warning(
                    WarningCode.INVALID_INCORPORATION_DATE,
                    name,
                    str(company.incorporation_date),
                )
            return self.expander.step(inc, rule, i)

        if anchor == AnchorType.SERVICE_START:
            if service_start_date in (None, ""):
                return make_warning(WarningCode.MISSING_SERVICE_START, name)
            start = coerce_date(service_start_date)
            if start is None:
                return make_warning(
                    WarningCode.INVALID_SERVICE_START, name, str(service_start_date)
                )
            return self.expander.step(start, rule, i)

        if anchor == AnchorType.MONTH_END:
            month_index = self.today.month - 1 + i
            return month_end(
                self.today.year + month_index // 12, month_index % 12 + 1
            )

        if anchor == AnchorType.QUARTER_END:
            quarter = (self.today.month - 1) // 3 + i
            year = self.today.year + quarter // 4
            return month_end(year, (quarter % 4) * 3 + 3)

        if anchor == AnchorType.FIXED_CALENDAR:
            if rule.fixed_month is None or rule.fixed_day is None:
                return make_warning(WarningCode.MISSING_FIXED_CALENDAR, name)
            if not _valid_month_day(rule.fixed_month, rule.fixed_day):
                return make_warning(
                    WarningCode.INVALID_FIXED_CALENDAR,
                    name,
                    f"month={rule.fixed_month}, day={rule.fixed_day}",
                )
            return clamped_date(
                self.today.year + i, rule.fixed_month, rule.fixed_day
            )

        if anchor == AnchorType.IPC_EXPIRY:
            return make_warning(WarningCode.ANCHOR_UNAVAILABLE, name, "IPC expiry")

        raise ContractViolation(f"Unsupported anchor type: {anchor!r}")
