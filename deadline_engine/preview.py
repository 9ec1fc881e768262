"""
Deadline preview aggregation.

The single entry point for turning a set of deadline rules into one
chronological timeline:

    rules + company data + exclusions
      -> anchor resolution -> recurrence expansion -> offsets
      -> exclusion filter -> sort -> classify -> truncate

Each rule is processed independently. A rule whose anchor cannot be
resolved contributes no dates and exactly one warning; it never stops
the other rules from resolving.
"""

from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, Optional, Union

from deadline_engine.anchors import STEPPED_ANCHORS, AnchorResolver
from deadline_engine.calendar_math import apply_offset, coerce_date
from deadline_engine.config import EngineSettings, get_settings
from deadline_engine.diagnostics import (
    ContractViolation,
    RuleWarning,
    WarningCode,
    make_warning,
)
from deadline_engine.exclusions import ExclusionFilter
from deadline_engine.models import (
    CompanyAnchorData,
    DateInput,
    DeadlineExclusion,
    DeadlineRule,
    GeneratedDeadline,
    PreviewResult,
    RuleType,
)
from deadline_engine.recurrence import RecurrenceExpander

logger = logging.getLogger(__name__)

RuleInput = Union[DeadlineRule, dict]
ExclusionInput = Union[DeadlineExclusion, dict]


def format_date_string(d: date) -> str:
    """'Mon, Jan 15, 2024'"""
    return f"{d:%a}, {d:%b} {d.day}, {d.year}"


def relative_label(d: date, today: date) -> str:
    delta = (d - today).days
    if delta == 0:
        return "Today"
    if delta == 1:
        return "Tomorrow"
    if delta == -1:
        return "Yesterday"
    if delta > 0:
        return f"in {delta} days"
    return f"{-delta} days ago"


def _to_day(now: Union[date, datetime, None]) -> date:
    if now is None:
        return date.today()
    if isinstance(now, datetime):
        return now.date()
    if isinstance(now, date):
        return now
    raise ContractViolation(f"now must be a date or datetime, got {now!r}")


def _coerce_rule(rule: RuleInput, index: int) -> DeadlineRule:
    if isinstance(rule, dict):
        return DeadlineRule.from_dict(rule, index)
    if not isinstance(rule, DeadlineRule):
        raise ContractViolation(
            f"Rule {index} must be a DeadlineRule, got {type(rule).__name__}"
        )
    if not isinstance(rule.task_name, str):
        raise ContractViolation(f"Rule {index} is missing task_name")
    if not isinstance(rule.rule_type, RuleType):
        raise ContractViolation(f"Rule {index} has invalid rule_type")
    return rule


def _coerce_exclusion(item: ExclusionInput, index: int) -> DeadlineExclusion:
    if isinstance(item, dict):
        return DeadlineExclusion.from_dict(item)
    if not isinstance(item, DeadlineExclusion):
        raise ContractViolation(
            f"Exclusion {index} must be a DeadlineExclusion, got {type(item).__name__}"
        )
    return item


class PreviewAggregator:
    """
    Computes deadline previews for a set of rules.

    Stateless between calls: every call to aggregate() is a pure
    function of its arguments plus the injected current date.
    """

    def __init__(self, settings: Optional[EngineSettings] = None) -> None:
        self.settings = settings or get_settings()
        self.expander = RecurrenceExpander(per_rule_cap=self.settings.per_rule_cap)
        self.exclusion_filter = ExclusionFilter()

    def _display_name(self, rule: DeadlineRule) -> str:
        return rule.task_name.strip() or self.settings.untitled_task_name

    def expand_rule(
        self,
        rule: DeadlineRule,
        company: CompanyAnchorData,
        service_start_date: DateInput,
        resolver: AnchorResolver,
    ) -> Union[list[date], RuleWarning]:
        """
        Due dates for one rule, in occurrence order, or a single warning.

        Dates that leave the supported calendar (years 1-9999), e.g. from
        a mistyped FYE year or a huge offset, produce DATE_OUT_OF_RANGE.
        """
        name = self._display_name(rule)
        try:
            return self._expand_dates(
                rule, name, company, service_start_date, resolver
            )
        except ContractViolation:
            raise
        except (ValueError, OverflowError) as e:
            logger.debug("Date arithmetic failed for %r: %s", name, e)
            return make_warning(WarningCode.DATE_OUT_OF_RANGE, name)

    def _expand_dates(
        self,
        rule: DeadlineRule,
        name: str,
        company: CompanyAnchorData,
        service_start_date: DateInput,
        resolver: AnchorResolver,
    ) -> Union[list[date], RuleWarning]:
        if rule.rule_type == RuleType.FIXED_DATE:
            if rule.specific_date in (None, ""):
                return make_warning(WarningCode.MISSING_SPECIFIC_DATE, name)
            base = coerce_date(rule.specific_date)
            if base is None:
                return make_warning(
                    WarningCode.INVALID_SPECIFIC_DATE, name, str(rule.specific_date)
                )
            # Offsets do not apply to fixed-date rules
            due_dates = self.expander.expand(base, rule)
        else:
            if rule.anchor_type is None:
                return make_warning(WarningCode.MISSING_ANCHOR_TYPE, name)

            if rule.anchor_type in STEPPED_ANCHORS:
                first = resolver.resolve(
                    rule, company, service_start_date, 0, task_name=name
                )
                if isinstance(first, RuleWarning):
                    return first
                bases = self.expander.expand(first, rule)
            else:
                bases = []
                for i in range(self.expander.occurrence_count(rule)):
                    anchor = resolver.resolve(
                        rule, company, service_start_date, i, task_name=name
                    )
                    if isinstance(anchor, RuleWarning):
                        return anchor
                    bases.append(anchor)

            due_dates = [
                apply_offset(
                    base,
                    rule.offset_months,
                    rule.offset_days,
                    business_days=rule.offset_business_days,
                )
                for base in bases
            ]

        until = coerce_date(rule.generate_until_date)
        if until is not None:
            due_dates = [d for d in due_dates if d <= until]
        return due_dates

    def aggregate(
        self,
        rules: Iterable[RuleInput],
        company: Optional[CompanyAnchorData] = None,
        service_start_date: DateInput = None,
        exclusions: Optional[Iterable[ExclusionInput]] = None,
        now: Union[date, datetime, None] = None,
        render_cap: Optional[int] = None,
    ) -> PreviewResult:
        cap = self.settings.render_cap if render_cap is None else render_cap
        if isinstance(cap, bool) or not isinstance(cap, int) or cap <= 0:
            raise ContractViolation(f"render_cap must be a positive integer, got {cap!r}")

        today = _to_day(now)
        company = company or CompanyAnchorData()
        resolver = AnchorResolver(today, self.expander)

        generated: list[GeneratedDeadline] = []
        diagnostics: list[RuleWarning] = []

        for rule_index, raw_rule in enumerate(rules):
            rule = _coerce_rule(raw_rule, rule_index)
            outcome = self.expand_rule(rule, company, service_start_date, resolver)
            if isinstance(outcome, RuleWarning):
                logger.info("Rule skipped: %s", outcome.format())
                diagnostics.append(outcome)
                continue

            logger.debug(
                "Rule %r produced %d occurrences", rule.task_name, len(outcome)
            )
            name = self._display_name(rule)
            for occurrence_index, due in enumerate(outcome):
                generated.append(
                    GeneratedDeadline(
                        task_name=name,
                        date=due,
                        date_string=format_date_string(due),
                        rule_index=rule_index,
                        occurrence_index=occurrence_index,
                        source_task_name=rule.task_name,
                    )
                )

        filtered = self.exclusion_filter.filter(
            generated,
            [_coerce_exclusion(e, i) for i, e in enumerate(exclusions or ())],
        )
        filtered.sort(key=lambda d: (d.date, d.rule_index, d.occurrence_index))

        for d in filtered:
            d.is_past = d.date < today
            d.is_today = d.date == today
            d.relative_label = relative_label(d.date, today)

        total = len(filtered)
        shown = filtered[:cap]
        return PreviewResult(
            deadlines=shown,
            warnings=[w.format() for w in diagnostics],
            total_count=total,
            hidden_count=max(0, total - len(shown)),
            overdue_count=sum(1 for d in filtered if d.is_past),
            diagnostics=diagnostics,
        )


def preview_deadlines(
    rules: Iterable[RuleInput],
    company: Optional[CompanyAnchorData] = None,
    service_start_date: DateInput = None,
    exclusions: Optional[Iterable[ExclusionInput]] = None,
    now: Union[date, datetime, None] = None,
    render_cap: Optional[int] = None,
) -> PreviewResult:
    """Convenience wrapper around PreviewAggregator().aggregate()."""
    return PreviewAggregator().aggregate(
        rules,
        company=company,
        service_start_date=service_start_date,
        exclusions=exclusions,
        now=now,
        render_cap=render_cap,
    )
