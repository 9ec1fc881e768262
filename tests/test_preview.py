"""Tests for the PreviewAggregator."""

from datetime import date, datetime

import pytest

from deadline_engine.config import EngineSettings
from deadline_engine.diagnostics import ContractViolation, WarningCode
from deadline_engine.models import (
    AnchorType,
    CompanyAnchorData,
    DeadlineExclusion,
    DeadlineRule,
    Frequency,
    RuleType,
)
from deadline_engine.preview import (
    PreviewAggregator,
    format_date_string,
    preview_deadlines,
    relative_label,
)


def _fixed(task_name: str, specific_date, **kwargs) -> DeadlineRule:
    return DeadlineRule(
        task_name=task_name,
        rule_type=RuleType.FIXED_DATE,
        specific_date=specific_date,
        **kwargs,
    )


def _anchored(task_name: str, anchor: AnchorType, **kwargs) -> DeadlineRule:
    return DeadlineRule(
        task_name=task_name,
        rule_type=RuleType.RULE_BASED,
        anchor_type=anchor,
        **kwargs,
    )


def _monthly(task_name: str = "Bookkeeping", occurrences: int = 12) -> DeadlineRule:
    return _anchored(
        task_name,
        AnchorType.MONTH_END,
        is_recurring=True,
        frequency=Frequency.MONTHLY,
        generate_occurrences=occurrences,
    )


# ── Formatting ──────────────────────────────────────────────────────


def test_date_string_format():
    assert format_date_string(date(2024, 2, 15)) == "Thu, Feb 15, 2024"
    assert format_date_string(date(2024, 1, 5)) == "Fri, Jan 5, 2024"


@pytest.mark.parametrize(
    "d, label",
    [
        (date(2024, 1, 10), "Today"),
        (date(2024, 1, 11), "Tomorrow"),
        (date(2024, 1, 9), "Yesterday"),
        (date(2024, 2, 15), "in 36 days"),
        (date(2024, 1, 5), "5 days ago"),
    ],
)
def test_relative_label(d, label, today):
    assert relative_label(d, today) == label


# ── Anchor scenarios ────────────────────────────────────────────────


def test_fye_plus_seven_months(aggregator, today, dec_fye):
    rule = _anchored(
        "Annual Return",
        AnchorType.FYE,
        offset_months=7,
        is_recurring=True,
        frequency=Frequency.ANNUALLY,
    )
    result = aggregator.aggregate([rule], company=dec_fye, now=today)
    assert [d.date for d in result.deadlines] == [
        date(2025, 7, 31),
        date(2026, 7, 31),
        date(2027, 7, 31),
    ]
    assert result.warnings == []
    assert not any(d.is_past for d in result.deadlines)


def test_service_start_renewal_thirty_days_before(aggregator, today):
    rule = _anchored(
        "Renewal",
        AnchorType.SERVICE_START,
        offset_days=-30,
        is_recurring=True,
        frequency=Frequency.ANNUALLY,
        generate_occurrences=2,
    )
    result = aggregator.aggregate(
        [rule], service_start_date="2024-03-01", now=today
    )
    assert [d.date for d in result.deadlines] == [
        date(2024, 1, 31),
        date(2025, 1, 30),
    ]
    assert result.deadlines[0].relative_label == "in 21 days"


def test_fixed_date_rule_ignores_offsets(aggregator, today):
    rule = _fixed("Board Meeting", "2024-02-15", offset_months=3, offset_days=10)
    result = aggregator.aggregate([rule], now=today)
    d = result.deadlines[0]
    assert d.date == date(2024, 2, 15)
    assert d.date_string == "Thu, Feb 15, 2024"
    assert d.relative_label == "in 36 days"


def test_business_day_offset_skips_weekend(aggregator, today):
    rule = _anchored(
        "Payment",
        AnchorType.FIXED_CALENDAR,
        fixed_month=1,
        fixed_day=5,
        offset_days=1,
        offset_business_days=True,
    )
    result = aggregator.aggregate([rule], now=today)
    assert result.deadlines[0].date == date(2024, 1, 8)


def test_months_before_days_offset(aggregator, today):
    rule = _anchored(
        "Filing",
        AnchorType.FIXED_CALENDAR,
        fixed_month=3,
        fixed_day=31,
        offset_months=-1,
        offset_days=-1,
    )
    result = aggregator.aggregate([rule], now=today)
    assert result.deadlines[0].date == date(2024, 2, 28)


# ── Warnings ────────────────────────────────────────────────────────


def test_missing_fye_warns_and_other_rules_still_resolve(aggregator, today):
    rules = [
        _anchored("AGM", AnchorType.FYE, offset_months=6),
        _fixed("Board Meeting", "2024-02-15"),
    ]
    result = aggregator.aggregate(rules, company=CompanyAnchorData(), now=today)
    assert result.warnings == ["AGM: company FYE is not configured"]
    assert [d.task_name for d in result.deadlines] == ["Board Meeting"]
    assert result.diagnostics[0].code == WarningCode.MISSING_FYE


def test_one_warning_per_failing_rule(aggregator, today):
    rule = _anchored(
        "AGM",
        AnchorType.FYE,
        is_recurring=True,
        frequency=Frequency.MONTHLY,
        generate_occurrences=6,
    )
    result = aggregator.aggregate([rule], now=today)
    assert len(result.warnings) == 1
    assert result.total_count == 0


def test_unparseable_specific_date_warns(aggregator, today):
    result = aggregator.aggregate([_fixed("Meeting", "31/02/2024")], now=today)
    assert result.deadlines == []
    assert result.diagnostics[0].code == WarningCode.INVALID_SPECIFIC_DATE


def test_missing_specific_date_warns(aggregator, today):
    result = aggregator.aggregate([_fixed("Meeting", None)], now=today)
    assert result.diagnostics[0].code == WarningCode.MISSING_SPECIFIC_DATE


def test_ipc_expiry_anchor_warns_without_dates(aggregator, today):
    rule = _anchored("IPC Status Renewal", AnchorType.IPC_EXPIRY, offset_months=-3)
    result = aggregator.aggregate([rule], now=today)
    assert result.deadlines == []
    assert result.diagnostics[0].code == WarningCode.ANCHOR_UNAVAILABLE


def test_missing_incorporation_date_warns(aggregator, today):
    rule = _anchored("Anniversary", AnchorType.INCORPORATION)
    result = aggregator.aggregate([rule], now=today)
    assert result.warnings == ["Anniversary: incorporation date not set"]


# ── Classification ──────────────────────────────────────────────────


def test_past_today_and_future_classification(aggregator, today):
    rules = [
        _fixed("Past", "2024-01-05"),
        _fixed("Now", "2024-01-10"),
        _fixed("Next", "2024-01-11"),
    ]
    result = aggregator.aggregate(rules, now=today)
    past, now, nxt = result.deadlines
    assert past.is_past and not past.is_today
    assert now.is_today and not now.is_past
    assert not nxt.is_past and not nxt.is_today
    assert [d.relative_label for d in result.deadlines] == [
        "5 days ago",
        "Today",
        "Tomorrow",
    ]
    assert result.overdue_count == 1


def test_datetime_now_uses_its_calendar_day(aggregator):
    result = aggregator.aggregate(
        [_fixed("Now", "2024-01-10")], now=datetime(2024, 1, 10, 23, 59)
    )
    assert result.deadlines[0].is_today


# ── Ordering and truncation ─────────────────────────────────────────


def test_results_sorted_chronologically(aggregator, today, dec_fye):
    rules = [
        _fixed("Late", "2024-06-01"),
        _fixed("Early", "2024-02-01"),
        _anchored("ECI", AnchorType.FYE, offset_months=3),
    ]
    result = aggregator.aggregate(rules, company=dec_fye, now=today)
    dates = [d.date for d in result.deadlines]
    assert dates == sorted(dates)
    assert [d.task_name for d in result.deadlines] == ["Early", "Late", "ECI"]


def test_same_day_ties_keep_rule_order(aggregator, today):
    rules = [_fixed("Second", "2024-03-01"), _fixed("First", "2024-03-01")]
    result = aggregator.aggregate(rules, now=today)
    assert [d.task_name for d in result.deadlines] == ["Second", "First"]


def test_truncation_reports_total_and_hidden(aggregator, today):
    result = aggregator.aggregate([_monthly()], now=today, render_cap=5)
    assert len(result.deadlines) == 5
    assert result.total_count == 12
    assert result.hidden_count == 7
    assert result.deadlines[-1].date == date(2024, 5, 31)


def test_default_cap_from_settings(today):
    aggregator = PreviewAggregator(EngineSettings(render_cap=10))
    result = aggregator.aggregate([_monthly()], now=today)
    assert len(result.deadlines) == 10
    assert result.hidden_count == 2


def test_no_hidden_when_under_cap(aggregator, today):
    result = aggregator.aggregate([_monthly(occurrences=3)], now=today)
    assert result.total_count == 3
    assert result.hidden_count == 0


def test_overdue_counted_before_truncation(aggregator, today):
    rules = [_fixed(f"Old {i}", f"2023-0{i}-01") for i in range(1, 6)]
    result = aggregator.aggregate(rules, now=today, render_cap=2)
    assert len(result.deadlines) == 2
    assert result.overdue_count == 5


def test_per_rule_cap_bounds_expansion(today):
    aggregator = PreviewAggregator(EngineSettings(per_rule_cap=4))
    result = aggregator.aggregate([_monthly(occurrences=500)], now=today)
    assert result.total_count == 4


def test_until_date_is_inclusive(aggregator, today):
    rule = _monthly()
    rule.generate_until_date = "2024-04-30"
    result = aggregator.aggregate([rule], now=today)
    assert [d.date for d in result.deadlines] == [
        date(2024, 1, 31),
        date(2024, 2, 29),
        date(2024, 3, 31),
        date(2024, 4, 30),
    ]


# ── Exclusions ──────────────────────────────────────────────────────


def test_excluded_deadline_removed_before_counting(aggregator, today, dec_fye):
    rule = _anchored(
        "Annual Return",
        AnchorType.FYE,
        offset_months=7,
        is_recurring=True,
        frequency=Frequency.ANNUALLY,
    )
    result = aggregator.aggregate(
        [rule],
        company=dec_fye,
        exclusions=[DeadlineExclusion(" annual return", "2025-07-31")],
        now=today,
    )
    assert [d.date for d in result.deadlines] == [
        date(2026, 7, 31),
        date(2027, 7, 31),
    ]
    assert result.total_count == 2


def test_exclusions_accept_wire_dicts(aggregator, today):
    result = aggregator.aggregate(
        [_fixed("Meeting", "2024-02-15")],
        exclusions=[{"taskName": "MEETING", "statutoryDueDate": "2024-02-15"}],
        now=today,
    )
    assert result.total_count == 0


# ── Input handling ──────────────────────────────────────────────────


def test_wire_dict_rules(aggregator, today, dec_fye):
    rules = [
        {
            "taskName": "ECI",
            "ruleType": "RULE_BASED",
            "anchorType": "FYE",
            "offsetMonths": 3,
        },
        {"taskName": "Meeting", "ruleType": "FIXED_DATE", "specificDate": "2024-02-15"},
    ]
    result = aggregator.aggregate(rules, company=dec_fye, now=today)
    assert [(d.task_name, d.date) for d in result.deadlines] == [
        ("Meeting", date(2024, 2, 15)),
        ("ECI", date(2025, 3, 31)),
    ]


def test_blank_task_name_uses_placeholder(aggregator, today):
    result = aggregator.aggregate([_fixed("   ", "2024-02-15")], now=today)
    assert result.deadlines[0].task_name == "Untitled task"


def test_empty_rule_set(aggregator, today):
    result = aggregator.aggregate([], now=today)
    assert result.deadlines == []
    assert result.warnings == []
    assert (result.total_count, result.hidden_count, result.overdue_count) == (0, 0, 0)


def test_same_inputs_give_same_output(aggregator, today, dec_fye):
    rules = [_monthly(), _anchored("AGM", AnchorType.FYE, offset_months=6)]
    first = aggregator.aggregate(rules, company=dec_fye, now=today)
    second = aggregator.aggregate(rules, company=dec_fye, now=today)
    assert first.to_dict() == second.to_dict()


def test_result_wire_form(aggregator, today):
    result = aggregator.aggregate([_fixed("Meeting", "2024-02-15")], now=today)
    payload = result.to_dict()
    assert set(payload) == {
        "deadlines",
        "warnings",
        "totalCount",
        "hiddenCount",
        "overdueCount",
    }
    assert payload["deadlines"][0] == {
        "taskName": "Meeting",
        "date": "2024-02-15",
        "dateString": "Thu, Feb 15, 2024",
        "relativeLabel": "in 36 days",
        "isPast": False,
        "isToday": False,
    }


def test_module_level_helper(today):
    result = preview_deadlines([_fixed("Meeting", "2024-02-15")], now=today)
    assert result.total_count == 1


# ── Contract violations ─────────────────────────────────────────────


@pytest.mark.parametrize("cap", [0, -1, True, "5", 2.5])
def test_invalid_render_cap_raises(aggregator, today, cap):
    with pytest.raises(ContractViolation):
        aggregator.aggregate([], now=today, render_cap=cap)


def test_non_rule_input_raises(aggregator, today):
    with pytest.raises(ContractViolation):
        aggregator.aggregate([42], now=today)


def test_dict_rule_missing_task_name_raises(aggregator, today):
    with pytest.raises(ContractViolation):
        aggregator.aggregate([{"ruleType": "FIXED_DATE"}], now=today)


def test_unknown_rule_type_raises(aggregator, today):
    with pytest.raises(ContractViolation):
        aggregator.aggregate([{"taskName": "X", "ruleType": "WEEKLY"}], now=today)


def test_contract_violation_is_a_value_error():
    assert issubclass(ContractViolation, ValueError)


# ── Timeline properties ─────────────────────────────────────────────


def test_one_time_fixed_date_yields_exactly_one_deadline(aggregator, today):
    result = aggregator.aggregate([_fixed("Meeting", "2024-05-01")], now=today)
    assert [d.date for d in result.deadlines] == [date(2024, 5, 1)]


def test_fye_plus_six_months_lands_on_june_30(aggregator, today, dec_fye):
    rule = _anchored(
        "AGM",
        AnchorType.FYE,
        offset_months=6,
        is_recurring=True,
        frequency=Frequency.ANNUALLY,
        generate_occurrences=3,
    )
    result = aggregator.aggregate([rule], company=dec_fye, now=today)
    assert [d.date for d in result.deadlines] == [
        date(2025, 6, 30),
        date(2026, 6, 30),
        date(2027, 6, 30),
    ]


def test_month_end_plus_fifteen_days(aggregator, today):
    rule = _anchored("Bookkeeping", AnchorType.MONTH_END, offset_days=15)
    result = aggregator.aggregate([rule], now=today)
    assert result.deadlines[0].date == date(2024, 2, 15)


def test_missing_incorporation_does_not_affect_other_rules(aggregator, today):
    rules = [
        _anchored("Anniversary", AnchorType.INCORPORATION),
        _monthly(occurrences=3),
    ]
    result = aggregator.aggregate(rules, now=today)
    assert len(result.warnings) == 1
    assert [d.task_name for d in result.deadlines] == ["Bookkeeping"] * 3


def test_clearing_exclusions_restores_original_output(aggregator, today):
    rules = [_monthly(occurrences=3)]
    original = aggregator.aggregate(rules, now=today)
    first = original.deadlines[0]
    excluded = aggregator.aggregate(
        rules,
        exclusions=[DeadlineExclusion(first.task_name, first.date)],
        now=today,
    )
    assert excluded.total_count == 2
    restored = aggregator.aggregate(rules, exclusions=[], now=today)
    assert restored.to_dict() == original.to_dict()


@pytest.mark.parametrize("cap", [1, 2, 5, 12, 13, 100])
def test_hidden_plus_shown_equals_total(aggregator, today, cap):
    rules = [_monthly(), _fixed("Meeting", "2024-03-31")]
    result = aggregator.aggregate(
        rules,
        exclusions=[DeadlineExclusion("Bookkeeping", "2024-02-29")],
        now=today,
        render_cap=cap,
    )
    assert result.total_count == 12
    assert result.hidden_count + len(result.deadlines) == result.total_count


def test_quarter_end_in_fourth_quarter(aggregator):
    rule = _anchored(
        "GST Return",
        AnchorType.QUARTER_END,
        is_recurring=True,
        frequency=Frequency.QUARTERLY,
        generate_occurrences=2,
    )
    result = aggregator.aggregate([rule], now=date(2024, 11, 15))
    assert [d.date for d in result.deadlines] == [
        date(2024, 12, 31),
        date(2025, 3, 31),
    ]


# ── Dates outside the supported calendar ────────────────────────────


def test_far_future_fye_year_warns_without_blocking_other_rules(aggregator, today):
    rules = [
        _anchored("AGM", AnchorType.FYE, offset_months=6),
        _fixed("Board Meeting", "2024-02-15"),
    ]
    result = aggregator.aggregate(
        rules,
        company=CompanyAnchorData(fye_month=12, fye_day=31, fye_year=20245),
        now=today,
    )
    assert [d.task_name for d in result.deadlines] == ["Board Meeting"]
    assert [w.code for w in result.diagnostics] == [WarningCode.DATE_OUT_OF_RANGE]
    assert result.warnings[0].startswith("AGM: ")


def test_huge_day_offset_warns(aggregator, today):
    rules = [
        _anchored("Bookkeeping", AnchorType.MONTH_END, offset_days=10**7),
        _fixed("Board Meeting", "2024-02-15"),
    ]
    result = aggregator.aggregate(rules, now=today)
    assert result.total_count == 1
    assert result.diagnostics[0].code == WarningCode.DATE_OUT_OF_RANGE


def test_huge_business_day_offset_warns(aggregator, today):
    rule = _anchored(
        "Payment",
        AnchorType.MONTH_END,
        offset_days=10**9,
        offset_business_days=True,
    )
    result = aggregator.aggregate([rule], now=today)
    assert result.diagnostics[0].code == WarningCode.DATE_OUT_OF_RANGE


def test_recurrence_past_year_9999_warns(aggregator, today):
    rule = _fixed(
        "Renewal",
        "9999-06-01",
        is_recurring=True,
        frequency=Frequency.ANNUALLY,
        generate_occurrences=3,
    )
    result = aggregator.aggregate([rule, _fixed("Meeting", "2024-02-15")], now=today)
    assert [d.task_name for d in result.deadlines] == ["Meeting"]
    assert result.warnings == [
        "Renewal: computed date is outside the supported calendar (years 1-9999)"
    ]


def test_unsupported_anchor_still_raises(aggregator, today):
    rule = _anchored("Odd", AnchorType.FYE)
    rule.anchor_type = "LUNAR"
    with pytest.raises(ContractViolation):
        aggregator.aggregate([rule], company=CompanyAnchorData(12, 31), now=today)


# ── Exclusion edge cases ────────────────────────────────────────────


@pytest.mark.parametrize("bad", [None, 42, "AGM|2024-02-15"])
def test_non_exclusion_entry_raises(aggregator, today, bad):
    with pytest.raises(ContractViolation):
        aggregator.aggregate(
            [_fixed("Meeting", "2024-02-15")], exclusions=[bad], now=today
        )


def test_placeholder_name_does_not_match_blank_named_rule(aggregator, today):
    rules = [_fixed("", "2024-02-15"), _fixed("Untitled task", "2024-02-15")]
    result = aggregator.aggregate(
        rules,
        exclusions=[DeadlineExclusion("Untitled task", "2024-02-15")],
        now=today,
    )
    assert len(result.deadlines) == 1
    assert result.deadlines[0].task_name == "Untitled task"
    assert result.deadlines[0].rule_index == 0
