"""
Diagnostics shared by the deadline rule engine.

Two kinds of problems exist:
- Data problems (missing FYE, unparseable dates, unavailable anchors) become
  RuleWarning entries. The affected rule contributes no dates.
- Caller bugs (bad render cap, malformed rule objects) raise
  ContractViolation and are never absorbed.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DeadlineEngineError(Exception):
    """Base class for all errors raised by the deadline engine."""


class ContractViolation(DeadlineEngineError, ValueError):
    """Raised when a caller passes arguments the engine contract forbids."""


class UnknownTemplateError(DeadlineEngineError, KeyError):
    """Raised when a template code is not in the catalog."""


class WarningCode(Enum):
    MISSING_FYE = "missing_fye"
    INVALID_FYE = "invalid_fye"
    MISSING_INCORPORATION_DATE = "missing_incorporation_date"
    INVALID_INCORPORATION_DATE = "invalid_incorporation_date"
    MISSING_SERVICE_START = "missing_service_start"
    INVALID_SERVICE_START = "invalid_service_start"
    MISSING_FIXED_CALENDAR = "missing_fixed_calendar"
    INVALID_FIXED_CALENDAR = "invalid_fixed_calendar"
    MISSING_SPECIFIC_DATE = "missing_specific_date"
    INVALID_SPECIFIC_DATE = "invalid_specific_date"
    MISSING_ANCHOR_TYPE = "missing_anchor_type"
    ANCHOR_UNAVAILABLE = "anchor_unavailable"
    DATE_OUT_OF_RANGE = "date_out_of_range"


# Human-readable cause per code
_MESSAGES: dict[WarningCode, str] = {
    WarningCode.MISSING_FYE: "company FYE is not configured",
    WarningCode.INVALID_FYE: "company FYE is not a valid month/day",
    WarningCode.MISSING_INCORPORATION_DATE: "incorporation date not set",
    WarningCode.INVALID_INCORPORATION_DATE: "incorporation date is not a valid date",
    WarningCode.MISSING_SERVICE_START: "service start date not set",
    WarningCode.INVALID_SERVICE_START: "service start date is not a valid date",
    WarningCode.MISSING_FIXED_CALENDAR: "fixed calendar date not set",
    WarningCode.INVALID_FIXED_CALENDAR: "fixed calendar month/day out of range",
    WarningCode.MISSING_SPECIFIC_DATE: "specific date not set",
    WarningCode.INVALID_SPECIFIC_DATE: "specific date is not a valid date",
    WarningCode.MISSING_ANCHOR_TYPE: "anchor type not set",
    WarningCode.ANCHOR_UNAVAILABLE: "anchor date unavailable in preview; resolved on save",
    WarningCode.DATE_OUT_OF_RANGE: "computed date is outside the supported calendar (years 1-9999)",
}


@dataclass(frozen=True)
class RuleWarning:
    """A non-fatal diagnostic for a single rule."""

    code: WarningCode
    task_name: str
    detail: str = ""

    @property
    def message(self) -> str:
        base = _MESSAGES[self.code]
        return f"{base} ({self.detail})" if self.detail else base

    def format(self) -> str:
        return f"{self.task_name}: {self.message}"

    def __str__(self) -> str:
        return self.format()


def make_warning(
    code: WarningCode, task_name: str, detail: str = ""
) -> RuleWarning:
    return RuleWarning(code=code, task_name=task_name, detail=detail)
