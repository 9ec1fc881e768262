"""
Data model for the deadline rule engine.

Rules, company anchor data and exclusions arrive in the camelCase wire
form used by the workspace API; from_dict() adapters convert them and
to_dict() converts engine output back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, Union

from deadline_engine.diagnostics import ContractViolation, RuleWarning

# Raw date inputs are kept as given; the engine parses them and turns
# failures into warnings instead of exceptions.
DateInput = Union[date, datetime, str, None]


class RuleType(Enum):
    FIXED_DATE = "FIXED_DATE"
    RULE_BASED = "RULE_BASED"


class AnchorType(Enum):
    FYE = "FYE"  # financial year end
    INCORPORATION = "INCORPORATION"
    SERVICE_START = "SERVICE_START"
    MONTH_END = "MONTH_END"
    QUARTER_END = "QUARTER_END"
    FIXED_CALENDAR = "FIXED_CALENDAR"
    IPC_EXPIRY = "IPC_EXPIRY"  # charity IPC status expiry


class Frequency(Enum):
    ONE_TIME = "ONE_TIME"
    MONTHLY = "MONTHLY"
    QUARTERLY = "QUARTERLY"
    ANNUALLY = "ANNUALLY"


class DeadlineCategory(Enum):
    CORPORATE_SECRETARY = "CORPORATE_SECRETARY"
    TAX = "TAX"
    ACCOUNTING = "ACCOUNTING"
    AUDIT = "AUDIT"
    COMPLIANCE = "COMPLIANCE"
    OTHER = "OTHER"


def _pick(data: dict, camel: str, snake: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _enum(enum_cls: type[Enum], value: Any, field_name: str) -> Optional[Any]:
    if value is None or value == "":
        return None
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(str(value).upper())
    except ValueError:
        raise ContractViolation(
            f"Unknown {field_name}: {value!r}"
        ) from None


def _optional_int(value: Any, field_name: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ContractViolation(f"{field_name} must be an integer, got bool")
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ContractViolation(
            f"{field_name} must be an integer, got {value!r}"
        ) from None


@dataclass
class DeadlineRule:
    """A reusable obligation template attached to a contract service."""

    task_name: str
    rule_type: RuleType
    description: Optional[str] = None
    category: str = DeadlineCategory.OTHER.value
    anchor_type: Optional[AnchorType] = None
    offset_months: int = 0
    offset_days: int = 0
    offset_business_days: bool = False
    fixed_month: Optional[int] = None
    fixed_day: Optional[int] = None
    specific_date: DateInput = None
    is_recurring: bool = False
    frequency: Optional[Frequency] = None
    generate_occurrences: Optional[int] = None
    generate_until_date: DateInput = None
    is_billable: bool = False
    amount: Optional[Decimal] = None
    currency: str = "SGD"
    display_order: int = 0
    source_template_code: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict, index: int = 0) -> "DeadlineRule":
        if not isinstance(data, dict):
            raise ContractViolation(
                f"Rule {index} must be an object, got {type(data).__name__}"
            )
        task_name = _pick(data, "taskName", "task_name")
        if not isinstance(task_name, str):
            raise ContractViolation(f"Rule {index} is missing taskName")
        rule_type = _enum(RuleType, _pick(data, "ruleType", "rule_type"), "ruleType")
        if rule_type is None:
            raise ContractViolation(f"Rule {index} is missing ruleType")

        amount = data.get("amount")
        display_order = _optional_int(
            _pick(data, "displayOrder", "display_order"), "displayOrder"
        )
        return cls(
            task_name=task_name,
            rule_type=rule_type,
            description=data.get("description"),
            category=str(data.get("category") or DeadlineCategory.OTHER.value),
            anchor_type=_enum(
                AnchorType, _pick(data, "anchorType", "anchor_type"), "anchorType"
            ),
            offset_months=_optional_int(
                _pick(data, "offsetMonths", "offset_months"), "offsetMonths"
            ) or 0,
            offset_days=_optional_int(
                _pick(data, "offsetDays", "offset_days"), "offsetDays"
            ) or 0,
            offset_business_days=bool(
                _pick(data, "offsetBusinessDays", "offset_business_days", False)
            ),
            fixed_month=_optional_int(
                _pick(data, "fixedMonth", "fixed_month"), "fixedMonth"
            ),
            fixed_day=_optional_int(
                _pick(data, "fixedDay", "fixed_day"), "fixedDay"
            ),
            specific_date=_pick(data, "specificDate", "specific_date"),
            is_recurring=bool(_pick(data, "isRecurring", "is_recurring", False)),
            frequency=_enum(Frequency, data.get("frequency"), "frequency"),
            generate_occurrences=_optional_int(
                _pick(data, "generateOccurrences", "generate_occurrences"),
                "generateOccurrences",
            ),
            generate_until_date=_pick(
                data, "generateUntilDate", "generate_until_date"
            ),
            is_billable=bool(_pick(data, "isBillable", "is_billable", False)),
            amount=Decimal(str(amount)) if amount not in (None, "") else None,
            currency=data.get("currency") or "SGD",
            display_order=index if display_order is None else display_order,
            source_template_code=_pick(
                data, "sourceTemplateCode", "source_template_code"
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        def _iso(value: DateInput) -> Optional[str]:
            if isinstance(value, (date, datetime)):
                return value.isoformat()
            return value

        return {
            "taskName": self.task_name,
            "description": self.description,
            "category": self.category,
            "ruleType": self.rule_type.value,
            "anchorType": self.anchor_type.value if self.anchor_type else None,
            "offsetMonths": self.offset_months,
            "offsetDays": self.offset_days,
            "offsetBusinessDays": self.offset_business_days,
            "fixedMonth": self.fixed_month,
            "fixedDay": self.fixed_day,
            "specificDate": _iso(self.specific_date),
            "isRecurring": self.is_recurring,
            "frequency": self.frequency.value if self.frequency else None,
            "generateOccurrences": self.generate_occurrences,
            "generateUntilDate": _iso(self.generate_until_date),
            "isBillable": self.is_billable,
            "amount": str(self.amount) if self.amount is not None else None,
            "currency": self.currency,
            "displayOrder": self.display_order,
            "sourceTemplateCode": self.source_template_code,
        }


@dataclass
class CompanyAnchorData:
    """Company facts used to ground rule anchors."""

    fye_month: Optional[int] = None
    fye_day: Optional[int] = None
    fye_year: Optional[int] = None  # base year override
    incorporation_date: DateInput = None
    is_gst_registered: bool = False
    gst_filing_frequency: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Optional[dict]) -> "CompanyAnchorData":
        data = data or {}
        return cls(
            fye_month=_optional_int(_pick(data, "fyeMonth", "fye_month"), "fyeMonth"),
            fye_day=_optional_int(_pick(data, "fyeDay", "fye_day"), "fyeDay"),
            fye_year=_optional_int(_pick(data, "fyeYear", "fye_year"), "fyeYear"),
            incorporation_date=_pick(data, "incorporationDate", "incorporation_date"),
            is_gst_registered=bool(
                _pick(data, "isGstRegistered", "is_gst_registered", False)
            ),
            gst_filing_frequency=_pick(
                data, "gstFilingFrequency", "gst_filing_frequency"
            ),
        )


@dataclass(frozen=True)
class DeadlineExclusion:
    """A (task name, due date) pair the user suppressed from the preview."""

    task_name: str
    statutory_due_date: DateInput

    @classmethod
    def from_dict(cls, data: dict) -> "DeadlineExclusion":
        return cls(
            task_name=str(_pick(data, "taskName", "task_name", "") or ""),
            statutory_due_date=_pick(
                data, "statutoryDueDate", "statutory_due_date"
            ),
        )


@dataclass
class GeneratedDeadline:
    """One computed due date for one rule occurrence."""

    task_name: str
    date: date
    date_string: str
    relative_label: str = ""
    is_past: bool = False
    is_today: bool = False
    rule_index: int = 0
    occurrence_index: int = 0
    # Task name as written on the rule, before the untitled placeholder
    source_task_name: Optional[str] = None

    @property
    def exclusion_name(self) -> str:
        if self.source_task_name is not None:
            return self.source_task_name
        return self.task_name

    def to_dict(self) -> dict[str, Any]:
        return {
            "taskName": self.task_name,
            "date": self.date.isoformat(),
            "dateString": self.date_string,
            "relativeLabel": self.relative_label,
            "isPast": self.is_past,
            "isToday": self.is_today,
        }


@dataclass
class PreviewResult:
    """Merged, classified and truncated timeline for a set of rules."""

    deadlines: list[GeneratedDeadline]
    warnings: list[str]
    total_count: int
    hidden_count: int
    overdue_count: int
    diagnostics: list[RuleWarning] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "deadlines": [d.to_dict() for d in self.deadlines],
            "warnings": list(self.warnings),
            "totalCount": self.total_count,
            "hiddenCount": self.hidden_count,
            "overdueCount": self.overdue_count,
        }
