"""
Deadline template catalog (Singapore jurisdiction).

Standard compliance obligations that service deadline rules are usually
created from. Each template converts to a DeadlineRule; service bundles
group the templates a typical engagement starts with.

Sources: ACRA, IRAS and Commissioner of Charities filing timelines.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from deadline_engine.diagnostics import UnknownTemplateError
from deadline_engine.models import (
    AnchorType,
    DeadlineCategory,
    DeadlineRule,
    Frequency,
    RuleType,
)


@dataclass(frozen=True)
class DeadlineTemplate:
    """A reusable, jurisdiction-level deadline definition."""

    code: str
    name: str
    category: DeadlineCategory
    anchor_type: AnchorType
    frequency: Frequency
    offset_months: int = 0
    offset_days: int = 0
    fixed_month: Optional[int] = None
    fixed_day: Optional[int] = None
    is_billable: bool = False
    description: str = ""

    def to_rule(self, display_order: int = 0) -> DeadlineRule:
        recurring = self.frequency != Frequency.ONE_TIME
        return DeadlineRule(
            task_name=self.name,
            rule_type=RuleType.RULE_BASED,
            description=self.description or None,
            category=self.category.value,
            anchor_type=self.anchor_type,
            offset_months=self.offset_months,
            offset_days=self.offset_days,
            fixed_month=self.fixed_month,
            fixed_day=self.fixed_day,
            is_recurring=recurring,
            frequency=self.frequency,
            is_billable=self.is_billable,
            display_order=display_order,
            source_template_code=self.code,
        )


@dataclass(frozen=True)
class ServiceBundle:
    """A named group of templates for one type of engagement."""

    code: str
    name: str
    category: DeadlineCategory
    template_codes: tuple[str, ...] = field(default_factory=tuple)


_CS = DeadlineCategory.CORPORATE_SECRETARY
_TAX = DeadlineCategory.TAX
_ACC = DeadlineCategory.ACCOUNTING
_AUD = DeadlineCategory.AUDIT
_COMP = DeadlineCategory.COMPLIANCE

# Service renewals fall 30 days before each service anniversary
_RENEWAL = {"anchor": AnchorType.SERVICE_START, "days": -30, "billable": True}

# ---------------------------------------------------------------------------
# Template data
# ---------------------------------------------------------------------------

_TEMPLATE_DATA: dict[str, dict] = {
    "CORP_SEC_RENEWAL": {"name": "Corporate Secretarial Service Renewal", "category": _CS, **_RENEWAL},
    "ANNUAL_RETURN": {
        "name": "Annual Return Filing",
        "category": _CS,
        "anchor": AnchorType.FYE,
        "months": 7,
        "description": "File annual return with ACRA within 7 months after FYE.",
    },
    "XBRL": {
        "name": "XBRL Financial Statements",
        "category": _CS,
        "anchor": AnchorType.FYE,
        "months": 7,
        "description": "Prepare XBRL financial statements for filing with the annual return.",
    },
    "FS_TO_MEMBERS": {
        "name": "Send Financial Statements to Members",
        "category": _CS,
        "anchor": AnchorType.FYE,
        "months": 5,
    },
    "AGM": {
        "name": "Annual General Meeting",
        "category": _CS,
        "anchor": AnchorType.FYE,
        "months": 6,
        "description": "Hold AGM within 6 months after FYE unless dispensed.",
    },
    "TAX_RENEWAL": {"name": "Tax Compliance Service Renewal", "category": _TAX, **_RENEWAL},
    "ECI": {
        "name": "Estimated Chargeable Income",
        "category": _TAX,
        "anchor": AnchorType.FYE,
        "months": 3,
        "description": "File ECI with IRAS within 3 months after FYE.",
    },
    "CORP_TAX": {
        "name": "Corporate Income Tax Return",
        "category": _TAX,
        "anchor": AnchorType.FIXED_CALENDAR,
        "fixed": (11, 30),
        "description": "Form C/C-S due 30 November of the Year of Assessment.",
    },
    "GST_RENEWAL": {"name": "GST Filing Service Renewal", "category": _TAX, **_RENEWAL},
    "GST_RETURN_Q": {
        "name": "GST Return (Quarterly)",
        "category": _TAX,
        "anchor": AnchorType.QUARTER_END,
        "frequency": Frequency.QUARTERLY,
        "months": 1,
    },
    "GST_RETURN_M": {
        "name": "GST Return (Monthly)",
        "category": _TAX,
        "anchor": AnchorType.MONTH_END,
        "frequency": Frequency.MONTHLY,
        "months": 1,
    },
    "PERSONAL_TAX_RENEWAL": {"name": "Personal Tax Service Renewal", "category": _TAX, **_RENEWAL},
    "PERSONAL_TAX": {
        "name": "Personal Income Tax (Form B/B1)",
        "category": _TAX,
        "anchor": AnchorType.FIXED_CALENDAR,
        "fixed": (4, 18),  # e-Filing deadline
    },
    "ACCOUNTING_RENEWAL": {"name": "Accounting Service Renewal", "category": _ACC, **_RENEWAL},
    "BOOKKEEPING_MONTHLY": {
        "name": "Monthly Bookkeeping",
        "category": _ACC,
        "anchor": AnchorType.MONTH_END,
        "frequency": Frequency.MONTHLY,
        "days": 15,
    },
    "AUDIT_RENEWAL": {"name": "Statutory Audit Service Renewal", "category": _AUD, **_RENEWAL},
    "AUDIT_COMPLETION": {
        "name": "Statutory Audit",
        "category": _AUD,
        "anchor": AnchorType.FYE,
        "months": 6,
    },
    "CLG_SEC_RENEWAL": {"name": "CLG Corporate Secretarial Service Renewal", "category": _CS, **_RENEWAL},
    "CLG_ANNUAL_RETURN": {
        "name": "CLG Annual Return Filing",
        "category": _CS,
        "anchor": AnchorType.FYE,
        "months": 7,
    },
    "CLG_AGM": {
        "name": "CLG Annual General Meeting",
        "category": _CS,
        "anchor": AnchorType.FYE,
        "months": 6,
    },
    "CHARITY_RENEWAL": {"name": "Charity Compliance Service Renewal", "category": _COMP, **_RENEWAL},
    "CHARITY_ANNUAL_REPORT": {
        "name": "Charity Annual Report to COC",
        "category": _COMP,
        "anchor": AnchorType.FYE,
        "months": 6,
    },
    "CHARITY_GEC": {
        "name": "Governance Evaluation Checklist",
        "category": _COMP,
        "anchor": AnchorType.FYE,
        "months": 6,
    },
    "IPC_RENEWAL": {"name": "IPC Compliance Service Renewal", "category": _COMP, **_RENEWAL},
    "IPC_TDD_RETURN": {
        "name": "Annual Tax-Deductible Donation Return",
        "category": _COMP,
        "anchor": AnchorType.FIXED_CALENDAR,
        "fixed": (1, 31),
    },
    "IPC_STATUS_RENEWAL": {
        "name": "IPC Status Renewal Application",
        "category": _COMP,
        "anchor": AnchorType.IPC_EXPIRY,
        "frequency": Frequency.ONE_TIME,
        "months": -3,
    },
}

_BUNDLE_DATA: dict[str, dict] = {
    "CORP_SEC_ANNUAL": {
        "name": "Corporate Secretarial (Annual)",
        "category": _CS,
        "templates": ("CORP_SEC_RENEWAL", "ANNUAL_RETURN", "XBRL", "FS_TO_MEMBERS", "AGM"),
    },
    "TAX_ANNUAL": {
        "name": "Tax Compliance (Annual)",
        "category": _TAX,
        "templates": ("TAX_RENEWAL", "ECI", "CORP_TAX"),
    },
    "GST_FILING": {
        "name": "GST Filing",
        "category": _TAX,
        "templates": ("GST_RENEWAL", "GST_RETURN_Q", "GST_RETURN_M"),
    },
    "PERSONAL_TAX_SP": {
        "name": "Personal Tax (Sole Proprietor)",
        "category": _TAX,
        "templates": ("PERSONAL_TAX_RENEWAL", "PERSONAL_TAX"),
    },
    "ACCOUNTING_MONTHLY": {
        "name": "Accounting Services (Monthly)",
        "category": _ACC,
        "templates": ("ACCOUNTING_RENEWAL", "BOOKKEEPING_MONTHLY"),
    },
    "AUDIT_ANNUAL": {
        "name": "Statutory Audit",
        "category": _AUD,
        "templates": ("AUDIT_RENEWAL", "AUDIT_COMPLETION"),
    },
    "CLG_CORP_SEC": {
        "name": "CLG Corporate Secretarial (Annual)",
        "category": _CS,
        "templates": ("CLG_SEC_RENEWAL", "CLG_ANNUAL_RETURN", "CLG_AGM"),
    },
    "CHARITY_COMPLIANCE": {
        "name": "Charity Compliance (Annual)",
        "category": _COMP,
        "templates": ("CHARITY_RENEWAL", "CHARITY_ANNUAL_REPORT", "CHARITY_GEC"),
    },
    "IPC_COMPLIANCE": {
        "name": "IPC Compliance (Annual)",
        "category": _COMP,
        "templates": ("IPC_RENEWAL", "IPC_TDD_RETURN", "IPC_STATUS_RENEWAL"),
    },
}


class TemplateCatalog:
    """
    Read-only lookup over the built-in deadline templates and bundles.
    """

    def __init__(self) -> None:
        self._templates: dict[str, DeadlineTemplate] = {}
        self._bundles: dict[str, ServiceBundle] = {}
        self._load()

    def _load(self) -> None:
        for code, data in _TEMPLATE_DATA.items():
            fixed_month, fixed_day = data.get("fixed", (None, None))
            self._templates[code] = DeadlineTemplate(
                code=code,
                name=data["name"],
                category=data["category"],
                anchor_type=data["anchor"],
                frequency=data.get("frequency", Frequency.ANNUALLY),
                offset_months=data.get("months", 0),
                offset_days=data.get("days", 0),
                fixed_month=fixed_month,
                fixed_day=fixed_day,
                is_billable=data.get("billable", False),
                description=data.get("description", ""),
            )
        for code, data in _BUNDLE_DATA.items():
            self._bundles[code] = ServiceBundle(
                code=code,
                name=data["name"],
                category=data["category"],
                template_codes=data["templates"],
            )

    @property
    def template_count(self) -> int:
        return len(self._templates)

    def get_template(self, code: str) -> DeadlineTemplate:
        template = self._templates.get(code.upper())
        if template is None:
            raise UnknownTemplateError(code)
        return template

    def all_templates(self) -> list[DeadlineTemplate]:
        """Return all templates sorted by code."""
        return [self._templates[k] for k in sorted(self._templates)]

    def templates_for_category(
        self, category: DeadlineCategory
    ) -> list[DeadlineTemplate]:
        return [t for t in self.all_templates() if t.category == category]

    def get_bundle(self, code: str) -> ServiceBundle:
        bundle = self._bundles.get(code.upper())
        if bundle is None:
            raise UnknownTemplateError(code)
        return bundle

    def all_bundles(self) -> list[ServiceBundle]:
        return [self._bundles[k] for k in sorted(self._bundles)]

    def rules_for_bundle(self, code: str) -> list[DeadlineRule]:
        """Deadline rules for every template in a bundle, in bundle order."""
        bundle = self.get_bundle(code)
        return [
            self.get_template(t).to_rule(display_order=i)
            for i, t in enumerate(bundle.template_codes)
        ]
