"""
Deadline Rule Engine
====================

Turns declarative, reusable deadline rules (e.g. "file 6 months after
financial year end, annually") into concrete calendar dates for a
company, merged into one chronological timeline with past/today
classification and per-rule diagnostics.

Modules:
    models           - Rules, company anchor data, exclusions, results
    diagnostics      - Warning taxonomy and engine exceptions
    calendar_math    - Clamped month arithmetic and offsets
    anchors          - Anchor resolution per occurrence
    recurrence       - Bounded recurrence expansion
    exclusions       - User exclusion filtering
    preview          - Preview aggregation (entry point)
    session          - Local/remote preview coordination
    templates        - Built-in deadline template catalog
    report_generator - Timeline reporting with CSV/JSON/DataFrame export
    cli              - Command-line interface
"""

__version__ = "1.0.0"

from deadline_engine.models import (
    AnchorType,
    CompanyAnchorData,
    DeadlineExclusion,
    DeadlineRule,
    Frequency,
    GeneratedDeadline,
    PreviewResult,
    RuleType,
)
from deadline_engine.diagnostics import ContractViolation, RuleWarning
from deadline_engine.preview import PreviewAggregator, preview_deadlines
from deadline_engine.session import PreviewSession, build_preview_request
from deadline_engine.templates import TemplateCatalog
from deadline_engine.report_generator import ReportGenerator

__all__ = [
    "AnchorType",
    "CompanyAnchorData",
    "ContractViolation",
    "DeadlineExclusion",
    "DeadlineRule",
    "Frequency",
    "GeneratedDeadline",
    "PreviewAggregator",
    "PreviewResult",
    "PreviewSession",
    "ReportGenerator",
    "RuleType",
    "RuleWarning",
    "TemplateCatalog",
    "build_preview_request",
    "preview_deadlines",
]
