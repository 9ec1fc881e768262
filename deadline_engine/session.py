"""
Preview session: local preview plus authoritative remote recomputation.

The local preview is computed synchronously on every rule change. An
authoritative recomputation runs elsewhere and may finish out of order;
each one is tagged with a monotonically increasing request token and
only the result for the newest token is applied. Until it lands, the
latest local result stays current.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Iterable, Optional, Union

from deadline_engine.config import get_settings
from deadline_engine.models import (
    CompanyAnchorData,
    DateInput,
    DeadlineExclusion,
    DeadlineRule,
    Frequency,
    PreviewResult,
)
from deadline_engine.preview import ExclusionInput, PreviewAggregator, RuleInput

logger = logging.getLogger(__name__)


def _iso(value: DateInput) -> Optional[str]:
    if value in (None, ""):
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def build_preview_request(
    rules: Iterable[RuleInput],
    company: Optional[CompanyAnchorData] = None,
    service_start_date: DateInput = None,
    exclusions: Optional[Iterable[ExclusionInput]] = None,
    months_ahead: Optional[int] = None,
) -> dict[str, Any]:
    """
    Build the JSON request body for the authoritative preview endpoint.

    Blank task names become the untitled placeholder and recurring
    rules without a frequency are sent as ANNUALLY, matching what the
    local preview does with them.
    """
    settings = get_settings()
    company = company or CompanyAnchorData()

    body_rules: list[dict[str, Any]] = []
    for index, raw in enumerate(rules):
        rule = DeadlineRule.from_dict(raw, index) if isinstance(raw, dict) else raw
        payload = rule.to_dict()
        payload["taskName"] = rule.task_name.strip() or settings.untitled_task_name
        if rule.is_recurring and rule.frequency is None:
            payload["frequency"] = Frequency.ANNUALLY.value
        body_rules.append(payload)

    body_exclusions: list[dict[str, Any]] = []
    for item in exclusions or ():
        if isinstance(item, dict):
            item = DeadlineExclusion.from_dict(item)
        body_exclusions.append(
            {
                "taskName": item.task_name,
                "statutoryDueDate": _iso(item.statutory_due_date),
            }
        )

    return {
        "rules": body_rules,
        "excludedDeadlines": body_exclusions,
        "serviceStartDate": _iso(service_start_date),
        "monthsAhead": months_ahead or settings.default_months_ahead,
        "fyeYearOverride": company.fye_year,
    }


@dataclass
class PreviewSnapshot:
    """The preview currently shown and where it came from."""

    result: PreviewResult
    source: str  # "local" or "remote"
    token: int


class PreviewSession:
    """
    Holds the current preview for one rule-editing session.

    Thread-safe: remote results may be delivered from worker threads.
    """

    def __init__(self, aggregator: Optional[PreviewAggregator] = None) -> None:
        self.aggregator = aggregator or PreviewAggregator()
        self._lock = threading.Lock()
        self._latest_token = 0
        self._current: Optional[PreviewSnapshot] = None

    @property
    def latest_token(self) -> int:
        with self._lock:
            return self._latest_token

    @property
    def current(self) -> Optional[PreviewSnapshot]:
        with self._lock:
            return self._current

    def refresh(
        self,
        rules: Iterable[RuleInput],
        company: Optional[CompanyAnchorData] = None,
        service_start_date: DateInput = None,
        exclusions: Optional[Iterable[ExclusionInput]] = None,
        now: Union[date, datetime, None] = None,
        render_cap: Optional[int] = None,
    ) -> tuple[PreviewResult, int]:
        """
        Recompute the local preview and issue a token for the matching
        remote request. Any remote request still in flight is superseded.
        """
        result = self.aggregator.aggregate(
            list(rules),
            company=company,
            service_start_date=service_start_date,
            exclusions=exclusions,
            now=now,
            render_cap=render_cap,
        )
        with self._lock:
            self._latest_token += 1
            token = self._latest_token
            self._current = PreviewSnapshot(result=result, source="local", token=token)
        return result, token

    def accept_remote(self, token: int, result: PreviewResult) -> bool:
        """Apply a remote result if it answers the newest request."""
        with self._lock:
            if token != self._latest_token:
                logger.debug(
                    "Discarding stale remote preview (token %d, latest %d)",
                    token,
                    self._latest_token,
                )
                return False
            self._current = PreviewSnapshot(result=result, source="remote", token=token)
            return True

    def cancel_pending(self) -> None:
        """Invalidate any in-flight remote request without a new refresh."""
        with self._lock:
            self._latest_token += 1
