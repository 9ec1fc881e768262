"""
Deadline timeline report generator.

Produces:
- Timeline summaries (shown/hidden/overdue counts, per-task totals)
- Deadline rows with past/today/upcoming status
- CSV, JSON and pandas DataFrame export
- Console-friendly text
"""

from __future__ import annotations

import csv
import io
import json
from datetime import date
from pathlib import Path
from typing import Any, Optional

import pandas as pd

from deadline_engine.models import GeneratedDeadline, PreviewResult

DEADLINE_COLUMNS = [
    "task_name",
    "date",
    "date_string",
    "relative_label",
    "is_past",
    "is_today",
]


class _DateEncoder(json.JSONEncoder):
    """JSON encoder that handles date objects."""

    def default(self, o: Any) -> Any:
        if isinstance(o, date):
            return o.isoformat()
        return super().default(o)


def _status(d: GeneratedDeadline) -> str:
    if d.is_today:
        return "today"
    if d.is_past:
        return "overdue"
    return "upcoming"


def _deadline_row(d: GeneratedDeadline) -> dict[str, Any]:
    return {
        "task_name": d.task_name,
        "date": d.date.isoformat(),
        "date_string": d.date_string,
        "relative_label": d.relative_label,
        "is_past": d.is_past,
        "is_today": d.is_today,
    }


class ReportGenerator:
    """
    Generates deadline timeline reports with export capabilities.

    Reports are structured dicts that can be rendered to text or
    exported to CSV/JSON files.
    """

    def __init__(self, output_dir: Optional[str] = None) -> None:
        self.output_dir = Path(output_dir) if output_dir else Path("reports")

    def _write(self, filename: str, content: str) -> None:
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename
        path.write_text(content, encoding="utf-8")

    # ------------------------------------------------------------------
    # Timeline report
    # ------------------------------------------------------------------

    def timeline_report(
        self,
        result: PreviewResult,
        generated_on: Optional[date] = None,
        label: str = "",
    ) -> dict[str, Any]:
        """
        Build a timeline report from a preview result.

        Per-task counts cover only the deadlines shown.
        """
        per_task: dict[str, int] = {}
        for d in result.deadlines:
            per_task[d.task_name] = per_task.get(d.task_name, 0) + 1

        upcoming = [d for d in result.deadlines if not d.is_past]
        return {
            "report_type": "deadline_timeline",
            "period": label,
            "generated_date": (generated_on or date.today()).isoformat(),
            "summary": {
                "total_deadlines": result.total_count,
                "shown": len(result.deadlines),
                "hidden": result.hidden_count,
                "overdue": result.overdue_count,
                "rules_with_warnings": len(result.warnings),
            },
            "next_deadline": _deadline_row(upcoming[0]) if upcoming else None,
            "task_breakdown": per_task,
            "deadlines": [
                {**_deadline_row(d), "status": _status(d)}
                for d in result.deadlines
            ],
            "warnings": list(result.warnings),
        }

    # ------------------------------------------------------------------
    # Export methods
    # ------------------------------------------------------------------

    def to_json(
        self,
        report: dict[str, Any],
        filename: Optional[str] = None,
    ) -> str:
        """Export a report to JSON. Returns the JSON string."""
        json_str = json.dumps(report, indent=2, cls=_DateEncoder)
        if filename:
            self._write(filename, json_str)
        return json_str

    def to_csv(
        self,
        report: dict[str, Any],
        filename: Optional[str] = None,
        section: str = "deadlines",
    ) -> str:
        """
        Export a report section to CSV. Returns the CSV string.

        List sections become one row per item; dict sections become
        key/value rows.
        """
        data = report.get(section, [])
        if not data:
            return ""

        output = io.StringIO()
        if isinstance(data, list) and isinstance(data[0], dict):
            writer = csv.DictWriter(output, fieldnames=list(data[0].keys()))
            writer.writeheader()
            for row in data:
                writer.writerow(row)
        elif isinstance(data, dict):
            writer = csv.writer(output)
            writer.writerow(["key", "value"])
            for k, v in data.items():
                writer.writerow([k, v])

        csv_str = output.getvalue()
        if filename:
            self._write(filename, csv_str)
        return csv_str

    def to_dataframe(self, result: PreviewResult) -> pd.DataFrame:
        """Deadlines shown in a preview as a DataFrame, one row each."""
        frame = pd.DataFrame(
            [_deadline_row(d) for d in result.deadlines],
            columns=DEADLINE_COLUMNS,
        )
        frame["date"] = pd.to_datetime(frame["date"])
        return frame

    # ------------------------------------------------------------------
    # Console-formatted text output
    # ------------------------------------------------------------------

    def format_text(self, report: dict[str, Any]) -> str:
        """Format a report as human-readable text for console output."""
        lines: list[str] = []
        report_type = report.get("report_type", "report").replace("_", " ").title()
        lines.append(f"{'=' * 60}")
        lines.append(f"  {report_type}")
        lines.append(f"  Generated: {report.get('generated_date', '')}")
        if report.get("period"):
            lines.append(f"  Period: {report['period']}")
        lines.append(f"{'=' * 60}")
        lines.append("")

        summary = report.get("summary", {})
        if summary:
            lines.append("SUMMARY")
            lines.append("-" * 40)
            for key, value in summary.items():
                label = key.replace("_", " ").title()
                lines.append(f"  {label}: {value}")
            lines.append("")

        deadlines = report.get("deadlines", [])
        if deadlines:
            lines.append("DEADLINES")
            lines.append("-" * 40)
            for d in deadlines:
                marker = {"overdue": "!", "today": "*"}.get(d.get("status", ""), " ")
                lines.append(
                    f" {marker} {d['date_string']:<18} {d['task_name']} "
                    f"({d['relative_label']})"
                )
            hidden = summary.get("hidden", 0)
            if hidden:
                lines.append(f"   ... {hidden} more not shown")
            lines.append("")

        warnings = report.get("warnings", [])
        if warnings:
            lines.append("WARNINGS")
            lines.append("-" * 40)
            for w in warnings:
                lines.append(f"  * {w}")
            lines.append("")

        return "\n".join(lines)
