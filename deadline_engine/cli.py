"""
Command-line interface for the Deadline Rule Engine.

Provides subcommands for previewing a rule set against company data
and browsing the built-in template catalog.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Any, Optional

from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from deadline_engine.diagnostics import ContractViolation, UnknownTemplateError
from deadline_engine.models import (
    CompanyAnchorData,
    DeadlineCategory,
    DeadlineExclusion,
    DeadlineRule,
)
from deadline_engine.preview import PreviewAggregator
from deadline_engine.report_generator import ReportGenerator
from deadline_engine.templates import TemplateCatalog

console = Console()


def _load_json_list(path: str, what: str) -> list[Any]:
    """Load a JSON array from a file, exiting on any problem."""
    json_path = Path(path)
    if not json_path.exists():
        console.print(f"[red]File not found: {path}[/red]")
        sys.exit(1)

    try:
        data = json.loads(json_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON in {path}: {e}[/red]")
        sys.exit(1)

    if not isinstance(data, list):
        console.print(f"[red]{what} file must contain a JSON array[/red]")
        sys.exit(1)
    return data


def _parse_iso(value: Optional[str], flag: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        console.print(f"[red]{flag} must be YYYY-MM-DD, got {value!r}[/red]")
        sys.exit(1)


# -----------------------------------------------------------------------
# Subcommand: preview
# -----------------------------------------------------------------------


def cmd_preview(args: argparse.Namespace) -> None:
    """Compute and display the deadline timeline for a rule set."""
    raw_rules = _load_json_list(args.rules, "Rules")
    try:
        rules = [DeadlineRule.from_dict(r, i) for i, r in enumerate(raw_rules)]
    except ContractViolation as e:
        console.print(f"[red]Invalid rule: {e}[/red]")
        sys.exit(1)

    exclusions: list[DeadlineExclusion] = []
    if args.exclusions:
        exclusions = [
            DeadlineExclusion.from_dict(e)
            for e in _load_json_list(args.exclusions, "Exclusions")
            if isinstance(e, dict)
        ]

    company = CompanyAnchorData(
        fye_month=args.fye_month,
        fye_day=args.fye_day,
        fye_year=args.fye_year,
        incorporation_date=args.incorporation_date,
    )
    now = _parse_iso(args.now, "--now") or date.today()

    try:
        result = PreviewAggregator().aggregate(
            rules,
            company=company,
            service_start_date=args.service_start,
            exclusions=exclusions,
            now=now,
            render_cap=args.cap,
        )
    except ContractViolation as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)

    table = Table(
        title="Upcoming Deadlines",
        box=box.ROUNDED,
        show_lines=False,
    )
    table.add_column("Date", style="bold")
    table.add_column("Task")
    table.add_column("When", justify="right")

    for d in result.deadlines:
        style = "red" if d.is_past else ("green" if d.is_today else "")
        table.add_row(d.date_string, d.task_name, d.relative_label, style=style)

    if result.deadlines:
        console.print(table)
    else:
        console.print("[yellow]No preview dates available[/yellow]")

    for w in result.warnings:
        console.print(f"[yellow]Warning: {escape(w)}[/yellow]")

    console.print()
    console.print(
        Panel(
            f"[bold]Total Deadlines:[/bold] {result.total_count}\n"
            f"[bold]Shown:[/bold] {len(result.deadlines)}\n"
            f"[bold]Hidden:[/bold] {result.hidden_count}\n"
            f"[bold]Overdue:[/bold] {result.overdue_count}",
            title="Timeline Summary",
            border_style="red" if result.overdue_count else "green",
        )
    )

    if args.export_json or args.export_csv:
        rg = ReportGenerator(args.output_dir or "reports")
        report = rg.timeline_report(result, generated_on=now)
        if args.export_json:
            rg.to_json(report, args.export_json)
            console.print(f"[green]JSON exported to {args.export_json}[/green]")
        if args.export_csv:
            rg.to_csv(report, args.export_csv, section="deadlines")
            console.print(f"[green]CSV exported to {args.export_csv}[/green]")


# -----------------------------------------------------------------------
# Subcommand: templates
# -----------------------------------------------------------------------


def cmd_templates(args: argparse.Namespace) -> None:
    """List the built-in deadline templates."""
    catalog = TemplateCatalog()

    if args.bundle:
        try:
            bundle = catalog.get_bundle(args.bundle)
        except UnknownTemplateError:
            console.print(f"[red]Unknown bundle: {args.bundle}[/red]")
            sys.exit(1)
        templates = [catalog.get_template(c) for c in bundle.template_codes]
        title = bundle.name
    elif args.category:
        try:
            category = DeadlineCategory(args.category.upper())
        except ValueError:
            console.print(f"[red]Unknown category: {args.category}[/red]")
            sys.exit(1)
        templates = catalog.templates_for_category(category)
        title = f"{category.value.replace('_', ' ').title()} Templates"
    else:
        templates = catalog.all_templates()
        title = "Deadline Templates"

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Code", style="bold")
    table.add_column("Name")
    table.add_column("Anchor")
    table.add_column("Offset", justify="right")
    table.add_column("Frequency")
    table.add_column("Billable", justify="center")

    for t in templates:
        if t.fixed_month is not None:
            offset = f"{t.fixed_day:02d}/{t.fixed_month:02d}"
        else:
            offset = f"{t.offset_months:+d}m {t.offset_days:+d}d"
        table.add_row(
            t.code,
            t.name,
            t.anchor_type.value,
            offset,
            t.frequency.value,
            "Y" if t.is_billable else "",
        )
    console.print(table)


# -----------------------------------------------------------------------
# Argument parser
# -----------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="deadline-engine",
        description="Deadline Rule Engine - turn deadline rules into a dated compliance timeline",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # preview
    prev_p = subparsers.add_parser("preview", help="Preview deadlines for a rule set")
    prev_p.add_argument("--rules", "-r", required=True, help="JSON file with deadline rules")
    prev_p.add_argument("--fye-month", type=int, help="Financial year end month (1-12)")
    prev_p.add_argument("--fye-day", type=int, help="Financial year end day (1-31)")
    prev_p.add_argument("--fye-year", type=int, help="Base year for FYE anchors")
    prev_p.add_argument("--incorporation-date", help="Incorporation date (YYYY-MM-DD)")
    prev_p.add_argument("--service-start", help="Service start date (YYYY-MM-DD)")
    prev_p.add_argument("--exclusions", "-x", help="JSON file with excluded deadlines")
    prev_p.add_argument("--now", help="Reference date for past/today (default: today)")
    prev_p.add_argument("--cap", type=int, help="Max deadlines to display")
    prev_p.add_argument("--export-json", help="Export timeline to JSON file")
    prev_p.add_argument("--export-csv", help="Export timeline to CSV file")
    prev_p.add_argument("--output-dir", help="Output directory for exports")
    prev_p.set_defaults(func=cmd_preview)

    # templates
    tmpl_p = subparsers.add_parser("templates", help="Browse the template catalog")
    tmpl_p.add_argument("--category", "-c", help="Filter by category, e.g. TAX")
    tmpl_p.add_argument("--bundle", "-b", help="Show templates in a service bundle")
    tmpl_p.set_defaults(func=cmd_templates)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )

    if not args.command:
        parser.print_help()
        sys.exit(0)

    args.func(args)
