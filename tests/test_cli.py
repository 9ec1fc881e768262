"""Tests for the command-line interface."""

import json

import pytest
from rich.console import Console

from deadline_engine import cli
from deadline_engine.cli import build_parser, main


@pytest.fixture(autouse=True)
def wide_console(monkeypatch):
    # Avoid column folding in captured table output
    monkeypatch.setattr(cli, "console", Console(width=200))


@pytest.fixture
def rules_file(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text(
        json.dumps(
            [
                {"taskName": "Board Meeting", "ruleType": "FIXED_DATE", "specificDate": "2024-02-15"},
                {"taskName": "AGM", "ruleType": "RULE_BASED", "anchorType": "FYE", "offsetMonths": 6},
            ]
        ),
        encoding="utf-8",
    )
    return path


def test_parser_requires_rules():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["preview"])


def test_no_command_prints_help(capsys):
    with pytest.raises(SystemExit) as exc:
        main([])
    assert exc.value.code == 0
    assert "deadline-engine" in capsys.readouterr().out


# ── preview ─────────────────────────────────────────────────────────


def test_preview_renders_timeline_and_warnings(rules_file, capsys):
    main(["preview", "--rules", str(rules_file), "--now", "2024-01-10"])
    out = capsys.readouterr().out
    assert "Board Meeting" in out
    assert "in 36 days" in out
    assert "AGM: company FYE is not configured" in out
    assert "Timeline Summary" in out


def test_preview_with_fye(rules_file, capsys):
    main(
        [
            "preview",
            "--rules", str(rules_file),
            "--fye-month", "12",
            "--fye-day", "31",
            "--now", "2024-01-10",
        ]
    )
    out = capsys.readouterr().out
    assert "Warning" not in out
    assert "Jun 30, 2025" in out


def test_preview_exports(rules_file, tmp_path, capsys):
    out_dir = tmp_path / "out"
    main(
        [
            "preview",
            "--rules", str(rules_file),
            "--now", "2024-01-10",
            "--export-json", "timeline.json",
            "--export-csv", "timeline.csv",
            "--output-dir", str(out_dir),
        ]
    )
    report = json.loads((out_dir / "timeline.json").read_text(encoding="utf-8"))
    assert report["summary"]["total_deadlines"] == 1
    assert (out_dir / "timeline.csv").exists()


def test_preview_missing_file_exits(tmp_path):
    with pytest.raises(SystemExit) as exc:
        main(["preview", "--rules", str(tmp_path / "missing.json")])
    assert exc.value.code == 1


def test_preview_rejects_non_array(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text('{"taskName": "A"}', encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["preview", "--rules", str(path)])
    assert exc.value.code == 1


def test_preview_rejects_malformed_rule(tmp_path):
    path = tmp_path / "rules.json"
    path.write_text('[{"taskName": "A"}]', encoding="utf-8")
    with pytest.raises(SystemExit) as exc:
        main(["preview", "--rules", str(path)])
    assert exc.value.code == 1


def test_preview_rejects_bad_cap(rules_file):
    with pytest.raises(SystemExit) as exc:
        main(["preview", "--rules", str(rules_file), "--cap", "0"])
    assert exc.value.code == 1


def test_preview_applies_exclusions(rules_file, tmp_path, capsys):
    excl = tmp_path / "excl.json"
    excl.write_text(
        json.dumps([{"taskName": "board meeting", "statutoryDueDate": "2024-02-15"}]),
        encoding="utf-8",
    )
    main(["preview", "--rules", str(rules_file), "-x", str(excl), "--now", "2024-01-10"])
    assert "No preview dates available" in capsys.readouterr().out


# ── templates ───────────────────────────────────────────────────────


def test_templates_lists_catalog(capsys):
    main(["templates"])
    out = capsys.readouterr().out
    assert "Deadline Templates" in out
    assert "AGM" in out


def test_templates_by_bundle(capsys):
    main(["templates", "--bundle", "gst_filing"])
    out = capsys.readouterr().out
    assert "GST Filing" in out
    assert "GST_RETURN_Q" in out


def test_templates_unknown_category_exits():
    with pytest.raises(SystemExit) as exc:
        main(["templates", "--category", "astrology"])
    assert exc.value.code == 1
