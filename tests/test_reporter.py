"""Tests for reporter module: markdown report, JSON report, reporter orchestration."""

import json
from pathlib import Path
from unittest.mock import Mock

import pytest

from apex_coverage.coverage.scorer import evaluate_status
from apex_coverage.errors import SourceRootNotFound
from apex_coverage.models.config import CoverageConfig
from apex_coverage.models.coverage import CoverageReport, SourceUnit, UnitCoverage
from apex_coverage.models.generation import GenerationSummary, UnitGenerationResult
from apex_coverage.reporter.json_report import build_json_report, generate_json_report
from apex_coverage.reporter.markdown_report import (
    COMMENT_MARKER,
    render_markdown_report,
    render_scan_failure,
)
from apex_coverage.reporter.reporter import Reporter


# ============================================================================
# Helpers
# ============================================================================


def _make_report(covered: dict[str, bool] | None = None) -> CoverageReport:
    covered = covered if covered is not None else {"AccountManager": False, "ContactService": True}
    return CoverageReport(
        root="force-app/main/default/classes",
        units=[
            UnitCoverage(unit=SourceUnit(path=f"{name}.cls", name=name), covered=flag)
            for name, flag in covered.items()
        ],
    )


def _make_generation() -> GenerationSummary:
    return GenerationSummary(
        attempted=2, generated=1, failed=1,
        results=[
            UnitGenerationResult(unit_name="AccountManager", unit_path="AccountManager.cls",
                                 status="generated", test_path="AccountManagerTest.cls"),
            UnitGenerationResult(unit_name="LeadRouter", unit_path="LeadRouter.cls",
                                 status="generation_failed", error="AI request failed"),
        ],
    )


def _make_config(formats=None) -> CoverageConfig:
    return CoverageConfig(report_formats=formats or ["markdown", "json"])


# ============================================================================
# Markdown report
# ============================================================================


class TestMarkdownReport:
    """Tests for render_markdown_report()."""

    def test_table_and_summary(self):
        report = _make_report()
        md = render_markdown_report(report, evaluate_status(report))

        assert md.startswith(COMMENT_MARKER)
        assert "| Class | Has test |" in md
        assert "| `AccountManager` | ❌ |" in md
        assert "| `ContactService` | ✅ |" in md
        assert "**Total classes:** 2" in md
        assert "**With tests:** 1" in md
        assert "**Coverage:** 50% (1/2)" in md

    def test_failed_status_line(self):
        report = _make_report()
        md = render_markdown_report(report, evaluate_status(report, threshold=75))
        assert "FAIL" in md
        assert "below the 75% threshold" in md

    def test_passed_status_line(self):
        report = _make_report({"Foo": True})
        md = render_markdown_report(report, evaluate_status(report))
        assert "PASS" in md
        assert "Missing test classes" not in md

    def test_lists_expected_test_names(self):
        report = _make_report()
        md = render_markdown_report(report, evaluate_status(report))
        assert "`AccountManager` (expected `AccountManagerTest.cls`)" in md

    def test_empty_report_has_no_percentage(self):
        report = _make_report({})
        md = render_markdown_report(report, evaluate_status(report))
        assert "No Apex classes found" in md
        assert "%" not in md

    def test_generation_section(self):
        report = _make_report()
        md = render_markdown_report(report, evaluate_status(report), _make_generation())
        assert "### Test generation" in md
        assert "Generated 1 of 2 attempted" in md
        assert "- ✅ `AccountManager`" in md
        assert "- ⚠️ `LeadRouter`: AI request failed" in md

    def test_dry_run_generation_section(self):
        report = _make_report()
        generation = GenerationSummary(dry_run=True)
        md = render_markdown_report(report, evaluate_status(report), generation)
        assert "(dry run)" in md
        assert "0 test classes would be generated." in md

    def test_dry_run_lists_planned_targets(self):
        report = _make_report()
        generation = GenerationSummary(
            dry_run=True,
            results=[
                UnitGenerationResult(unit_name="AccountManager", unit_path="AccountManager.cls",
                                     status="planned", test_path="classes/AccountManagerTest.cls"),
            ],
        )
        md = render_markdown_report(report, evaluate_status(report), generation)
        assert "1 test classes would be generated." in md
        assert "- 📝 `AccountManager` → `classes/AccountManagerTest.cls`" in md
        assert "Generated 0 of" not in md

    def test_summary_is_included(self):
        report = _make_report()
        md = render_markdown_report(report, evaluate_status(report), summary="Add tests.")
        assert "Add tests." in md

    def test_scan_failure_is_distinct(self):
        md = render_scan_failure("classes", SourceRootNotFound("classes"))
        assert md.startswith(COMMENT_MARKER)
        assert "Scan failed, no report produced" in md
        assert "Source root not found: classes" in md
        assert "%" not in md


# ============================================================================
# JSON report
# ============================================================================


class TestJsonReport:
    """Tests for the JSON report."""

    def test_contains_derived_fields_and_status(self, tmp_path: Path):
        report = _make_report()
        path = tmp_path / "report.json"
        generate_json_report(report, evaluate_status(report), path)

        with open(path) as f:
            data = json.load(f)
        assert data["total"] == 2
        assert data["covered"] == 1
        assert data["percentage"] == 50
        assert data["uncovered"] == ["AccountManager"]
        assert data["status"]["passed"] is False
        assert data["generation"] is None

    def test_includes_generation(self):
        report = _make_report()
        data = build_json_report(report, evaluate_status(report), _make_generation())
        assert data["generation"]["generated"] == 1
        assert data["generation"]["results"][1]["status"] == "generation_failed"

    def test_empty_report_percentage_is_null(self):
        report = _make_report({})
        data = build_json_report(report, evaluate_status(report))
        assert data["total"] == 0
        assert data["percentage"] is None


# ============================================================================
# Reporter
# ============================================================================


class TestReporter:
    """Tests for Reporter orchestration."""

    def test_generates_configured_formats(self, temp_report_dir: Path):
        report = _make_report()
        reporter = Reporter(_make_config())
        paths = reporter.generate_reports(report, evaluate_status(report), output_dir=temp_report_dir)

        assert set(paths) == {"markdown", "json"}
        assert Path(paths["markdown"]).read_text().startswith(COMMENT_MARKER)
        assert json.loads(Path(paths["json"]).read_text())["total"] == 2

    def test_only_json(self, temp_report_dir: Path):
        report = _make_report()
        paths = Reporter(_make_config(["json"])).generate_reports(
            report, evaluate_status(report), output_dir=temp_report_dir,
        )
        assert list(paths) == ["json"]
        assert not (temp_report_dir / "coverage-report.md").exists()

    def test_creates_output_dir(self, tmp_path: Path):
        report = _make_report()
        out = tmp_path / "a" / "b"
        Reporter(_make_config()).generate_reports(report, evaluate_status(report), output_dir=out)
        assert (out / "coverage-report.md").exists()

    def test_ai_summary_included(self, temp_report_dir: Path):
        ai_client = Mock()
        ai_client.complete.return_value = "  Two classes, one untested.  "
        report = _make_report()
        paths = Reporter(_make_config(), ai_client).generate_reports(
            report, evaluate_status(report), output_dir=temp_report_dir,
        )
        assert "Two classes, one untested." in Path(paths["markdown"]).read_text()
        assert json.loads(Path(paths["json"]).read_text())["summary"] == "Two classes, one untested."
        assert ai_client.complete.call_args.kwargs["max_tokens"] == 500

    def test_ai_summary_failure_falls_back(self, temp_report_dir: Path):
        ai_client = Mock()
        ai_client.complete.side_effect = RuntimeError("overloaded")
        report = _make_report()
        paths = Reporter(_make_config(), ai_client).generate_reports(
            report, evaluate_status(report), output_dir=temp_report_dir,
        )
        md = Path(paths["markdown"]).read_text()
        assert "1 of 2 Apex classes have test classes (50%)." in md
        assert "Missing tests: AccountManager." in md

    def test_no_ai_summary_for_empty_report(self, temp_report_dir: Path):
        ai_client = Mock()
        report = _make_report({})
        Reporter(_make_config(), ai_client).generate_reports(
            report, evaluate_status(report), output_dir=temp_report_dir,
        )
        ai_client.complete.assert_not_called()

    def test_basic_summary_mentions_generation(self):
        summary = Reporter(_make_config())._generate_basic_summary(_make_report(), _make_generation())
        assert "Generated 1 test classes, 1 failed." in summary

    def test_write_scan_failure(self, temp_report_dir: Path):
        paths = Reporter(_make_config()).write_scan_failure(
            "classes", SourceRootNotFound("classes"), output_dir=temp_report_dir,
        )
        assert "Scan failed" in Path(paths["markdown"]).read_text()
        data = json.loads(Path(paths["json"]).read_text())
        assert data["scan_failed"] is True
        assert "total" not in data
