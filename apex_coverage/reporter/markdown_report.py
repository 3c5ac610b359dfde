"""Markdown report output, formatted for a pull request comment."""

from __future__ import annotations

from pathlib import Path

from apex_coverage.models.coverage import CoverageReport, CoverageStatus
from apex_coverage.models.generation import GenerationSummary

COMMENT_MARKER = "<!-- apex-coverage-report -->"


def render_markdown_report(
    report: CoverageReport,
    status: CoverageStatus,
    generation: GenerationSummary | None = None,
    summary: str = "",
) -> str:
    lines = [COMMENT_MARKER, "## Apex Test Coverage Report", ""]

    if report.is_empty:
        lines.append(f"No Apex classes found under `{report.root}`.")
        return "\n".join(lines) + "\n"

    icon = "✅" if status.passed else "❌"
    lines.append(f"**Status:** {icon} {'PASS' if status.passed else 'FAIL'} ({status.reason})")
    lines.append("")
    if summary:
        lines.extend([summary, ""])

    lines.extend(["| Class | Has test |", "|---|---|"])
    for uc in report.units:
        lines.append(f"| `{uc.unit.name}` | {'✅' if uc.covered else '❌'} |")
    lines.append("")

    lines.append(f"- **Total classes:** {report.total}")
    lines.append(f"- **With tests:** {report.covered}")
    lines.append(f"- **Coverage:** {report.percentage}% ({report.covered}/{report.total})")
    lines.append(f"- **Threshold:** {status.threshold}%")

    if report.uncovered:
        lines.extend(["", "### Missing test classes", ""])
        for name in report.uncovered:
            lines.append(f"- `{name}` (expected `{name}{report.test_suffix}{report.extension}`)")

    if generation is not None:
        lines.extend(["", _render_generation(generation)])

    return "\n".join(lines) + "\n"


def _render_generation(generation: GenerationSummary) -> str:
    if generation.dry_run:
        planned = generation.planned_units
        lines = [
            "### Test generation (dry run)",
            "",
            f"{len(planned)} test classes would be generated"
            + (f", {generation.aborted} aborted" if generation.aborted else "")
            + ".",
        ]
        if planned:
            lines.append("")
            for r in planned:
                lines.append(f"- 📝 `{r.unit_name}` → `{r.test_path}`")
        return "\n".join(lines)

    lines = [
        "### Test generation",
        "",
        f"Generated {generation.generated} of {generation.attempted} attempted test classes"
        + (f", {generation.aborted} aborted" if generation.aborted else "")
        + ".",
    ]
    if generation.generated_units:
        lines.append("")
        for name in generation.generated_units:
            lines.append(f"- ✅ `{name}`")
    for failed in generation.failed_units:
        lines.append(f"- ⚠️ `{failed.unit_name}`: {failed.error}")
    return "\n".join(lines)


def render_scan_failure(root: str, error: Exception) -> str:
    """Comment body for a scan that produced no report."""
    return "\n".join([
        COMMENT_MARKER,
        "## Apex Test Coverage Report",
        "",
        "**Status:** ❌ Scan failed, no report produced.",
        "",
        f"Could not scan `{root}`: {error}",
    ]) + "\n"


def generate_markdown_report(
    report: CoverageReport,
    status: CoverageStatus,
    output_path: Path,
    generation: GenerationSummary | None = None,
    summary: str = "",
) -> None:
    """Write the PR comment body to a file."""
    with open(output_path, "w", encoding="utf-8") as f:
        f.write(render_markdown_report(report, status, generation, summary))
