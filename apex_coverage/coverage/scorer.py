"""Coverage status evaluation and text summaries."""

from __future__ import annotations

import logging

from apex_coverage.models.coverage import CoverageReport, CoverageStatus

logger = logging.getLogger(__name__)


def evaluate_status(
    report: CoverageReport,
    threshold: int = 75,
    require_full_coverage: bool = True,
) -> CoverageStatus:
    """Decide whether a report passes the coverage policy."""
    if report.is_empty:
        return CoverageStatus(
            passed=True, threshold=threshold,
            reason=f"No {report.extension} units found",
        )

    pct = report.percentage
    if pct < threshold:
        status = CoverageStatus(
            passed=False, threshold=threshold,
            reason=f"Coverage {pct}% is below the {threshold}% threshold",
        )
    elif require_full_coverage and report.uncovered:
        status = CoverageStatus(
            passed=False, threshold=threshold,
            reason=f"{len(report.uncovered)} of {report.total} units have no test class",
        )
    else:
        status = CoverageStatus(
            passed=True, threshold=threshold,
            reason=f"Coverage {pct}% meets the {threshold}% threshold",
        )
    logger.debug("Coverage status: %s (%s)", "pass" if status.passed else "fail", status.reason)
    return status


def calculate_coverage_summary(report: CoverageReport) -> str:
    """Generate a human-readable coverage summary."""
    if report.is_empty:
        return f"Coverage Summary for {report.root}\n  No {report.extension} units found"
    lines = [
        f"Coverage Summary for {report.root}",
        f"  Units: {report.covered}/{report.total} have test classes",
        f"  Coverage: {report.percentage}% ({report.covered}/{report.total})",
    ]
    if report.uncovered:
        lines.append(f"  Missing tests: {', '.join(report.uncovered)}")
    return "\n".join(lines)
