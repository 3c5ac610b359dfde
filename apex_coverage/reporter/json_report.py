"""JSON report output."""

from __future__ import annotations

import json
from pathlib import Path

from apex_coverage.models.coverage import CoverageReport, CoverageStatus
from apex_coverage.models.generation import GenerationSummary


def build_json_report(
    report: CoverageReport,
    status: CoverageStatus,
    generation: GenerationSummary | None = None,
    summary: str = "",
) -> dict:
    data = report.model_dump()
    data["status"] = status.model_dump()
    data["summary"] = summary
    data["generation"] = generation.model_dump() if generation is not None else None
    return data


def generate_json_report(
    report: CoverageReport,
    status: CoverageStatus,
    output_path: Path,
    generation: GenerationSummary | None = None,
    summary: str = "",
) -> None:
    """Write a machine-readable JSON report."""
    with open(output_path, "w") as f:
        json.dump(build_json_report(report, status, generation, summary), f, indent=2, default=str)
