"""Report generation orchestration."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from apex_coverage.ai.client import AIClient
from apex_coverage.ai.prompts.summary import SUMMARY_SYSTEM_PROMPT, build_summary_prompt
from apex_coverage.coverage.scorer import calculate_coverage_summary
from apex_coverage.models.config import CoverageConfig
from apex_coverage.models.coverage import CoverageReport, CoverageStatus
from apex_coverage.models.generation import GenerationSummary

from .json_report import generate_json_report
from .markdown_report import generate_markdown_report, render_scan_failure

logger = logging.getLogger(__name__)


class Reporter:
    """Generates reports from a coverage scan."""

    def __init__(self, config: CoverageConfig, ai_client: AIClient | None = None):
        self.config = config
        self.ai_client = ai_client

    def generate_reports(
        self,
        report: CoverageReport,
        status: CoverageStatus,
        generation: GenerationSummary | None = None,
        output_dir: Path | None = None,
    ) -> dict[str, str]:
        """Generate all configured report formats. Returns format -> file path."""
        out_dir = output_dir or Path(self.config.report_output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        generated = {}
        logger.debug("Report output directory: %s", out_dir)

        summary = ""
        if self.ai_client and not report.is_empty:
            logger.debug("Generating AI-powered coverage summary...")
            summary = self._generate_summary(report, generation)

        if "markdown" in self.config.report_formats:
            path = out_dir / "coverage-report.md"
            generate_markdown_report(report, status, path, generation, summary)
            generated["markdown"] = str(path)
            logger.info("Markdown report: %s", path)

        if "json" in self.config.report_formats:
            path = out_dir / "coverage-report.json"
            generate_json_report(report, status, path, generation, summary)
            generated["json"] = str(path)
            logger.info("JSON report: %s", path)

        return generated

    def _generate_summary(
        self, report: CoverageReport, generation: GenerationSummary | None,
    ) -> str:
        """Generate an AI-powered natural language summary."""
        if not self.ai_client:
            return self._generate_basic_summary(report, generation)

        try:
            payload = {
                "total": report.total,
                "covered": report.covered,
                "percentage": report.percentage,
                "uncovered": report.uncovered[:50],
            }
            if generation is not None:
                payload["generated"] = generation.generated_units
                payload["generation_failures"] = [
                    {"class": r.unit_name, "error": r.error}
                    for r in generation.failed_units
                ][:20]

            summary = self.ai_client.complete(
                system_prompt=SUMMARY_SYSTEM_PROMPT,
                user_message=build_summary_prompt(
                    json.dumps(payload, indent=2),
                    calculate_coverage_summary(report),
                ),
                max_tokens=500,
            )
            return summary.strip()
        except Exception as e:
            logger.warning("AI summary generation failed: %s", e)
            return self._generate_basic_summary(report, generation)

    def _generate_basic_summary(
        self, report: CoverageReport, generation: GenerationSummary | None,
    ) -> str:
        """Generate a basic summary without AI."""
        parts = [
            f"{report.covered} of {report.total} Apex classes have test classes "
            f"({report.percentage}%).",
        ]
        if report.uncovered:
            parts.append(f"Missing tests: {', '.join(report.uncovered[:5])}"
                         + (" and more." if len(report.uncovered) > 5 else "."))
        if generation is not None and not generation.dry_run:
            parts.append(f"Generated {generation.generated} test classes, "
                         f"{generation.failed} failed.")
        return " ".join(parts)

    def write_scan_failure(
        self, root: str, error: Exception, output_dir: Path | None = None,
    ) -> dict[str, str]:
        """Write reports stating that the scan failed and produced no coverage data."""
        out_dir = output_dir or Path(self.config.report_output_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        generated = {}

        if "markdown" in self.config.report_formats:
            path = out_dir / "coverage-report.md"
            with open(path, "w", encoding="utf-8") as f:
                f.write(render_scan_failure(root, error))
            generated["markdown"] = str(path)

        if "json" in self.config.report_formats:
            path = out_dir / "coverage-report.json"
            with open(path, "w") as f:
                json.dump(
                    {"root": root, "scan_failed": True, "error": str(error)},
                    f, indent=2,
                )
            generated["json"] = str(path)

        logger.info("Scan failure reports: %s", ", ".join(generated.values()) or "none")
        return generated
