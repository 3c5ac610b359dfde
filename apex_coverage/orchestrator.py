"""Pipeline orchestrator: coordinates scan, generate, and report stages."""

from __future__ import annotations

import logging
import threading
import time
from pathlib import Path

from apex_coverage.ai.client import AIClient, set_debug_dir
from apex_coverage.coverage.scanner import scan_tree
from apex_coverage.coverage.scorer import evaluate_status
from apex_coverage.errors import AIClientUnavailable, ScanError
from apex_coverage.generator.generator import GenerationDispatcher
from apex_coverage.generator.writer import AITestWriter
from apex_coverage.models.config import CoverageConfig
from apex_coverage.models.coverage import CoverageReport, CoverageStatus
from apex_coverage.reporter.reporter import Reporter

logger = logging.getLogger(__name__)


class Orchestrator:
    """Coordinates the coverage pipelines."""

    def __init__(
        self,
        config: CoverageConfig,
        root: str | Path | None = None,
        ai_client: AIClient | None = None,
        writer=None,
        use_ai: bool = True,
        framework_dir: str | Path = ".apex-coverage",
        abort_event: threading.Event | None = None,
    ):
        self.config = config
        self.root = Path(root) if root is not None else Path(config.source_root)
        self.framework_dir = Path(framework_dir)
        self.abort_event = abort_event or threading.Event()

        self.writer = writer
        self.ai_client = ai_client
        if self.ai_client is None and use_ai:
            set_debug_dir(self.framework_dir / "debug")
            try:
                self.ai_client = AIClient(
                    model=config.ai_model,
                    max_tokens=config.ai_max_tokens,
                )
            except EnvironmentError as e:
                logger.warning("AI client unavailable: %s. Running without AI.", e)

    def scan(self) -> CoverageReport:
        return scan_tree(self.root, self.config.test_suffix, self.config.extension)

    def status_for(self, report: CoverageReport) -> CoverageStatus:
        return evaluate_status(
            report,
            threshold=self.config.coverage_threshold,
            require_full_coverage=self.config.require_full_coverage,
        )

    def run_scan(self, output_dir: Path | None = None) -> dict:
        """Scan the source tree and write reports.

        On a scan error the failure reports are written and the error is
        re-raised; no coverage data is reported.
        """
        start = time.time()
        logger.info("=== Scanning %s ===", self.root)
        try:
            report = self.scan()
        except ScanError as e:
            self._reporter().write_scan_failure(str(self.root), e, output_dir)
            raise

        status = self.status_for(report)
        reports = self._reporter().generate_reports(report, status, output_dir=output_dir)
        duration = time.time() - start
        logger.info("=== Scan complete in %.1fs ===", duration)
        return {
            "report": report,
            "status": status,
            "generation": None,
            "reports": reports,
            "duration": round(duration, 2),
        }

    def run_generate(self, output_dir: Path | None = None, dry_run: bool = False) -> dict:
        """Scan, generate tests for uncovered units, rescan, and report."""
        start = time.time()

        logger.info("--- Stage 1: Scan ---")
        try:
            initial = self.scan()
        except ScanError as e:
            self._reporter().write_scan_failure(str(self.root), e, output_dir)
            raise

        logger.info("--- Stage 2: Generate (%d uncovered) ---", len(initial.uncovered))
        writer = self.writer
        if writer is None and self.ai_client is not None:
            writer = AITestWriter(self.ai_client, test_suffix=self.config.test_suffix)
        if writer is None and not dry_run:
            raise AIClientUnavailable(
                "Test generation needs an AI client; set ANTHROPIC_API_KEY or use --dry-run."
            )
        dispatcher = GenerationDispatcher(self.config, writer, abort_event=self.abort_event)
        generation = dispatcher.generate(initial, dry_run=dry_run)

        logger.info("--- Stage 3: Rescan ---")
        try:
            final = initial if dry_run else self.scan()
        except ScanError as e:
            self._reporter().write_scan_failure(str(self.root), e, output_dir)
            raise

        status = self.status_for(final)
        logger.info("--- Stage 4: Report ---")
        reports = self._reporter().generate_reports(
            final, status, generation=generation, output_dir=output_dir,
        )

        duration = time.time() - start
        logger.info("=== Generation pipeline complete in %.1fs ===", duration)
        return {
            "report": final,
            "initial_report": initial,
            "status": status,
            "generation": generation,
            "reports": reports,
            "duration": round(duration, 2),
        }

    def _reporter(self) -> Reporter:
        return Reporter(self.config, self.ai_client)
