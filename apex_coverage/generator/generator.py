"""Test generation dispatch: writes a test class for every uncovered unit."""

from __future__ import annotations

import asyncio
import logging
import os
import threading
import time
from pathlib import Path

from apex_coverage.errors import GenerationError, GenerationFailed, WriteFailed
from apex_coverage.models.config import CoverageConfig
from apex_coverage.models.coverage import CoverageReport, SourceUnit
from apex_coverage.models.generation import (
    GenerationFailure,
    GenerationSummary,
    UnitGenerationResult,
)

logger = logging.getLogger(__name__)

META_XML_TEMPLATE = """<?xml version="1.0" encoding="UTF-8"?>
<ApexClass xmlns="http://soap.sforce.com/2006/04/metadata">
    <apiVersion>{api_version}</apiVersion>
    <status>{status}</status>
</ApexClass>
"""


def render_meta_xml(api_version: str, status: str) -> str:
    return META_XML_TEMPLATE.format(api_version=api_version, status=status)


class GenerationDispatcher:
    """Requests and writes test classes for the uncovered units of a report.

    Units are independent: each one reads its own source file, makes one
    writer call and writes its own co-located output files, so they run
    concurrently up to ``max_parallel_generations``. A failing unit never
    affects its siblings, and a set ``abort_event`` stops units that have
    not started yet.
    """

    def __init__(self, config: CoverageConfig, writer,
                 abort_event: threading.Event | None = None):
        self.config = config
        self.writer = writer
        self.abort_event = abort_event or threading.Event()

    def generate(self, report: CoverageReport, dry_run: bool = False) -> GenerationSummary:
        return asyncio.run(self.generate_async(report, dry_run=dry_run))

    async def generate_async(
        self, report: CoverageReport, dry_run: bool = False,
    ) -> GenerationSummary:
        start_time = time.time()
        root = Path(report.root)
        units = report.uncovered_units()
        total = len(units)
        logger.info("Generating test classes for %d uncovered units%s",
                    total, " (dry run)" if dry_run else "")

        semaphore = asyncio.Semaphore(self.config.max_parallel_generations)

        async def _run_one(index: int, unit: SourceUnit) -> UnitGenerationResult:
            async with semaphore:
                if self.abort_event.is_set():
                    logger.warning("Aborted before generating %s", unit.name)
                    return UnitGenerationResult(
                        unit_name=unit.name, unit_path=unit.path,
                        status="aborted", error="Generation aborted",
                    )
                logger.info("Generating test [%d/%d]: %s", index + 1, total, unit.name)
                if dry_run:
                    test_path = unit.expected_test_path(root, report.test_suffix)
                    return UnitGenerationResult(
                        unit_name=unit.name, unit_path=unit.path,
                        status="planned", test_path=str(test_path),
                    )
                return await self._generate_unit(root, unit, report.test_suffix)

        results = list(await asyncio.gather(
            *(_run_one(i, u) for i, u in enumerate(units))
        ))

        summary = GenerationSummary(
            attempted=sum(1 for r in results if r.status != "aborted"),
            generated=sum(1 for r in results if r.status == "generated"),
            failed=sum(1 for r in results if r.status in ("generation_failed", "write_failed")),
            aborted=sum(1 for r in results if r.status == "aborted"),
            dry_run=dry_run,
            duration_seconds=round(time.time() - start_time, 2),
            results=results,
        )
        logger.info(
            "Generation complete: %d generated, %d failed, %d aborted (%.1fs)",
            summary.generated, summary.failed, summary.aborted, summary.duration_seconds,
        )
        return summary

    async def _generate_unit(
        self, root: Path, unit: SourceUnit, test_suffix: str,
    ) -> UnitGenerationResult:
        unit_start = time.time()
        test_path = unit.expected_test_path(root, test_suffix)
        meta_path = test_path.with_name(f"{test_path.name}-meta.xml")
        result = UnitGenerationResult(unit_name=unit.name, unit_path=unit.path)

        try:
            if test_path.exists():
                raise WriteFailed(f"{test_path.name} already exists")
            source = await asyncio.to_thread(self._read_source, root / unit.path)
            text = await self._request(unit, source)
            await asyncio.to_thread(self._write_outputs, test_path, meta_path, text)
        except GenerationError as e:
            result.status = e.status
            result.error = str(e)
            logger.warning("[%s] %s: %s", e.status.upper(), unit.name, e)
        else:
            result.test_path = str(test_path)
            result.meta_path = str(meta_path)
            logger.info("[GENERATED] %s -> %s", unit.name, test_path.name)

        result.duration_seconds = round(time.time() - unit_start, 2)
        return result

    async def _request(self, unit: SourceUnit, source: str) -> str:
        timeout = self.config.generation_timeout_seconds
        try:
            outcome = await asyncio.wait_for(
                asyncio.to_thread(self.writer.generate, unit, source, timeout),
                timeout=timeout,
            )
        except asyncio.TimeoutError as e:
            raise GenerationFailed(f"Generation timed out after {timeout}s") from e
        except Exception as e:
            logger.debug("Writer raised for %s", unit.name, exc_info=True)
            raise GenerationFailed(f"Generation error: {e}") from e

        if isinstance(outcome, GenerationFailure):
            raise GenerationFailed(outcome.reason)
        if not outcome.text.strip():
            raise GenerationFailed("Empty test class returned")
        return outcome.text

    @staticmethod
    def _read_source(path: Path) -> str:
        try:
            return path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise GenerationFailed(f"Could not read {path.name}: {e}") from e

    def _write_outputs(self, test_path: Path, meta_path: Path, text: str) -> None:
        """Write the test class and its sidecar, leaving neither on failure."""
        if not text.endswith("\n"):
            text += "\n"
        _write_atomic(test_path, text)
        try:
            _write_atomic(
                meta_path,
                render_meta_xml(self.config.metadata_api_version, self.config.metadata_status),
            )
        except WriteFailed:
            test_path.unlink(missing_ok=True)
            raise


def _write_atomic(path: Path, content: str) -> None:
    tmp_path = path.with_name(f".{path.name}.tmp")
    try:
        with open(tmp_path, "w", encoding="utf-8") as f:
            f.write(content)
        os.replace(tmp_path, path)
    except OSError as e:
        tmp_path.unlink(missing_ok=True)
        raise WriteFailed(f"Could not write {path.name}: {e}") from e
