"""CLI entry point for the Apex coverage tooling."""

from __future__ import annotations

import logging
import signal
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from apex_coverage.errors import AIClientUnavailable, ScanError
from apex_coverage.models.config import DEFAULT_CONFIG_PATH, CoverageConfig
from apex_coverage.models.coverage import CoverageReport, CoverageStatus
from apex_coverage.models.generation import GenerationSummary
from apex_coverage.orchestrator import Orchestrator
from apex_coverage.setup_check import check_setup

console = Console()

EXIT_STATUS_FAILED = 1
EXIT_SCAN_FAILED = 2


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def _load_config(config: str, threshold: int | None = None) -> CoverageConfig:
    cfg = CoverageConfig.load_or_default(config)
    if threshold is not None:
        cfg.coverage_threshold = threshold
    return cfg


def _print_report(report: CoverageReport, status: CoverageStatus) -> None:
    if report.is_empty:
        console.print(f"[yellow]No {report.extension} units found under {report.root}[/yellow]")
        return

    table = Table(title="Apex Test Coverage")
    table.add_column("Class", style="bold")
    table.add_column("Has test")
    for uc in report.units:
        table.add_row(uc.unit.name, "[green]yes[/green]" if uc.covered else "[red]no[/red]")
    console.print(table)

    console.print(
        f"Total: {report.total}  Covered: {report.covered}  "
        f"Coverage: {report.percentage}% ({report.covered}/{report.total})"
    )
    color = "green" if status.passed else "red"
    label = "PASS" if status.passed else "FAIL"
    console.print(f"[bold {color}]{label}[/bold {color}]: {status.reason}")


def _print_generation(generation: GenerationSummary) -> None:
    table = Table(title="Test Generation")
    table.add_column("Class", style="bold")
    table.add_column("Result")
    table.add_column("Detail")
    for r in generation.results:
        color = {"generated": "green", "planned": "blue", "aborted": "yellow"}.get(r.status, "red")
        table.add_row(r.unit_name, f"[{color}]{r.status}[/{color}]", r.error or r.test_path or "")
    console.print(table)


def _print_reports(reports: dict[str, str]) -> None:
    for fmt, path in reports.items():
        console.print(f"  {fmt.upper()} report: [blue]{path}[/blue]")


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool) -> None:
    """Apex test-class coverage scanner and AI test generator"""
    setup_logging(verbose)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config file path")
@click.option("--root", "-r", default=None, help="Source root (overrides config)")
@click.option("--threshold", "-t", type=click.IntRange(0, 100), default=None,
              help="Minimum coverage percentage")
@click.option("--output-dir", "-o", default=None, help="Report output directory")
@click.option("--no-ai", is_flag=True, help="Skip the AI-written report summary")
def scan(config: str, root: str | None, threshold: int | None,
         output_dir: str | None, no_ai: bool) -> None:
    """Scan for Apex classes without a co-located test class."""
    cfg = _load_config(config, threshold)
    orchestrator = Orchestrator(cfg, root=root, use_ai=not no_ai)
    try:
        results = orchestrator.run_scan(Path(output_dir) if output_dir else None)
    except ScanError as e:
        console.print(f"[red]Scan failed, no report produced:[/red] {e}")
        sys.exit(EXIT_SCAN_FAILED)

    _print_report(results["report"], results["status"])
    _print_reports(results["reports"])
    if not results["status"].passed:
        sys.exit(EXIT_STATUS_FAILED)


@cli.command()
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config file path")
@click.option("--root", "-r", default=None, help="Source root (overrides config)")
@click.option("--timeout", type=click.FloatRange(min=0, min_open=True), default=None,
              help="Per-class generation timeout (seconds)")
@click.option("--parallel", "-p", type=click.IntRange(min=1), default=None,
              help="Maximum concurrent generations")
@click.option("--output-dir", "-o", default=None, help="Report output directory")
@click.option("--dry-run", is_flag=True, help="List the test classes that would be generated")
def generate(config: str, root: str | None, timeout: float | None, parallel: int | None,
             output_dir: str | None, dry_run: bool) -> None:
    """Generate test classes for every uncovered Apex class."""
    cfg = _load_config(config)
    if timeout is not None:
        cfg.generation_timeout_seconds = timeout
    if parallel is not None:
        cfg.max_parallel_generations = parallel

    orchestrator = Orchestrator(cfg, root=root, use_ai=not dry_run)

    def _request_abort(signum, frame) -> None:
        console.print("[yellow]Interrupt received, finishing in-flight classes...[/yellow]")
        orchestrator.abort_event.set()

    previous_handler = signal.signal(signal.SIGINT, _request_abort)
    try:
        results = orchestrator.run_generate(
            Path(output_dir) if output_dir else None, dry_run=dry_run,
        )
    except ScanError as e:
        console.print(f"[red]Scan failed, no report produced:[/red] {e}")
        sys.exit(EXIT_SCAN_FAILED)
    except AIClientUnavailable as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(EXIT_STATUS_FAILED)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    _print_generation(results["generation"])
    _print_report(results["report"], results["status"])
    _print_reports(results["reports"])
    if not results["status"].passed:
        sys.exit(EXIT_STATUS_FAILED)


@cli.command()
@click.option("--root", "-r", default=None, help="Source root to record in the config")
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config file path")
def init(root: str | None, config: str) -> None:
    """Create a default configuration file."""
    config_path = Path(config)
    if config_path.exists():
        if not click.confirm(f"{config_path} already exists. Overwrite?"):
            return

    cfg = CoverageConfig(source_root=root) if root else CoverageConfig()
    cfg.save(config_path)
    console.print(f"[green]Created {config_path}[/green]")
    console.print("\nYou can now customize this file and run:")
    console.print("  [blue]apex-coverage scan[/blue]")


@cli.command("check-setup")
@click.option("--config", "-c", default=DEFAULT_CONFIG_PATH, help="Config file path")
@click.option("--project-dir", "-d", default=".", help="Project root to check")
def check_setup_cmd(config: str, project_dir: str) -> None:
    """Check that the project has the expected layout."""
    cfg = _load_config(config)
    result = check_setup(
        project_dir,
        cfg.required_paths,
        workflow_dir=cfg.workflow_dir,
        api_key_workflow=cfg.api_key_workflow,
        api_key_secret=cfg.api_key_secret,
    )
    for rel in result.present:
        console.print(f"[green]found[/green]   {rel}")
    for rel in result.missing:
        console.print(f"[red]missing[/red] {rel}")
    for wf in result.workflows:
        if wf.valid:
            console.print(f"[green]valid yaml[/green]   {wf.path}")
        else:
            console.print(f"[red]invalid yaml[/red] {wf.path}: {escape(wf.error)}")
    if result.api_key_check == "referenced":
        console.print(f"[green]{result.api_key_workflow} references {result.api_key_secret}[/green]")
    for warning in result.warnings:
        console.print(f"[yellow]warning[/yellow] {warning}")

    if result.missing:
        console.print(f"[red]{len(result.missing)} required path(s) missing[/red]")
    if result.invalid_workflows:
        console.print(f"[red]{len(result.invalid_workflows)} workflow file(s) are not valid YAML[/red]")
    if not result.ok:
        sys.exit(EXIT_STATUS_FAILED)
    console.print("[green]All required paths are present and workflow files are valid YAML[/green]")


if __name__ == "__main__":
    cli()
