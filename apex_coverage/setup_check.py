"""Project layout validation."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class WorkflowCheck(BaseModel):
    path: str
    valid: bool
    error: str = ""


class SetupCheckResult(BaseModel):
    project_dir: str
    present: list[str] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)
    workflows: list[WorkflowCheck] = Field(default_factory=list)
    api_key_workflow: Optional[str] = None
    api_key_secret: str = ""
    api_key_check: Literal["referenced", "not_referenced", "workflow_missing", "skipped"] = "skipped"

    @property
    def invalid_workflows(self) -> list[WorkflowCheck]:
        return [w for w in self.workflows if not w.valid]

    @property
    def warnings(self) -> list[str]:
        if self.api_key_check == "workflow_missing":
            return [f"{self.api_key_workflow} not found; cannot check for {self.api_key_secret}"]
        if self.api_key_check == "not_referenced":
            return [f"{self.api_key_workflow} does not reference {self.api_key_secret}"]
        return []

    @property
    def ok(self) -> bool:
        """Missing paths and unparseable workflows fail; a key warning does not."""
        return not self.missing and not self.invalid_workflows


def check_setup(
    project_dir: str | Path,
    required_paths: list[str],
    workflow_dir: str | None = ".github/workflows",
    api_key_workflow: str | None = None,
    api_key_secret: str = "ANTHROPIC_API_KEY",
) -> SetupCheckResult:
    """Check the project layout, its workflow files and the AI key reference."""
    project_dir = Path(project_dir)
    result = SetupCheckResult(project_dir=str(project_dir))
    for rel in required_paths:
        if (project_dir / rel).exists():
            result.present.append(rel)
        else:
            logger.warning("Missing: %s", rel)
            result.missing.append(rel)

    if workflow_dir:
        result.workflows = validate_workflows(project_dir, workflow_dir)

    if api_key_workflow:
        result.api_key_workflow = api_key_workflow
        result.api_key_secret = api_key_secret
        result.api_key_check = _check_key_reference(
            project_dir / api_key_workflow, api_key_secret,
        )

    logger.info(
        "Setup check: %d present, %d missing, %d/%d workflows valid, key %s",
        len(result.present), len(result.missing),
        len(result.workflows) - len(result.invalid_workflows), len(result.workflows),
        result.api_key_check,
    )
    return result


def validate_workflows(project_dir: Path, workflow_dir: str) -> list[WorkflowCheck]:
    """Parse every workflow file under workflow_dir as YAML."""
    directory = project_dir / workflow_dir
    if not directory.is_dir():
        return []

    paths = sorted(list(directory.glob("*.yml")) + list(directory.glob("*.yaml")))
    checks = []
    for path in paths:
        rel = path.relative_to(project_dir).as_posix()
        try:
            with open(path, encoding="utf-8") as f:
                yaml.safe_load(f)
        except yaml.YAMLError as e:
            logger.warning("Invalid YAML in %s: %s", rel, e)
            checks.append(WorkflowCheck(path=rel, valid=False, error=str(e).splitlines()[0]))
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Cannot read %s: %s", rel, e)
            checks.append(WorkflowCheck(path=rel, valid=False, error=str(e)))
        else:
            checks.append(WorkflowCheck(path=rel, valid=True))
    return checks


def _check_key_reference(workflow: Path, secret: str) -> str:
    if not workflow.is_file():
        logger.warning("Key workflow not found: %s", workflow)
        return "workflow_missing"
    try:
        text = workflow.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read %s: %s", workflow, e)
        return "workflow_missing"
    return "referenced" if secret in text else "not_referenced"
