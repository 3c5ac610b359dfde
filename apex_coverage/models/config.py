"""Configuration models for the coverage tooling."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


DEFAULT_CONFIG_PATH = "apex-coverage.json"


class CoverageConfig(BaseModel):
    # CLI overrides are assigned after loading and must pass the same checks
    model_config = ConfigDict(validate_assignment=True)

    # Source tree
    source_root: str = "force-app/main/default/classes"
    test_suffix: str = "Test"
    extension: str = ".cls"

    # Status policy
    coverage_threshold: int = Field(default=75, ge=0, le=100)
    require_full_coverage: bool = True

    # AI settings
    ai_model: str = "claude-opus-4-6"
    ai_max_tokens: int = 8000

    # Generation dispatch
    generation_timeout_seconds: float = Field(default=120.0, gt=0)
    max_parallel_generations: int = Field(default=3, ge=1)

    # Generated sidecar metadata
    metadata_api_version: str = "59.0"
    metadata_status: str = "Active"

    # Reporting
    report_formats: list[str] = Field(default_factory=lambda: ["markdown", "json"])
    report_output_dir: str = "./coverage-reports"

    # Setup checking
    required_paths: list[str] = Field(
        default_factory=lambda: [
            "sfdx-project.json",
            "force-app/main/default/classes",
            ".github/workflows",
        ]
    )
    workflow_dir: str = ".github/workflows"
    # Workflow that must reference the AI key secret; None skips the check
    api_key_workflow: Optional[str] = ".github/workflows/test-generator.yml"
    api_key_secret: str = "ANTHROPIC_API_KEY"

    @field_validator("test_suffix")
    @classmethod
    def suffix_not_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("test_suffix must not be empty")
        return v

    @field_validator("extension")
    @classmethod
    def extension_has_dot(cls, v: str) -> str:
        if not v.startswith(".") or len(v) < 2:
            raise ValueError(f"extension must look like '.cls', got {v!r}")
        return v

    @classmethod
    def load(cls, path: str | Path) -> "CoverageConfig":
        """Load config from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        with open(path) as f:
            data = json.load(f)
        return cls(**data)

    @classmethod
    def load_or_default(cls, path: str | Path) -> "CoverageConfig":
        """Load config if the file exists, otherwise return defaults."""
        try:
            return cls.load(path)
        except FileNotFoundError:
            return cls()

    def save(self, path: str | Path) -> None:
        """Save config to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            json.dump(self.model_dump(), f, indent=2)
