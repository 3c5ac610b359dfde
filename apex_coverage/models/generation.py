"""Test generation data structures."""

from __future__ import annotations

from typing import Literal, Optional, Union

from pydantic import BaseModel, Field


class GenerationSuccess(BaseModel):
    kind: Literal["success"] = "success"
    text: str


class GenerationFailure(BaseModel):
    kind: Literal["failure"] = "failure"
    reason: str


GenerationOutcome = Union[GenerationSuccess, GenerationFailure]


class UnitGenerationResult(BaseModel):
    unit_name: str
    unit_path: str
    status: str = "generated"  # generated, generation_failed, write_failed, aborted, planned
    test_path: Optional[str] = None
    meta_path: Optional[str] = None
    error: Optional[str] = None
    duration_seconds: float = 0.0


class GenerationSummary(BaseModel):
    attempted: int = 0
    generated: int = 0
    failed: int = 0
    aborted: int = 0
    dry_run: bool = False
    duration_seconds: float = 0.0
    results: list[UnitGenerationResult] = Field(default_factory=list)

    @property
    def generated_units(self) -> list[str]:
        return [r.unit_name for r in self.results if r.status == "generated"]

    @property
    def failed_units(self) -> list[UnitGenerationResult]:
        return [
            r for r in self.results
            if r.status in ("generation_failed", "write_failed")
        ]

    @property
    def planned_units(self) -> list[UnitGenerationResult]:
        return [r for r in self.results if r.status == "planned"]
