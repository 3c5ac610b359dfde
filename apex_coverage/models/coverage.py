"""Coverage report data structures."""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, computed_field


class SourceUnit(BaseModel):
    """One implementation file eligible for test coverage."""

    path: str  # relative to the scan root, posix separators
    name: str
    extension: str = ".cls"

    def expected_test_name(self, suffix: str) -> str:
        return f"{self.name}{suffix}"

    def expected_test_path(self, root: Path, suffix: str) -> Path:
        """Co-located path the unit's test file must have."""
        directory = (root / self.path).parent
        return directory / f"{self.expected_test_name(suffix)}{self.extension}"


class UnitCoverage(BaseModel):
    unit: SourceUnit
    covered: bool = False
    test_path: Optional[str] = None


class CoverageReport(BaseModel):
    """Aggregate result of one scan.

    Only the per-unit classification is stored; totals and the
    percentage are derived from it.
    """

    root: str
    test_suffix: str = "Test"
    extension: str = ".cls"
    units: list[UnitCoverage] = Field(default_factory=list)

    @computed_field
    @property
    def total(self) -> int:
        return len(self.units)

    @computed_field
    @property
    def covered(self) -> int:
        return sum(1 for u in self.units if u.covered)

    @computed_field
    @property
    def uncovered(self) -> list[str]:
        return [u.unit.name for u in self.units if not u.covered]

    @computed_field
    @property
    def percentage(self) -> Optional[int]:
        """Floor of covered * 100 / total, or None when nothing was found."""
        if self.total == 0:
            return None
        return self.covered * 100 // self.total

    @property
    def is_empty(self) -> bool:
        return self.total == 0

    def uncovered_units(self) -> list[SourceUnit]:
        return [u.unit for u in self.units if not u.covered]


class CoverageStatus(BaseModel):
    """Pass/fail decision for a report under a threshold policy."""

    passed: bool
    threshold: int
    reason: str = ""
