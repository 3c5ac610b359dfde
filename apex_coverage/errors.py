"""Error types raised by the scanner and the generation dispatch."""

from __future__ import annotations

from pathlib import Path


class ScanError(Exception):
    """A scan could not complete; no report is produced."""

    def __init__(self, path: str | Path, message: str):
        self.path = str(path)
        super().__init__(message)


class SourceRootNotFound(ScanError):
    def __init__(self, path: str | Path):
        super().__init__(path, f"Source root not found: {path}")


class SourceAccessDenied(ScanError):
    def __init__(self, path: str | Path, detail: str = ""):
        message = f"Cannot read directory: {path}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(path, message)


class GenerationError(Exception):
    """Per-unit failure during test generation."""

    status = "generation_failed"


class GenerationFailed(GenerationError):
    status = "generation_failed"


class WriteFailed(GenerationError):
    status = "write_failed"


class AIClientUnavailable(Exception):
    """Test generation was requested but no AI client or writer is configured."""
