"""Coverage scanner: pairs Apex classes with their co-located test classes."""

from __future__ import annotations

import logging
import os
import stat
from pathlib import Path

from apex_coverage.errors import SourceAccessDenied, SourceRootNotFound
from apex_coverage.models.coverage import CoverageReport, SourceUnit, UnitCoverage

logger = logging.getLogger(__name__)


def scan_tree(
    root: str | Path,
    test_suffix: str = "Test",
    extension: str = ".cls",
) -> CoverageReport:
    """Scan a source tree and classify every implementation unit.

    Walks ``root`` recursively without following symlinks. Files named
    ``<base><extension>`` are units unless ``base`` ends with
    ``test_suffix``; a unit is covered when ``<base><test_suffix><extension>``
    exists in the same directory. Matching is case-sensitive.

    Raises SourceRootNotFound if ``root`` is missing or not a directory and
    SourceAccessDenied if any directory in the tree cannot be listed or any
    entry in it cannot be examined.
    """
    if not test_suffix:
        raise ValueError("test_suffix must not be empty")

    root = Path(root)
    if not root.is_dir():
        logger.error("Source root not found: %s", root)
        raise SourceRootNotFound(root)

    logger.info("Scanning %s for *%s files (test suffix %r)", root, extension, test_suffix)

    units: list[UnitCoverage] = []
    for dirpath, filenames in _walk_regular_files(root):
        for filename in filenames:
            if not filename.endswith(extension):
                continue
            base = filename[: -len(extension)]
            if not base or base.endswith(test_suffix):
                continue

            rel_path = (dirpath / filename).relative_to(root).as_posix()
            unit = SourceUnit(path=rel_path, name=base, extension=extension)
            test_name = f"{base}{test_suffix}{extension}"
            covered = test_name in filenames
            test_path = (dirpath / test_name).relative_to(root).as_posix() if covered else None
            logger.debug("  %s: %s", rel_path, "covered" if covered else "uncovered")
            units.append(UnitCoverage(unit=unit, covered=covered, test_path=test_path))

    units.sort(key=lambda u: u.unit.path)
    report = CoverageReport(
        root=str(root),
        test_suffix=test_suffix,
        extension=extension,
        units=units,
    )
    if report.is_empty:
        logger.info("Scan complete: no %s units found under %s", extension, root)
    else:
        logger.info(
            "Scan complete: %d units, %d covered (%d%%)",
            report.total, report.covered, report.percentage,
        )
    return report


def _walk_regular_files(root: Path):
    """Yield (directory, set of regular file names) for every directory under root.

    Symlinks are skipped entirely; any listing or stat error propagates.
    """
    def _raise(err: OSError) -> None:
        path = err.filename or root
        logger.error("Failed to list %s: %s", path, err)
        raise SourceAccessDenied(path, err.strerror or str(err)) from err

    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise, followlinks=False):
        current = Path(dirpath)
        dirnames.sort()
        regular = {name for name in filenames if _is_regular_file(current, name)}
        yield current, regular


def _is_regular_file(directory: Path, name: str) -> bool:
    # lstat so a symlink is never mistaken for its target
    path = directory / name
    try:
        mode = os.lstat(path).st_mode
    except OSError as err:
        logger.error("Failed to stat %s: %s", path, err)
        raise SourceAccessDenied(directory, f"{name}: {err.strerror or err}") from err
    return stat.S_ISREG(mode)
