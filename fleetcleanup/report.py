import sys
from typing import Optional, TextIO

from .cleanup import CleanupResult
from .logger import get_logger

logger = get_logger()


def format_summary(result: CleanupResult) -> str:
    if result.dry_run:
        return f"Found {result.jobs} jobs, {result.obsolete_count} obsolete units can be removed"
    return f"Found {result.jobs} jobs, removed {result.removed_count} obsolete units"


def report_summary(result: CleanupResult, stream: Optional[TextIO] = None) -> None:
    """Print the one-line summary of a cleanup pass."""
    print(format_summary(result), file=stream or sys.stdout)
    logger.debug(
        "Cleanup summary",
        jobs=result.jobs,
        obsolete=result.obsolete_count,
        removed=result.removed_count,
        already_gone=len(result.already_gone),
        dry_run=result.dry_run,
    )
