"""Content aggregation under file-count and per-file size limits.

Serialized output is a sequence of ``=== path ===\\ncontent`` blocks joined
by a blank line, in resolver order, followed by a single marker when paths
were dropped by the file limit. Consumers may split on the headers, so the
header format and both markers are part of the output contract.
"""

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from gemini_orchestrator.config import LimitsConfig
from gemini_orchestrator.models import (
    AggregatedContent,
    Diagnostic,
    DiagnosticKind,
    FileRecord,
)

logger = logging.getLogger(__name__)

TRUNCATION_MARKER = "\n... [truncated]"
BLOCK_SEPARATOR = "\n\n"
MAX_READ_WORKERS = 8


def dropped_files_marker(count: int) -> str:
    """Marker appended when the file limit cut paths from the list."""
    return f"... and {count} more files (use more specific patterns)"


def truncate_content(content: str, max_chars: int) -> tuple[str, bool]:
    """Cut content at max_chars and append the truncation marker.

    Args:
        content: Full file content
        max_chars: Character ceiling

    Returns:
        Tuple of (content, truncated flag)
    """
    if len(content) <= max_chars:
        return content, False
    return content[:max_chars] + TRUNCATION_MARKER, True


class ContentAggregator:
    """Reads matched files and serializes them into one annotated block.

    Usage:
        aggregator = ContentAggregator(config.limits)
        aggregated = aggregator.aggregate(resolved.paths)
    """

    def __init__(
        self,
        limits: LimitsConfig,
        base_dir: Path | None = None,
        max_workers: int = MAX_READ_WORKERS,
    ) -> None:
        """Initialize the aggregator.

        Args:
            limits: File count and size limits
            base_dir: Directory relative paths are read from (defaults to cwd)
            max_workers: Thread pool size for concurrent reads
        """
        self.limits = limits
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.max_workers = max_workers

    def aggregate(self, paths: Sequence[str]) -> AggregatedContent:
        """Read, truncate and serialize the given paths.

        Args:
            paths: Resolved paths in deterministic order

        Returns:
            AggregatedContent with records in the same order as paths
        """
        max_files = self.limits.max_files
        retained = list(paths[:max_files])
        dropped = max(len(paths) - max_files, 0)

        aggregated = AggregatedContent(dropped_count=dropped)
        if retained:
            # map() yields in submission order regardless of completion order
            workers = min(self.max_workers, len(retained))
            with ThreadPoolExecutor(max_workers=workers) as pool:
                aggregated.records = list(pool.map(self.read_file, retained))

        for record in aggregated.records:
            if record.read_error is not None:
                aggregated.diagnostics.append(
                    Diagnostic(
                        DiagnosticKind.READ_ERROR,
                        f"Could not read {record.path}: {record.read_error}",
                        pattern=record.path,
                    )
                )
            elif record.truncated:
                aggregated.diagnostics.append(
                    Diagnostic(
                        DiagnosticKind.TRUNCATED,
                        f"Truncated {record.path} to {self.limits.max_chars_per_file} characters",
                        pattern=record.path,
                    )
                )

        blocks = [record.render() for record in aggregated.records]
        if dropped:
            logger.warning("File limit %d reached, dropped %d files", max_files, dropped)
            blocks.append(dropped_files_marker(dropped))
            aggregated.diagnostics.append(
                Diagnostic(
                    DiagnosticKind.FILES_DROPPED,
                    f"{dropped} files dropped by the {max_files}-file limit",
                )
            )

        aggregated.text = BLOCK_SEPARATOR.join(blocks)
        return aggregated

    def read_file(self, path: str) -> FileRecord:
        """Read one file into a FileRecord.

        Read failures are stored on the record instead of raised so one bad
        file does not abort the batch.

        Args:
            path: Path relative to base_dir, or absolute

        Returns:
            FileRecord (never raises for I/O errors)
        """
        full_path = Path(path)
        if not full_path.is_absolute():
            full_path = self.base_dir / full_path

        try:
            content = full_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            message = e.strerror or str(e)
            logger.warning("Failed to read %s: %s", path, message)
            return FileRecord(
                path=path,
                content=f"[Error: {message}]",
                read_error=message,
            )

        content, truncated = truncate_content(content, self.limits.max_chars_per_file)
        return FileRecord(path=path, content=content, truncated=truncated)
