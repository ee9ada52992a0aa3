"""Pattern resolution and aggregation entities.

This module contains the values passed between the resolver and the
aggregator:
- Diagnostic: Non-fatal condition reported inline (no match, read error, ...)
- ResolvedPatterns: Ordered, deduplicated paths plus diagnostics
- FileRecord: One read file, possibly truncated or failed
- AggregatedContent: Serialized content block plus the records behind it
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class DiagnosticKind(Enum):
    """Kind of non-fatal condition."""

    NO_MATCH = "no_match"
    ALIAS_EXPANDED = "alias_expanded"
    READ_ERROR = "read_error"
    TRUNCATED = "truncated"
    FILES_DROPPED = "files_dropped"


@dataclass(frozen=True)
class Diagnostic:
    """Non-fatal condition folded into the output instead of aborting.

    Attributes:
        kind: Diagnostic kind
        message: Human-readable description
        pattern: Pattern token or path the diagnostic refers to
    """

    kind: DiagnosticKind
    message: str
    pattern: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "kind": self.kind.value,
            "message": self.message,
            "pattern": self.pattern,
        }

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class FileRecord:
    """Content of one matched file.

    Attributes:
        path: Path as produced by the resolver
        content: File content (possibly truncated) or an error annotation
        truncated: Whether content was cut at the per-file ceiling
        read_error: Error message when the file could not be read
    """

    path: str
    content: str
    truncated: bool = False
    read_error: str | None = None

    @property
    def header(self) -> str:
        """Block header used in the serialized content."""
        return f"=== {self.path} ==="

    def render(self) -> str:
        """Render as a ``header\\ncontent`` block."""
        return f"{self.header}\n{self.content}"


@dataclass
class ResolvedPatterns:
    """Result of resolving pattern tokens against the filesystem."""

    paths: list[str] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.paths)


@dataclass
class AggregatedContent:
    """Serialized content block and the records it was built from.

    Attributes:
        records: One record per retained path, in resolver order
        dropped_count: Number of paths cut by the max_files limit
        text: Serialized block (empty when nothing was matched)
        diagnostics: Truncation, read-error and dropped-file diagnostics
    """

    records: list[FileRecord] = field(default_factory=list)
    dropped_count: int = 0
    text: str = ""
    diagnostics: list[Diagnostic] = field(default_factory=list)

    @property
    def truncated_count(self) -> int:
        """Number of records cut at the per-file ceiling."""
        return sum(1 for r in self.records if r.truncated)

    @property
    def is_empty(self) -> bool:
        return not self.text
