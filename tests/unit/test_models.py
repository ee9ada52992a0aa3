"""Unit tests for data models."""

import pytest

from gemini_orchestrator.models import (
    AggregatedContent,
    Diagnostic,
    DiagnosticKind,
    FileRecord,
    InvocationState,
    InvocationStatus,
    ProcessFailure,
    ResolvedPatterns,
    SpawnError,
    Success,
    Timeout,
)


class TestDiagnostic:
    """Tests for Diagnostic."""

    def test_str_is_message(self) -> None:
        """Test str() returns the message."""
        diagnostic = Diagnostic(DiagnosticKind.NO_MATCH, "No files found for pattern: x", "x")

        assert str(diagnostic) == "No files found for pattern: x"

    def test_to_dict(self) -> None:
        """Test serialization."""
        diagnostic = Diagnostic(DiagnosticKind.TRUNCATED, "Truncated a.py", "a.py")

        assert diagnostic.to_dict() == {
            "kind": "truncated",
            "message": "Truncated a.py",
            "pattern": "a.py",
        }


class TestFileRecord:
    """Tests for FileRecord."""

    def test_render(self) -> None:
        """Test a record renders as header plus content."""
        record = FileRecord(path="src/a.py", content="x = 1")

        assert record.header == "=== src/a.py ==="
        assert record.render() == "=== src/a.py ===\nx = 1"


class TestContainers:
    """Tests for ResolvedPatterns and AggregatedContent."""

    def test_resolved_len(self) -> None:
        """Test len() counts paths."""
        assert len(ResolvedPatterns(paths=["a", "b"])) == 2

    def test_aggregated_counts(self) -> None:
        """Test truncated_count and is_empty."""
        aggregated = AggregatedContent(
            records=[
                FileRecord("a", "x", truncated=True),
                FileRecord("b", "y"),
            ],
            text="...",
        )

        assert aggregated.truncated_count == 1
        assert not aggregated.is_empty
        assert AggregatedContent().is_empty


class TestInvocationResults:
    """Tests for the invocation result variants."""

    def test_success(self) -> None:
        """Test Success carries content and no error."""
        result = Success("analysis")

        assert result.ok is True
        assert result.status is InvocationStatus.SUCCESS
        assert result.error_message() is None
        assert result.to_dict() == {"status": "success", "content": "analysis"}

    def test_process_failure(self) -> None:
        """Test ProcessFailure message includes code and stderr."""
        result = ProcessFailure(exit_code=3, stderr="quota exceeded\n")

        assert result.ok is False
        assert result.error_message() == "Gemini failed (3): quota exceeded"
        assert result.to_dict()["exit_code"] == 3

    def test_timeout(self) -> None:
        """Test Timeout message formats the deadline."""
        result = Timeout(timeout_seconds=120.0)

        assert result.status is InvocationStatus.TIMEOUT
        assert result.error_message() == "Timeout after 120s"

    def test_spawn_error(self) -> None:
        """Test SpawnError is distinct from ProcessFailure."""
        result = SpawnError("No such file or directory")

        assert result.status is InvocationStatus.SPAWN_ERROR
        assert result.error_message() == "Failed to start Gemini: No such file or directory"

    @pytest.mark.parametrize(
        ("state", "terminal"),
        [
            (InvocationState.IDLE, False),
            (InvocationState.SPAWNED, False),
            (InvocationState.EXITED, True),
            (InvocationState.TIMED_OUT, True),
            (InvocationState.SPAWN_FAILED, True),
        ],
    )
    def test_state_terminal(self, state: InvocationState, terminal: bool) -> None:
        """Test which lifecycle states are terminal."""
        assert state.is_terminal is terminal
