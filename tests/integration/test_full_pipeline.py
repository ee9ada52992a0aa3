"""Integration tests for the full resolve -> aggregate -> invoke pipeline.

The Gemini CLI is replaced by an echo script, so the analysis text is the
prompt the binary received.
"""

import re
from pathlib import Path

import pytest

from gemini_orchestrator.config import load_config_from_dict
from gemini_orchestrator.invoker import BINARY_ENV_VAR
from gemini_orchestrator.pipeline import AnalysisPipeline, AnalysisRequest

HEADER = re.compile(r"^=== (.+) ===$", re.MULTILINE)


@pytest.fixture
def echo_env(echo_gemini: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the configured binary at the echo script."""
    monkeypatch.setenv(BINARY_ENV_VAR, str(echo_gemini))
    return echo_gemini


def headers(text: str) -> list[str]:
    """Return the file paths of every block header in text."""
    return HEADER.findall(text)


class TestAliasScenario:
    """An alias over two files, one above the size ceiling."""

    def test_auth_alias(self, project_dir: Path, alias_config: dict, echo_env: Path) -> None:
        """Test two blocks reach the binary with the second truncated."""
        pipeline = AnalysisPipeline(
            config=load_config_from_dict(alias_config), base_dir=project_dir
        )

        outcome = pipeline.run(AnalysisRequest(question="Explain auth", patterns=["@auth"]))

        assert outcome.ok
        received = outcome.result.content
        assert headers(received) == ["src/auth/login.js", "src/auth/session.js"]
        assert "l" * 100 in received
        assert received.endswith("s" * 8000 + "\n... [truncated]")
        assert "s" * 8001 not in received

    def test_alias_equivalent_to_literal(
        self, project_dir: Path, alias_config: dict, echo_env: Path
    ) -> None:
        """Test the alias and its literal globs send identical content."""
        pipeline = AnalysisPipeline(
            config=load_config_from_dict(alias_config), base_dir=project_dir
        )

        via_alias = pipeline.prepare(AnalysisRequest(question="Q", patterns=["@auth"]))
        via_literal = pipeline.prepare(
            AnalysisRequest(question="Q", patterns=["@src/auth/*.js"])
        )

        assert via_alias.prompt == via_literal.prompt


class TestNoMatchScenario:
    """Patterns that match nothing."""

    def test_no_match_still_invokes(self, project_dir: Path, echo_env: Path) -> None:
        """Test a diagnostic is reported and the binary still runs."""
        pipeline = AnalysisPipeline(base_dir=project_dir)

        outcome = pipeline.run(AnalysisRequest(question="Anything?", patterns=["@nope/*.xyz"]))

        assert outcome.ok
        assert [str(d) for d in outcome.diagnostics] == [
            "No files found for pattern: nope/*.xyz"
        ]
        assert headers(outcome.result.content) == []


class TestFileLimitScenario:
    """More matches than max_files."""

    def test_limit_and_marker(self, tmp_path: Path, echo_env: Path) -> None:
        """Test exactly max_files blocks plus a marker naming the rest."""
        root = tmp_path / "many"
        root.mkdir()
        for i in range(12):
            (root / f"f{i:02d}.txt").write_text(f"file {i}\n")
        config = load_config_from_dict({"limits": {"maxFiles": 5}})
        pipeline = AnalysisPipeline(config=config, base_dir=root)

        outcome = pipeline.run(AnalysisRequest(question="Q", patterns=["@*.txt"]))

        received = outcome.result.content
        assert headers(received) == [f"f{i:02d}.txt" for i in range(5)]
        assert received.endswith("... and 7 more files (use more specific patterns)")


class TestDeterminism:
    """Repeated and overlapping patterns."""

    def test_repeated_patterns_idempotent(self, project_dir: Path) -> None:
        """Test repeating patterns yields the same prompt."""
        pipeline = AnalysisPipeline(base_dir=project_dir)

        once = pipeline.prepare(AnalysisRequest(question="Q", patterns=["@src/"]))
        twice = pipeline.prepare(
            AnalysisRequest(question="Q", patterns=["@src/", "@src/", "@src/**/*.py"])
        )

        assert once.prompt == twice.prompt

    def test_consecutive_runs_identical(self, project_dir: Path) -> None:
        """Test the same request produces the same prompt each time."""
        pipeline = AnalysisPipeline(base_dir=project_dir)
        request = AnalysisRequest(question="Q", patterns=["@src/", "@package.json"])

        prompts = {pipeline.prepare(request).prompt for _ in range(3)}

        assert len(prompts) == 1

    def test_ignored_files_excluded(self, project_dir: Path) -> None:
        """Test default ignore globs keep node_modules out of the prompt."""
        pipeline = AnalysisPipeline(base_dir=project_dir)

        prepared = pipeline.prepare(AnalysisRequest(question="Q", patterns=["@**/*.js"]))

        assert headers(prepared.prompt) == ["src/auth/login.js", "src/auth/session.js"]
