"""Analysis pipeline: resolve -> aggregate -> assemble -> invoke.

Every front-end (CLI, MCP server) runs the same sequence through
AnalysisPipeline and differs only in how it frames input and output.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from gemini_orchestrator.aggregator import ContentAggregator
from gemini_orchestrator.config import DefaultPatternStrategy, OrchestratorConfig
from gemini_orchestrator.errors import PatternsRequiredError
from gemini_orchestrator.invoker import ProcessInvoker
from gemini_orchestrator.models import (
    AggregatedContent,
    Diagnostic,
    InvocationResult,
    ResolvedPatterns,
)
from gemini_orchestrator.prompts import assemble_prompt, get_template
from gemini_orchestrator.resolver import PatternResolver

logger = logging.getLogger(__name__)

PATTERNS_REQUIRED_GUIDANCE = (
    "No file patterns supplied. Pass one or more patterns such as "
    "@src/ @package.json or @src/**/*.py, or an alias defined in the config "
    "(e.g. @auth). Set defaultPatternStrategy to use_defaults to fall back to "
    "the configured default patterns."
)


@dataclass
class AnalysisRequest:
    """Input from a front-end.

    Attributes:
        question: Free-text question
        template: Template key
        patterns: Ordered pattern tokens (globs or @aliases)
        context: Extra context appended after the question
    """

    question: str | None = None
    template: str | None = None
    patterns: list[str] = field(default_factory=list)
    context: str | None = None


@dataclass
class PreparedPrompt:
    """Everything computed before the subprocess is spawned."""

    prompt: str
    patterns: list[str]
    resolved: ResolvedPatterns
    aggregated: AggregatedContent

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return [*self.resolved.diagnostics, *self.aggregated.diagnostics]


@dataclass
class AnalysisOutcome:
    """Pipeline output: the invocation result plus inline diagnostics."""

    result: InvocationResult
    prepared: PreparedPrompt

    @property
    def diagnostics(self) -> list[Diagnostic]:
        return self.prepared.diagnostics

    @property
    def ok(self) -> bool:
        return self.result.ok

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        data: dict[str, Any] = {
            "patterns": self.prepared.patterns,
            "files": [r.path for r in self.prepared.aggregated.records],
            "dropped_files": self.prepared.aggregated.dropped_count,
            "prompt_length": len(self.prepared.prompt),
            "diagnostics": [d.to_dict() for d in self.diagnostics],
        }
        data.update(self.result.to_dict())
        return data


class AnalysisPipeline:
    """Runs one analysis request end to end.

    Usage:
        pipeline = AnalysisPipeline(config)
        outcome = pipeline.run(AnalysisRequest(question="...", patterns=["@src/"]))
    """

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        base_dir: Path | None = None,
        invoker: ProcessInvoker | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Orchestrator configuration (defaults if None)
            base_dir: Directory patterns are resolved against (defaults to cwd)
            invoker: Invoker to use instead of one built from config
        """
        self.config = config or OrchestratorConfig()
        self.base_dir = Path(base_dir) if base_dir is not None else Path.cwd()
        self.resolver = PatternResolver(
            aliases=self.config.aliases,
            ignore=self.config.ignore,
            base_dir=self.base_dir,
        )
        self.aggregator = ContentAggregator(self.config.limits, base_dir=self.base_dir)
        self.invoker = invoker

    def select_patterns(self, patterns: list[str]) -> list[str]:
        """Apply the default pattern strategy to the caller's patterns.

        Raises:
            PatternsRequiredError: If no patterns were given and explicit
                patterns are required
        """
        explicit = [p for p in patterns if p and p.strip()]
        if explicit:
            return explicit

        if self.config.default_pattern_strategy is DefaultPatternStrategy.USE_DEFAULTS:
            logger.info(
                "No patterns supplied, using defaults: %s",
                " ".join(self.config.default_patterns),
            )
            return list(self.config.default_patterns)

        raise PatternsRequiredError(PATTERNS_REQUIRED_GUIDANCE)

    def prepare(self, request: AnalysisRequest) -> PreparedPrompt:
        """Resolve, aggregate and assemble without invoking.

        Raises:
            PatternsRequiredError: See select_patterns
            UnknownTemplateError: If the template key is not registered
        """
        if request.template:
            # Fail before touching the filesystem
            get_template(request.template)

        patterns = self.select_patterns(request.patterns)

        logger.info("Processing file inclusions: %s", " ".join(patterns))
        resolved = self.resolver.resolve(patterns)
        aggregated = self.aggregator.aggregate(resolved.paths)
        logger.info(
            "Aggregated %d files (%d truncated, %d dropped)",
            len(aggregated.records),
            aggregated.truncated_count,
            aggregated.dropped_count,
        )

        prompt = assemble_prompt(
            content=aggregated.text,
            question=request.question,
            template=request.template,
            context=request.context,
        )
        return PreparedPrompt(
            prompt=prompt,
            patterns=patterns,
            resolved=resolved,
            aggregated=aggregated,
        )

    def run(
        self,
        request: AnalysisRequest,
        timeout: float | None = None,
    ) -> AnalysisOutcome:
        """Run the full pipeline.

        Args:
            request: Analysis request
            timeout: Override for the configured direct-call timeout

        Returns:
            AnalysisOutcome (process failures are carried in outcome.result)

        Raises:
            PatternsRequiredError: See select_patterns
            UnknownTemplateError: If the template key is not registered
        """
        prepared = self.prepare(request)

        invoker = self.invoker or ProcessInvoker.from_config(
            self.config.invoker, timeout=timeout
        )
        logger.info("Calling Gemini...")
        result = invoker.invoke(prepared.prompt)

        return AnalysisOutcome(result=result, prepared=prepared)
