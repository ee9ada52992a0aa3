"""MCP server exposing orchestrated Gemini analysis.

The server is a thin front-end: it normalizes the tool arguments, adds scope
and reflection guidance to the question, then shells out to the direct CLI
(``python -m gemini_orchestrator analyze --format json``) under the
orchestrated timeout and renders the result as a Markdown report.

Usage:
    # Add to an MCP client config:
    {
        "mcpServers": {
            "gemini-cli-orchestrator": {
                "command": "python",
                "args": ["-m", "gemini_orchestrator.mcp_server"]
            }
        }
    }

    # Or run directly:
    gemini-orchestrator serve
"""

import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from gemini_orchestrator import __version__
from gemini_orchestrator.cli import EXIT_TIMEOUT
from gemini_orchestrator.config import OrchestratorConfig, load_config
from gemini_orchestrator.invoker import KILL_GRACE_SECONDS, ProcessInvoker
from gemini_orchestrator.models import InvocationResult, ProcessFailure
from gemini_orchestrator.prompts import TEMPLATE_NAMES
from gemini_orchestrator.resolver import INCLUDE_PREFIX
from gemini_orchestrator.templates import ReportRenderer
from gemini_orchestrator.utils.logging import configure_from_cli

logger = logging.getLogger(__name__)

SERVER_NAME = "gemini-cli-orchestrator"
TOOL_NAME = "analyze_with_gemini"

# Longer than the direct CLI's own grace so it can stop Gemini first
ORCHESTRATED_KILL_GRACE_SECONDS = KILL_GRACE_SECONDS + 3.0

SETUP_GUIDANCE = """Make sure:
1. Gemini CLI is installed: npm install -g @google/gemini-cli
2. Authenticated: gemini auth login
3. In a valid project directory"""

REFLECTION_GUIDANCE = """After your analysis, please reflect on:
1. What patterns or issues require immediate attention?
2. What insights emerge from having access to the full codebase context?
3. What specific next steps should the requesting agent take?"""

TOOL_DESCRIPTION = """Use Gemini's large context window for comprehensive codebase analysis.

If you're unfamiliar with the codebase, explore its structure first, then
select the files relevant to your analysis goal. Use broad patterns (@src/)
for discovery and specific files for focused analysis. Aliases defined in
.gemini-direct.json (e.g. @auth) expand to their configured globs."""


class ToolExecutionError(Exception):
    """Raised when the orchestrated analysis fails; reported as an MCP tool error."""


def process_file_patterns(files: str, config: OrchestratorConfig) -> list[str]:
    """Split the ``files`` argument into deduplicated ``@``-prefixed patterns.

    An empty argument falls back to the configured default patterns.
    """
    patterns = [f for f in files.split() if f.strip()]
    if not patterns:
        patterns = list(config.default_patterns)

    normalized = [
        p if p.startswith(INCLUDE_PREFIX) else f"{INCLUDE_PREFIX}{p}" for p in patterns
    ]
    return list(dict.fromkeys(normalized))


def assess_complexity(question: str, pattern_count: int) -> str:
    """Classify task complexity from the question and pattern count."""
    query = question.lower()

    if pattern_count > 10:
        return "High - Multiple files/systems"
    if "architecture" in query or "entire" in query or "whole" in query:
        return "High - System-wide analysis"
    if "cross-file" in query or "across" in query:
        return "High - Cross-file analysis"
    if pattern_count > 3:
        return "Medium - Cross-file analysis"
    return "Low - Focused analysis"


def enhance_prompt(question: str, patterns: list[str]) -> str:
    """Append scope context (for large analyses) and reflection guidance."""
    prompt = question

    if len(patterns) > 5:
        prompt += (
            f"\n\nContext: This is a large-scale analysis across {len(patterns)} file "
            "patterns. Focus on high-level patterns and architectural insights that "
            "would be difficult to see with limited context."
        )

    return f"{prompt}\n\n{REFLECTION_GUIDANCE}"


def build_direct_command(
    question: str,
    patterns: list[str],
    template: str | None = None,
    config_path: Path | None = None,
) -> list[str]:
    """Build the direct CLI command line for an orchestrated call."""
    command = [sys.executable, "-m", "gemini_orchestrator", "--quiet"]
    if config_path is not None:
        command.extend(["--config", str(config_path)])
    command.extend(["analyze", "--format", "json"])
    if template:
        command.extend(["--template", template])
    # "--" keeps a question starting with "-" from being read as an option
    command.append("--")
    command.append(question)
    command.extend(patterns)
    return command


def _load_envelope(stdout: str) -> dict[str, Any] | None:
    try:
        envelope = json.loads(stdout)
    except json.JSONDecodeError:
        return None
    return envelope if isinstance(envelope, dict) else None


def parse_direct_output(stdout: str) -> tuple[str, list[str]]:
    """Extract analysis text and diagnostics from the direct CLI's JSON envelope.

    Output that is not a JSON envelope is returned as-is.
    """
    envelope = _load_envelope(stdout)
    if envelope is None or "analysis" not in envelope:
        return stdout, []
    return str(envelope["analysis"]), [str(d) for d in envelope.get("diagnostics", [])]


def describe_failure(result: InvocationResult) -> tuple[str, list[str]]:
    """Return the error message and diagnostics for a failed direct call.

    On failure the direct CLI prints an ``{"error", "status", "diagnostics"}``
    envelope to stdout and exits 124 when Gemini timed out.
    """
    if not isinstance(result, ProcessFailure):
        return result.error_message(), []

    envelope = _load_envelope(result.stdout) or {}
    diagnostics = [str(d) for d in envelope.get("diagnostics", [])]
    if envelope.get("error"):
        return str(envelope["error"]), diagnostics
    if result.exit_code == EXIT_TIMEOUT:
        return "Gemini timed out", diagnostics
    return result.error_message(), diagnostics


class GeminiOrchestrator:
    """Runs orchestrated analyses for the MCP tool."""

    def __init__(self, config: OrchestratorConfig | None = None, cwd: Path | None = None) -> None:
        self.config = config or OrchestratorConfig()
        self.cwd = cwd or Path.cwd()
        self.renderer = ReportRenderer()

    def analyze(self, question: str, files: str = "", template: str | None = None) -> str:
        """Run one orchestrated analysis and return the Markdown report.

        Raises:
            ToolExecutionError: If the direct CLI fails, times out or cannot start
        """
        if not question or not question.strip():
            raise ToolExecutionError("question is required")
        if template and template not in TEMPLATE_NAMES:
            raise ToolExecutionError(
                f"Unknown template: {template}. Valid: {', '.join(TEMPLATE_NAMES)}"
            )

        patterns = process_file_patterns(files, self.config)
        complexity = assess_complexity(question, len(patterns))
        enhanced = enhance_prompt(question, patterns)

        logger.info("Analyzing with patterns: %s", " ".join(patterns))
        logger.info("Task complexity: %s", complexity)

        invoker = ProcessInvoker(
            command=build_direct_command(enhanced, patterns, template, self.config.config_path),
            timeout=self.config.invoker.orchestrated_timeout,
            cwd=str(self.cwd),
            kill_grace=ORCHESTRATED_KILL_GRACE_SECONDS,
        )
        result = invoker.invoke("")

        if not result.ok:
            message, diagnostics = describe_failure(result)
            sections = [f"ERROR: {message}"]
            if diagnostics:
                sections.append("\n".join(f"> {d}" for d in diagnostics))
            sections.append(SETUP_GUIDANCE)
            raise ToolExecutionError("\n\n".join(sections))

        analysis, diagnostics = parse_direct_output(result.content)
        return self.renderer.render_report(
            question=question,
            patterns=patterns,
            analysis=analysis,
            complexity=complexity,
            diagnostics=diagnostics,
        )


def create_server(orchestrator: GeminiOrchestrator | None = None) -> Server:
    """Create and configure the MCP server."""
    orchestrator = orchestrator or GeminiOrchestrator(load_config())
    server = Server(SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name=TOOL_NAME,
                description=TOOL_DESCRIPTION,
                inputSchema={
                    "type": "object",
                    "properties": {
                        "question": {
                            "type": "string",
                            "description": "Natural language question or analysis request",
                        },
                        "files": {
                            "type": "string",
                            "description": (
                                'File patterns like "@src/ @package.json" or specific paths. '
                                "Leave empty to use the configured default patterns."
                            ),
                        },
                        "template": {
                            "type": "string",
                            "enum": TEMPLATE_NAMES,
                            "description": "Optional: Use predefined analysis template",
                        },
                    },
                    "required": ["question"],
                },
            )
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool calls. Raised errors are returned to the client with isError set."""
        if name != TOOL_NAME:
            raise ToolExecutionError(f"Unknown tool: {name}")

        report = await asyncio.to_thread(
            orchestrator.analyze,
            arguments.get("question", ""),
            arguments.get("files") or "",
            arguments.get("template"),
        )
        return [TextContent(type="text", text=report)]

    return server


async def serve(config: OrchestratorConfig | None = None) -> None:
    """Run the MCP server over stdio."""
    server = create_server(GeminiOrchestrator(config or load_config()))
    logger.info("Gemini CLI Orchestrator MCP server started")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run() -> None:
    """Entry point for the gemini-orchestrator-mcp command."""
    configure_from_cli()
    asyncio.run(serve())


if __name__ == "__main__":
    run()
