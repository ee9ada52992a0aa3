"""Gemini Orchestrator CLI interface.

Commands:
- analyze: Aggregate matched files and run them through the Gemini CLI
- check: Validate that the analysis binary can be found
- init: Write a default .gemini-direct.json
- serve: Run the MCP server over stdio (--guide for the collaboration guide)

Global options:
- --config: Path to configuration file
- --verbose: Enable verbose output with timestamps
- --quiet: Suppress info messages
- --ci: JSON log lines
- --version: Show version and exit
"""

import signal
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated

import typer

from gemini_orchestrator import __version__
from gemini_orchestrator.config import OrchestratorConfig, load_config
from gemini_orchestrator.errors import ConfigError
from gemini_orchestrator.utils.logging import configure_from_cli, get_logger

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_GUIDANCE = 2
EXIT_TIMEOUT = 124

app = typer.Typer(
    name="gemini-orchestrator",
    help="Bounded codebase analysis through the Gemini CLI",
    add_completion=False,
    no_args_is_help=True,
)

_logger = get_logger()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"gemini-orchestrator {__version__}")
        raise typer.Exit()


def _get_config(ctx: typer.Context) -> OrchestratorConfig:
    return ctx.obj if isinstance(ctx.obj, OrchestratorConfig) else OrchestratorConfig()


def _raise_exit(signum: int, frame: object) -> None:
    raise SystemExit(128 + signum)


@contextmanager
def exit_on_sigterm() -> Iterator[None]:
    """Turn SIGTERM into SystemExit while the block runs.

    A parent that times out an orchestrated call sends SIGTERM; raising here
    lets ProcessInvoker stop the Gemini process before this one exits.
    """
    if threading.current_thread() is not threading.main_thread():
        yield
        return

    previous = signal.signal(signal.SIGTERM, _raise_exit)
    try:
        yield
    finally:
        signal.signal(signal.SIGTERM, previous)


def split_arguments(arguments: list[str]) -> tuple[str | None, list[str]]:
    """Split positional arguments into (question, patterns).

    Tokens starting with ``@`` are patterns. The first other token is the
    question; any further plain tokens are treated as patterns too.
    """
    question: str | None = None
    patterns: list[str] = []

    for arg in arguments:
        if arg.startswith("@"):
            patterns.append(arg)
        elif question is None:
            question = arg
        else:
            patterns.append(arg)

    return question, patterns


@app.callback()
def main(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Path to configuration file",
            exists=True,
            dir_okay=False,
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output with timestamps"),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option("--quiet", "-q", help="Suppress info messages (warnings and errors only)"),
    ] = False,
    ci: Annotated[
        bool,
        typer.Option("--ci", help="Enable CI mode with JSON log lines"),
    ] = False,
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Gemini Orchestrator - feed matched source files to the Gemini CLI.

    Patterns use @ syntax: @src/main.py, @src/, @**/*.ts, or an alias from
    the config file such as @auth.
    """
    configure_from_cli(verbose=verbose, quiet=quiet, ci=ci)

    try:
        ctx.obj = load_config(config_path=config)
        if ctx.obj.config_path:
            _logger.debug(f"Loaded config from: {ctx.obj.config_path}")
    except FileNotFoundError as e:
        _logger.error(str(e))
        raise typer.Exit(EXIT_FAILURE)
    except ConfigError as e:
        _logger.error(f"Failed to load config: {e}")
        raise typer.Exit(EXIT_FAILURE)


# =============================================================================
# analyze command
# =============================================================================


@app.command()
def analyze(
    ctx: typer.Context,
    arguments: Annotated[
        list[str] | None,
        typer.Argument(
            help="Question followed by @file-patterns, e.g. \"What does this do?\" @src/",
            show_default=False,
        ),
    ] = None,
    template: Annotated[
        str | None,
        typer.Option(
            "--template",
            "-t",
            help="Analysis template: security, architecture, performance, quality, debug",
        ),
    ] = None,
    format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: text or json"),
    ] = "text",
    context: Annotated[
        str | None,
        typer.Option("--context", help="Additional context appended after the question"),
    ] = None,
    timeout: Annotated[
        float | None,
        typer.Option("--timeout", help="Timeout in seconds (overrides config)", min=0.001),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Print the assembled prompt without calling Gemini"),
    ] = False,
) -> None:
    """Analyze matched files with Gemini.

    Exit codes:
        0: Analysis completed
        1: Gemini failed, could not be started, or input was invalid
        2: No patterns supplied and explicit patterns are required
        124: Gemini timed out
    """
    from gemini_orchestrator.errors import PatternsRequiredError, UnknownTemplateError
    from gemini_orchestrator.formatting import OutputFormat, format_diagnostics, format_outcome
    from gemini_orchestrator.models import InvocationStatus
    from gemini_orchestrator.pipeline import AnalysisPipeline, AnalysisRequest

    try:
        output_format = OutputFormat(format.lower())
    except ValueError:
        _logger.error(f"Invalid format: {format}. Use 'text' or 'json'")
        raise typer.Exit(EXIT_FAILURE)

    question, patterns = split_arguments(arguments or [])
    request = AnalysisRequest(
        question=question,
        template=template,
        patterns=patterns,
        context=context,
    )
    pipeline = AnalysisPipeline(config=_get_config(ctx))

    try:
        if dry_run:
            prepared = pipeline.prepare(request)
            if prepared.diagnostics:
                typer.echo(format_diagnostics(prepared.diagnostics), err=True)
            typer.echo(prepared.prompt)
            _logger.info(f"Dry run complete - prompt length: {len(prepared.prompt)} characters")
            raise typer.Exit(EXIT_OK)

        with exit_on_sigterm():
            outcome = pipeline.run(request, timeout=timeout)
    except PatternsRequiredError as e:
        typer.echo(e.guidance)
        raise typer.Exit(EXIT_GUIDANCE)
    except UnknownTemplateError as e:
        _logger.error(str(e))
        raise typer.Exit(EXIT_FAILURE)

    _logger.info(
        f"Analysis {outcome.result.status.value}",
        extra={
            "extra_data": {
                "files": len(outcome.prepared.aggregated.records),
                "dropped": outcome.prepared.aggregated.dropped_count,
                "prompt_length": len(outcome.prepared.prompt),
            }
        },
    )

    if output_format is OutputFormat.JSON or outcome.ok:
        typer.echo(format_outcome(outcome, output_format))

    if outcome.ok:
        raise typer.Exit(EXIT_OK)

    _logger.error(f"❌ {outcome.result.error_message()}")
    if outcome.result.status is InvocationStatus.TIMEOUT:
        raise typer.Exit(EXIT_TIMEOUT)
    raise typer.Exit(EXIT_FAILURE)


# =============================================================================
# check command
# =============================================================================


@app.command()
def check(
    ctx: typer.Context,
    json_output: Annotated[
        bool,
        typer.Option("--json", help="Output results as JSON"),
    ] = False,
) -> None:
    """Validate that the Gemini CLI binary is available.

    Exit codes:
        0: Binary found
        1: Binary missing
    """
    import json as json_module

    from gemini_orchestrator.utils.preflight import PreflightChecker

    result = PreflightChecker().check_all(_get_config(ctx).invoker.binary)

    if json_output:
        typer.echo(json_module.dumps(result.to_dict(), indent=2))
        raise typer.Exit(EXIT_OK if result.success else EXIT_FAILURE)

    typer.echo("\n🔍 Preflight Check Results\n")
    for check_result in result.checks:
        status = "✅" if check_result.available else "❌"
        version_str = f" ({check_result.version})" if check_result.version else ""
        typer.echo(f"  {status} {check_result.name}{version_str}")
        if check_result.available and check_result.path:
            typer.echo(f"     └─ {check_result.path}")
        elif not check_result.available:
            typer.echo(f"     └─ {check_result.message}")
    typer.echo()

    if not result.success:
        typer.echo("❌ Preflight check FAILED")
        for error in result.errors:
            typer.echo(f"   • {error}")
        raise typer.Exit(EXIT_FAILURE)

    typer.echo("✅ All preflight checks passed")
    raise typer.Exit(EXIT_OK)


# =============================================================================
# init command
# =============================================================================


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite existing config"),
    ] = False,
) -> None:
    """Write a default .gemini-direct.json in the current directory."""
    from gemini_orchestrator.config import CONFIG_FILENAMES, create_default_config

    config_file = Path(CONFIG_FILENAMES[0])

    if config_file.exists() and not force:
        _logger.error(f"Config already exists: {config_file}")
        _logger.info("Use --force to overwrite")
        raise typer.Exit(EXIT_FAILURE)

    config_file.write_text(create_default_config(), encoding="utf-8")
    _logger.info(f"Created config: {config_file}")
    typer.echo(f"✅ Configuration written to {config_file}")
    raise typer.Exit(EXIT_OK)


# =============================================================================
# serve command
# =============================================================================


@app.command()
def serve(
    ctx: typer.Context,
    guide: Annotated[
        bool,
        typer.Option("--guide", help="Serve the collaboration guide instead of the orchestrator"),
    ] = False,
) -> None:
    """Run an MCP server over stdio."""
    import asyncio

    if guide:
        from gemini_orchestrator.guide_server import serve_guide

        asyncio.run(serve_guide(_get_config(ctx)))
        return

    from gemini_orchestrator.mcp_server import serve as serve_mcp

    asyncio.run(serve_mcp(_get_config(ctx)))


if __name__ == "__main__":
    app()
