"""Output framing for analysis outcomes (raw text or JSON envelope)."""

import json
from enum import Enum

from gemini_orchestrator.models import Diagnostic, DiagnosticKind
from gemini_orchestrator.pipeline import AnalysisOutcome

RULE = "=" * 80

DIAGNOSTIC_ICONS = {
    DiagnosticKind.NO_MATCH: "⚠️ ",
    DiagnosticKind.ALIAS_EXPANDED: "🔍",
    DiagnosticKind.READ_ERROR: "⚠️ ",
    DiagnosticKind.TRUNCATED: "✂️ ",
    DiagnosticKind.FILES_DROPPED: "📁",
}


class OutputFormat(Enum):
    """How analysis output is written."""

    TEXT = "text"
    JSON = "json"


def format_diagnostics(diagnostics: list[Diagnostic]) -> str:
    """Render diagnostics as one annotated line each."""
    return "\n".join(
        f"{DIAGNOSTIC_ICONS.get(d.kind, '•')} {d.message}" for d in diagnostics
    )


def format_text(outcome: AnalysisOutcome) -> str:
    """Render a successful outcome for a terminal.

    Diagnostics, when present, precede the analysis.
    """
    lines: list[str] = []
    if outcome.diagnostics:
        lines.append(format_diagnostics(outcome.diagnostics))
        lines.append("")

    lines.extend([RULE, "📋 GEMINI ANALYSIS", RULE])
    lines.append(outcome.result.content if outcome.ok else "")
    lines.append("")
    lines.append(RULE)
    return "\n".join(lines)


def format_json(outcome: AnalysisOutcome) -> str:
    """Render an outcome as the ``{"analysis": ...}`` envelope.

    Failed outcomes carry ``error`` instead of ``analysis``.
    """
    envelope: dict[str, object] = {}
    if outcome.ok:
        envelope["analysis"] = outcome.result.content
    else:
        envelope["error"] = outcome.result.error_message()
        envelope["status"] = outcome.result.status.value
    envelope["diagnostics"] = [d.message for d in outcome.diagnostics]
    return json.dumps(envelope, indent=2, ensure_ascii=False)


def format_outcome(outcome: AnalysisOutcome, output_format: OutputFormat) -> str:
    """Render an outcome in the requested format."""
    if output_format is OutputFormat.JSON:
        return format_json(outcome)
    return format_text(outcome)
