"""Gemini Orchestrator data models.

This module exports the entities passed between pipeline stages:
- Diagnostic / DiagnosticKind: Non-fatal conditions reported inline
- ResolvedPatterns: Deduplicated path list from the resolver
- FileRecord / AggregatedContent: Aggregator output
- InvocationResult: Success | ProcessFailure | Timeout | SpawnError
"""

from gemini_orchestrator.models.records import (
    AggregatedContent,
    Diagnostic,
    DiagnosticKind,
    FileRecord,
    ResolvedPatterns,
)
from gemini_orchestrator.models.result import (
    InvocationResult,
    InvocationState,
    InvocationStatus,
    ProcessFailure,
    SpawnError,
    Success,
    Timeout,
)

__all__ = [
    "AggregatedContent",
    "Diagnostic",
    "DiagnosticKind",
    "FileRecord",
    "InvocationResult",
    "InvocationState",
    "InvocationStatus",
    "ProcessFailure",
    "ResolvedPatterns",
    "SpawnError",
    "Success",
    "Timeout",
]
