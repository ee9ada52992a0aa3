"""Gemini Orchestrator - bounded codebase analysis through the Gemini CLI.

Resolves file patterns (globs and configured aliases) into a deduplicated
file list, aggregates their content under size limits, assembles a prompt
and hands it to an external analysis binary over stdin.

Core pieces:
- PatternResolver: aliases, globbing, ignore lists, stable dedup
- ContentAggregator: file-count cap, per-file truncation, annotated output
- PromptAssembler: template, question, context and content in a fixed order
- ProcessInvoker: subprocess lifecycle with timeout and typed results
"""

__version__ = "1.1.0"
__author__ = "Gemini Orchestrator Contributors"
