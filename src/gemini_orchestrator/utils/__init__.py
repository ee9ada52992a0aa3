"""Orchestrator utility modules.

- logging: Standardized logging with human/verbose/JSON modes
- preflight: Analysis binary availability checks
"""

from gemini_orchestrator.utils.logging import get_logger, setup_logging
from gemini_orchestrator.utils.preflight import PreflightChecker, PreflightResult

__all__ = [
    "get_logger",
    "setup_logging",
    "PreflightChecker",
    "PreflightResult",
]
