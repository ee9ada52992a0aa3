"""Preflight validation for the external analysis binary.

Checks run before any prompt is assembled so that a missing or broken
binary is reported as a setup problem rather than as a failed analysis.
"""

import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Any

from gemini_orchestrator.invoker import resolve_binary

INSTALL_HINT = "Install via: npm install -g @google/gemini-cli, then run: gemini auth login"


@dataclass
class ToolCheck:
    """Result of checking a single tool.

    Attributes:
        name: Tool name
        available: Whether tool is available
        version: Tool version if available
        required: Whether tool is required for this run
        path: Path to executable if available
        message: Status message (human-readable context)
    """

    name: str
    available: bool
    version: str | None = None
    required: bool = True
    path: str | None = None
    message: str = ""


@dataclass
class PreflightResult:
    """Result of preflight validation."""

    success: bool = True
    checks: list[ToolCheck] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def add_check(self, check: ToolCheck) -> None:
        """Add a tool check result."""
        self.checks.append(check)

        if not check.available:
            if check.required:
                self.success = False
                self.errors.append(f"Required tool not found: {check.name}")
            else:
                self.warnings.append(f"Optional tool not found: {check.name}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON output."""
        return {
            "success": self.success,
            "checks": [
                {
                    "name": c.name,
                    "available": c.available,
                    "version": c.version,
                    "required": c.required,
                    "path": c.path,
                    "message": c.message,
                }
                for c in self.checks
            ],
            "errors": self.errors,
            "warnings": self.warnings,
        }


class PreflightChecker:
    """Validates that the analysis binary can be started.

    Usage:
        checker = PreflightChecker()
        result = checker.check_all(config.invoker.binary)
        if not result.success:
            sys.exit(1)
    """

    def __init__(self, timeout: int = 10) -> None:
        """Initialize preflight checker.

        Args:
            timeout: Timeout in seconds for version checks
        """
        self.timeout = timeout

    def get_command_version(self, command: str) -> str | None:
        """Return the first line of ``<command> --version``, or None."""
        try:
            result = subprocess.run(
                [command, "--version"],
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                timeout=self.timeout,
            )
        except (subprocess.TimeoutExpired, OSError):
            return None

        if result.returncode != 0:
            return None
        output = result.stdout.strip() or result.stderr.strip()
        return output.split("\n")[0] if output else None

    def check_analysis_binary(self, configured: str | None = None) -> ToolCheck:
        """Check that the analysis binary is on PATH (or an existing path).

        GEMINI_CLI_PATH takes precedence over the configured binary.
        """
        binary = resolve_binary(configured)
        path = shutil.which(binary)

        if path is None:
            return ToolCheck(
                name=binary,
                available=False,
                message=INSTALL_HINT,
            )

        return ToolCheck(
            name=binary,
            available=True,
            version=self.get_command_version(path),
            path=path,
            message="Analysis CLI",
        )

    def check_all(self, configured_binary: str | None = None) -> PreflightResult:
        """Run all preflight checks."""
        result = PreflightResult()
        result.add_check(self.check_analysis_binary(configured_binary))
        return result
