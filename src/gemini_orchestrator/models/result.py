"""Invocation result entities.

A single subprocess invocation produces exactly one of:
- Success: Process exited 0; carries trimmed stdout
- ProcessFailure: Process exited nonzero; carries exit code and stderr
- Timeout: Deadline elapsed; the process was killed
- SpawnError: Process could not be started at all

Results are returned, never raised, so callers can tell "tool misconfigured"
(SpawnError) apart from "tool ran and disagreed" (ProcessFailure).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class InvocationStatus(Enum):
    """Terminal status of an invocation."""

    SUCCESS = "success"
    PROCESS_FAILURE = "process_failure"
    TIMEOUT = "timeout"
    SPAWN_ERROR = "spawn_error"


class InvocationState(Enum):
    """Lifecycle state of a ProcessInvoker call."""

    IDLE = "idle"
    SPAWNED = "spawned"
    EXITED = "exited"
    TIMED_OUT = "timed_out"
    SPAWN_FAILED = "spawn_failed"

    @property
    def is_terminal(self) -> bool:
        return self in {
            InvocationState.EXITED,
            InvocationState.TIMED_OUT,
            InvocationState.SPAWN_FAILED,
        }


@dataclass(frozen=True)
class Success:
    """The process exited with code 0."""

    content: str

    status = InvocationStatus.SUCCESS
    ok = True

    def error_message(self) -> str | None:
        return None

    def to_dict(self) -> dict[str, Any]:
        return {"status": self.status.value, "content": self.content}


@dataclass(frozen=True)
class ProcessFailure:
    """The process exited with a nonzero code.

    stdout is kept since a JSON-mode child reports its error envelope there.
    """

    exit_code: int
    stderr: str
    stdout: str = ""

    status = InvocationStatus.PROCESS_FAILURE
    ok = False

    def error_message(self) -> str:
        return f"Gemini failed ({self.exit_code}): {self.stderr.strip()}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "exit_code": self.exit_code,
            "stderr": self.stderr,
            "error": self.error_message(),
        }


@dataclass(frozen=True)
class Timeout:
    """The deadline elapsed before the process exited."""

    timeout_seconds: float

    status = InvocationStatus.TIMEOUT
    ok = False

    def error_message(self) -> str:
        return f"Timeout after {self.timeout_seconds:g}s"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "timeout_seconds": self.timeout_seconds,
            "error": self.error_message(),
        }


@dataclass(frozen=True)
class SpawnError:
    """The process could not be started."""

    message: str

    status = InvocationStatus.SPAWN_ERROR
    ok = False

    def error_message(self) -> str:
        return f"Failed to start Gemini: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "message": self.message,
            "error": self.error_message(),
        }


InvocationResult = Success | ProcessFailure | Timeout | SpawnError
