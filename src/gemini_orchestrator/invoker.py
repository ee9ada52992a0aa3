"""External analysis process invocation.

Spawns the analysis binary, writes the prompt to its stdin, closes stdin and
waits for exit under a wall-clock deadline. Each call moves through
``IDLE -> SPAWNED -> {EXITED | TIMED_OUT | SPAWN_FAILED}`` and returns exactly
one InvocationResult; nothing is raised for process-level failures.
"""

import logging
import os
import signal
import subprocess
import time
from collections.abc import Sequence

from gemini_orchestrator.config import InvokerConfig
from gemini_orchestrator.models import (
    InvocationResult,
    InvocationState,
    ProcessFailure,
    SpawnError,
    Success,
    Timeout,
)

logger = logging.getLogger(__name__)

BINARY_ENV_VAR = "GEMINI_CLI_PATH"
DEFAULT_BINARY = "gemini"
MODEL_FLAG = "-m"

DIRECT_TIMEOUT_SECONDS = 120.0
ORCHESTRATED_TIMEOUT_SECONDS = 300.0

# Time a child gets to exit after SIGTERM before it is killed
KILL_GRACE_SECONDS = 2.0


def resolve_binary(configured: str | None = None) -> str:
    """Resolve the analysis binary.

    Args:
        configured: Binary from configuration

    Returns:
        GEMINI_CLI_PATH if set, else the configured binary, else ``gemini``
    """
    return os.environ.get(BINARY_ENV_VAR) or configured or DEFAULT_BINARY


class ProcessInvoker:
    """Runs one prompt through an external process.

    Usage:
        invoker = ProcessInvoker.from_config(config.invoker)
        result = invoker.invoke(prompt)
        if result.ok:
            print(result.content)
    """

    def __init__(
        self,
        command: Sequence[str],
        timeout: float = DIRECT_TIMEOUT_SECONDS,
        cwd: str | None = None,
        kill_grace: float = KILL_GRACE_SECONDS,
    ) -> None:
        """Initialize the invoker.

        Args:
            command: Full command line (binary and arguments)
            timeout: Wall-clock timeout in seconds, started at spawn
            cwd: Working directory for the child process
            kill_grace: Seconds between SIGTERM and SIGKILL on termination.
                A child that runs its own subprocess needs longer than that
                subprocess's grace so it can clean up first.
        """
        if not command:
            raise ValueError("command cannot be empty")
        if timeout <= 0:
            raise ValueError(f"timeout must be positive (got {timeout})")

        self.command = list(command)
        self.timeout = timeout
        self.cwd = cwd
        self.kill_grace = kill_grace
        self.state = InvocationState.IDLE

    @classmethod
    def from_config(
        cls,
        config: InvokerConfig,
        timeout: float | None = None,
    ) -> "ProcessInvoker":
        """Build a direct-call invoker (``<binary> -m <model>``).

        Args:
            config: Invoker configuration
            timeout: Override for config.timeout

        Returns:
            ProcessInvoker instance
        """
        binary = resolve_binary(config.binary)
        return cls(
            command=[binary, MODEL_FLAG, config.model],
            timeout=timeout or config.timeout,
        )

    def invoke(self, prompt: str) -> InvocationResult:
        """Run the process with prompt on stdin.

        Args:
            prompt: Full prompt text

        Returns:
            Success, ProcessFailure, Timeout or SpawnError
        """
        self.state = InvocationState.IDLE
        logger.debug("Command: %s", " ".join(self.command))
        logger.info("Prompt length: %d characters", len(prompt))

        try:
            process = subprocess.Popen(
                self.command,
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                cwd=self.cwd,
                start_new_session=os.name == "posix",
            )
        except OSError as e:
            self.state = InvocationState.SPAWN_FAILED
            message = e.strerror or str(e)
            if e.filename:
                message = f"{message}: {e.filename}"
            logger.error("Failed to start %s: %s", self.command[0], message)
            return SpawnError(message=message)

        self.state = InvocationState.SPAWNED
        started = time.monotonic()

        try:
            stdout, stderr = process.communicate(input=prompt, timeout=self.timeout)
        except subprocess.TimeoutExpired:
            self._terminate(process)
            self.state = InvocationState.TIMED_OUT
            logger.error("Process timed out after %ss", f"{self.timeout:g}")
            return Timeout(timeout_seconds=self.timeout)
        except BaseException:
            # KeyboardInterrupt and friends must not leave the child running
            self._terminate(process)
            raise

        self.state = InvocationState.EXITED
        logger.debug(
            "Process exited with code %d after %.1fs",
            process.returncode,
            time.monotonic() - started,
        )

        if process.returncode == 0:
            return Success(content=stdout.strip())

        logger.error("Process failed (%d): %s", process.returncode, stderr.strip())
        return ProcessFailure(exit_code=process.returncode, stderr=stderr, stdout=stdout)

    def _terminate(self, process: subprocess.Popen) -> None:
        """Stop the child and reap it.

        On POSIX the child's process group gets SIGTERM, then SIGKILL once
        kill_grace has elapsed, so a child that runs its own subprocess can
        stop it before exiting.
        """
        if os.name != "posix":
            process.kill()
            process.communicate()
            return

        _signal_group(process.pid, signal.SIGTERM)
        try:
            process.communicate(timeout=self.kill_grace)
        except subprocess.TimeoutExpired:
            logger.warning("Process %d ignored SIGTERM, killing", process.pid)
            _signal_group(process.pid, signal.SIGKILL)
            process.communicate()
        else:
            # Leftover group members outlive the leader unless killed
            _signal_group(process.pid, signal.SIGKILL)


def _signal_group(pgid: int, sig: signal.Signals) -> None:
    try:
        os.killpg(pgid, sig)
    except (ProcessLookupError, PermissionError):
        # Group already gone
        pass
