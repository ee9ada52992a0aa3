"""Shared pytest fixtures for orchestrator tests.

Fixtures are organized by category:
- Project fixtures: Temporary source trees to resolve patterns against
- Configuration fixtures: Config dictionaries for various scenarios
- Fake binary fixtures: Python scripts standing in for the Gemini CLI
"""

import logging
import os
import stat
import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

from gemini_orchestrator.utils.logging import ROOT_LOGGER


@pytest.fixture(autouse=True)
def reset_package_logger() -> Iterator[None]:
    """Restore the package logger after each test.

    CLI invocations bind a handler to the test runner's stderr stream.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


# =============================================================================
# Project Fixtures
# =============================================================================


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Create a small project tree.

    Layout:
        src/auth/login.js      100 characters
        src/auth/session.js    9000 characters
        src/app.py
        src/util/helpers.py
        node_modules/lib/index.js
        package.json
    """
    root = tmp_path / "project"
    (root / "src" / "auth").mkdir(parents=True)
    (root / "src" / "util").mkdir()
    (root / "node_modules" / "lib").mkdir(parents=True)

    (root / "src" / "auth" / "login.js").write_text("l" * 100)
    (root / "src" / "auth" / "session.js").write_text("s" * 9000)
    (root / "src" / "app.py").write_text("def main():\n    return 0\n")
    (root / "src" / "util" / "helpers.py").write_text("def helper():\n    pass\n")
    (root / "node_modules" / "lib" / "index.js").write_text("module.exports = {};\n")
    (root / "package.json").write_text('{"name": "sample"}\n')
    return root


@pytest.fixture
def in_project(project_dir: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Change the working directory to project_dir for the test."""
    monkeypatch.chdir(project_dir)
    return project_dir


# =============================================================================
# Configuration Fixtures
# =============================================================================


@pytest.fixture
def alias_config() -> dict[str, Any]:
    """Return a config with an auth alias and default limits."""
    return {
        "aliases": {"auth": ["src/auth/*.js"]},
        "limits": {"maxFiles": 30, "maxCharsPerFile": 8000},
        "ignore": ["**/node_modules/**", "**/.git/**"],
    }


# =============================================================================
# Fake Binary Fixtures
# =============================================================================

ECHO_SCRIPT = """
import sys
prompt = sys.stdin.read()
print("ANALYSIS: " + str(len(prompt)) + " chars")
print(prompt)
"""

FAIL_SCRIPT = """
import sys
sys.stdin.read()
sys.stderr.write("quota exceeded")
sys.exit(3)
"""

SLEEP_SCRIPT = """
import os
import sys
import time
pid_file = os.environ.get("FAKE_GEMINI_PID_FILE")
if pid_file:
    with open(pid_file, "w") as f:
        f.write(str(os.getpid()))
time.sleep(60)
"""


@pytest.fixture
def make_fake_gemini(tmp_path: Path) -> Callable[[str, str], Path]:
    """Return a factory that writes an executable fake Gemini CLI.

    The script is a Python file with a shebang pointing at the running
    interpreter, so it can be used both as a command and via GEMINI_CLI_PATH.
    """

    def _make(body: str, name: str = "fake_gemini") -> Path:
        bin_dir = tmp_path / "bin"
        bin_dir.mkdir(exist_ok=True)
        script = bin_dir / name
        script.write_text(f"#!{sys.executable}\n{body}")
        script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
        return script

    return _make


@pytest.fixture
def echo_gemini(make_fake_gemini: Callable[[str, str], Path]) -> Path:
    """Fake Gemini CLI that echoes its prompt back."""
    return make_fake_gemini(ECHO_SCRIPT, "echo_gemini")


@pytest.fixture
def failing_gemini(make_fake_gemini: Callable[[str, str], Path]) -> Path:
    """Fake Gemini CLI that exits 3 with a stderr message."""
    return make_fake_gemini(FAIL_SCRIPT, "failing_gemini")


@pytest.fixture
def hanging_gemini(make_fake_gemini: Callable[[str, str], Path]) -> Path:
    """Fake Gemini CLI that never exits on its own."""
    return make_fake_gemini(SLEEP_SCRIPT, "hanging_gemini")


IGNORE_SIGTERM_SCRIPT = """
import os
import signal
import time
signal.signal(signal.SIGTERM, signal.SIG_IGN)
pid_file = os.environ.get("FAKE_GEMINI_PID_FILE")
if pid_file:
    with open(pid_file, "w") as f:
        f.write(str(os.getpid()))
time.sleep(60)
"""


@pytest.fixture
def stubborn_gemini(make_fake_gemini: Callable[[str, str], Path]) -> Path:
    """Fake Gemini CLI that hangs and ignores SIGTERM."""
    return make_fake_gemini(IGNORE_SIGTERM_SCRIPT, "stubborn_gemini")


@pytest.fixture
def process_exists() -> Callable[[int], bool]:
    """Return a check for whether a pid still names a live process."""

    def _exists(pid: int) -> bool:
        try:
            os.kill(pid, 0)
        except ProcessLookupError:
            return False
        except PermissionError:
            return True
        return True

    return _exists
