"""Entry point for running Gemini Orchestrator as a module.

Usage:
    python -m gemini_orchestrator [command] [options]

Example:
    python -m gemini_orchestrator analyze "What does this do?" @src/main.py
    python -m gemini_orchestrator check
"""

from gemini_orchestrator.cli import app

if __name__ == "__main__":
    app()
