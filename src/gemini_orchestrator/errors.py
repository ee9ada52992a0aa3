"""Exceptions raised by the orchestrator library.

Subprocess outcomes are never raised; they are returned as an
InvocationResult. These exceptions cover invalid caller input and
configuration only.
"""


class OrchestratorError(Exception):
    """Base class for orchestrator errors."""


class ConfigError(OrchestratorError):
    """Raised when a configuration source cannot be parsed or validated."""

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        full_message = f"{source}: {message}" if source else message
        super().__init__(full_message)


class UnknownTemplateError(OrchestratorError):
    """Raised when a template key has no registered template body."""

    def __init__(self, template: str, available: list[str]) -> None:
        self.template = template
        self.available = available
        super().__init__(
            f"Unknown template: {template}. Valid: {', '.join(available)}"
        )


class PatternsRequiredError(OrchestratorError):
    """Raised when no patterns were supplied and explicit patterns are required."""

    def __init__(self, guidance: str) -> None:
        self.guidance = guidance
        super().__init__(guidance)
