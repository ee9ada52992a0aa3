"""Markdown report rendering for orchestrated analyses.

Renders the MCP tool response with Jinja2 templates shipped in this package.
"""

import logging
from typing import Any

from jinja2 import Environment, PackageLoader, TemplateNotFound, select_autoescape

logger = logging.getLogger(__name__)

REPORT_TEMPLATE = "report.md.j2"


class ReportRenderer:
    """Renders analysis output into a Markdown report.

    Usage:
        renderer = ReportRenderer()
        markdown = renderer.render_report(question, patterns, analysis, complexity)
    """

    def __init__(self) -> None:
        self._env = Environment(
            loader=PackageLoader("gemini_orchestrator", "templates"),
            autoescape=select_autoescape(["html", "xml"]),
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
        )

    def render(self, template_name: str, **context: Any) -> str:
        """Render a package template.

        Raises:
            ValueError: If the template does not exist
        """
        try:
            template = self._env.get_template(template_name)
        except TemplateNotFound as e:
            raise ValueError(f"Template not found: {template_name}") from e

        rendered = template.render(**context)
        logger.debug("Rendered %s (%d characters)", template_name, len(rendered))
        return rendered

    def render_report(
        self,
        question: str,
        patterns: list[str],
        analysis: str,
        complexity: str,
        diagnostics: list[str] | None = None,
    ) -> str:
        """Render the orchestrated analysis report."""
        return self.render(
            REPORT_TEMPLATE,
            question=question,
            patterns=patterns,
            analysis=analysis,
            complexity=complexity,
            diagnostics=diagnostics or [],
        )
