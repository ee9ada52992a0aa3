"""Jinja2 templates for analysis reports and collaboration guide metaprompts."""

from gemini_orchestrator.templates.renderer import ReportRenderer

__all__ = ["ReportRenderer"]
