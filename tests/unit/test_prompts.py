"""Unit tests for prompt templates and assembly."""

import pytest

from gemini_orchestrator.errors import UnknownTemplateError
from gemini_orchestrator.prompts import (
    CONTENT_LABEL,
    DEFAULT_INSTRUCTION,
    TEMPLATE_NAMES,
    TEMPLATES,
    assemble_prompt,
    get_template,
)


class TestTemplates:
    """Tests for the template registry."""

    def test_template_names(self) -> None:
        """Test all five templates are registered."""
        assert TEMPLATE_NAMES == ["security", "architecture", "performance", "quality", "debug"]

    @pytest.mark.parametrize("name", TEMPLATE_NAMES)
    def test_get_template(self, name: str) -> None:
        """Test each key returns its body."""
        assert get_template(name) == TEMPLATES[name]
        assert "Focus on:" in get_template(name)

    def test_unknown_template(self) -> None:
        """Test an unknown key raises with the valid keys listed."""
        with pytest.raises(UnknownTemplateError, match="Valid: security") as exc_info:
            get_template("style")

        assert exc_info.value.template == "style"
        assert exc_info.value.available == TEMPLATE_NAMES


class TestAssemblePrompt:
    """Tests for assemble_prompt."""

    def test_question_and_content(self) -> None:
        """Test the question precedes the labelled content."""
        prompt = assemble_prompt(content="=== a.py ===\nx = 1", question="What is x?")

        assert prompt == "What is x?\n\nCode to analyze:\n\n=== a.py ===\nx = 1"

    def test_default_instruction(self) -> None:
        """Test the default instruction is used without question or template."""
        prompt = assemble_prompt(content="=== a.py ===\nx")

        assert prompt.startswith(DEFAULT_INSTRUCTION)

    def test_template_precedes_question(self) -> None:
        """Test the template body comes first, then the question."""
        prompt = assemble_prompt(content="c", question="Check login", template="security")

        assert prompt.startswith(TEMPLATES["security"])
        assert prompt.index("Check login") > prompt.index("remediation steps")
        assert DEFAULT_INSTRUCTION not in prompt

    def test_template_only(self) -> None:
        """Test a template without a question does not add the default instruction."""
        prompt = assemble_prompt(content="c", template="debug")

        assert prompt.startswith(TEMPLATES["debug"])
        assert DEFAULT_INSTRUCTION not in prompt

    def test_context_section(self) -> None:
        """Test caller context is placed between question and content."""
        prompt = assemble_prompt(content="c", question="Q", context="Uses Express 4")

        assert prompt == "Q\n\nAdditional context:\nUses Express 4\n\nCode to analyze:\n\nc"

    def test_empty_content_omits_label(self) -> None:
        """Test no content label when nothing was aggregated."""
        prompt = assemble_prompt(question="General question")

        assert prompt == "General question"
        assert CONTENT_LABEL not in prompt

    def test_blank_question_treated_as_missing(self) -> None:
        """Test a whitespace question falls back to the default instruction."""
        assert assemble_prompt(question="   ") == DEFAULT_INSTRUCTION

    def test_unknown_template_raises(self) -> None:
        """Test assembly fails fast on an unknown template."""
        with pytest.raises(UnknownTemplateError):
            assemble_prompt(content="c", template="nope")

    def test_content_not_reordered(self) -> None:
        """Test content text is appended verbatim."""
        content = "=== b.py ===\nb\n\n=== a.py ===\na"

        assert assemble_prompt(content=content, question="Q").endswith(content)
