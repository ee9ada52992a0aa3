"""Prompt templates and prompt assembly.

The final prompt is assembled in a fixed order:
1. Template body (when a template key is given)
2. Question (or DEFAULT_INSTRUCTION when neither template nor question is given)
3. Caller context (optional)
4. Aggregated file content after CONTENT_LABEL (when non-empty)

Assembly is plain concatenation; nothing is reordered based on content.
"""

from gemini_orchestrator.errors import UnknownTemplateError

DEFAULT_INSTRUCTION = "Analyze this code and provide insights:"
CONTENT_LABEL = "Code to analyze:"
CONTEXT_LABEL = "Additional context:"
SECTION_SEPARATOR = "\n\n"

# Analysis templates, selectable by key from every front-end
TEMPLATES: dict[str, str] = {
    "security": (
        "Perform a comprehensive security audit. Focus on:\n"
        "- Authentication and authorization vulnerabilities\n"
        "- Input validation and sanitization\n"
        "- SQL injection and XSS prevention\n"
        "- Hardcoded secrets and credentials\n"
        "- Error handling and information disclosure\n"
        "- Dependency vulnerabilities\n\n"
        "Provide specific findings with severity levels and remediation steps."
    ),
    "architecture": (
        "Analyze the overall architecture and design patterns. Focus on:\n"
        "- System design and component relationships\n"
        "- Design patterns and architectural decisions\n"
        "- Code organization and modularity\n"
        "- Data flow and dependencies\n"
        "- Scalability and maintainability concerns\n\n"
        "Identify strengths, weaknesses, and improvement opportunities."
    ),
    "performance": (
        "Analyze for performance bottlenecks and optimization opportunities. Focus on:\n"
        "- Algorithmic complexity and efficiency\n"
        "- Memory usage patterns\n"
        "- Async/await usage and concurrency\n"
        "- Database queries and data access\n"
        "- Resource utilization\n\n"
        "Provide specific optimization recommendations."
    ),
    "quality": (
        "Review code quality and best practices. Focus on:\n"
        "- Code style and consistency\n"
        "- Error handling patterns\n"
        "- Documentation and comments\n"
        "- Test coverage and quality\n"
        "- Maintainability and readability\n\n"
        "Suggest specific improvements and refactoring opportunities."
    ),
    "debug": (
        "Help identify and debug issues. Focus on:\n"
        "- Common error patterns and anti-patterns\n"
        "- Potential runtime issues\n"
        "- Logic errors and edge cases\n"
        "- Exception handling problems\n"
        "- Integration and dependency issues\n\n"
        "Provide debugging strategies and fix recommendations."
    ),
}

TEMPLATE_NAMES: list[str] = list(TEMPLATES)


def get_template(name: str) -> str:
    """Get a template body by key.

    Args:
        name: Template key (security, architecture, performance, quality, debug)

    Returns:
        Template body

    Raises:
        UnknownTemplateError: If the key is not registered
    """
    try:
        return TEMPLATES[name]
    except KeyError:
        raise UnknownTemplateError(name, TEMPLATE_NAMES) from None


def assemble_prompt(
    content: str = "",
    question: str | None = None,
    template: str | None = None,
    context: str | None = None,
) -> str:
    """Assemble the final prompt string.

    Args:
        content: Aggregated file content block (may be empty)
        question: Free-text question
        template: Template key
        context: Extra caller-supplied context

    Returns:
        Prompt text

    Raises:
        UnknownTemplateError: If template is given but not registered
    """
    sections: list[str] = []

    if template:
        sections.append(get_template(template))
    if question and question.strip():
        sections.append(question.strip())
    if not sections:
        sections.append(DEFAULT_INSTRUCTION)

    if context and context.strip():
        sections.append(f"{CONTEXT_LABEL}\n{context.strip()}")

    if content:
        sections.append(f"{CONTENT_LABEL}{SECTION_SEPARATOR}{content}")

    return SECTION_SEPARATOR.join(sections)
