"""MCP server that teaches agents to drive the Gemini CLI themselves.

Unlike the orchestrator server, nothing here runs a subprocess. Each tool
returns a Markdown metaprompt (a plan, a command recipe, a reasoning loop or
a synthesis recipe) rendered from the templates in ``templates/guide/``. The
agent executes the suggested ``gemini`` commands with its own shell tools.

Usage:
    # Add to an MCP client config:
    {
        "mcpServers": {
            "gemini-collaboration-guide": {
                "command": "gemini-orchestrator-guide"
            }
        }
    }

    # Or run through the main CLI:
    gemini-orchestrator serve --guide
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from gemini_orchestrator import __version__
from gemini_orchestrator.config import OrchestratorConfig, load_config
from gemini_orchestrator.templates import ReportRenderer
from gemini_orchestrator.utils.logging import configure_from_cli

logger = logging.getLogger(__name__)

GUIDE_SERVER_NAME = "gemini-collaboration-guide"

# Matched case-insensitively as substrings of every string argument
INJECTION_KEYWORDS = ("ignore", "confidential", "secret", "delete", "destroy", "harmful")

GUIDANCE_REMINDER = """This is a pure metaprompting guidance system. It runs nothing itself \
and only returns prompts that guide your collaboration with gemini.

**Remember:**
- Use your own bash tools to execute the suggested commands
- Use your file exploration tools to find relevant files
- Run `gemini` commands yourself
- These tools only describe HOW to collaborate effectively"""


class GuideToolError(Exception):
    """Raised for a rejected guide call; reported as an MCP tool error."""


@dataclass(frozen=True)
class GuideTool:
    """One metaprompt tool and the template that answers it."""

    name: str
    template: str
    description: str
    properties: dict[str, str]
    required: tuple[str, ...]

    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                key: {"type": "string", "description": text}
                for key, text in self.properties.items()
            },
            "required": list(self.required),
        }


GUIDE_TOOLS = (
    GuideTool(
        name="gemini_plan_analysis",
        template="guide/plan_analysis.md.j2",
        description=(
            "Breaks a complex analysis goal into a staged plan. You get the roadmap "
            "and run the suggested gemini commands yourself with your bash tools."
        ),
        properties={
            "goal": (
                "Your overall analysis objective. Be specific about what you want "
                "to understand and why."
            ),
        },
        required=("goal",),
    ),
    GuideTool(
        name="gemini_craft_prompt",
        template="guide/craft_prompt.md.j2",
        description=(
            "Suggests effective gemini commands for one analysis step: file "
            "selection, @ syntax, model choice and prompt wording."
        ),
        properties={
            "step_description": (
                "What you want to analyze in this step. Be specific about your "
                "focus and intent."
            ),
            "context": (
                "Findings from previous steps or other context about your codebase "
                "that should inform this step."
            ),
        },
        required=("step_description",),
    ),
    GuideTool(
        name="gemini_iterate_analysis",
        template="guide/iterate_analysis.md.j2",
        description=(
            "Guides an observe-think-act loop that adapts to what each gemini "
            "response reveals, including when to stop iterating."
        ),
        properties={
            "current_understanding": (
                "What you currently understand about the problem or codebase."
            ),
            "iteration_goal": "The specific aspect to investigate in this iteration.",
            "unexpected_findings": (
                "Optional: unexpected results from earlier iterations that call for "
                "a change of strategy."
            ),
        },
        required=("current_understanding", "iteration_goal"),
    ),
    GuideTool(
        name="gemini_synthesize_findings",
        template="guide/synthesize_findings.md.j2",
        description=(
            "Combines insights from several analysis steps into one context "
            "document and synthesis commands you run yourself."
        ),
        properties={
            "steps_summary": (
                "A brief summary of the analysis steps taken so far and what you learned."
            ),
            "synthesis_goal": (
                "What the synthesis should achieve: the understanding or conclusions "
                "you are after."
            ),
        },
        required=("steps_summary", "synthesis_goal"),
    ),
)


def find_injection_keyword(arguments: dict[str, Any]) -> str | None:
    """Return the first blocked keyword found in a string argument, if any.

    Non-string values are not inspected.
    """
    for value in arguments.values():
        if not isinstance(value, str):
            continue
        lowered = value.lower()
        for keyword in INJECTION_KEYWORDS:
            if keyword in lowered:
                return keyword
    return None


def injection_message(keyword: str) -> str:
    return (
        "⚠️ **Potential Prompt Injection Detected**\n\n"
        f'Your input contains the keyword "{keyword}", which could be used for prompt '
        "injection. For security, this request has been blocked.\n\n"
        "Please review your input and remove any sensitive or malicious-sounding terms."
    )


class CollaborationGuide:
    """Answers guide tool calls with rendered metaprompts.

    Suggested commands use the configured binary and model.
    """

    def __init__(
        self,
        config: OrchestratorConfig | None = None,
        renderer: ReportRenderer | None = None,
    ) -> None:
        self.config = config or OrchestratorConfig()
        self.renderer = renderer or ReportRenderer()
        self._tools = {tool.name: tool for tool in GUIDE_TOOLS}

    def tool_definitions(self) -> list[Tool]:
        return [
            Tool(name=tool.name, description=tool.description, inputSchema=tool.input_schema())
            for tool in GUIDE_TOOLS
        ]

    def respond(self, name: str, arguments: dict[str, Any]) -> str:
        """Render the metaprompt for one tool call.

        Raises:
            GuideToolError: If an argument trips the injection guard, the tool
                is unknown or a required argument is missing
        """
        keyword = find_injection_keyword(arguments)
        if keyword is not None:
            logger.warning("Blocked %s call containing %r", name, keyword)
            raise GuideToolError(injection_message(keyword))

        tool = self._tools.get(name)
        if tool is None:
            raise GuideToolError(self._error(f"Unknown tool: {name}"))

        missing = [key for key in tool.required if not str(arguments.get(key) or "").strip()]
        if missing:
            raise GuideToolError(self._error(f"Missing required argument: {', '.join(missing)}"))

        context = {key: str(arguments.get(key) or "").strip() for key in tool.properties}
        return self.renderer.render(
            tool.template,
            binary=self.config.invoker.binary,
            model=self.config.invoker.model,
            **context,
        )

    @staticmethod
    def _error(message: str) -> str:
        return f"❌ **Error: {message}**\n\n{GUIDANCE_REMINDER}"


def create_guide_server(guide: CollaborationGuide | None = None) -> Server:
    """Create and configure the collaboration guide MCP server."""
    guide = guide or CollaborationGuide(load_config())
    server = Server(GUIDE_SERVER_NAME, version=__version__)

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return guide.tool_definitions()

    @server.call_tool()
    async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
        """Handle tool calls. Raised errors are returned to the client with isError set."""
        return [TextContent(type="text", text=guide.respond(name, arguments or {}))]

    return server


async def serve_guide(config: OrchestratorConfig | None = None) -> None:
    """Run the collaboration guide server over stdio."""
    server = create_guide_server(CollaborationGuide(config or load_config()))
    logger.info("Gemini collaboration guide MCP server started")
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run() -> None:
    """Entry point for the gemini-orchestrator-guide command."""
    configure_from_cli()
    asyncio.run(serve_guide())


if __name__ == "__main__":
    run()
