"""Zellij Pane MCP Server - address panes by name from Claude Code."""

import asyncio
import json
import logging
import sys
from typing import Any, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from . import __version__
from .config import Settings
from .panes import PaneEngine, build_host

logger = logging.getLogger(__name__)

server = Server("zellij-pane-mcp")

# Common schema for session targeting
SESSION_PARAM = {"session": {"type": "string", "description": "Target session name (default: current)"}}

PANE_ID_PARAM = {
    "type": "string",
    "description": (
        "Pane identifier: display name ('opencode', 'Pane #2'), pane number ('2' means 'Pane #2'), "
        "internal id ('terminal_2'), optionally scoped to a tab ('shell Pane 2', 'Tab #2 Pane 1')"
    ),
}


def build_engine(session: Optional[str] = None) -> PaneEngine:
    """Create an engine for one request (no state survives between requests)."""
    settings = Settings.from_env()
    return PaneEngine(build_host(session, settings), settings, session=session)


def with_session(tools: list[Tool]) -> list[Tool]:
    """Add session parameter to all tool schemas."""
    for tool in tools:
        tool.inputSchema["properties"] = {
            **tool.inputSchema.get("properties", {}),
            **SESSION_PARAM,
        }
    return tools


@server.list_tools()
async def list_tools() -> list[Tool]:
    """List pane tools."""
    return with_session([
        Tool(
            name="list_panes",
            description="List all Zellij terminal panes with their IDs and display names",
            inputSchema={"type": "object", "properties": {}},
        ),
        Tool(
            name="dump_pane",
            description=(
                "Dump the content of a terminal pane. Returns the last `lines` lines "
                "unless `full` is set, in which case the whole scrollback is returned."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "pane_id": PANE_ID_PARAM,
                    "full": {"type": "boolean", "description": "Dump full scrollback without truncation", "default": False},
                    "lines": {"type": "integer", "description": "Number of trailing lines to return (default 100)", "minimum": 1},
                    "strip_ansi": {"type": "boolean", "description": "Remove ANSI escape codes (default: true)", "default": True},
                },
                "required": ["pane_id"],
            },
        ),
        Tool(
            name="run_in_pane",
            description="Run a shell command in a specific pane (by cycling to it, running command, returning)",
            inputSchema={
                "type": "object",
                "properties": {
                    "pane_id": PANE_ID_PARAM,
                    "command": {"type": "string", "description": "Command to run"},
                    "wait": {"type": "number", "description": "Seconds to wait before capturing output (default 0: don't capture)", "minimum": 0},
                    "lines": {"type": "integer", "description": "Lines of output to capture when waiting", "minimum": 1},
                },
                "required": ["pane_id", "command"],
            },
        ),
        Tool(
            name="new_pane",
            description="Create a new terminal pane",
            inputSchema={
                "type": "object",
                "properties": {
                    "direction": {"type": "string", "enum": ["down", "right"], "description": "Direction to split (default: down)"},
                    "command": {"type": "string", "description": "Optional command to run in new pane"},
                    "name": {"type": "string", "description": "Pane name"},
                    "floating": {"type": "boolean", "description": "Create floating pane"},
                    "cwd": {"type": "string", "description": "Working directory"},
                },
            },
        ),
        Tool(
            name="rename_session",
            description="Rename the current Zellij session",
            inputSchema={
                "type": "object",
                "properties": {"name": {"type": "string", "description": "New session name"}},
                "required": ["name"],
            },
        ),
        Tool(
            name="list_sessions",
            description="List active Zellij sessions",
            inputSchema={"type": "object", "properties": {}},
        ),
    ])


def handle_tool(name: str, arguments: dict[str, Any]) -> dict[str, Any]:
    """Dispatch a tool call to the engine and return its result dict."""
    arguments = dict(arguments or {})
    session = arguments.pop("session", None)  # Extract session for all tools
    engine = build_engine(session)

    if name == "list_panes":
        result = engine.list_panes()

    elif name == "dump_pane":
        result = engine.dump_pane(
            arguments["pane_id"],
            full=arguments.get("full", False),
            lines=arguments.get("lines"),
            strip_ansi=arguments.get("strip_ansi", True),
        )

    elif name == "run_in_pane":
        result = engine.run_in_pane(
            arguments["pane_id"],
            arguments["command"],
            wait=arguments.get("wait", 0),
            lines=arguments.get("lines"),
        )

    elif name == "new_pane":
        result = engine.new_pane(
            direction=arguments.get("direction", "down"),
            command=arguments.get("command"),
            name=arguments.get("name"),
            floating=arguments.get("floating", False),
            cwd=arguments.get("cwd"),
        )

    elif name == "rename_session":
        result = engine.rename_session(arguments["name"])

    elif name == "list_sessions":
        result = engine.list_sessions()

    else:
        result = {"success": False, "error": f"Unknown tool: {name}"}

    return result


@server.call_tool()
async def call_tool(name: str, arguments: dict[str, Any]) -> list[TextContent]:
    """Execute a pane tool."""
    try:
        # Engine calls block on subprocesses and waits; keep the stdio loop responsive
        result = await asyncio.to_thread(handle_tool, name, arguments)
    except KeyError as e:
        result = {"success": False, "error": f"Missing required argument: {e.args[0]}"}
    except Exception as e:
        logger.exception(f"Tool {name} failed unexpectedly")
        result = {"success": False, "error": str(e)}

    # Pane text reads better unescaped than as a JSON string
    if result.get("success") and name == "dump_pane":
        header = {k: v for k, v in result.items() if k != "content"}
        return [
            TextContent(type="text", text=json.dumps(header, indent=2)),
            TextContent(type="text", text=result.get("content", "")),
        ]
    return [TextContent(type="text", text=json.dumps(result, indent=2))]


async def main():
    """Run the MCP server."""
    async with stdio_server() as (read_stream, write_stream):
        await server.run(read_stream, write_stream, server.create_initialization_options())


def run():
    """Console entry point; logs go to stderr because stdout is the transport."""
    settings = Settings.from_env()
    logging.basicConfig(
        stream=sys.stderr,
        level=getattr(logging, settings.log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(f"Zellij Pane MCP server v{__version__} running on stdio")
    asyncio.run(main())


if __name__ == "__main__":
    run()
