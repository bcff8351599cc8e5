import asyncio
import json
import time

import zellij_pane_mcp.server as server
from zellij_pane_mcp.config import Settings
from zellij_pane_mcp.panes import PaneEngine

from conftest import FakeZellij


def install_engine(monkeypatch, host, metadata_path):
    sessions = []

    def build(session=None):
        sessions.append(session)
        settings = Settings(pane_names_file=metadata_path, settle_delay=0)
        return PaneEngine(host, settings, session=session)

    monkeypatch.setattr(server, "build_engine", build)
    return sessions


def test_tools_are_listed_with_session_param():
    tools = asyncio.run(server.list_tools())
    names = {tool.name for tool in tools}
    assert {"list_panes", "dump_pane", "run_in_pane", "new_pane", "rename_session", "list_sessions"} <= names
    assert all("session" in tool.inputSchema["properties"] for tool in tools)


def test_handle_tool_dispatch(monkeypatch, write_metadata):
    host = FakeZellij([("main", ["terminal_1"])], screens={"terminal_1": "hello\n"})
    sessions = install_engine(monkeypatch, host, write_metadata({"terminal_1": "opencode"}))
    result = server.handle_tool("dump_pane", {"pane_id": "opencode", "session": "work"})
    assert result["success"]
    assert result["content"] == "hello"
    assert sessions == ["work"]


def test_unknown_tool(monkeypatch, write_metadata):
    install_engine(monkeypatch, FakeZellij([("main", ["terminal_1"])]), write_metadata({}))
    assert server.handle_tool("explode", {}) == {"success": False, "error": "Unknown tool: explode"}


def test_call_tool_returns_pane_text_separately(monkeypatch, write_metadata):
    host = FakeZellij([("main", ["terminal_1"])], screens={"terminal_1": "hello\n"})
    install_engine(monkeypatch, host, write_metadata({"terminal_1": "opencode"}))
    contents = asyncio.run(server.call_tool("dump_pane", {"pane_id": "opencode"}))
    header = json.loads(contents[0].text)
    assert header["pane_id"] == "terminal_1"
    assert "content" not in header
    assert contents[1].text == "hello"


def test_call_tool_reports_missing_argument(monkeypatch, write_metadata):
    install_engine(monkeypatch, FakeZellij([("main", ["terminal_1"])]), write_metadata({}))
    contents = asyncio.run(server.call_tool("run_in_pane", {"pane_id": "x"}))
    result = json.loads(contents[0].text)
    assert not result["success"]
    assert "command" in result["error"]


def test_run_in_pane_wait_does_not_block_event_loop(monkeypatch, write_metadata):
    host = FakeZellij([("main", ["terminal_1"])], screens={"terminal_1": "$ ls\nREADME.md\n"})
    install_engine(monkeypatch, host, write_metadata({"terminal_1": "opencode"}))

    async def scenario():
        ticks = []
        done = asyncio.Event()

        async def ticker():
            while not done.is_set():
                ticks.append(time.monotonic())
                await asyncio.sleep(0.02)

        ticking = asyncio.create_task(ticker())
        try:
            contents = await server.call_tool("run_in_pane", {"pane_id": "opencode", "command": "ls", "wait": 0.5})
        finally:
            done.set()
            await ticking
        return contents, ticks

    contents, ticks = asyncio.run(scenario())
    result = json.loads(contents[0].text)
    assert result["success"]
    assert "README.md" in result["output"]
    gaps = [b - a for a, b in zip(ticks, ticks[1:])]
    assert len(ticks) > 5
    assert max(gaps) < 0.3
