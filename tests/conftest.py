import json

import pytest

from zellij_pane_mcp.config import Settings
from zellij_pane_mcp.errors import HostCommandError
from zellij_pane_mcp.host import ClientInfo
from zellij_pane_mcp.panes import PaneEngine


class FakeZellij:
    """In-memory session: ordered tabs, each with ordered panes and its own focus."""

    def __init__(self, tabs, active=0, screens=None, sessions=("main",), layout_focus=True):
        self.tabs = [{"name": name, "panes": list(panes), "focus": 0} for name, panes in tabs]
        self.active = active
        self.screens = dict(screens or {})
        self.sessions = list(sessions)
        self.layout_focus = layout_focus
        self.session = None
        self.calls = []
        self.next_pane_tabs = []  # active tab index for every focus-next-pane
        self.written = []
        self.dump_paths = []
        self.fail_on = set()

    @property
    def focused(self):
        tab = self.tabs[self.active]
        return tab["panes"][tab["focus"]] if tab["panes"] else None

    def focus(self, pane_id):
        for index, tab in enumerate(self.tabs):
            if pane_id in tab["panes"]:
                self.active = index
                tab["focus"] = tab["panes"].index(pane_id)
                return
        raise AssertionError(f"no such pane {pane_id}")

    def close(self, pane_id):
        for tab in self.tabs:
            if pane_id in tab["panes"]:
                tab["panes"].remove(pane_id)
                tab["focus"] = 0

    def _call(self, name, *args):
        self.calls.append((name,) + args)
        if name in self.fail_on:
            raise HostCommandError(f"zellij action {name} failed: boom", command=name)

    def query_tab_names(self):
        self._call("query_tab_names")
        return [tab["name"] for tab in self.tabs]

    def go_to_tab_name(self, name):
        self._call("go_to_tab_name", name)
        for index, tab in enumerate(self.tabs):
            if tab["name"] == name:
                self.active = index
                return

    def go_to_tab(self, index):
        self._call("go_to_tab", index)
        if 0 <= index < len(self.tabs):
            self.active = index

    def dump_layout(self):
        self._call("dump_layout")
        lines = ["layout {"]
        for index, tab in enumerate(self.tabs):
            focus = " focus=true" if index == self.active and self.layout_focus else ""
            lines.append(f'    tab name="{tab["name"]}"{focus} hide_floating_panes=true {{')
            lines.append("        pane")
            lines.append("    }")
        lines.append("    new_tab_template {")
        lines.append("        pane")
        lines.append("    }")
        lines.append("}")
        return "\n".join(lines)

    def focus_next_pane(self):
        self._call("focus_next_pane")
        self.next_pane_tabs.append(self.active)
        tab = self.tabs[self.active]
        if tab["panes"]:
            tab["focus"] = (tab["focus"] + 1) % len(tab["panes"])

    def list_clients(self):
        self._call("list_clients")
        if self.focused is None:
            return []
        return [ClientInfo(client_id="1", pane_id=self.focused, command="zsh")]

    def dump_screen(self, path, full=False):
        self._call("dump_screen", path, full)
        self.dump_paths.append(path)
        with open(path, "w") as f:
            f.write(self.screens.get(self.focused, ""))

    def write_chars(self, chars):
        self._call("write_chars", chars)
        self.written.append((self.focused, chars))

    def write_bytes(self, *codes):
        self._call("write_bytes", *codes)
        self.written.append((self.focused, codes))

    def new_pane(self, direction=None, command=None, name=None, floating=False, cwd=None):
        self._call("new_pane", direction, command)

    def rename_session(self, name):
        self._call("rename_session", name)

    def list_sessions(self):
        self._call("list_sessions")
        return list(self.sessions)


@pytest.fixture
def write_metadata(tmp_path):
    path = tmp_path / "zj-pane-names.json"

    def _write(panes, timestamp=1718000000):
        path.write_text(json.dumps({"panes": panes, "timestamp": timestamp}))
        return str(path)

    return _write


@pytest.fixture
def make_engine(tmp_path):
    def _make(host, metadata_path=None, max_cycle=10):
        settings = Settings(
            pane_names_file=metadata_path or str(tmp_path / "missing.json"),
            max_cycle=max_cycle,
            settle_delay=0,
        )
        return PaneEngine(host, settings)

    return _make
