"""Zellij command interface.

Every host primitive the engine relies on is a discrete ``zellij`` process.
``run_zellij``/``zellij_action`` return result dicts like the rest of the tool
layer; ``ZellijHost`` wraps them and raises ``HostCommandError`` so navigation
code can stay linear.
"""

import logging
import re
import subprocess
import time
from dataclasses import dataclass
from typing import Any, Optional

from .errors import HostCommandError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

# Actions after which list-clients may lag behind the real focus
FOCUS_MOVING_ACTIONS = {"go-to-tab", "go-to-tab-name", "focus-next-pane", "focus-previous-pane"}

ENTER = 13


def run_zellij(*args: str, capture: bool = False, session: Optional[str] = None,
               timeout: float = DEFAULT_TIMEOUT) -> dict[str, Any]:
    """Run a zellij command, optionally targeting a specific session."""
    cmd = ["zellij"]
    if session:
        cmd.extend(["-s", session])
    cmd.extend(args)
    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=timeout)
    except subprocess.TimeoutExpired:
        return {"success": False, "error": f"Command timed out after {timeout}s"}
    except OSError as e:
        return {"success": False, "error": str(e)}

    out = {
        "success": result.returncode == 0,
        "returncode": result.returncode,
        "stderr": result.stderr.strip(),
    }
    if capture:
        out["stdout"] = result.stdout.strip()
    return out


def zellij_action(*args: str, capture: bool = False, session: Optional[str] = None,
                  timeout: float = DEFAULT_TIMEOUT) -> dict[str, Any]:
    """Run a zellij action command, optionally targeting a specific session."""
    return run_zellij("action", *args, capture=capture, session=session, timeout=timeout)


def strip_ansi(text: str) -> str:
    """Remove ANSI escape sequences from text for clean LLM consumption."""
    # CSI sequences (colors, cursor movement, etc.)
    text = re.sub(r'\x1b\[[0-9;?]*[a-zA-Z]', '', text)
    # OSC sequences (title, hyperlinks, etc.)
    text = re.sub(r'\x1b\].*?(?:\x07|\x1b\\)', '', text)
    # Other escape sequences
    text = re.sub(r'\x1b[PX^_].*?\x1b\\', '', text)
    return text


def normalize_pane_id(raw: str) -> str:
    """Map list-clients pane ids onto the metadata key format (``terminal_N``)."""
    raw = raw.strip()
    if raw.isdigit():
        return f"terminal_{raw}"
    return raw.lower()


@dataclass(frozen=True)
class ClientInfo:
    """One row of ``zellij action list-clients``."""
    client_id: str
    pane_id: str
    command: str = ""


def parse_list_clients(output: str) -> list[ClientInfo]:
    """Parse list-clients output, skipping the header row.

    Example::

        CLIENT_ID ZELLIJ_PANE_ID RUNNING_COMMAND
        1         terminal_3     zsh
    """
    clients = []
    for line in output.splitlines():
        parts = line.split(None, 2)
        if len(parts) < 2 or parts[0] == "CLIENT_ID":
            continue
        command = parts[2].strip() if len(parts) > 2 else ""
        clients.append(ClientInfo(client_id=parts[0], pane_id=normalize_pane_id(parts[1]), command=command))
    return clients


def parse_session_names(output: str) -> list[str]:
    """Extract session names from ``zellij list-sessions -n`` output."""
    sessions = []
    for line in output.split('\n'):
        if line.strip():
            # Extract just the session name (first token)
            sessions.append(line.strip().split()[0])
    return sessions


class ZellijHost:
    """Blocking wrapper around the zellij primitives used by the engine.

    Failures raise HostCommandError. Each focus-moving action is followed by
    ``settle_delay`` seconds so the next list-clients sees the new focus.
    """

    def __init__(self, session: Optional[str] = None, timeout: float = DEFAULT_TIMEOUT,
                 settle_delay: float = 0.0):
        self.session = session
        self.timeout = timeout
        self.settle_delay = settle_delay

    def _check(self, result: dict[str, Any], description: str) -> dict[str, Any]:
        if not result.get("success"):
            message = result.get("stderr") or result.get("error") or "unknown error"
            raise HostCommandError(
                f"zellij {description} failed: {message}",
                command=description,
                returncode=result.get("returncode"),
                session=self.session,
            )
        return result

    def action(self, *args: str, capture: bool = False) -> dict[str, Any]:
        """Run ``zellij action <args>`` and raise on failure."""
        logger.debug(f"zellij action {' '.join(args)}")
        result = zellij_action(*args, capture=capture, session=self.session, timeout=self.timeout)
        self._check(result, f"action {args[0]}")
        if args[0] in FOCUS_MOVING_ACTIONS and self.settle_delay > 0:
            time.sleep(self.settle_delay)
        return result

    # === SESSION ===

    def list_sessions(self) -> list[str]:
        result = self._check(
            run_zellij("list-sessions", "-n", capture=True, timeout=self.timeout), "list-sessions"
        )
        return parse_session_names(result.get("stdout", ""))

    def rename_session(self, name: str) -> None:
        self.action("rename-session", name)

    # === TABS ===

    def query_tab_names(self) -> list[str]:
        result = self.action("query-tab-names", capture=True)
        return [line.strip() for line in result.get("stdout", "").splitlines() if line.strip()]

    def go_to_tab_name(self, name: str) -> None:
        self.action("go-to-tab-name", name)

    def go_to_tab(self, index: int) -> None:
        """Jump to a tab by 0-based position (zellij itself counts from 1)."""
        self.action("go-to-tab", str(index + 1))

    def dump_layout(self) -> str:
        return self.action("dump-layout", capture=True).get("stdout", "")

    # === FOCUS ===

    def focus_next_pane(self) -> None:
        self.action("focus-next-pane")

    def list_clients(self) -> list[ClientInfo]:
        result = self.action("list-clients", capture=True)
        return parse_list_clients(result.get("stdout", ""))

    # === PANE I/O ===

    def dump_screen(self, path: str, full: bool = False) -> None:
        args = ["dump-screen", path]
        if full:
            args.append("--full")
        self.action(*args)

    def write_chars(self, chars: str) -> None:
        self.action("write-chars", chars)

    def write_bytes(self, *codes: int) -> None:
        self.action("write", *(str(code) for code in codes))

    def new_pane(self, direction: Optional[str] = None, command: Optional[str] = None,
                 name: Optional[str] = None, floating: bool = False,
                 cwd: Optional[str] = None) -> None:
        args = ["new-pane"]
        if floating:
            args.append("--floating")
        if direction:
            args.extend(["--direction", direction])
        if cwd:
            args.extend(["--cwd", cwd])
        if name:
            args.extend(["--name", name])
        if command:
            # Complex commands need shell wrapping
            if any(c in command for c in [' ', '|', '&', ';', '>', '<', '$', '`']):
                args.extend(["--", "bash", "-c", command])
            else:
                args.extend(["--", command])
        self.action(*args)
