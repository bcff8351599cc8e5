"""Caller-facing pane operations.

Each operation runs the full pipeline once: parse the identifier, resolve it
against a fresh metadata snapshot, take the focus lease, navigate, act and
let the lease restore focus. Results are plain dicts; engine errors come
back as ``{"success": False, "error": ..., "kind": ...}``.
"""

import logging
import time
from typing import Any, Optional

from . import actions
from .config import Settings
from .errors import NavigationError, PaneResolutionError, ZellijPaneError
from .focus import FocusTracker
from .host import ZellijHost
from .matcher import resolve_all
from .metadata import MetadataSnapshot, load_snapshot
from .navigator import Navigator
from .query import Query, parse_identifier
from .restore import FocusLease

logger = logging.getLogger(__name__)


def build_host(session: Optional[str] = None, settings: Optional[Settings] = None) -> ZellijHost:
    settings = settings or Settings.from_env()
    return ZellijHost(session=session, timeout=settings.command_timeout, settle_delay=settings.settle_delay)


class PaneEngine:
    """Pane resolution + navigation engine bound to one zellij session."""

    def __init__(self, host, settings: Optional[Settings] = None, session: Optional[str] = None):
        self.host = host
        self.settings = settings or Settings.from_env()
        self.session = session if session is not None else getattr(host, "session", None)
        self.tracker = FocusTracker(host)
        self.navigator = Navigator(host, self.tracker, max_cycle=self.settings.max_cycle)

    # === RESOLUTION ===

    def snapshot(self) -> MetadataSnapshot:
        return load_snapshot(self.settings.pane_names_file)

    def _resolve(self, identifier: str, snapshot: MetadataSnapshot) -> tuple[Query, list[str]]:
        query = parse_identifier(identifier)
        candidates = resolve_all(query.pane_query, snapshot)
        if not candidates:
            details: dict[str, Any] = {"available": snapshot.listing()}
            if not snapshot.available:
                details["metadata_problem"] = snapshot.problem
                details["hint"] = "Pane names are unavailable; address panes directly as terminal_N"
            raise PaneResolutionError(f"No pane matches '{identifier}'", **details)
        if query.tab_scope is None:
            # Without a tab to confine the search, go for the single best match
            candidates = candidates[:1]
        logger.debug(f"'{identifier}' -> scope={query.tab_scope} candidates={candidates}")
        return query, candidates

    def _with_target(self, identifier: str, action_fn) -> dict[str, Any]:
        """Run ``action_fn(pane_id)`` with the identified pane focused."""
        snapshot = self.snapshot()
        query, candidates = self._resolve(identifier, snapshot)

        lease = FocusLease(self.navigator, self.tracker, self.session)
        try:
            with lease:
                outcome = self.navigator.navigate_to(candidates, query.tab_scope, current_tab=lease.origin_tab)
                if not outcome.found:
                    where = query.tab_scope.describe() if query.tab_scope and not outcome.scope_ignored else "any tab"
                    raise NavigationError(
                        f"Pane '{identifier}' ({', '.join(candidates)}) was not found in {where}",
                        candidates=candidates,
                        available=snapshot.listing(),
                    )
                result = action_fn(outcome.resolved_pane_id)
                result.update({
                    "success": True,
                    "pane_id": outcome.resolved_pane_id,
                    "name": snapshot.panes.get(outcome.resolved_pane_id),
                    "tab": outcome.resolved_tab_name,
                })
                if outcome.scope_ignored:
                    result.setdefault("warnings", []).append(
                        f"{query.tab_scope.describe()} does not exist; searched every tab"
                    )
        except ZellijPaneError as e:
            if lease.warnings:
                e.details.setdefault("warnings", []).extend(lease.warnings)
            raise

        if lease.warnings:
            result.setdefault("warnings", []).extend(lease.warnings)
        return result

    def _guarded(self, operation: str, fn, *args, **kwargs) -> dict[str, Any]:
        try:
            return fn(*args, **kwargs)
        except ZellijPaneError as e:
            logger.info(f"{operation} failed: {e.message}")
            return e.to_result()

    # === OPERATIONS ===

    def list_panes(self) -> dict[str, Any]:
        """Terminal panes known to the pane tracker."""
        snapshot = self.snapshot()
        if not snapshot.available:
            return {
                "success": False,
                "error": snapshot.problem,
                "kind": "metadata_unavailable",
                "panes": [],
                "source": snapshot.source,
            }
        age = snapshot.age()
        return {
            "success": True,
            "panes": snapshot.listing(),
            "captured_at": snapshot.captured_at_iso(),
            "age_seconds": round(age, 1) if age is not None else None,
            "source": snapshot.source,
        }

    def dump_pane(self, identifier: str, full: bool = False, lines: Optional[int] = None,
                  strip_ansi: bool = True) -> dict[str, Any]:
        """Capture a pane's screen (or full scrollback) and return it as text."""
        limit = lines if lines is not None else self.settings.default_lines

        def do_capture(pane_id: str) -> dict[str, Any]:
            return actions.capture_pane(self.host, pane_id, full=full, lines=limit, strip=strip_ansi)

        return self._guarded("dump_pane", self._with_target, identifier, do_capture)

    def run_in_pane(self, identifier: str, command: str, wait: float = 0,
                    lines: Optional[int] = None) -> dict[str, Any]:
        """Type a command into a pane and press enter.

        With ``wait`` > 0 the pane stays focused for that many seconds and its
        output is captured before focus goes back.
        """
        limit = lines if lines is not None else self.settings.default_lines

        def do_run(pane_id: str) -> dict[str, Any]:
            actions.inject_text(self.host, command)
            result: dict[str, Any] = {"command": command}
            if wait and wait > 0:
                time.sleep(wait)
                captured = actions.capture_pane(self.host, pane_id, lines=limit)
                result["output"] = captured["content"]
                result["omitted_lines"] = captured["omitted_lines"]
            return result

        return self._guarded("run_in_pane", self._with_target, identifier, do_run)

    def new_pane(self, direction: str = "down", command: Optional[str] = None,
                 name: Optional[str] = None, floating: bool = False,
                 cwd: Optional[str] = None) -> dict[str, Any]:
        def do_new() -> dict[str, Any]:
            self.host.new_pane(direction=direction, command=command, name=name, floating=floating, cwd=cwd)
            message = f"Created new pane ({direction})"
            if command:
                message += f" running: {command}"
            return {"success": True, "message": message}

        return self._guarded("new_pane", do_new)

    def rename_session(self, name: str) -> dict[str, Any]:
        def do_rename() -> dict[str, Any]:
            self.host.rename_session(name)
            return {"success": True, "session": name}

        return self._guarded("rename_session", do_rename)

    def list_sessions(self) -> dict[str, Any]:
        def do_list() -> dict[str, Any]:
            return {"success": True, "sessions": self.host.list_sessions()}

        return self._guarded("list_sessions", do_list)
