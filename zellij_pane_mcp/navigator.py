"""Bring a target pane into focus using only relative movement.

The host offers three movement primitives: go-to-tab-name, go-to-tab and
focus-next-pane. Inside a tab we step with focus-next-pane until the target
shows up or the first pane we saw comes round again.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from .query import TabByIndex, TabByName, TabScope

logger = logging.getLogger(__name__)

DEFAULT_MAX_CYCLE = 10


@dataclass(frozen=True)
class NavigationOutcome:
    found: bool
    resolved_pane_id: Optional[str] = None
    resolved_tab_name: Optional[str] = None
    scope_ignored: bool = False


def _find_tab(tab_names: list[str], name: str) -> Optional[int]:
    """Index of the first tab with this name; exact match wins over case-insensitive."""
    if name in tab_names:
        return tab_names.index(name)
    lowered = [t.lower() for t in tab_names]
    if name.lower() in lowered:
        return lowered.index(name.lower())
    return None


class Navigator:
    """Moves session focus onto one of a set of target panes."""

    def __init__(self, host, tracker, max_cycle: int = DEFAULT_MAX_CYCLE):
        self.host = host
        self.tracker = tracker
        self.max_cycle = max(1, max_cycle)

    def cycle_tab(self, targets: Iterable[str]) -> Optional[str]:
        """Step through the focused tab until a target pane is focused.

        Returns the focused target id, or None once the tab wrapped around
        (or the step cap was hit). A tab with k panes costs at most k steps;
        after a full lap focus is back where it started.
        """
        wanted = set(targets)
        first = self.tracker.require_pane_id()
        if first in wanted:
            return first

        seen = {first}
        for step in range(1, self.max_cycle + 1):
            self.host.focus_next_pane()
            current = self.tracker.require_pane_id()
            if current in wanted:
                logger.debug(f"Reached {current} after {step} step(s)")
                return current
            if current in seen:
                logger.debug(f"Tab wrapped around after {step} step(s) without a match")
                return None
            seen.add(current)

        logger.warning(f"Gave up cycling after {self.max_cycle} steps (first pane {first} never came back)")
        return None

    def _scoped_tab(self, scope: TabScope, tab_names: list[str]) -> Optional[tuple[int, str]]:
        if isinstance(scope, TabByIndex):
            if 0 <= scope.index < len(tab_names):
                return scope.index, tab_names[scope.index]
            return None
        index = _find_tab(tab_names, scope.name)
        if index is None:
            return None
        return index, tab_names[index]

    def navigate_to(self, targets: Iterable[str], scope: Optional[TabScope] = None,
                    current_tab: Optional[str] = None) -> NavigationOutcome:
        """Focus one of ``targets``.

        With a scope only that tab is searched. Without one, the tab holding
        focus is searched first, then every other tab in session order. A
        scope naming a tab that does not exist is dropped in favour of the
        unscoped search.
        """
        targets = list(targets)
        tab_names = self.host.query_tab_names()

        if scope is not None:
            located = self._scoped_tab(scope, tab_names)
            if located is not None:
                index, tab_name = located
                logger.debug(f"Searching {scope.describe()} for {targets}")
                if isinstance(scope, TabByName):
                    self.host.go_to_tab_name(tab_name)
                else:
                    self.host.go_to_tab(index)
                pane_id = self.cycle_tab(targets)
                if pane_id is None:
                    return NavigationOutcome(found=False, resolved_tab_name=tab_name)
                return NavigationOutcome(found=True, resolved_pane_id=pane_id, resolved_tab_name=tab_name)
            logger.warning(f"No {scope.describe()} in session (tabs: {tab_names}); searching every tab")

        outcome = self._search_everywhere(targets, tab_names, current_tab)
        if scope is not None:
            return NavigationOutcome(
                found=outcome.found,
                resolved_pane_id=outcome.resolved_pane_id,
                resolved_tab_name=outcome.resolved_tab_name,
                scope_ignored=True,
            )
        return outcome

    def _search_everywhere(self, targets: list[str], tab_names: list[str],
                           current_tab: Optional[str]) -> NavigationOutcome:
        # Cheapest case first: the target is in the tab we are already on
        pane_id = self.cycle_tab(targets)
        if pane_id is not None:
            return NavigationOutcome(found=True, resolved_pane_id=pane_id, resolved_tab_name=current_tab)

        skip = _find_tab(tab_names, current_tab) if current_tab is not None else None
        for index, tab_name in enumerate(tab_names):
            if index == skip:
                continue
            logger.debug(f"Searching tab #{index + 1} '{tab_name}' for {targets}")
            self.host.go_to_tab(index)
            pane_id = self.cycle_tab(targets)
            if pane_id is not None:
                return NavigationOutcome(found=True, resolved_pane_id=pane_id, resolved_tab_name=tab_name)

        return NavigationOutcome(found=False)
