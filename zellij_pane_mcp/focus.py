"""Focus tracking.

Zellij has no "which pane/tab is focused" query, so both are derived:
the pane from the last row of ``list-clients``, the tab from the
``focus=true`` marker in ``dump-layout`` or, failing that, by visiting each
tab and checking whether its focused pane is the one we started from.
Nothing here is cached; every call asks the host again.
"""

import logging
import re
from typing import Optional

from .errors import HostCommandError

logger = logging.getLogger(__name__)

TAB_LINE_PATTERN = re.compile(r'^\s*tab\b(?P<attrs>[^{]*)')
TAB_NAME_ATTR = re.compile(r'\bname="(?P<name>[^"]*)"')


def focused_tab_from_layout(layout_text: str) -> Optional[str]:
    """Name of the tab marked ``focus=true`` in a KDL layout dump."""
    for line in layout_text.split('\n'):
        match = TAB_LINE_PATTERN.match(line)
        if not match:
            continue
        attrs = match.group("attrs")
        if "focus=true" not in attrs:
            continue
        name_match = TAB_NAME_ATTR.search(attrs)
        if name_match:
            return name_match.group("name")
    return None


class FocusTracker:
    """Reads the session's current focus through the host."""

    def __init__(self, host):
        self.host = host

    def current_pane_id(self) -> Optional[str]:
        """Pane id of the last client listed by list-clients."""
        clients = self.host.list_clients()
        if not clients:
            return None
        return clients[-1].pane_id

    def require_pane_id(self) -> str:
        pane_id = self.current_pane_id()
        if pane_id is None:
            raise HostCommandError(
                "Could not determine the focused pane: list-clients returned no clients",
                command="action list-clients",
            )
        return pane_id

    def current_tab_name(self, via_cycle: bool = True) -> Optional[str]:
        """Name of the tab holding focus.

        Tries dump-layout first. With ``via_cycle`` it falls back to visiting
        every tab; on success focus ends up back on the starting pane, since
        each tab keeps its own focused pane.
        """
        try:
            name = focused_tab_from_layout(self.host.dump_layout())
        except HostCommandError as e:
            logger.debug(f"dump-layout unavailable for tab detection: {e}")
            name = None
        if name is not None or not via_cycle:
            return name
        return self._tab_name_by_cycle()

    def _tab_name_by_cycle(self) -> Optional[str]:
        origin = self.require_pane_id()
        for tab_name in self.host.query_tab_names():
            self.host.go_to_tab_name(tab_name)
            if self.current_pane_id() == origin:
                logger.debug(f"Pane {origin} is on tab '{tab_name}'")
                return tab_name
        logger.warning(f"Could not find the tab holding pane {origin}")
        return None
