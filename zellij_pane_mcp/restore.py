"""Focus lease: hold the session's focus for one request and give it back.

Focus is session-global, so requests against the same session are
serialised by a per-session lock. The origin pane and tab are recorded
before anything moves, and ``restore_origin`` runs on every exit path.
"""

import logging
import os
import threading
from typing import Optional

from .errors import ZellijPaneError

logger = logging.getLogger(__name__)

# Per-session locks for focus operations to prevent race conditions
_focus_locks: dict[str, threading.Lock] = {}
_focus_locks_lock = threading.Lock()


def get_focus_lock(session: Optional[str] = None) -> threading.Lock:
    """Get or create a lock for focus operations on a session."""
    key = session or os.environ.get("ZELLIJ_SESSION_NAME", "_default")
    with _focus_locks_lock:
        if key not in _focus_locks:
            _focus_locks[key] = threading.Lock()
        return _focus_locks[key]


def restore_origin(navigator, tracker, origin: str, origin_tab: Optional[str]) -> Optional[str]:
    """Put focus back on ``origin``.

    Jumps to the origin tab and cycles there; falls back to a full search
    when the tab is unknown or the pane is not in it. Returns a warning
    message when the origin pane could not be found, None otherwise.
    """
    if tracker.current_pane_id() == origin:
        return None

    host = navigator.host
    if origin_tab is not None:
        host.go_to_tab_name(origin_tab)
        if navigator.cycle_tab([origin]) is not None:
            logger.debug(f"Restored focus to {origin} on tab '{origin_tab}'")
            return None
        logger.info(f"Origin pane {origin} not found on tab '{origin_tab}', searching every tab")

    outcome = navigator.navigate_to([origin], current_tab=None)
    if outcome.found:
        return None

    focused = tracker.current_pane_id()
    message = f"Origin pane {origin} no longer exists; focus left on {focused or 'an unknown pane'}"
    logger.warning(message)
    return message


class FocusLease:
    """Context manager owning the session focus for the duration of a request.

    Usage::

        with FocusLease(navigator, tracker, session) as lease:
            outcome = navigator.navigate_to(targets, scope, current_tab=lease.origin_tab)
            ...
        warnings = lease.warnings
    """

    def __init__(self, navigator, tracker, session: Optional[str] = None):
        self.navigator = navigator
        self.tracker = tracker
        self.session = session
        self.origin: Optional[str] = None
        self.origin_tab: Optional[str] = None
        self.warnings: list[str] = []
        self._lock = get_focus_lock(session)

    def __enter__(self) -> "FocusLease":
        self._lock.acquire()
        try:
            self.origin = self.tracker.require_pane_id()
        except BaseException:
            self._lock.release()
            raise
        try:
            # May visit other tabs when dump-layout has no answer
            self.origin_tab = self.tracker.current_tab_name()
        except BaseException:
            self._release()
            raise
        logger.debug(f"Focus lease taken at {self.origin} (tab {self.origin_tab!r})")
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        self._release()
        return False

    def _release(self) -> None:
        try:
            warning = restore_origin(self.navigator, self.tracker, self.origin, self.origin_tab)
            if warning:
                self.warnings.append(warning)
        except ZellijPaneError as e:
            logger.error(f"Failed to restore focus to {self.origin}: {e}")
            self.warnings.append(f"Failed to restore focus to {self.origin}: {e.message}")
        finally:
            self._lock.release()
