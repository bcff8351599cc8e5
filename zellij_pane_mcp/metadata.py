"""Pane metadata exported by the zellij-pane-tracker plugin.

The plugin rewrites the whole file on every pane change::

    {"panes": {"terminal_1": "opencode", "plugin_0": "tab-bar"}, "timestamp": 1718000000}

A snapshot is read once per request and never refreshed mid-request.
"""

import json
import logging
import re
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional

from .errors import MetadataUnavailableError

logger = logging.getLogger(__name__)

PANE_ID_PATTERN = re.compile(r"^(terminal|plugin)_(\d+)$", re.IGNORECASE)


def pane_sort_key(pane_id: str) -> tuple:
    """Order pane ids numerically: terminal_2 before terminal_10."""
    match = PANE_ID_PATTERN.match(pane_id)
    if match:
        return (0, match.group(1).lower(), int(match.group(2)))
    return (1, pane_id, 0)


def is_terminal_pane(pane_id: str) -> bool:
    return pane_id.lower().startswith("terminal_")


@dataclass(frozen=True)
class PaneRecord:
    pane_id: str
    name: str


@dataclass(frozen=True)
class MetadataSnapshot:
    """Point-in-time pane id -> display name mapping."""
    panes: dict[str, str] = field(default_factory=dict)
    captured_at: Optional[float] = None
    source: Optional[str] = None
    problem: Optional[str] = None

    @property
    def available(self) -> bool:
        return self.problem is None

    def records(self, terminals_only: bool = True) -> list[PaneRecord]:
        """Pane records sorted by id."""
        ids = sorted(self.panes, key=pane_sort_key)
        return [
            PaneRecord(pane_id, self.panes[pane_id] or "")
            for pane_id in ids
            if not terminals_only or is_terminal_pane(pane_id)
        ]

    def age(self, now: Optional[float] = None) -> Optional[float]:
        if self.captured_at is None:
            return None
        return max(0.0, (now if now is not None else time.time()) - self.captured_at)

    def captured_at_iso(self) -> Optional[str]:
        if self.captured_at is None:
            return None
        try:
            return datetime.fromtimestamp(self.captured_at, tz=timezone.utc).isoformat()
        except (ValueError, OverflowError, OSError):
            # Millisecond or otherwise out-of-range timestamps
            return None

    def listing(self) -> list[dict[str, str]]:
        """Terminal panes as plain dicts for tool results."""
        return [{"id": r.pane_id, "name": r.name or "(unnamed)"} for r in self.records()]


def _parse_document(data: Any, path: str) -> MetadataSnapshot:
    if not isinstance(data, dict) or not isinstance(data.get("panes"), dict):
        raise MetadataUnavailableError(f"Pane metadata in {path} has no 'panes' mapping", source=path)

    panes = {}
    for pane_id, name in data["panes"].items():
        panes[str(pane_id)] = "" if name is None else str(name)

    timestamp = data.get("timestamp")
    captured_at = float(timestamp) if isinstance(timestamp, (int, float)) else None
    return MetadataSnapshot(panes=panes, captured_at=captured_at, source=path)


def read_snapshot(path: str) -> MetadataSnapshot:
    """Read and parse the pane names file, raising MetadataUnavailableError."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except FileNotFoundError:
        raise MetadataUnavailableError(
            "No pane metadata found. Is the zellij-pane-tracker plugin running?", source=path
        )
    except (OSError, json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MetadataUnavailableError(f"Failed to read pane metadata from {path}: {e}", source=path)
    return _parse_document(data, path)


def load_snapshot(path: str) -> MetadataSnapshot:
    """Read the pane names file, degrading to an empty snapshot on failure."""
    try:
        snapshot = read_snapshot(path)
    except MetadataUnavailableError as e:
        logger.warning(e.message)
        return MetadataSnapshot(source=path, problem=e.message)
    logger.debug(f"Loaded {len(snapshot.panes)} panes from {path}")
    return snapshot
