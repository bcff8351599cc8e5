"""Pane engine exceptions.

Raised inside the engine and turned into ``{"success": False, ...}`` result
dicts at the PaneEngine boundary, so a failed request never takes the server
down.

PUBLIC API:
  - ZellijPaneError: Base exception for all engine failures
  - PaneResolutionError: Identifier matched no known pane
  - NavigationError: Resolved pane could not be reached by focus cycling
  - HostCommandError: A zellij invocation failed
  - MetadataUnavailableError: Pane names file missing or unparsable
"""

from typing import Any


class ZellijPaneError(Exception):
    """Base exception for all pane engine failures."""

    kind = "error"

    def __init__(self, message: str, **details: Any):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_result(self) -> dict[str, Any]:
        """Render as a tool result dict."""
        return {"success": False, "error": self.message, "kind": self.kind, **self.details}


class PaneResolutionError(ZellijPaneError):
    """Raised when an identifier matches no pane in the metadata snapshot."""

    kind = "resolution"


class NavigationError(ZellijPaneError):
    """Raised when a resolved pane is not reachable within the bounded search."""

    kind = "navigation"


class HostCommandError(ZellijPaneError):
    """Raised when a zellij command exits non-zero, times out or cannot start."""

    kind = "host_command"


class MetadataUnavailableError(ZellijPaneError):
    """Raised when the pane names file is missing or cannot be parsed."""

    kind = "metadata_unavailable"
