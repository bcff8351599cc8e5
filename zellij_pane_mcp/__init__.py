"""Address Zellij panes by human-friendly names over MCP."""

__version__ = "0.3.0"
