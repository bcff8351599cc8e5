"""Identifier parsing: split a raw pane identifier into tab scope + pane query.

Recognised shapes, in order::

    "Tab #2 Pane 1"   -> TabByIndex(1), "Pane 1"
    "shell Pane 2"    -> TabByName("shell"), "Pane 2"
    "opencode"        -> no scope, "opencode"

Parsing never fails; anything unrecognised becomes an unscoped query.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union

TAB_INDEX_PATTERN = re.compile(r"^tab\s*#?\s*(\d+)\s+(\S.*)$", re.IGNORECASE)
TAB_NAME_PATTERN = re.compile(
    r"^(\S+)\s+(pane\s*#?\s*\d+|terminal_\d+|\d+)$", re.IGNORECASE
)


@dataclass(frozen=True)
class TabByName:
    name: str

    def describe(self) -> str:
        return f"tab '{self.name}'"


@dataclass(frozen=True)
class TabByIndex:
    index: int  # 0-based

    def describe(self) -> str:
        return f"tab #{self.index + 1}"


TabScope = Union[TabByName, TabByIndex]


@dataclass(frozen=True)
class Query:
    pane_query: str
    tab_scope: Optional[TabScope] = None
    raw: str = ""


def parse_identifier(raw: str) -> Query:
    """Parse a user-supplied pane identifier."""
    text = (raw or "").strip()

    match = TAB_INDEX_PATTERN.match(text)
    if match and int(match.group(1)) >= 1:
        return Query(pane_query=match.group(2).strip(), tab_scope=TabByIndex(int(match.group(1)) - 1), raw=raw)

    match = TAB_NAME_PATTERN.match(text)
    if match and match.group(1).lower() != "pane":
        return Query(pane_query=match.group(2), tab_scope=TabByName(match.group(1)), raw=raw)

    return Query(pane_query=text, raw=raw)
