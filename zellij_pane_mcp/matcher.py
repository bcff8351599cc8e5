"""Resolve a pane query against a metadata snapshot.

Rules, first non-empty one wins:

1. ``terminal_N`` / ``plugin_N`` is already a pane id and is used as-is.
2. ``N``, ``Pane N`` or ``Pane #N`` means the display label "Pane #N". A bare
   ``N`` stops here: there is no fallback to ``terminal_N`` since ids and
   default labels drift apart once panes are renamed or closed. ``Pane N``
   forms carry on to the name rules, so a pane renamed "pane 3" still matches.
3. Exact display name, case-insensitive.
4. Substring in either direction, case-insensitive.

Candidates of the winning rule are ordered shortest name first, then lowest
pane id, so ambiguous queries resolve the same way every time.
"""

import re
from typing import Optional

from .metadata import PANE_ID_PATTERN, MetadataSnapshot, PaneRecord, pane_sort_key

PANE_LABEL_PATTERN = re.compile(r"^(?:pane\s*#?\s*)?(\d+)$", re.IGNORECASE)


def _ordered(records: list[PaneRecord]) -> list[str]:
    return [r.pane_id for r in sorted(records, key=lambda r: (len(r.name), pane_sort_key(r.pane_id)))]


def explicit_pane_id(query: str) -> Optional[str]:
    """Return the query as a pane id if it uses id syntax."""
    match = PANE_ID_PATTERN.match(query.strip())
    if match:
        return f"{match.group(1).lower()}_{int(match.group(2))}"
    return None


def label_for_number(query: str) -> Optional[str]:
    """'3', 'pane 3' and 'Pane #3' all mean the label 'Pane #3'."""
    match = PANE_LABEL_PATTERN.match(query.strip())
    if match and int(match.group(1)) > 0:
        return f"Pane #{int(match.group(1))}"
    return None


def resolve_all(query: str, snapshot: MetadataSnapshot) -> list[str]:
    """Every pane id matched by the first applicable rule, best first."""
    query = (query or "").strip()
    if not query:
        return []

    pane_id = explicit_pane_id(query)
    if pane_id:
        return [pane_id]

    records = [r for r in snapshot.records() if r.name]

    label = label_for_number(query)
    if label is not None:
        wanted = label.lower()
        labelled = _ordered([r for r in records if r.name.strip().lower() == wanted])
        if labelled or query.isdigit():
            return labelled

    needle = query.lower()
    exact = [r for r in records if r.name.strip().lower() == needle]
    if exact:
        return _ordered(exact)

    partial = [r for r in records if needle in r.name.lower() or r.name.lower() in needle]
    return _ordered(partial)


def resolve(query: str, snapshot: MetadataSnapshot) -> Optional[str]:
    """Best matching pane id, or None when nothing matches."""
    candidates = resolve_all(query, snapshot)
    return candidates[0] if candidates else None
