"""Actions performed on the focused pane: capture scrollback, inject input."""

import contextlib
import logging
import os
import re
import tempfile
from typing import Any, Optional

from .host import ENTER, strip_ansi

logger = logging.getLogger(__name__)

DEFAULT_LINES = 100


def tail_lines(content: str, limit: Optional[int]) -> tuple[str, int, int]:
    """Trim trailing blank lines, then keep the last ``limit`` lines.

    Returns (text, omitted, total). When lines are dropped the text starts
    with a banner saying how many.
    """
    lines = content.split('\n')
    while lines and not lines[-1].strip():
        lines.pop()
    total = len(lines)

    if limit is None or limit <= 0 or total <= limit:
        return '\n'.join(lines), 0, total

    omitted = total - limit
    banner = f"... {omitted} lines omitted (showing last {limit} of {total}; use full=true for everything) ..."
    return '\n'.join([banner] + lines[-limit:]), omitted, total


def _artifact_prefix(pane_id: str) -> str:
    safe = re.sub(r'[^A-Za-z0-9_-]', '_', pane_id)
    return f"zj-dump-{safe}-"


def capture_pane(host, pane_id: str, full: bool = False, lines: Optional[int] = DEFAULT_LINES,
                 strip: bool = True) -> dict[str, Any]:
    """Dump the focused pane (expected to be ``pane_id``) and read it back.

    The dump goes to a fresh temp file named after the pane so concurrent
    requests never share an artifact.
    """
    # Must use temp file - /dev/stdout doesn't work with capture_output
    fd, tmp_path = tempfile.mkstemp(prefix=_artifact_prefix(pane_id), suffix=".txt")
    os.close(fd)
    try:
        host.dump_screen(tmp_path, full=full)
        with open(tmp_path, 'r', errors='replace') as f:
            content = f.read()
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.unlink(tmp_path)

    if strip:
        content = strip_ansi(content)
    text, omitted, total = tail_lines(content, None if full else lines)
    logger.debug(f"Captured {total} lines from {pane_id} ({omitted} omitted)")
    return {"content": text, "total_lines": total, "omitted_lines": omitted}


def inject_text(host, text: str, submit: bool = True) -> None:
    """Type ``text`` into the focused pane, then press enter as a separate write."""
    if text:
        host.write_chars(text)
    if submit:
        host.write_bytes(ENTER)
