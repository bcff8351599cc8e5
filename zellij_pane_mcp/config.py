"""Runtime settings, read from the environment."""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

logger = logging.getLogger(__name__)

# Written by the zellij-pane-tracker plugin on every PaneUpdate event
DEFAULT_PANE_NAMES_FILE = "/tmp/zj-pane-names.json"


def _env_number(environ: Mapping[str, str], key: str, default, cast):
    raw = environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = cast(raw)
    except ValueError:
        logger.warning(f"Ignoring invalid {key}={raw!r}, using {default}")
        return default
    if value < 0:
        logger.warning(f"Ignoring negative {key}={raw!r}, using {default}")
        return default
    return value


@dataclass(frozen=True)
class Settings:
    """Engine settings.

    Attributes:
        pane_names_file: JSON file exported by the pane-tracker plugin.
        max_cycle: Safety cap on focus-next-pane steps inside one tab.
        default_lines: Lines kept by dump_pane when not dumping full scrollback.
        settle_delay: Seconds to wait after a focus change before reading focus.
        command_timeout: Timeout for a single zellij invocation.
        log_level: Level name for the stderr log handler.
    """
    pane_names_file: str = DEFAULT_PANE_NAMES_FILE
    max_cycle: int = 10
    default_lines: int = 100
    settle_delay: float = 0.1
    command_timeout: float = 10.0
    log_level: str = "WARNING"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if environ is None else environ
        return cls(
            pane_names_file=env.get("ZELLIJ_PANE_NAMES_FILE") or DEFAULT_PANE_NAMES_FILE,
            max_cycle=_env_number(env, "ZELLIJ_PANE_MAX_CYCLE", cls.max_cycle, int),
            default_lines=_env_number(env, "ZELLIJ_PANE_DEFAULT_LINES", cls.default_lines, int),
            settle_delay=_env_number(env, "ZELLIJ_PANE_SETTLE_DELAY", cls.settle_delay, float),
            command_timeout=_env_number(env, "ZELLIJ_PANE_COMMAND_TIMEOUT", cls.command_timeout, float),
            log_level=(env.get("ZELLIJ_PANE_LOG_LEVEL") or cls.log_level).upper(),
        )
