"""Logging configuration for the API build entrypoints.

Library modules never call basicConfig; they only do
`logger = getLogger(__name__)`. The CLI calls `setup_logging(...)` once per
process, with an optional log file next to the console handler.

The console handler attaches `_AddShortNameFilter`, which injects
`record.shortname` (last dotted component of the logger name) so console
formats can use `%(shortname)s`, e.g. `persist` instead of
`options_chain_api.etl.persist`.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Mapping

DATEFMT = "%Y-%m-%d %H:%M:%S"

LEVELS: dict[str, int] = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


class _AddShortNameFilter(logging.Filter):
    """Inject `record.shortname` without touching `record.name`."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.shortname = record.name.split(".")[-1]
        return True


class _ColorFormatter(logging.Formatter):
    """Colour only the level name; meant for the console handler."""

    _RESET = "\033[0m"
    _LEVEL_COLOR: dict[int, str] = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[1;31m",
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self._LEVEL_COLOR.get(record.levelno)
        if not color:
            return super().format(record)

        original = record.levelname
        record.levelname = f"{color}{original}{self._RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


def coerce_level(level: int | str) -> int:
    """Coerce a level given as int, digit string or level name into an int."""
    if isinstance(level, int):
        return level

    s = str(level).strip().upper()
    if not s:
        raise ValueError("Empty logging level")

    if s.isdigit():
        return int(s)

    try:
        return LEVELS[s]
    except KeyError as e:
        raise ValueError(f"Unknown logging level: {level!r}") from e


def setup_logging(
    level: int | str = "INFO",
    *,
    fmt_console: str = "%(asctime)s %(levelname)s %(name)s - %(message)s",
    fmt_file: str = "%(asctime)s %(levelname)s %(name)s - %(message)s",
    log_file: str | Path | None = None,
    module_levels: Mapping[str, int | str] | None = None,
    colored: bool = False,
) -> None:
    """Configure root logging for one API build process.

    Parameters
    - level: Root log level (int or string, e.g. logging.INFO or "INFO").
    - fmt_console: Console format; `%(shortname)s` is available.
    - fmt_file: File format (used only when `log_file` is provided).
    - log_file: Optional path of an additional, uncoloured log file.
    - module_levels: Optional per-logger overrides
      (e.g. `{"options_chain_api.etl.persist": "DEBUG"}`).
    - colored: Colourize the console level names (ANSI).

    Uses `force=True` so repeated calls (tests, notebooks) replace handlers
    instead of stacking them.
    """
    root_level = coerce_level(level)
    handlers: list[logging.Handler] = []

    console = logging.StreamHandler()
    console.addFilter(_AddShortNameFilter())
    if colored:
        console.setFormatter(_ColorFormatter(fmt=fmt_console, datefmt=DATEFMT))
    else:
        console.setFormatter(logging.Formatter(fmt=fmt_console, datefmt=DATEFMT))
    handlers.append(console)

    if log_file is not None:
        p = Path(log_file)
        p.parent.mkdir(parents=True, exist_ok=True)

        fh = logging.FileHandler(p, encoding="utf-8")
        fh.addFilter(_AddShortNameFilter())
        fh.setFormatter(logging.Formatter(fmt=fmt_file, datefmt=DATEFMT))
        handlers.append(fh)

    logging.basicConfig(level=root_level, handlers=handlers, force=True)

    if module_levels:
        for name, lvl in module_levels.items():
            logging.getLogger(name).setLevel(coerce_level(lvl))
