"""Shared CLI helpers for app entrypoints."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any


def add_print_config_arg(parser) -> None:
    parser.add_argument(
        "--print-config",
        action="store_true",
        help="Print merged config (JSON) and exit.",
    )


def add_dry_run_arg(parser) -> None:
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Resolve config and paths, log the plan, and exit without writing.",
    )


def add_bool_flag(
    parser,
    name: str,
    *,
    dest: str,
    help_on: str,
    help_off: str,
    off_name: str | None = None,
) -> None:
    """Add a `--name/--no-name` pair that defaults to `None` (unset).

    `off_name` replaces the `--no-name` spelling, e.g. `--parallel/--sequential`.
    """
    parser.add_argument(f"--{name}", dest=dest, action="store_true", help=help_on)
    off = off_name or f"no-{name}"
    parser.add_argument(f"--{off}", dest=dest, action="store_false", help=help_off)
    parser.set_defaults(**{dest: None})


def collect_logging_overrides(args) -> dict[str, Any]:
    """Collect logging override values from parsed CLI args."""
    overrides: dict[str, Any] = {}
    if getattr(args, "log_level", None):
        overrides["level"] = args.log_level
    if getattr(args, "log_file", None):
        overrides["file"] = args.log_file
    if getattr(args, "log_format", None):
        overrides["format"] = args.log_format
    if getattr(args, "log_color", None) is not None:
        overrides["color"] = args.log_color
    return overrides


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, Mapping):
        return {str(k): _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple, set)):
        return [_jsonable(v) for v in obj]
    return obj


def print_config(config: Mapping[str, Any]) -> None:
    print(json.dumps(_jsonable(config), indent=2, sort_keys=True))


def log_dry_run(logger: logging.Logger, plan: Mapping[str, Any]) -> None:
    logger.info("DRY RUN: nothing was read or written.")
    logger.info("DRY RUN plan:\n%s", json.dumps(_jsonable(plan), indent=2, sort_keys=True))
