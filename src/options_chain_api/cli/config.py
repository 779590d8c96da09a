"""YAML/CLI config merging for the API build entrypoints.

Precedence is always CLI overrides > YAML file > in-code defaults.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml
from dotenv import find_dotenv, load_dotenv


def add_config_arg(parser) -> None:
    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to a YAML config file.",
    )


def load_yaml_config(path: str | Path | None) -> dict[str, Any]:
    if path is None:
        return {}

    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")

    with p.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError("Config file must contain a YAML mapping at the top level.")

    return data


def deep_merge(
    base: Mapping[str, Any],
    updates: Mapping[str, Any],
) -> dict[str, Any]:
    merged: dict[str, Any] = {}

    for key, value in base.items():
        if isinstance(value, Mapping):
            merged[key] = deep_merge(value, {})
        else:
            merged[key] = value

    for key, value in updates.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), Mapping):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value

    return merged


def build_config(
    defaults: Mapping[str, Any],
    yaml_path: str | Path | None,
    overrides: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    config = deep_merge(defaults, load_yaml_config(yaml_path))
    if overrides:
        config = deep_merge(config, overrides)
    return config


def _expand_path(value: str | Path) -> Path:
    if isinstance(value, Path):
        return value
    expanded = os.path.expandvars(os.path.expanduser(str(value)))
    return Path(expanded)


def resolve_path_or_env(
    value: str | Path | None,
    env_name: str | None,
) -> Path | None:
    """Resolve an explicit path, falling back to an environment variable.

    A `.env` file in the working directory is loaded first (existing
    environment variables win), so `DATA_INPUT_PATH=...` style deployments
    keep working without passing paths on the command line.
    """
    if value not in (None, ""):
        return _expand_path(value)
    if not env_name:
        return None

    load_dotenv(find_dotenv(usecwd=True), override=False)
    env_value = os.getenv(env_name)
    if not env_value:
        return None
    return _expand_path(env_value)
