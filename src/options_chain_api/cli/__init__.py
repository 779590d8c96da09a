from .config import add_config_arg, build_config, resolve_path_or_env
from .logging import (
    DEFAULT_LOGGING,
    add_logging_args,
    setup_logging_from_config,
)

__all__ = [
    "DEFAULT_LOGGING",
    "add_config_arg",
    "add_logging_args",
    "build_config",
    "resolve_path_or_env",
    "setup_logging_from_config",
]
