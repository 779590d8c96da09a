"""options_chain_api.etl.config

Run configuration for the API build. One `ProcessingConfig` is built at the
process boundary (CLI/YAML) and handed to `build_api`; no module reads
environment variables on its own.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from options_chain_api.config import constants as C


@dataclass(frozen=True)
class WritePolicy:
    """Size ceiling and retry settings applied to every artifact write."""

    max_bytes: int = C.MAX_FILE_SIZE
    max_retries: int = C.MAX_RETRIES
    base_delay_s: float = C.RETRY_BASE_DELAY_S


@dataclass(frozen=True)
class ProcessingConfig:
    batch_size: int = C.BATCH_SIZE
    decimal_precision: int = C.DECIMAL_PRECISION
    max_file_size: int = C.MAX_FILE_SIZE
    max_concurrency: int = field(default_factory=C.default_max_concurrency)
    parallel: bool = True
    max_retries: int = C.MAX_RETRIES
    retry_base_delay_s: float = C.RETRY_BASE_DELAY_S
    progress_every_batches: int = C.PROGRESS_EVERY_BATCHES
    progress_every_waves: int = C.PROGRESS_EVERY_WAVES
    gc_every_batches: int = C.GC_EVERY_BATCHES
    memory_hints: bool = False
    max_metadata_warnings: int = C.MAX_METADATA_WARNINGS
    max_metadata_errors: int | None = None
    error_summary_limit: int = C.ERROR_SUMMARY_LIMIT
    symbols_file: str = C.SYMBOLS_FILE
    metadata_file: str = C.METADATA_FILE
    symbols_dir: str = C.SYMBOLS_DIR

    def __post_init__(self) -> None:
        positive = (
            "batch_size",
            "max_file_size",
            "max_concurrency",
            "progress_every_batches",
            "progress_every_waves",
            "gc_every_batches",
        )
        for name in positive:
            if int(getattr(self, name)) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)!r}")

        non_negative = ("decimal_precision", "max_retries", "max_metadata_warnings", "error_summary_limit")
        for name in non_negative:
            if int(getattr(self, name)) < 0:
                raise ValueError(f"{name} must be >= 0, got {getattr(self, name)!r}")

        if self.retry_base_delay_s < 0:
            raise ValueError("retry_base_delay_s must be >= 0")
        if self.max_metadata_errors is not None and self.max_metadata_errors < 0:
            raise ValueError("max_metadata_errors must be >= 0 or None")

        for name in ("symbols_file", "metadata_file", "symbols_dir"):
            if not str(getattr(self, name)).strip():
                raise ValueError(f"{name} must be non-empty")

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, Any] | None) -> ProcessingConfig:
        """Build from the `processing` section of a merged CLI/YAML config.

        `None` values fall back to the defaults; unknown keys raise.
        """
        if not mapping:
            return cls()

        known = {f.name for f in fields(cls)}
        unknown = sorted(set(mapping) - known)
        if unknown:
            raise ValueError(f"Unknown processing config keys: {unknown}")

        kwargs = {k: v for k, v in mapping.items() if v is not None}
        return cls(**kwargs)

    @property
    def write_policy(self) -> WritePolicy:
        return WritePolicy(
            max_bytes=self.max_file_size,
            max_retries=self.max_retries,
            base_delay_s=self.retry_base_delay_s,
        )

    def effective_concurrency(self, n_keys: int) -> int:
        """Wave size for `n_keys` partitions (always at least 1)."""
        if not self.parallel:
            return 1
        return max(1, min(self.max_concurrency, n_keys))
