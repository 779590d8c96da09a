"""Default processing constants for the options-chain API build."""

from __future__ import annotations

import os

DECIMAL_PRECISION: int = 4

# Validation is chunked to bound peak memory; chunks do not change semantics.
BATCH_SIZE: int = 5_000

MAX_FILE_SIZE: int = 50 * 1024 * 1024  # bytes, per artifact

MAX_CONCURRENCY_CAP: int = 16

# Write retry policy: delay = base * 2**attempt
MAX_RETRIES: int = 3
RETRY_BASE_DELAY_S: float = 1.0

# Logging / pacing cadence
PROGRESS_EVERY_BATCHES: int = 4
PROGRESS_EVERY_WAVES: int = 25
GC_EVERY_BATCHES: int = 8

MAX_METADATA_WARNINGS: int = 100
ERROR_SUMMARY_LIMIT: int = 5

# Output layout
SYMBOLS_FILE: str = "symbols.json"
METADATA_FILE: str = "metadata.json"
SYMBOLS_DIR: str = "symbols"


def default_max_concurrency() -> int:
    """Host parallelism capped at `MAX_CONCURRENCY_CAP`."""
    return max(1, min(MAX_CONCURRENCY_CAP, os.cpu_count() or 1))
