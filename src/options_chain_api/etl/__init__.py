"""Public API for the options-chain API build pipeline."""

from __future__ import annotations

from .config import ProcessingConfig, WritePolicy
from .errors import (
    ArtifactTooLargeError,
    ArtifactWriteError,
    InvalidLocationError,
    NonRetryableWriteError,
    OptionsApiError,
    SourceReadError,
)
from .metrics import MemoryTracker, rss_bytes
from .run import build_api
from .sink import LocalFileSink, SinkWriter
from .source import parse_options_csv, read_options_csv
from .types import (
    BuildApiResult,
    CleanRecord,
    MemoryMetrics,
    RawRecord,
    RunStatistics,
)

__all__ = [
    "ArtifactTooLargeError",
    "ArtifactWriteError",
    "BuildApiResult",
    "CleanRecord",
    "InvalidLocationError",
    "LocalFileSink",
    "MemoryMetrics",
    "MemoryTracker",
    "NonRetryableWriteError",
    "OptionsApiError",
    "ProcessingConfig",
    "RawRecord",
    "RunStatistics",
    "SinkWriter",
    "SourceReadError",
    "WritePolicy",
    "build_api",
    "parse_options_csv",
    "read_options_csv",
    "rss_bytes",
]
