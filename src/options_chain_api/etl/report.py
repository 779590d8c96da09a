from __future__ import annotations

import logging
from collections import Counter

from options_chain_api.config.constants import ERROR_SUMMARY_LIMIT

from .log_fmt import fmt_bytes, fmt_int, fmt_pct
from .types import MemoryMetrics, PhaseTimings, RunStatistics

logger = logging.getLogger(__name__)


def summarize_errors(stats: RunStatistics) -> dict[str, int]:
    """Error counts per type, e.g. `{"validation": 12, "file_write": 1}`."""
    counts = Counter(e.type.value for e in stats.errors)
    return dict(sorted(counts.items()))


def log_run_summary(
    stats: RunStatistics,
    *,
    timings: PhaseTimings | None = None,
    memory: MemoryMetrics | None = None,
    error_limit: int = ERROR_SUMMARY_LIMIT,
) -> None:
    """Log the end-of-run summary.

    Counters first, then phase timings and RSS (when given), then either a
    success line or the per-type error counts and the first `error_limit`
    errors.
    """
    logger.info("==== Processing summary ====")
    logger.info(
        "rows total=%s valid=%s (%s) invalid=%s",
        fmt_int(stats.total_rows),
        fmt_int(stats.valid_rows),
        fmt_pct(stats.valid_rows, stats.total_rows),
        fmt_int(stats.invalid_rows),
    )
    logger.info(
        "symbols=%s files_saved=%s time_s=%.2f",
        fmt_int(stats.unique_symbols),
        fmt_int(stats.files_saved),
        stats.processing_time_s,
    )
    logger.info(
        "warnings=%s errors=%s",
        fmt_int(len(stats.warnings)),
        fmt_int(len(stats.errors)),
    )

    if timings is not None:
        logger.info(
            "timings_s read=%.2f validate=%.2f partition=%.2f write=%.2f "
            "aggregate=%.2f total=%.2f",
            timings.read_s,
            timings.validation_s,
            timings.partition_s,
            timings.write_s,
            timings.aggregate_s,
            timings.total_s,
        )

    if memory is not None:
        delta = memory.delta_bytes
        logger.info(
            "memory_rss before=%s after=%s peak=%s %s=%s",
            fmt_bytes(memory.before_bytes),
            fmt_bytes(memory.after_bytes),
            fmt_bytes(memory.peak_bytes),
            "gained" if delta > 0 else "freed",
            fmt_bytes(abs(delta)),
        )

    if not stats.errors:
        logger.info("Processing completed successfully")
        return

    by_type = summarize_errors(stats)
    logger.warning(
        "Processing completed with %s errors (%s)",
        fmt_int(len(stats.errors)),
        " ".join(f"{k}={fmt_int(v)}" for k, v in by_type.items()),
    )
    for err in stats.errors[:error_limit]:
        logger.warning("  %s: %s", err.type.value, err.message)

    remaining = len(stats.errors) - error_limit
    if remaining > 0:
        logger.warning("  ... and %s more errors", fmt_int(remaining))
