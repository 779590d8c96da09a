from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path

from .aggregate import persist_aggregates, synthesize
from .batch import validate_all
from .config import ProcessingConfig
from .errors import SourceReadError
from .log_fmt import fmt_int
from .metrics import MemoryTracker, RssSampler, rss_bytes
from .partition import partition_by_symbol
from .persist import SleepFn, persist_all
from .report import log_run_summary
from .sink import LocalFileSink, SinkWriter
from .source import read_options_csv
from .types import (
    BuildApiResult,
    ErrorType,
    PhaseTimings,
    RawRecord,
    RunStatistics,
)

logger = logging.getLogger(__name__)

Reader = Callable[[Path], Sequence[RawRecord | None]]


def build_api(
    *,
    input_path: str | Path,
    output_root: str | Path,
    config: ProcessingConfig | None = None,
    sink: SinkWriter | None = None,
    reader: Reader = read_options_csv,
    sleep: SleepFn = time.sleep,
    rss: RssSampler = rss_bytes,
) -> BuildApiResult:
    """Build the static options-chain API from one CSV feed.

    Stages
    ------
    read -> validate -> partition -> ensure output locations -> persist
    per-symbol artifacts -> synthesize and persist the index/metadata ->
    summary.

    Row and symbol level problems are recorded on `RunStatistics` and the run
    carries on. A source read failure, an aggregate write failure or any other
    unexpected exception is fatal: it is recorded, the summary is logged, and
    the exception propagates.

    Parameters
    ----------
    input_path:
        CSV feed to read.
    output_root:
        Root of the published artifacts. Used to build a `LocalFileSink` when
        `sink` is not given.
    config:
        Processing settings. Defaults to `ProcessingConfig()`.
    sink:
        Artifact sink; overrides `output_root` for writes.
    reader:
        Callable turning `input_path` into raw rows.
    sleep:
        Backoff sleep used between write retries.
    rss:
        Returns the process RSS in bytes; sampled at run start, after
        validation, between write waves and at the end.

    Returns
    -------
    BuildApiResult
        Statistics, per-symbol results, aggregates, phase timings and memory
        metrics.
    """
    cfg = config or ProcessingConfig()
    in_path = Path(input_path)
    out_root = Path(output_root)
    writer = sink if sink is not None else LocalFileSink(out_root)

    stats = RunStatistics()
    timings = PhaseTimings()
    memory = MemoryTracker(rss)
    t_start = time.perf_counter()

    logger.info("Building options API input=%s output=%s", in_path, out_root)

    recorded = False
    try:
        # 1) read
        t0 = time.perf_counter()
        try:
            raw_rows = reader(in_path)
        except SourceReadError as e:
            stats.add_error(ErrorType.FILE_READ, str(e))
            recorded = True
            raise
        stats.total_rows = len(raw_rows)
        timings.read_s = time.perf_counter() - t0
        logger.info("Loaded %s raw rows", fmt_int(stats.total_rows))

        # 2) validate
        t0 = time.perf_counter()
        records = validate_all(
            raw_rows,
            stats=stats,
            batch_size=cfg.batch_size,
            decimal_precision=cfg.decimal_precision,
            progress_every_batches=cfg.progress_every_batches,
            gc_every_batches=cfg.gc_every_batches,
            memory_hints=cfg.memory_hints,
        )
        timings.validation_s = time.perf_counter() - t0
        memory.sample()

        # 3) partition
        t0 = time.perf_counter()
        partitions = partition_by_symbol(records)
        stats.unique_symbols = len(partitions)
        timings.partition_s = time.perf_counter() - t0
        logger.info("Grouped contracts into %s symbols", fmt_int(len(partitions)))

        # 4) output locations
        writer.ensure_location("")
        writer.ensure_location(cfg.symbols_dir)

        # 5) per-symbol artifacts
        t0 = time.perf_counter()
        results = persist_all(
            partitions,
            sink=writer,
            stats=stats,
            config=cfg,
            sleep=sleep,
            memory=memory,
        )
        timings.write_s = time.perf_counter() - t0

        # 6) index + metadata
        t0 = time.perf_counter()
        aggregates = synthesize(partitions, results, stats=stats, config=cfg)
        try:
            persist_aggregates(
                aggregates, sink=writer, stats=stats, config=cfg, sleep=sleep
            )
        except Exception:
            recorded = True
            raise
        timings.aggregate_s = time.perf_counter() - t0

    except Exception as e:
        if not recorded:
            stats.add_error(ErrorType.UNKNOWN, f"Fatal processing error: {e}")
        stats.processing_time_s = time.perf_counter() - t_start
        timings.total_s = stats.processing_time_s
        logger.error("Processing failed: %s", e)
        log_run_summary(
            stats,
            timings=timings,
            memory=memory.finish(),
            error_limit=cfg.error_summary_limit,
        )
        raise

    stats.processing_time_s = time.perf_counter() - t_start
    timings.total_s = stats.processing_time_s
    memory_metrics = memory.finish()
    log_run_summary(
        stats,
        timings=timings,
        memory=memory_metrics,
        error_limit=cfg.error_summary_limit,
    )

    return BuildApiResult(
        output_root=str(out_root),
        stats=stats,
        results=tuple(results),
        aggregates=aggregates,
        timings=timings,
        memory=memory_metrics,
    )
