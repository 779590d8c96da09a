"""Dataset-level artifacts: the symbol index and the run metadata."""

from __future__ import annotations

import logging
import time
from collections.abc import Mapping, Sequence
from datetime import datetime

from options_chain_api.contracts.options_chain import CALL

from .config import ProcessingConfig
from .log_fmt import fmt_bytes
from .persist import SleepFn, write_artifact
from .sink import SinkWriter
from .types import (
    AggregateArtifacts,
    CleanRecord,
    Coverage,
    DatasetMetadata,
    ErrorType,
    PersistenceResult,
    RunStatistics,
    iso_utc,
    utc_now,
)

logger = logging.getLogger(__name__)


def synthesize(
    partitions: Mapping[str, Sequence[CleanRecord]],
    results: Sequence[PersistenceResult],
    *,
    stats: RunStatistics,
    config: ProcessingConfig | None = None,
    now: datetime | None = None,
) -> AggregateArtifacts:
    """Build the index and metadata artifacts (no I/O).

    The index lists every partition key, whether or not its write succeeded.
    `symbol_count` and `coverage.symbols_with_data` count only keys with a
    successful result.
    """
    cfg = config or ProcessingConfig()
    end = now or utc_now()

    data_date: str | None = None
    total = 0
    calls = 0
    for records in partitions.values():
        for record in records:
            if data_date is None:
                data_date = record.date
            total += 1
            if record.option_type == CALL:
                calls += 1

    if data_date is None:
        data_date = end.date().isoformat()

    ok_keys = {r.symbol for r in results if r.success and r.symbol in partitions}

    errors = stats.error_messages()
    if cfg.max_metadata_errors is not None:
        errors = errors[: cfg.max_metadata_errors]

    duration_ms = max(0, int((end - stats.started_at).total_seconds() * 1000))

    metadata = DatasetMetadata(
        data_date=data_date,
        last_updated=iso_utc(end),
        symbol_count=len(ok_keys),
        total_contracts=total,
        start_time=iso_utc(stats.started_at),
        end_time=iso_utc(end),
        duration_ms=duration_ms,
        errors=tuple(errors),
        warnings=tuple(stats.warnings[: cfg.max_metadata_warnings]),
        coverage=Coverage(
            calls=calls,
            puts=total - calls,
            symbols_with_data=len(ok_keys),
        ),
    )
    return AggregateArtifacts(index=tuple(sorted(partitions)), metadata=metadata)


def persist_aggregates(
    artifacts: AggregateArtifacts,
    *,
    sink: SinkWriter,
    stats: RunStatistics,
    config: ProcessingConfig | None = None,
    sleep: SleepFn = time.sleep,
) -> None:
    """Write the index then the metadata artifact.

    Failures are recorded as `file_write` errors and re-raised; the run cannot
    complete without both aggregates.
    """
    cfg = config or ProcessingConfig()
    policy = cfg.write_policy

    outputs = (
        (cfg.symbols_file, list(artifacts.index)),
        (cfg.metadata_file, artifacts.metadata.to_payload()),
    )
    for location, payload in outputs:
        try:
            receipt = write_artifact(sink, location, payload, policy=policy, sleep=sleep)
        except Exception as e:
            stats.add_error(
                ErrorType.FILE_WRITE, f"Failed to write {location}: {e}"
            )
            raise

        stats.files_saved += 1
        logger.info("Saved %s (%s)", location, fmt_bytes(receipt.size))
