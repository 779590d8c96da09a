"""Persist per-symbol artifacts in bounded concurrent waves.

Each wave submits up to `effective_concurrency` writes to a thread pool and
waits for all of them to settle before the next wave starts. A failing symbol
becomes a failed `PersistenceResult`; it never cancels its siblings.

`RunStatistics` is only touched from the calling thread, after each future
settles.
"""

from __future__ import annotations

import gc
import json
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Any, TypeVar

from .config import ProcessingConfig, WritePolicy
from .errors import ArtifactTooLargeError, NonRetryableWriteError
from .log_fmt import fmt_bytes, fmt_int
from .metrics import MemoryTracker
from .partition import expirations_of, strike_range
from .sink import SinkWriter
from .types import (
    CleanRecord,
    ErrorType,
    PartitionArtifact,
    PersistenceResult,
    RunStatistics,
    WriteReceipt,
    iso_utc,
    utc_now,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], None]


def encode_payload(obj: Any) -> bytes:
    """Compact UTF-8 JSON (no whitespace between tokens)."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def write_with_retry(
    write: Callable[[], T],
    *,
    max_retries: int = 3,
    base_delay_s: float = 1.0,
    sleep: SleepFn = time.sleep,
    label: str = "artifact",
) -> T:
    """Call `write` up to `1 + max_retries` times with exponential backoff.

    The delay before retry `n` (0-based) is `base_delay_s * 2**n`. A
    `NonRetryableWriteError` is raised immediately; otherwise the last error is
    re-raised once retries are exhausted.
    """
    for attempt in range(max_retries + 1):
        try:
            return write()
        except NonRetryableWriteError:
            raise
        except Exception as e:
            if attempt >= max_retries:
                logger.error(
                    "Write failed label=%s attempts=%d err=%s",
                    label,
                    attempt + 1,
                    e,
                )
                raise

            delay = base_delay_s * (2**attempt)
            logger.warning(
                "Write attempt %d/%d failed label=%s err=%s; retrying in %.2fs",
                attempt + 1,
                max_retries + 1,
                label,
                e,
                delay,
            )
            sleep(delay)

    raise AssertionError("unreachable")


def write_artifact(
    sink: SinkWriter,
    location: str,
    payload: Any,
    *,
    policy: WritePolicy,
    sleep: SleepFn = time.sleep,
) -> WriteReceipt:
    """Encode `payload`, enforce the size ceiling, then write with retries."""
    data = encode_payload(payload)
    if len(data) > policy.max_bytes:
        raise ArtifactTooLargeError(location, len(data), policy.max_bytes)

    return write_with_retry(
        lambda: sink.write(location, data),
        max_retries=policy.max_retries,
        base_delay_s=policy.base_delay_s,
        sleep=sleep,
        label=location,
    )


def build_partition_artifact(
    symbol: str, records: Sequence[CleanRecord]
) -> PartitionArtifact:
    return PartitionArtifact(
        symbol=symbol,
        contracts=tuple(records),
        contract_count=len(records),
        expirations=expirations_of(records),
        strike_range=strike_range(records),
        last_updated=iso_utc(utc_now()),
    )


def persist_partition(
    symbol: str,
    records: Sequence[CleanRecord],
    *,
    sink: SinkWriter,
    policy: WritePolicy,
    symbols_dir: str,
    sleep: SleepFn = time.sleep,
) -> PersistenceResult:
    """Write one symbol's artifact; failures come back as a failed result."""
    t0 = time.perf_counter()
    location = f"{symbols_dir}/{symbol}.json"

    try:
        artifact = build_partition_artifact(symbol, records)
        receipt = write_artifact(
            sink, location, artifact.to_payload(), policy=policy, sleep=sleep
        )
    except Exception as e:
        return PersistenceResult(
            symbol=symbol,
            success=False,
            contract_count=len(records),
            file_size=0,
            location=location,
            duration_s=time.perf_counter() - t0,
            error=str(e),
        )

    logger.debug(
        "Saved %s (%s contracts, %s)",
        location,
        fmt_int(len(records)),
        fmt_bytes(receipt.size),
    )
    return PersistenceResult(
        symbol=symbol,
        success=True,
        contract_count=len(records),
        file_size=receipt.size,
        location=location,
        duration_s=time.perf_counter() - t0,
    )


def _record_outcome(
    result: PersistenceResult, stats: RunStatistics
) -> PersistenceResult:
    if result.success:
        stats.files_saved += 1
    else:
        stats.add_error(
            ErrorType.FILE_WRITE,
            f"Failed to process symbol {result.symbol}: {result.error}",
            symbol=result.symbol,
        )
    return result


def _settle(
    fut: Future[PersistenceResult], symbol: str, symbols_dir: str
) -> PersistenceResult:
    try:
        return fut.result()
    except Exception as e:
        return PersistenceResult(
            symbol=symbol,
            success=False,
            contract_count=0,
            file_size=0,
            location=f"{symbols_dir}/{symbol}.json",
            duration_s=0.0,
            error=str(e),
        )


def persist_all(
    partitions: Mapping[str, Sequence[CleanRecord]],
    *,
    sink: SinkWriter,
    stats: RunStatistics,
    config: ProcessingConfig | None = None,
    sleep: SleepFn = time.sleep,
    memory: MemoryTracker | None = None,
) -> list[PersistenceResult]:
    """Persist every partition, one result per key, in completion order.

    When `memory` is given, RSS is sampled after every wave.
    """
    cfg = config or ProcessingConfig()
    policy = cfg.write_policy
    keys = list(partitions)
    n_keys = len(keys)

    if n_keys == 0:
        logger.info("No symbols to persist")
        return []

    concurrency = cfg.effective_concurrency(n_keys)
    progress_every = cfg.progress_every_waves * concurrency
    results: list[PersistenceResult] = []

    logger.info(
        "Persisting %s symbols (concurrency=%d)", fmt_int(n_keys), concurrency
    )

    executor = ThreadPoolExecutor(
        max_workers=concurrency, thread_name_prefix="persist"
    )
    try:
        for wave_start in range(0, n_keys, concurrency):
            wave = keys[wave_start : wave_start + concurrency]
            futures = {
                executor.submit(
                    persist_partition,
                    key,
                    partitions[key],
                    sink=sink,
                    policy=policy,
                    symbols_dir=cfg.symbols_dir,
                    sleep=sleep,
                ): key
                for key in wave
            }

            for fut in as_completed(futures):
                result = _settle(fut, futures[fut], cfg.symbols_dir)
                results.append(_record_outcome(result, stats))

            done = wave_start + len(wave)
            if done % progress_every == 0 or done == n_keys:
                logger.info(
                    "Persisted %s / %s symbols", fmt_int(done), fmt_int(n_keys)
                )

            if cfg.memory_hints:
                gc.collect()
            if memory is not None:
                memory.sample()

    except KeyboardInterrupt:
        logger.warning("Interrupted; abandoning in-flight writes")
        executor.shutdown(wait=False, cancel_futures=True)
        raise
    except BaseException:
        executor.shutdown(wait=True, cancel_futures=True)
        raise
    executor.shutdown(wait=True)

    n_ok = sum(1 for r in results if r.success)
    logger.info(
        "Persistence complete: %s / %s successful", fmt_int(n_ok), fmt_int(n_keys)
    )
    return results
