"""Chunked validation of the raw feed.

Rows are validated independently; chunking only paces memory and progress
logging. Valid records keep input order.
"""

from __future__ import annotations

import gc
import logging
from collections.abc import Sequence

from options_chain_api.config import constants as C

from .log_fmt import fmt_int
from .types import CleanRecord, ErrorType, RawRecord, RunStatistics
from .validate import validate_contract

logger = logging.getLogger(__name__)

UNDEFINED_ROW = "Row is undefined"


def validate_all(
    raw_rows: Sequence[RawRecord | None],
    *,
    stats: RunStatistics,
    batch_size: int = C.BATCH_SIZE,
    decimal_precision: int = C.DECIMAL_PRECISION,
    progress_every_batches: int = C.PROGRESS_EVERY_BATCHES,
    gc_every_batches: int = C.GC_EVERY_BATCHES,
    memory_hints: bool = False,
) -> list[CleanRecord]:
    """Validate every row and return the clean records in input order.

    Side effects on `stats`: valid/invalid counters, one `validation` error per
    rejection reason (tagged with the 1-based row number and raw symbol), and
    `"Row N: ..."` warnings. A `None` slot is its own invalid row with symbol
    `"N/A"`.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    total = len(raw_rows)
    valid: list[CleanRecord] = []

    for batch_idx, start in enumerate(range(0, total, batch_size)):
        batch = raw_rows[start : start + batch_size]
        batch_valid: list[CleanRecord] = []

        for offset, row in enumerate(batch):
            row_no = start + offset + 1

            if row is None:
                stats.invalid_rows += 1
                stats.add_error(
                    ErrorType.VALIDATION, UNDEFINED_ROW, row=row_no, symbol="N/A"
                )
                continue

            outcome = validate_contract(row, decimal_precision=decimal_precision)

            if outcome.warnings:
                stats.add_warnings([f"Row {row_no}: {w}" for w in outcome.warnings])

            if outcome.is_valid and outcome.record is not None:
                stats.valid_rows += 1
                batch_valid.append(outcome.record)
                continue

            stats.invalid_rows += 1
            for message in outcome.errors:
                stats.add_error(
                    ErrorType.VALIDATION,
                    message,
                    row=row_no,
                    symbol=None if row.act_symbol is None else str(row.act_symbol),
                    context=row,
                )

        valid.extend(batch_valid)

        if batch_idx % progress_every_batches == 0:
            logger.info(
                "Validated %s / %s rows",
                fmt_int(min(start + batch_size, total)),
                fmt_int(total),
            )

        if memory_hints and batch_idx % gc_every_batches == 0:
            gc.collect()

    logger.info(
        "Validation complete: %s valid contracts from %s rows "
        "(invalid=%s warnings=%s)",
        fmt_int(len(valid)),
        fmt_int(total),
        fmt_int(stats.invalid_rows),
        fmt_int(len(stats.warnings)),
    )
    return valid
