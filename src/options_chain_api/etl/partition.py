"""Group clean records by symbol with a deterministic per-symbol order.

Order within a partition: expiration ascending, calls before puts, strike
ascending. Exact ties keep insertion order (Python's sort is stable).
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from options_chain_api.contracts.options_chain import CALL

from .types import CleanRecord, PartitionMap, StrikeRange


def contract_sort_key(record: CleanRecord) -> tuple[str, int, float]:
    # ISO dates are fixed width, so string order is date order
    return (record.expiration, 0 if record.option_type == CALL else 1, record.strike)


def compare_contracts(a: CleanRecord, b: CleanRecord) -> int:
    """Three-way comparator matching `contract_sort_key`."""
    ka, kb = contract_sort_key(a), contract_sort_key(b)
    return (ka > kb) - (ka < kb)


def partition_by_symbol(records: Iterable[CleanRecord]) -> PartitionMap:
    """Group records by symbol, then sort the groups that need it.

    Grouping is a single pass preserving insertion order; only groups with more
    than one record are sorted.
    """
    grouped: dict[str, list[CleanRecord]] = {}
    for record in records:
        bucket = grouped.get(record.symbol)
        if bucket is None:
            bucket = grouped[record.symbol] = []
        bucket.append(record)

    partitions: PartitionMap = {}
    for symbol, bucket in grouped.items():
        if len(bucket) > 1:
            bucket.sort(key=contract_sort_key)
        partitions[symbol] = tuple(bucket)

    return partitions


def expirations_of(records: Sequence[CleanRecord]) -> tuple[str, ...]:
    """Sorted distinct expirations."""
    return tuple(sorted({r.expiration for r in records}))


def strike_range(records: Sequence[CleanRecord]) -> StrikeRange:
    if not records:
        return StrikeRange(min=0, max=0)
    strikes = [r.strike for r in records]
    return StrikeRange(min=min(strikes), max=max(strikes))
