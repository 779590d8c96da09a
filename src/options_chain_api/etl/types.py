"""Dataclasses for the options-chain API build.

Raw rows are kept untyped until the validator normalizes them into
`CleanRecord`s; everything persisted is derived from those.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from options_chain_api.contracts.options_chain import RAW_COLUMNS

RawValue = str | float | int | None


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def iso_utc(ts: datetime) -> str:
    return ts.astimezone(timezone.utc).isoformat()


@dataclass(frozen=True)
class RawRecord:
    """One feed row as received; may be malformed."""

    date: RawValue = None
    act_symbol: RawValue = None
    expiration: RawValue = None
    strike: RawValue = None
    call_put: RawValue = None
    bid: RawValue = None
    ask: RawValue = None
    vol: RawValue = None
    delta: RawValue = None
    gamma: RawValue = None
    theta: RawValue = None
    vega: RawValue = None
    rho: RawValue = None

    @classmethod
    def from_mapping(cls, row: Mapping[str, Any]) -> RawRecord:
        """Build from a header-keyed row, ignoring unknown columns."""
        return cls(**{k: row[k] for k in RAW_COLUMNS if k in row})


@dataclass(frozen=True)
class CleanRecord:
    """A validated, normalized option contract."""

    date: str
    symbol: str
    expiration: str
    strike: float
    option_type: str
    bid: float
    ask: float
    volume: int
    delta: float
    gamma: float
    theta: float
    vega: float
    rho: float

    def to_payload(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "symbol": self.symbol,
            "expiration": self.expiration,
            "strike": self.strike,
            "type": self.option_type,
            "bid": self.bid,
            "ask": self.ask,
            "volume": self.volume,
            "delta": self.delta,
            "gamma": self.gamma,
            "theta": self.theta,
            "vega": self.vega,
            "rho": self.rho,
        }


@dataclass(frozen=True)
class ValidationOutcome:
    is_valid: bool
    errors: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    record: CleanRecord | None = None


PartitionMap = dict[str, tuple[CleanRecord, ...]]


@dataclass(frozen=True)
class StrikeRange:
    min: float
    max: float


@dataclass(frozen=True)
class PartitionArtifact:
    """Per-symbol artifact written to `symbols/<SYMBOL>.json`."""

    symbol: str
    contracts: tuple[CleanRecord, ...]
    contract_count: int
    expirations: tuple[str, ...]
    strike_range: StrikeRange
    last_updated: str

    def to_payload(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "contracts": [c.to_payload() for c in self.contracts],
            "contractCount": self.contract_count,
            "expirations": list(self.expirations),
            "strikeRange": {
                "min": self.strike_range.min,
                "max": self.strike_range.max,
            },
            "lastUpdated": self.last_updated,
        }


@dataclass(frozen=True)
class WriteReceipt:
    size: int


@dataclass(frozen=True)
class PersistenceResult:
    """Outcome of writing one partition artifact."""

    symbol: str
    success: bool
    contract_count: int
    file_size: int
    location: str
    duration_s: float
    error: str | None = None


class ErrorType(str, Enum):
    VALIDATION = "validation"
    FILE_READ = "file_read"
    FILE_WRITE = "file_write"
    DATA_PARSE = "data_parse"
    MEMORY = "memory"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ProcessingError:
    type: ErrorType
    message: str
    timestamp: str
    row: int | None = None
    symbol: str | None = None
    context: Any = None


@dataclass
class RunStatistics:
    """Run-wide counters and collected errors/warnings.

    Only mutated from the orchestrating thread; counters only increase and
    the error/warning lists only grow.
    """

    total_rows: int = 0
    valid_rows: int = 0
    invalid_rows: int = 0
    unique_symbols: int = 0
    files_saved: int = 0
    errors: list[ProcessingError] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=utc_now)
    processing_time_s: float = 0.0

    def add_error(
        self,
        error_type: ErrorType | str,
        message: str,
        *,
        row: int | None = None,
        symbol: str | None = None,
        context: Any = None,
    ) -> ProcessingError:
        err = ProcessingError(
            type=ErrorType(error_type),
            message=message,
            timestamp=iso_utc(utc_now()),
            row=row,
            symbol=symbol,
            context=context,
        )
        self.errors.append(err)
        return err

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def add_warnings(self, messages: list[str] | tuple[str, ...]) -> None:
        self.warnings.extend(messages)

    def error_messages(self) -> list[str]:
        return [e.message for e in self.errors]


@dataclass(frozen=True)
class Coverage:
    calls: int
    puts: int
    symbols_with_data: int


@dataclass(frozen=True)
class DatasetMetadata:
    """Dataset-level summary written to `metadata.json`.

    `data_date` comes from the first record encountered; inputs mixing
    observation dates are not detected.
    """

    data_date: str
    last_updated: str
    symbol_count: int
    total_contracts: int
    start_time: str
    end_time: str
    duration_ms: int
    errors: tuple[str, ...]
    warnings: tuple[str, ...]
    coverage: Coverage

    def to_payload(self) -> dict[str, Any]:
        return {
            "dataDate": self.data_date,
            "lastUpdated": self.last_updated,
            "symbolCount": self.symbol_count,
            "totalContracts": self.total_contracts,
            "processing": {
                "startTime": self.start_time,
                "endTime": self.end_time,
                "duration": self.duration_ms,
                "errors": list(self.errors),
                "warnings": list(self.warnings),
            },
            "coverage": {
                "calls": self.coverage.calls,
                "puts": self.coverage.puts,
                "symbolsWithData": self.coverage.symbols_with_data,
            },
        }


@dataclass(frozen=True)
class AggregateArtifacts:
    index: tuple[str, ...]
    metadata: DatasetMetadata


@dataclass
class PhaseTimings:
    """Wall-clock seconds spent per stage (filled as the run progresses)."""

    read_s: float = 0.0
    validation_s: float = 0.0
    partition_s: float = 0.0
    write_s: float = 0.0
    aggregate_s: float = 0.0
    total_s: float = 0.0


@dataclass(frozen=True)
class MemoryMetrics:
    """Process resident set size (RSS) in bytes, sampled across the run."""

    before_bytes: int
    after_bytes: int
    peak_bytes: int

    @property
    def delta_bytes(self) -> int:
        """Positive when the run ended holding more memory than it started with."""
        return self.after_bytes - self.before_bytes


@dataclass(frozen=True)
class BuildApiResult:
    """Summary of one API build run."""

    output_root: str
    stats: RunStatistics
    results: tuple[PersistenceResult, ...]
    aggregates: AggregateArtifacts
    timings: PhaseTimings
    memory: MemoryMetrics

    @property
    def n_failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def n_written(self) -> int:
        return sum(1 for r in self.results if r.success)
