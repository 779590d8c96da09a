from __future__ import annotations

import importlib
import json
from datetime import datetime, timedelta, timezone

import pytest

from options_chain_api.etl.config import ProcessingConfig
from options_chain_api.etl.types import ErrorType, PersistenceResult, RunStatistics


def _mod():
    return importlib.import_module("options_chain_api.etl.aggregate")


def _result(symbol: str, success: bool = True) -> PersistenceResult:
    return PersistenceResult(
        symbol=symbol,
        success=success,
        contract_count=1,
        file_size=100 if success else 0,
        location=f"symbols/{symbol}.json",
        duration_s=0.01,
        error=None if success else "boom",
    )


@pytest.fixture
def partitions(clean_factory):
    return {
        "MSFT": (
            clean_factory(symbol="MSFT", date="2024-01-12", option_type="put"),
        ),
        "AAPL": (
            clean_factory(symbol="AAPL", option_type="call"),
            clean_factory(symbol="AAPL", option_type="put"),
            clean_factory(symbol="AAPL", option_type="call"),
        ),
    }


def test_synthesize_index_and_coverage(partitions) -> None:
    results = [_result("AAPL"), _result("MSFT", success=False)]
    artifacts = _mod().synthesize(partitions, results, stats=RunStatistics())

    assert artifacts.index == ("AAPL", "MSFT")
    meta = artifacts.metadata
    assert meta.symbol_count == 1
    assert meta.total_contracts == 4
    assert meta.coverage.calls == 2
    assert meta.coverage.puts == 2
    assert meta.coverage.symbols_with_data == 1


def test_synthesize_data_date_from_first_record(partitions) -> None:
    artifacts = _mod().synthesize(partitions, [], stats=RunStatistics())
    assert artifacts.metadata.data_date == "2024-01-12"


def test_synthesize_empty_falls_back_to_today() -> None:
    now = datetime(2024, 5, 6, 21, 30, tzinfo=timezone.utc)
    artifacts = _mod().synthesize({}, [], stats=RunStatistics(), now=now)

    meta = artifacts.metadata
    assert artifacts.index == ()
    assert meta.data_date == "2024-05-06"
    assert meta.total_contracts == 0
    assert (meta.coverage.calls, meta.coverage.puts, meta.coverage.symbols_with_data) == (0, 0, 0)


def test_synthesize_timestamps_and_duration(partitions) -> None:
    stats = RunStatistics(started_at=datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc))
    now = stats.started_at + timedelta(seconds=2, milliseconds=500)

    meta = _mod().synthesize(partitions, [], stats=stats, now=now).metadata

    assert meta.start_time == "2024-01-15T12:00:00+00:00"
    assert meta.end_time == "2024-01-15T12:00:02.500000+00:00"
    assert meta.last_updated == meta.end_time
    assert meta.duration_ms == 2500


def test_synthesize_caps_warnings_but_keeps_errors(partitions) -> None:
    stats = RunStatistics()
    stats.add_warnings([f"Row {i}: warn" for i in range(150)])
    for i in range(120):
        stats.add_error(ErrorType.VALIDATION, f"err {i}", row=i)

    meta = _mod().synthesize(partitions, [], stats=stats).metadata

    assert len(meta.warnings) == 100
    assert meta.warnings[0] == "Row 0: warn"
    assert len(meta.errors) == 120


def test_synthesize_optional_error_cap(partitions) -> None:
    stats = RunStatistics()
    for i in range(10):
        stats.add_error(ErrorType.VALIDATION, f"err {i}")

    meta = _mod().synthesize(
        partitions, [], stats=stats, config=ProcessingConfig(max_metadata_errors=3)
    ).metadata
    assert meta.errors == ("err 0", "err 1", "err 2")


def test_metadata_payload_wire_keys(partitions) -> None:
    meta = _mod().synthesize(partitions, [_result("AAPL")], stats=RunStatistics()).metadata
    payload = meta.to_payload()

    assert set(payload) == {
        "dataDate",
        "lastUpdated",
        "symbolCount",
        "totalContracts",
        "processing",
        "coverage",
    }
    assert set(payload["processing"]) == {"startTime", "endTime", "duration", "errors", "warnings"}
    assert payload["coverage"] == {"calls": 2, "puts": 2, "symbolsWithData": 1}


def test_persist_aggregates_writes_index_then_metadata(partitions, memory_sink) -> None:
    mod = _mod()
    stats = RunStatistics()
    artifacts = mod.synthesize(partitions, [_result("AAPL")], stats=stats)

    mod.persist_aggregates(artifacts, sink=memory_sink, stats=stats)

    assert memory_sink.write_calls == ["symbols.json", "metadata.json"]
    assert json.loads(memory_sink.files["symbols.json"]) == ["AAPL", "MSFT"]
    assert json.loads(memory_sink.files["metadata.json"])["totalContracts"] == 4
    assert stats.files_saved == 2


def test_persist_aggregates_failure_is_recorded_and_raised(
    partitions, flaky_sink, fake_sleep
) -> None:
    mod = _mod()
    stats = RunStatistics()
    artifacts = mod.synthesize(partitions, [], stats=stats)
    sink = flaky_sink(always_fail={"metadata.json"})

    with pytest.raises(OSError, match="disk full"):
        mod.persist_aggregates(artifacts, sink=sink, stats=stats, sleep=fake_sleep)

    assert stats.files_saved == 1
    (err,) = stats.errors
    assert err.type is ErrorType.FILE_WRITE
    assert err.message.startswith("Failed to write metadata.json")
