from __future__ import annotations

import threading
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import pytest

from options_chain_api.etl.types import CleanRecord, RawRecord, WriteReceipt

CSV_HEADER = "date,act_symbol,expiration,strike,call_put,bid,ask,vol,delta,gamma,theta,vega,rho"


class MemorySink:
    """In-memory `SinkWriter` that records every call (thread-safe)."""

    def __init__(self) -> None:
        self.files: dict[str, bytes] = {}
        self.locations: list[str] = []
        self.write_calls: list[str] = []
        self._lock = threading.Lock()

    def ensure_location(self, location: str) -> None:
        with self._lock:
            self.locations.append(location)

    def write(self, location: str, payload: bytes) -> WriteReceipt:
        with self._lock:
            self.write_calls.append(location)
            self.files[location] = payload
        return WriteReceipt(size=len(payload))


class FlakySink(MemorySink):
    """Fails the first `fail_times[location]` writes, or always for `always_fail`."""

    def __init__(
        self,
        *,
        fail_times: dict[str, int] | None = None,
        always_fail: Iterable[str] = (),
        error: type[Exception] = OSError,
    ) -> None:
        super().__init__()
        self.fail_times = dict(fail_times or {})
        self.always_fail = set(always_fail)
        self.error = error

    def write(self, location: str, payload: bytes) -> WriteReceipt:
        with self._lock:
            self.write_calls.append(location)
            if location in self.always_fail:
                raise self.error(f"disk full: {location}")
            remaining = self.fail_times.get(location, 0)
            if remaining > 0:
                self.fail_times[location] = remaining - 1
                raise self.error(f"transient failure: {location}")
            self.files[location] = payload
        return WriteReceipt(size=len(payload))


class SlowSink(MemorySink):
    """Tracks the peak number of concurrent writes."""

    def __init__(self, delay_s: float = 0.02) -> None:
        super().__init__()
        self.delay_s = delay_s
        self.in_flight = 0
        self.max_in_flight = 0

    def write(self, location: str, payload: bytes) -> WriteReceipt:
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            time.sleep(self.delay_s)
            return super().write(location, payload)
        finally:
            with self._lock:
                self.in_flight -= 1


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def sleeps() -> list[float]:
    return []


@pytest.fixture
def fake_sleep(sleeps: list[float]):
    def _sleep(delay: float) -> None:
        sleeps.append(delay)

    return _sleep


@pytest.fixture
def raw_factory():
    def _factory(**overrides: Any) -> RawRecord:
        values: dict[str, Any] = {
            "date": "2024-01-15",
            "act_symbol": "aapl",
            "expiration": "2024-02-16",
            "strike": "150.00",
            "call_put": "Call",
            "bid": "5.10",
            "ask": "5.30",
            "vol": "120",
            "delta": "0.55123",
            "gamma": "0.02",
            "theta": "-0.05",
            "vega": "0.12",
            "rho": "0.03",
        }
        values.update(overrides)
        return RawRecord(**values)

    return _factory


@pytest.fixture
def clean_factory():
    def _factory(**overrides: Any) -> CleanRecord:
        values: dict[str, Any] = {
            "date": "2024-01-15",
            "symbol": "AAPL",
            "expiration": "2024-02-16",
            "strike": 150.0,
            "option_type": "call",
            "bid": 5.1,
            "ask": 5.3,
            "volume": 120,
            "delta": 0.5512,
            "gamma": 0.02,
            "theta": -0.05,
            "vega": 0.12,
            "rho": 0.03,
        }
        values.update(overrides)
        return CleanRecord(**values)

    return _factory


@pytest.fixture
def write_csv(tmp_path: Path):
    def _write(rows: Iterable[str], *, header: str = CSV_HEADER, name: str = "chain.csv") -> Path:
        path = tmp_path / name
        path.write_text("\n".join([header, *rows]) + "\n", encoding="utf-8")
        return path

    return _write


@pytest.fixture
def flaky_sink():
    return FlakySink


@pytest.fixture
def slow_sink():
    return SlowSink


@pytest.fixture
def fake_rss():
    """Return an RSS sampler that replays `values`, repeating the last one."""

    def _make(*values: int):
        it = iter(values)
        last = [values[-1]]

        def _sample() -> int:
            last[0] = next(it, last[0])
            return last[0]

        return _sample

    return _make
