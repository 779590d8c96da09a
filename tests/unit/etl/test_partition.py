from __future__ import annotations

import importlib
import itertools


def _mod():
    return importlib.import_module("options_chain_api.etl.partition")


def test_compare_contracts_orders_expiration_then_kind_then_strike(clean_factory) -> None:
    mod = _mod()
    a = clean_factory(expiration="2024-01-01", option_type="call", strike=10.0)
    b = clean_factory(expiration="2024-01-01", option_type="put", strike=5.0)
    c = clean_factory(expiration="2023-12-01", option_type="call", strike=100.0)

    assert sorted([a, b, c], key=mod.contract_sort_key) == [c, a, b]
    assert mod.compare_contracts(c, a) == -1
    assert mod.compare_contracts(a, b) == -1
    assert mod.compare_contracts(b, c) == 1
    assert mod.compare_contracts(a, a) == 0


def test_partition_by_symbol_sorts_each_group(clean_factory) -> None:
    mod = _mod()
    records = [
        clean_factory(symbol="SPY", expiration="2024-03-15", strike=400.0),
        clean_factory(symbol="AAPL", expiration="2024-02-16", option_type="put", strike=150.0),
        clean_factory(symbol="AAPL", expiration="2024-02-16", option_type="call", strike=155.0),
        clean_factory(symbol="AAPL", expiration="2024-02-16", option_type="call", strike=145.0),
    ]

    parts = mod.partition_by_symbol(records)

    assert list(parts) == ["SPY", "AAPL"]
    assert isinstance(parts["AAPL"], tuple)
    assert [(r.option_type, r.strike) for r in parts["AAPL"]] == [
        ("call", 145.0),
        ("call", 155.0),
        ("put", 150.0),
    ]
    assert len(parts["SPY"]) == 1


def test_partition_by_symbol_is_permutation_invariant(clean_factory) -> None:
    mod = _mod()
    records = [
        clean_factory(symbol="AAPL", expiration="2024-02-16", option_type="put", strike=150.0),
        clean_factory(symbol="AAPL", expiration="2024-01-19", option_type="call", strike=150.0),
        clean_factory(symbol="MSFT", expiration="2024-02-16", option_type="call", strike=400.0),
        clean_factory(symbol="AAPL", expiration="2024-02-16", option_type="call", strike=160.0),
        clean_factory(symbol="MSFT", expiration="2024-02-16", option_type="call", strike=390.0),
    ]

    expected = {k: v for k, v in mod.partition_by_symbol(records).items()}
    for perm in itertools.permutations(records):
        parts = mod.partition_by_symbol(perm)
        assert set(parts) == set(expected)
        for key, seq in expected.items():
            assert parts[key] == seq


def test_partition_by_symbol_keeps_insertion_order_on_ties(clean_factory) -> None:
    mod = _mod()
    first = clean_factory(bid=1.0)
    second = clean_factory(bid=2.0)
    parts = mod.partition_by_symbol([first, clean_factory(strike=100.0), second])
    assert parts["AAPL"][1:] == (first, second)


def test_partition_by_symbol_empty() -> None:
    assert _mod().partition_by_symbol([]) == {}


def test_expirations_of_sorted_distinct(clean_factory) -> None:
    mod = _mod()
    records = [
        clean_factory(expiration="2024-03-15"),
        clean_factory(expiration="2024-01-19"),
        clean_factory(expiration="2024-03-15"),
    ]
    assert mod.expirations_of(records) == ("2024-01-19", "2024-03-15")


def test_strike_range(clean_factory) -> None:
    mod = _mod()
    records = [clean_factory(strike=s) for s in (150.0, 95.5, 210.0)]
    rng = mod.strike_range(records)
    assert (rng.min, rng.max) == (95.5, 210.0)

    empty = mod.strike_range([])
    assert (empty.min, empty.max) == (0, 0)
