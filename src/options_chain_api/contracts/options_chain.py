"""Options-chain field contract shared by the reader, validator and writers.

Two layers are described here:
- the vendor CSV header (raw feed, one row per contract), and
- the wire keys of the published JSON artifacts.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Raw feed columns (CSV header names)
# ---------------------------------------------------------------------------

RAW_DATE = "date"
RAW_SYMBOL = "act_symbol"
RAW_EXPIRATION = "expiration"
RAW_STRIKE = "strike"
RAW_CALL_PUT = "call_put"
RAW_BID = "bid"
RAW_ASK = "ask"
RAW_VOLUME = "vol"
RAW_DELTA = "delta"
RAW_GAMMA = "gamma"
RAW_THETA = "theta"
RAW_VEGA = "vega"
RAW_RHO = "rho"

GREEK_FIELDS: tuple[str, ...] = (RAW_DELTA, RAW_GAMMA, RAW_THETA, RAW_VEGA, RAW_RHO)

RAW_NUMERIC_COLUMNS: frozenset[str] = frozenset(
    {RAW_STRIKE, RAW_BID, RAW_ASK, RAW_VOLUME, *GREEK_FIELDS}
)

RAW_COLUMNS: tuple[str, ...] = (
    RAW_DATE,
    RAW_SYMBOL,
    RAW_EXPIRATION,
    RAW_STRIKE,
    RAW_CALL_PUT,
    RAW_BID,
    RAW_ASK,
    RAW_VOLUME,
    *GREEK_FIELDS,
)

# ---------------------------------------------------------------------------
# Option kinds
# ---------------------------------------------------------------------------

CALL = "call"
PUT = "put"

OPTION_TYPE_ALIASES: dict[str, str] = {
    "c": CALL,
    "call": CALL,
    "p": PUT,
    "put": PUT,
}

# ---------------------------------------------------------------------------
# Published artifact wire keys
# ---------------------------------------------------------------------------

CONTRACT_WIRE_KEYS: tuple[str, ...] = (
    "date",
    "symbol",
    "expiration",
    "strike",
    "type",
    "bid",
    "ask",
    "volume",
    "delta",
    "gamma",
    "theta",
    "vega",
    "rho",
)
