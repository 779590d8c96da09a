"""Row validation and normalization for the options-chain feed.

`validate_contract` is pure: it turns one `RawRecord` into a
`ValidationOutcome` and never raises for bad data. Checks run in groups and
stop at the first failing group, except the numeric group which reports every
malformed field at once.
"""

from __future__ import annotations

import math
import re
from datetime import date

from options_chain_api.config.constants import DECIMAL_PRECISION
from options_chain_api.contracts.options_chain import OPTION_TYPE_ALIASES

from .types import CleanRecord, RawRecord, RawValue, ValidationOutcome

_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
# plain decimal with optional exponent; no digit separators, no inf/nan words
_NUMBER_RE = re.compile(r"[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?")

MISSING_CRITICAL_FIELDS = "Missing critical fields: symbol, date, or expiration"
NO_PRICE = "Contract has no bid or ask price"
INVALID_DATE = "Invalid date format"


def _text(value: RawValue) -> str:
    return "" if value is None else str(value).strip()


def parse_number(value: RawValue) -> float:
    """Parse a raw cell into a float; NaN when it is not a finite number.

    Empty strings count as 0, which is how the feed encodes blank numeric
    cells.
    """
    if value is None or isinstance(value, bool):
        return math.nan
    if isinstance(value, (int, float)):
        out = float(value)
    else:
        s = str(value).strip()
        if not s:
            return 0.0
        if not _NUMBER_RE.fullmatch(s):
            return math.nan
        out = float(s)
    return out if math.isfinite(out) else math.nan


def _fmt_num(x: float) -> str:
    return str(int(x)) if x.is_integer() else repr(x)


def round_to_precision(value: float, precision: int = DECIMAL_PRECISION) -> float:
    """Round half-up to `precision` decimals: floor(x * 10^p + 0.5) / 10^p."""
    multiplier = 10**precision
    return math.floor(value * multiplier + 0.5) / multiplier


def _number_or_zero(value: RawValue) -> float:
    out = parse_number(value)
    return 0.0 if math.isnan(out) else out


def is_valid_date(value: RawValue) -> bool:
    """Return True for a real calendar date written as `YYYY-MM-DD`."""
    if not isinstance(value, str) or not _DATE_RE.fullmatch(value):
        return False

    year, month, day = (int(part) for part in value.split("-"))
    if year < 1000 or not 1 <= month <= 12 or not 1 <= day <= 31:
        return False

    try:
        d = date(year, month, day)
    except ValueError:
        return False
    return (d.year, d.month, d.day) == (year, month, day)


def normalize_option_type(value: RawValue) -> str:
    """Map `C`/`call`/`P`/`put` (any case) to `call`/`put`."""
    key = _text(value).lower()
    try:
        return OPTION_TYPE_ALIASES[key]
    except KeyError as e:
        raise ValueError(f"Invalid call/put type: {value}") from e


def validate_contract(
    raw: RawRecord,
    *,
    decimal_precision: int = DECIMAL_PRECISION,
) -> ValidationOutcome:
    errors: list[str] = []
    warnings: list[str] = []

    symbol = _text(raw.act_symbol)
    obs_date = _text(raw.date)
    expiration = _text(raw.expiration)

    # 1) critical fields
    if not symbol or not obs_date or not expiration:
        return ValidationOutcome(is_valid=False, errors=(MISSING_CRITICAL_FIELDS,))

    # 2) prices: every bad field is reported
    strike = parse_number(raw.strike)
    bid = parse_number(raw.bid)
    ask = parse_number(raw.ask)

    if math.isnan(strike) or strike <= 0:
        errors.append(f"Invalid strike price: {raw.strike}")
    if math.isnan(bid) or bid < 0:
        errors.append(f"Invalid bid: {raw.bid}")
    if math.isnan(ask) or ask < 0:
        errors.append(f"Invalid ask: {raw.ask}")

    # 3) liveness
    if bid == 0 and ask == 0:
        errors.append(NO_PRICE)

    # 4) crossed/locked market is suspicious, not fatal
    if bid > 0 and ask > 0 and bid >= ask:
        warnings.append(f"Bid ({_fmt_num(bid)}) >= Ask ({_fmt_num(ask)}), unusual spread")

    if errors:
        return ValidationOutcome(
            is_valid=False, errors=tuple(errors), warnings=tuple(warnings)
        )

    # 5) dates
    if not is_valid_date(obs_date) or not is_valid_date(expiration):
        return ValidationOutcome(
            is_valid=False, errors=(INVALID_DATE,), warnings=tuple(warnings)
        )

    # 6) option kind
    try:
        option_type = normalize_option_type(raw.call_put)
    except ValueError as e:
        return ValidationOutcome(
            is_valid=False, errors=(str(e),), warnings=tuple(warnings)
        )

    def rnd(x: float) -> float:
        return round_to_precision(x, decimal_precision)

    volume = _number_or_zero(raw.vol)

    record = CleanRecord(
        date=obs_date,
        symbol=symbol.upper(),
        expiration=expiration,
        strike=rnd(strike),
        option_type=option_type,
        bid=rnd(bid),
        ask=rnd(ask),
        volume=max(0, int(volume)),
        delta=rnd(_number_or_zero(raw.delta)),
        gamma=rnd(_number_or_zero(raw.gamma)),
        theta=rnd(_number_or_zero(raw.theta)),
        vega=rnd(_number_or_zero(raw.vega)),
        rho=rnd(_number_or_zero(raw.rho)),
    )
    return ValidationOutcome(is_valid=True, warnings=tuple(warnings), record=record)
