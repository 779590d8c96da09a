from __future__ import annotations

_SIZE_UNITS: tuple[str, ...] = ("Bytes", "KB", "MB", "GB")


def fmt_int(n: int | None) -> str:
    """Format integers with thousands separators for logging."""
    if n is None:
        return "NA"
    return f"{int(n):,}"


def fmt_bytes(n: int | None) -> str:
    """Human readable byte size, e.g. `0 Bytes`, `1.5 KB`, `50 MB`."""
    if n is None:
        return "NA"
    if n <= 0:
        return "0 Bytes"

    value = float(n)
    i = 0
    while value >= 1024 and i < len(_SIZE_UNITS) - 1:
        value /= 1024
        i += 1

    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {_SIZE_UNITS[i]}"


def fmt_pct(part: int, total: int) -> str:
    pct = (100.0 * part / total) if total else 0.0
    return f"{pct:.2f}%"
