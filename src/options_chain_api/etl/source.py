"""Read the raw options-chain CSV feed into `RawRecord`s.

The feed is a plain comma-delimited file without quoting: a header row, then
one contract per line. Lines whose field count disagrees with the header are
dropped with a warning. Everything else is decoded by polars as strings and
left for the validator to interpret.
"""

from __future__ import annotations

import io
import logging
from pathlib import Path

import polars as pl

from options_chain_api.contracts.options_chain import RAW_NUMERIC_COLUMNS

from .errors import SourceReadError
from .log_fmt import fmt_int
from .types import RawRecord

logger = logging.getLogger(__name__)


def _split_fields(line: str) -> list[str]:
    return [v.strip().replace('"', "") for v in line.split(",")]


def _normalize_frame(df: pl.DataFrame) -> pl.DataFrame:
    df = df.with_columns(
        pl.all().fill_null("").str.strip_chars().str.replace_all('"', "", literal=True)
    )
    numeric = [c for c in df.columns if c in RAW_NUMERIC_COLUMNS]
    if numeric:
        # blank numeric cells mean 0 in this feed
        df = df.with_columns(
            [
                pl.when(pl.col(c) == "").then(pl.lit("0")).otherwise(pl.col(c)).alias(c)
                for c in numeric
            ]
        )
    return df


def parse_options_csv(text: str) -> list[RawRecord]:
    """Parse CSV text (header + data rows) into raw records."""
    lines = text.strip().split("\n")
    if len(lines) < 2:
        raise SourceReadError("CSV file must have at least a header and one data row")

    headers = _split_fields(lines[0])
    kept: list[str] = []
    n_dropped = 0

    for i, line in enumerate(lines[1:], start=2):
        n_fields = len(line.split(","))
        if n_fields != len(headers):
            logger.warning(
                "Row %d: Column count mismatch. Expected %d, got %d",
                i,
                len(headers),
                n_fields,
            )
            n_dropped += 1
            continue
        kept.append(line)

    if n_dropped:
        logger.warning("Dropped %s malformed CSV rows", fmt_int(n_dropped))

    if not kept:
        return []

    try:
        df = pl.read_csv(
            io.BytesIO("\n".join(kept).encode("utf-8")),
            has_header=False,
            new_columns=headers,
            infer_schema=False,
            quote_char=None,
        )
        df = _normalize_frame(df)
    except pl.exceptions.PolarsError as e:
        raise SourceReadError(f"Failed to decode CSV rows: {e}") from e

    return [RawRecord.from_mapping(row) for row in df.iter_rows(named=True)]


def read_options_csv(path: str | Path) -> list[RawRecord]:
    """Read and parse the CSV file at `path`."""
    p = Path(path)
    logger.info("Reading options CSV %s", p)

    try:
        text = p.read_text(encoding="utf-8")
        records = parse_options_csv(text)
    except (OSError, UnicodeDecodeError, SourceReadError) as e:
        raise SourceReadError(f"Failed to read CSV file {p}: {e}") from e

    logger.info("Parsed %s rows from %s", fmt_int(len(records)), p.name)
    return records
