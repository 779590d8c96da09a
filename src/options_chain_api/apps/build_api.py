#!/usr/bin/env python
"""Build the static options-chain JSON API from a daily CSV feed.

Typical usage:
    python -m options_chain_api.apps.build_api --config config/build_api.yml
    python -m options_chain_api.apps.build_api --input data/raw/option_chain.csv --output api
    options-api-build --input option_chain.csv --output api --max-concurrency 4

Paths may also come from `DATA_INPUT_PATH` / `API_OUTPUT_PATH` (a `.env` file
is honoured).

Config precedence: CLI > YAML > defaults.

Exit codes: 0 when the run completes (row/symbol errors included), 1 on a
fatal error or, with `--fail-on-failed`, when any symbol failed to persist,
130 when interrupted.
"""

from __future__ import annotations

import argparse
import logging
from dataclasses import asdict
from typing import Any

from options_chain_api.apps._cli import (
    add_bool_flag,
    add_dry_run_arg,
    add_print_config_arg,
    collect_logging_overrides,
    log_dry_run,
    print_config,
)
from options_chain_api.cli import (
    DEFAULT_LOGGING,
    add_config_arg,
    add_logging_args,
    build_config,
    resolve_path_or_env,
    setup_logging_from_config,
)
from options_chain_api.config.paths import INPUT_PATH_ENV, OUTPUT_PATH_ENV
from options_chain_api.etl import OptionsApiError, ProcessingConfig, build_api

DEFAULT_CONFIG: dict[str, Any] = {
    "logging": DEFAULT_LOGGING,
    "dry_run": False,
    "paths": {
        "input": None,
        "output": None,
        "input_env": INPUT_PATH_ENV,
        "output_env": OUTPUT_PATH_ENV,
    },
    "processing": {},
    "fail_on_failed": False,
}

EXIT_FATAL = 1
EXIT_INTERRUPTED = 130


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Build per-symbol options-chain JSON artifacts from a CSV feed."
    )
    add_config_arg(parser)
    add_logging_args(parser)
    add_print_config_arg(parser)
    add_dry_run_arg(parser)

    parser.add_argument(
        "--input",
        type=str,
        default=None,
        help=f"Input CSV path (falls back to ${INPUT_PATH_ENV}).",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help=f"Output root directory (falls back to ${OUTPUT_PATH_ENV}).",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=None,
        help="Rows validated per batch.",
    )
    parser.add_argument(
        "--max-concurrency",
        type=int,
        default=None,
        help="Maximum concurrent symbol writes per wave.",
    )
    add_bool_flag(
        parser,
        "parallel",
        dest="parallel",
        off_name="sequential",
        help_on="Write symbols concurrently (up to --max-concurrency per wave).",
        help_off="Write one symbol at a time.",
    )
    parser.add_argument(
        "--max-retries",
        type=int,
        default=None,
        help="Retries per artifact write after the first attempt.",
    )
    add_bool_flag(
        parser,
        "memory-hints",
        dest="memory_hints",
        help_on="Run gc between validation batches and write waves.",
        help_off="Do not force gc during the run.",
    )
    add_bool_flag(
        parser,
        "fail-on-failed",
        dest="fail_on_failed",
        help_on="Exit non-zero if any symbol failed to persist.",
        help_off="Exit 0 even if some symbols failed to persist.",
    )

    return parser.parse_args(argv)


def _build_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}

    paths: dict[str, Any] = {}
    if args.input:
        paths["input"] = args.input
    if args.output:
        paths["output"] = args.output
    if paths:
        overrides["paths"] = paths

    processing: dict[str, Any] = {}
    if args.batch_size is not None:
        processing["batch_size"] = args.batch_size
    if args.max_concurrency is not None:
        processing["max_concurrency"] = args.max_concurrency
    if args.parallel is not None:
        processing["parallel"] = args.parallel
    if args.max_retries is not None:
        processing["max_retries"] = args.max_retries
    if args.memory_hints is not None:
        processing["memory_hints"] = args.memory_hints
    if processing:
        overrides["processing"] = processing

    if args.fail_on_failed is not None:
        overrides["fail_on_failed"] = args.fail_on_failed

    if args.dry_run:
        overrides["dry_run"] = True

    logging_overrides = collect_logging_overrides(args)
    if logging_overrides:
        overrides["logging"] = logging_overrides

    return overrides


def main(argv: list[str] | None = None) -> None:
    """Run the options API build entrypoint."""
    args = _parse_args(argv)
    overrides = _build_overrides(args)
    config = build_config(DEFAULT_CONFIG, args.config, overrides)
    if args.print_config:
        print_config(config)
        return

    setup_logging_from_config(config.get("logging"))
    logger = logging.getLogger(__name__)

    paths_cfg = config["paths"]
    input_path = resolve_path_or_env(paths_cfg.get("input"), paths_cfg.get("input_env"))
    output_root = resolve_path_or_env(
        paths_cfg.get("output"), paths_cfg.get("output_env")
    )
    if input_path is None or output_root is None:
        raise RuntimeError(
            "Both input and output paths must be set "
            f"(--input/--output, YAML paths, or ${INPUT_PATH_ENV}/${OUTPUT_PATH_ENV})."
        )

    processing = ProcessingConfig.from_mapping(config.get("processing"))
    fail_on_failed = bool(config.get("fail_on_failed", False))
    dry_run = config.get("dry_run", False)

    logger.info("Input CSV:        %s", input_path)
    logger.info("Output root:      %s", output_root)
    logger.info("Batch size:       %d", processing.batch_size)
    logger.info(
        "Concurrency:      %s",
        processing.max_concurrency if processing.parallel else "sequential",
    )
    logger.info("Max retries:      %d", processing.max_retries)

    if dry_run:
        log_dry_run(
            logger,
            {
                "action": "build_options_api",
                "input": input_path,
                "output": output_root,
                "processing": asdict(processing),
                "fail_on_failed": fail_on_failed,
            },
        )
        return

    try:
        result = build_api(
            input_path=input_path,
            output_root=output_root,
            config=processing,
        )
    except KeyboardInterrupt:
        logger.error("Interrupted; artifacts already written are kept")
        raise SystemExit(EXIT_INTERRUPTED) from None
    except OptionsApiError as e:
        logger.error("Fatal error: %s", e)
        raise SystemExit(EXIT_FATAL) from e
    except Exception:
        logger.exception("Fatal error")
        raise SystemExit(EXIT_FATAL) from None

    if fail_on_failed and result.n_failed:
        logger.error("%d symbols failed to persist", result.n_failed)
        raise SystemExit(EXIT_FATAL)


if __name__ == "__main__":
    main()
