#!/usr/bin/env python3
"""
realsched example runner

Runs a DriftCorrectingScheduler that prints its elapsed times on every
tick and stops itself after a fixed number of calls.

Usage:
    python -m realsched.cli                       # 10 calls, every 100 ms
    python -m realsched.cli --config run.yaml     # settings from YAML
    python -m realsched.cli --delay 250 --max-calls 4 --no-wait
    python -m realsched.cli --dry-run             # print config and exit
"""

import argparse
import asyncio
import json
import sys

from .exceptions import ConfigError
from .logging_setup import get_service_logger, reconfigure_logging
from .options import RunnerConfig, SchedulerOptions, load_runner_config_file
from .scheduler import DriftCorrectingScheduler

logger = get_service_logger("cli")


def print_config_summary(config: RunnerConfig) -> None:
    """Print a summary of the runner configuration."""
    print("\n" + "=" * 60)
    print("  DRIFT-CORRECTING SCHEDULER")
    print("=" * 60)
    print(f"\n  Delay: {config.delay_ms}ms")
    print(f"  Max calls: {config.max_calls}")
    print(f"  Wait for the first call: {config.wait_for_the_first_call}")
    print(f"  Stop on delta error: {config.stop_on_delta_error}")
    print("=" * 60 + "\n")


async def run(config: RunnerConfig) -> dict:
    """
    Run one scheduler to completion.

    Returns:
        Final statistics record
    """

    def on_tick(sch: DriftCorrectingScheduler) -> None:
        # true accumulated time | synthetic time: calls so far
        print(
            f"{sch.get_time_elapsed():.0f}|{sch.get_synthetic_time_elapsed():g}"
            f": Call count: {sch.get_number_of_calls()}",
            flush=True,
        )
        if sch.get_number_of_calls() >= config.max_calls:
            sch.stop()

    def on_stop(sch: DriftCorrectingScheduler) -> None:
        print(f"stopped. stats: {json.dumps(sch.get_statistics().to_dict())}", flush=True)

    def on_delta_error(sch: DriftCorrectingScheduler) -> None:
        print("ERROR", flush=True)
        if config.stop_on_delta_error:
            sch.stop()

    options = SchedulerOptions(
        wait_for_the_first_call=config.wait_for_the_first_call,
        on_stop=on_stop,
        on_delta_error=on_delta_error,
    )
    scheduler = DriftCorrectingScheduler(on_tick, config.delay_ms, options, name="cli")
    try:
        await scheduler.wait_stopped()
    except asyncio.CancelledError:
        if not scheduler.is_stopped:
            scheduler.stop()
        raise
    return scheduler.get_statistics().to_dict()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="realsched",
        description="Run a drift-correcting periodic scheduler",
    )
    parser.add_argument(
        "--config", "-c",
        type=str,
        default=None,
        help="Path to YAML configuration file",
    )
    parser.add_argument("--delay", type=float, default=None, help="Period in milliseconds")
    parser.add_argument("--max-calls", type=int, default=None, help="Stop after this many calls")
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Call the callback once immediately, before the first wait",
    )
    parser.add_argument(
        "--keep-going",
        action="store_true",
        help="Do not stop when the time deviation exceeds the delay",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print configuration and exit without running",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = load_runner_config_file(args.config)
        if args.delay is not None:
            config.delay_ms = args.delay
        if args.max_calls is not None:
            config.max_calls = args.max_calls
        if args.no_wait:
            config.wait_for_the_first_call = False
        if args.keep_going:
            config.stop_on_delta_error = False
        if args.verbose:
            config.log_level = "DEBUG"
        errors = config.validate()
        if errors:
            raise ConfigError("; ".join(errors), "command line")
    except ConfigError as e:
        logger.error(str(e))
        return 1

    reconfigure_logging(config.log_level, config.log_format == "json")
    print_config_summary(config)

    if args.dry_run:
        print("Dry run mode - exiting without starting scheduler")
        return 0

    try:
        asyncio.run(run(config))
    except KeyboardInterrupt:
        print("\nStopped by user")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
