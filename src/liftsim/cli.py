"""Run a lift simulation over the calls listed in a CSV file."""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dispatch import POLICY_REGISTRY, get_policy

from .config import LiftConfig
from .csv_io import default_log_path, read_requests, write_log
from .errors import ConfigError, InputFileError, InvalidRequestError, LogWriteError, TickLimitExceeded
from .simulation import DEFAULT_TICK_LIMIT, run_until_complete

EXIT_OK = 0
EXIT_BAD_INPUT = 2
EXIT_TICK_LIMIT = 3
EXIT_WRITE_FAILED = 4


def build_parser() -> argparse.ArgumentParser:
    defaults = LiftConfig()
    parser = argparse.ArgumentParser(prog="liftsim", description=__doc__)
    parser.add_argument("csv", type=Path, help="CSV file of passenger calls")
    parser.add_argument(
        "--policy",
        choices=sorted(POLICY_REGISTRY),
        default="opportunistic",
        help="Dispatch policy (default: %(default)s)",
    )
    parser.add_argument("--start-floor", type=int, default=defaults.start_floor)
    parser.add_argument(
        "--floor-time", type=int, default=defaults.floor_travel_time, help="Seconds per floor"
    )
    parser.add_argument("--collection-time", type=int, default=defaults.collection_time)
    parser.add_argument("--drop-time", type=int, default=defaults.drop_time)
    capacity = parser.add_mutually_exclusive_group()
    capacity.add_argument("--capacity", type=int, default=defaults.capacity)
    capacity.add_argument(
        "--no-capacity",
        action="store_true",
        help="Simulate a lift without a passenger limit",
    )
    parser.add_argument("--tick-limit", type=int, default=DEFAULT_TICK_LIMIT)
    parser.add_argument(
        "--output",
        type=Path,
        help="Where to write the event log (default: <csv>_log.csv)",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
    )
    return parser


def build_config(args: argparse.Namespace) -> LiftConfig:
    return LiftConfig(
        start_floor=args.start_floor,
        floor_travel_time=args.floor_time,
        collection_time=args.collection_time,
        drop_time=args.drop_time,
        capacity=None if args.no_capacity else args.capacity,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print(f"Received input: {args.csv}")
    try:
        config = build_config(args)
        policy = get_policy(args.policy)
        requests = read_requests(args.csv)
    except (InputFileError, InvalidRequestError, ConfigError) as exc:
        print(exc, file=sys.stderr)
        return EXIT_BAD_INPUT
    print("Input csv file successfully read")
    print("No troll passengers")

    try:
        result = run_until_complete(requests, policy, tick_limit=args.tick_limit, config=config)
    except TickLimitExceeded as exc:
        print(f"Simulation aborted: {exc}", file=sys.stderr)
        return EXIT_TICK_LIMIT

    print("Simulation complete")
    print(f"The lift serves all calls at {result.total_seconds} seconds")

    output = args.output or default_log_path(args.csv)
    try:
        write_log(output, result.log, policy)
    except LogWriteError as exc:
        print(exc, file=sys.stderr)
        return EXIT_WRITE_FAILED
    print(f"Output csv file successfully created: {output}")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
