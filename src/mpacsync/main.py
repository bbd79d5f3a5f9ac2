#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv
from pydantic import ValidationError

from mpacsync.app import generate_deal_plan, load_snapshot, render_plan, summarize_plan
from mpacsync.config import ConfigurationError, configure_logging, get_engine_config

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Compute the CRM deal changes for a marketplace snapshot"
    )
    parser.add_argument("snapshot", type=Path, help="JSON snapshot file to reconcile")
    parser.add_argument(
        "--today",
        type=str,
        help="ISO date used as 'today' for the license age filter (default: current date)",
    )
    parser.add_argument(
        "--summary",
        action="store_true",
        help="Print only the number of changes per kind",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(list(argv))


def _parse_iso_date(value: str) -> date:
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid ISO date: {value}") from exc


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    try:
        parsed_args = _parse_args(argv if argv is not None else sys.argv[1:])
        today = _parse_iso_date(parsed_args.today) if parsed_args.today else None
        config = get_engine_config()
    except (ValueError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)

    configure_logging(verbose=parsed_args.verbose)

    try:
        snapshot = load_snapshot(parsed_args.snapshot)
        plan = generate_deal_plan(snapshot, config=config, today=today)
    except (OSError, ValidationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(2)
    except Exception as e:  # noqa: BLE001
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    output = summarize_plan(plan) if parsed_args.summary else render_plan(plan, config.hubspot)
    print(json.dumps(output, indent=2, sort_keys=True))


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    print("\nClosed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
