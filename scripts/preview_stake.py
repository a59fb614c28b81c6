#!/usr/bin/env python3
"""Preview bonuses and shares for a bNOTE stake before sending it."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from rich import box
from rich.console import Console
from rich.table import Table

from bnote_dash import config, stake_preview
from bnote_dash.chain_reads import ChainReader
from bnote_dash.fixed_point import InvalidAmountError, parse_units


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--amount",
        nargs="+",
        default=["1000"],
        help="Stake amount(s) in bNOTE (default: 1000).",
    )
    parser.add_argument(
        "--days",
        type=int,
        nargs="+",
        default=[30],
        help="Lock duration(s) in days, clamped to 1-5555 (default: 30).",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    console = Console()
    try:
        amounts_raw = [parse_units(text) for text in args.amount]
    except InvalidAmountError as exc:
        console.print(f"[red]{exc}[/red]")
        raise SystemExit(2) from exc

    reader = ChainReader(config.load_chain_config())
    params = reader.read_stake_preview_parameters()
    lock_days = [stake_preview.clamp_lock_days(days) for days in args.days]
    grid = stake_preview.build_preview_grid(params, amounts_raw, lock_days)

    table = Table(title="Stake preview", box=box.SIMPLE_HEAVY)
    for label in (
        "Amount",
        "Days",
        "Time bonus",
        "Size bonus",
        "Total bonus",
        "Multiplier",
        "Est. shares",
    ):
        table.add_column(label, justify="right")
    for row in grid.itertuples(index=False):
        table.add_row(
            row.amount,
            str(row.lock_days),
            stake_preview.format_bps_as_percent(int(row.time_bonus_bps)),
            stake_preview.format_bps_as_percent(int(row.size_bonus_bps)),
            stake_preview.format_bps_as_percent(int(row.total_bonus_bps)),
            row.multiplier,
            row.estimated_shares,
        )
    console.print(table)


if __name__ == "__main__":
    main()
