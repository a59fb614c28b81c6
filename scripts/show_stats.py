#!/usr/bin/env python3
"""Print bNOTE global stats (and optionally a wallet's stakes) to the terminal."""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from rich import box
from rich.console import Console
from rich.table import Table

from bnote_dash import bnote_constants as const
from bnote_dash import config, global_stats, stakes
from bnote_dash.chain_reads import ChainReader


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--wallet",
        help="Also list open stakes and the bNOTE balance of this address.",
    )
    parser.add_argument(
        "--rpc-url",
        help="Override BNOTE_RPC_URL for this run.",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Skip the on-disk RPC response cache.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log at INFO level.")
    return parser.parse_args()


def _stats_table(stats: global_stats.GlobalStats) -> Table:
    table = Table(title="bNOTE", box=box.SIMPLE_HEAVY)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    for row in stats.to_frame().itertuples(index=False):
        table.add_row(row.metric, row.value)
    return table


def _stakes_table(wallet_stakes: list[stakes.OnchainStake]) -> Table:
    table = Table(title="Open stakes", box=box.SIMPLE_HEAVY)
    for column in ("#", "Amount", "Shares", "Lock days", "Start", "End", "Auto-renew"):
        table.add_column(column, justify="right" if column != "Auto-renew" else "center")
    for stake in wallet_stakes:
        start = stake.start_date.strftime("%Y-%m-%d") if stake.start_date else const.PLACEHOLDER
        end = stake.end_date.strftime("%Y-%m-%d") if stake.end_date else const.PLACEHOLDER
        table.add_row(
            str(stake.idx),
            stake.amount,
            stake.shares,
            str(stake.lock_days),
            start,
            end,
            "yes" if stake.auto_renew else "no",
        )
    return table


def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    chain_config = config.load_chain_config()
    overrides = {}
    if args.rpc_url:
        overrides["rpc_url"] = args.rpc_url
    if args.no_cache:
        overrides["cache_ttl_seconds"] = 0
    if overrides:
        chain_config = replace(chain_config, **overrides)

    reader = ChainReader(chain_config)
    console = Console()
    console.print(_stats_table(global_stats.load_global_stats(reader)))

    if args.wallet:
        balance = stakes.read_wallet_balance(reader, args.wallet)
        console.print(f"[bold]Wallet balance:[/bold] {balance.formatted_pretty} bNOTE")
        console.print(_stakes_table(stakes.read_wallet_stakes(reader, args.wallet)))


if __name__ == "__main__":
    main()
