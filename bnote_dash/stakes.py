"""Wallet-level views: open stakes and token balance."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Iterable, Sequence

from . import bnote_constants as const
from .chain_reads import ChainReader, safe_read
from .fixed_point import format_truncated, format_units, with_commas

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnchainStake:
    idx: int  # position in stakesOf(), which stakeEnd(idx) expects
    start_timestamp: int
    lock_days: int
    amount_raw: int
    shares_raw: int
    auto_renew: bool
    decimals: int = const.TOKEN_DECIMALS

    @property
    def end_timestamp(self) -> int:
        return self.start_timestamp + self.lock_days * const.SECONDS_PER_DAY

    @property
    def start_date(self) -> datetime | None:
        return _to_datetime(self.start_timestamp)

    @property
    def end_date(self) -> datetime | None:
        return _to_datetime(self.end_timestamp) if self.start_timestamp else None

    @property
    def amount(self) -> str:
        return format_units(self.amount_raw, self.decimals)

    @property
    def shares(self) -> str:
        return format_units(self.shares_raw, self.decimals)

    @property
    def is_empty(self) -> bool:
        return self.start_timestamp == 0 and self.amount_raw == 0 and self.shares_raw == 0


@dataclass(frozen=True)
class WalletBalance:
    raw: int
    decimals: int
    formatted_exact: str  # no commas, suitable for input fields
    formatted_pretty: str  # commas, at most 4 decimals


def _to_datetime(unix_seconds: int) -> datetime | None:
    if not unix_seconds:
        return None
    return datetime.fromtimestamp(unix_seconds, tz=UTC)


def stakes_from_rows(
    rows: Iterable[Sequence[int]], decimals: int = const.TOKEN_DECIMALS
) -> list[OnchainStake]:
    """Build stakes from decoded stakesOf() rows, dropping ended (zeroed) slots.

    Returned newest first.
    """
    stakes = [
        OnchainStake(
            idx=i,
            start_timestamp=int(row[0]),
            lock_days=int(row[1]),
            amount_raw=int(row[2]),
            shares_raw=int(row[3]),
            auto_renew=bool(row[4]),
            decimals=decimals,
        )
        for i, row in enumerate(rows)
    ]
    live = [stake for stake in stakes if not stake.is_empty]
    live.sort(key=lambda stake: stake.start_timestamp, reverse=True)
    return live


def _read_decimals(reader: ChainReader, token: str) -> int:
    decimals = safe_read(f"decimals({token})", lambda: reader.read_token_decimals(token))
    if decimals is None or decimals <= 0 or decimals > 77:
        LOGGER.warning("Falling back to %d decimals for %s", const.TOKEN_DECIMALS, token)
        return const.TOKEN_DECIMALS
    return decimals


def read_wallet_stakes(reader: ChainReader, user: str) -> list[OnchainStake]:
    decimals = _read_decimals(reader, reader.config.token_address)
    return stakes_from_rows(reader.read_stakes_of(user), decimals)


def wallet_balance_from_raw(raw: int, decimals: int) -> WalletBalance:
    exact = format_units(raw, decimals)
    pretty = with_commas(format_truncated(raw, decimals, const.AMOUNT_DISPLAY_DECIMALS))
    return WalletBalance(
        raw=raw,
        decimals=decimals,
        formatted_exact=exact,
        formatted_pretty=pretty,
    )


def read_wallet_balance(reader: ChainReader, account: str, token: str | None = None) -> WalletBalance:
    token_address = token or reader.config.token_address
    decimals = _read_decimals(reader, token_address)
    raw = reader.read_token_balance(token_address, account)
    return wallet_balance_from_raw(raw, decimals)
