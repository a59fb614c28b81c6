"""Token-wide statistics for the dashboard header and stats page.

``compute_global_stats`` is pure: it takes already-read chain values and
returns display strings. ``load_global_stats`` performs the reads. Any value
that depends on an unavailable read is ``None`` so the UI can show a
placeholder rather than a made-up number.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pandas as pd

from . import bnote_constants as const
from .chain_reads import ChainReader, safe_read
from .fixed_point import (
    fixed_decimals,
    format_truncated,
    format_units,
    mul_fixed,
    scale_pow10,
    with_commas,
)
from .pool_price import PoolState, resolve_pool_price, resolve_symbol_pair_price

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class GlobalStatsInputs:
    token_address: str
    total_supply_raw: int
    total_shares_raw: int
    share_rate_raw: int
    block_number: int
    bnote_mon_pool: PoolState | None = None
    bnote_usdc_pool: PoolState | None = None
    mon_usdc_pool: PoolState | None = None
    # balanceOf(pool) for token0 and token1 of the bNOTE/WMON pool
    bnote_mon_pool_balances: tuple[int, int] | None = None
    vesting_balance_raw: int | None = None
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))


@dataclass(frozen=True)
class GlobalStats:
    total_supply: str
    total_shares: str
    share_rate: str
    block_number: int
    updated_at: datetime
    price_mon: str | None = None
    mon_usd: str | None = None
    price_usd: str | None = None
    pool_tvl_mon: str | None = None
    pool_tvl_usd: str | None = None
    market_cap_mon: str | None = None
    market_cap_usd: str | None = None
    circulating_supply: str | None = None
    staked_bnote_est: str | None = None
    staked_pct: str | None = None
    pool_reserves: str | None = None

    def to_frame(self) -> pd.DataFrame:
        """Two-column (metric, value) table with placeholders for missing values."""
        rows = [
            ("Total supply", self.total_supply),
            ("Circulating supply", self.circulating_supply),
            ("Total shares", self.total_shares),
            ("Share rate", self.share_rate),
            ("Staked (est.)", self.staked_bnote_est),
            ("Staked %", self.staked_pct),
            ("Price (MON)", self.price_mon),
            ("MON/USD", self.mon_usd),
            ("Price (USD)", self.price_usd),
            ("Market cap (MON)", self.market_cap_mon),
            ("Market cap (USD)", self.market_cap_usd),
            ("Pool reserves", self.pool_reserves),
            ("Pool TVL (MON)", self.pool_tvl_mon),
            ("Pool TVL (USD)", self.pool_tvl_usd),
            ("Block", str(self.block_number)),
            ("Updated", self.updated_at.strftime("%Y-%m-%d %H:%M:%S UTC")),
        ]
        return pd.DataFrame(
            [(label, const.PLACEHOLDER if value is None else value) for label, value in rows],
            columns=["metric", "value"],
        )


def _fmt_x18(value: int, dp: int) -> str:
    return format_truncated(value, 18, dp)


def _whole_tokens(value: int, decimals: int = const.TOKEN_DECIMALS) -> str:
    return with_commas(format_truncated(value, decimals, 0))


def _is_mon(symbol: str) -> bool:
    upper = symbol.upper()
    return any(tag in upper for tag in const.MON_SYMBOL_TAGS)


def pool_tvl_mon_x18(pool: PoolState, balances: tuple[int, int]) -> int | None:
    """Approximate pool TVL in MON as twice the MON-side balance, scaled 1e18."""
    bal0, bal1 = balances
    if _is_mon(pool.token0_symbol):
        return bal0 * const.ONE_E18 // scale_pow10(pool.token0_decimals) * 2
    if _is_mon(pool.token1_symbol):
        return bal1 * const.ONE_E18 // scale_pow10(pool.token1_decimals) * 2
    return None


def pool_reserves_text(pool: PoolState, balances: tuple[int, int]) -> str:
    bal0, bal1 = balances
    amount0 = with_commas(format_truncated(bal0, pool.token0_decimals, const.AMOUNT_DISPLAY_DECIMALS))
    amount1 = with_commas(format_truncated(bal1, pool.token1_decimals, const.AMOUNT_DISPLAY_DECIMALS))
    return f"{amount0} {pool.token0_symbol} / {amount1} {pool.token1_symbol}"


def staked_estimate_raw(total_shares_raw: int, share_rate_raw: int) -> int:
    return mul_fixed(total_shares_raw, share_rate_raw)


def staked_pct_text(staked_raw: int, total_supply_raw: int) -> str | None:
    if total_supply_raw == 0:
        return None
    # percent with two decimals, as an integer
    pct_x100 = staked_raw * 100 * 100 // total_supply_raw
    return f"{format_truncated(pct_x100, 2, const.PERCENT_DISPLAY_DECIMALS)}%"


def compute_global_stats(inputs: GlobalStatsInputs) -> GlobalStats:
    token = inputs.token_address

    price_mon_x18 = resolve_pool_price(inputs.bnote_mon_pool, token)
    mon_usd_x18 = resolve_symbol_pair_price(
        inputs.mon_usdc_pool, const.MON_SYMBOL_TAGS, const.USD_SYMBOL_TAGS
    )

    # direct bNOTE/USDC pool first, else route through MON
    price_usd_x18 = resolve_pool_price(inputs.bnote_usdc_pool, token)
    if price_usd_x18 is None and price_mon_x18 is not None and mon_usd_x18 is not None:
        price_usd_x18 = mul_fixed(price_mon_x18, mon_usd_x18) or None

    pool_reserves = None
    tvl_mon_x18 = None
    if inputs.bnote_mon_pool is not None and inputs.bnote_mon_pool_balances is not None:
        pool_reserves = pool_reserves_text(inputs.bnote_mon_pool, inputs.bnote_mon_pool_balances)
        tvl_mon_x18 = pool_tvl_mon_x18(inputs.bnote_mon_pool, inputs.bnote_mon_pool_balances)

    tvl_usd = None
    if tvl_mon_x18 is not None and mon_usd_x18 is not None:
        tvl_usd = with_commas(_fmt_x18(mul_fixed(tvl_mon_x18, mon_usd_x18), 2))

    market_cap_mon = None
    if price_mon_x18 is not None:
        market_cap_mon = with_commas(_fmt_x18(mul_fixed(inputs.total_supply_raw, price_mon_x18), 2))
    market_cap_usd = None
    if price_usd_x18 is not None:
        market_cap_usd = with_commas(_fmt_x18(mul_fixed(inputs.total_supply_raw, price_usd_x18), 2))

    staked_raw = staked_estimate_raw(inputs.total_shares_raw, inputs.share_rate_raw)

    circulating = None
    if inputs.vesting_balance_raw is not None:
        if inputs.vesting_balance_raw <= inputs.total_supply_raw:
            circulating = _whole_tokens(inputs.total_supply_raw - inputs.vesting_balance_raw)
        else:
            LOGGER.warning(
                "Vesting balance %d exceeds total supply %d; circulating supply unavailable",
                inputs.vesting_balance_raw,
                inputs.total_supply_raw,
            )

    return GlobalStats(
        total_supply=_whole_tokens(inputs.total_supply_raw),
        total_shares=_whole_tokens(inputs.total_shares_raw),
        share_rate=fixed_decimals(
            format_units(inputs.share_rate_raw), const.SHARE_RATE_DISPLAY_DECIMALS
        ),
        block_number=inputs.block_number,
        updated_at=inputs.updated_at,
        price_mon=None if price_mon_x18 is None else _fmt_x18(price_mon_x18, const.PRICE_DISPLAY_DECIMALS),
        mon_usd=None if mon_usd_x18 is None else _fmt_x18(mon_usd_x18, const.PRICE_DISPLAY_DECIMALS),
        price_usd=None if price_usd_x18 is None else _fmt_x18(price_usd_x18, const.PRICE_DISPLAY_DECIMALS),
        pool_tvl_mon=None if tvl_mon_x18 is None else with_commas(_fmt_x18(tvl_mon_x18, 4)),
        pool_tvl_usd=tvl_usd,
        market_cap_mon=market_cap_mon,
        market_cap_usd=market_cap_usd,
        circulating_supply=circulating,
        staked_bnote_est=_whole_tokens(staked_raw),
        staked_pct=staked_pct_text(staked_raw, inputs.total_supply_raw),
        pool_reserves=pool_reserves,
    )


def _read_pool_balances(reader: ChainReader, pool_address: str, pool: PoolState) -> tuple[int, int] | None:
    bal0 = safe_read(
        f"balanceOf({pool_address}) on {pool.token0}",
        lambda: reader.read_token_balance(pool.token0, pool_address),
    )
    bal1 = safe_read(
        f"balanceOf({pool_address}) on {pool.token1}",
        lambda: reader.read_token_balance(pool.token1, pool_address),
    )
    if bal0 is None or bal1 is None:
        return None
    return bal0, bal1


def load_global_stats(reader: ChainReader) -> GlobalStats:
    """Read everything the stats page needs and compute display values.

    Totals and block number are required and propagate ChainReadError; pool
    and vesting reads are optional.
    """
    cfg = reader.config
    total_supply, total_shares, share_rate = reader.read_global_totals()
    block_number = reader.read_block_number()

    bnote_mon = safe_read("bNOTE/WMON pool", lambda: reader.read_pool_state(cfg.bnote_wmon_pool))
    bnote_usdc = safe_read("bNOTE/USDC pool", lambda: reader.read_pool_state(cfg.bnote_usdc_pool))
    mon_usdc = safe_read("WMON/USDC pool", lambda: reader.read_pool_state(cfg.wmon_usdc_pool))

    balances = None
    if bnote_mon is not None:
        balances = _read_pool_balances(reader, cfg.bnote_wmon_pool, bnote_mon)

    vesting = safe_read(
        "treasury vesting balance",
        lambda: reader.read_token_balance(cfg.token_address, cfg.treasury_vesting),
    )

    return compute_global_stats(
        GlobalStatsInputs(
            token_address=cfg.token_address,
            total_supply_raw=total_supply,
            total_shares_raw=total_shares,
            share_rate_raw=share_rate,
            block_number=block_number,
            bnote_mon_pool=bnote_mon,
            bnote_usdc_pool=bnote_usdc,
            mon_usdc_pool=mon_usdc,
            bnote_mon_pool_balances=balances,
            vesting_balance_raw=vesting,
        )
    )
