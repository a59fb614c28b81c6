"""Concentrated-liquidity pool price helpers.

Pools store sqrt(token1_raw / token0_raw) * 2**96. The helpers here square
that back out into a 1e18 fixed-point, decimal-adjusted exchange rate and
orient it around the token of interest. Unavailable prices are ``None``; a
zero price is never returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from . import bnote_constants as const
from .fixed_point import format_truncated, invert_fixed, require_uint, scale_pow10


class InvalidPoolStateError(ValueError):
    """Raised when raw pool values cannot have come from a real pool."""


@dataclass(frozen=True)
class PoolState:
    sqrt_price_x96: int
    token0: str
    token1: str
    token0_decimals: int
    token1_decimals: int
    token0_symbol: str = ""
    token1_symbol: str = ""

    def __post_init__(self) -> None:
        try:
            require_uint(self.sqrt_price_x96, "sqrt_price_x96", bits=160)
            require_uint(self.token0_decimals, "token0_decimals", bits=8)
            require_uint(self.token1_decimals, "token1_decimals", bits=8)
        except (TypeError, ValueError) as exc:
            raise InvalidPoolStateError(str(exc)) from exc

    @property
    def initialized(self) -> bool:
        return self.sqrt_price_x96 != 0


def price_x18_from_sqrt_price_x96(
    sqrt_price_x96: int, token0_decimals: int, token1_decimals: int
) -> int:
    """Return token1 per token0 in human units, scaled by 1e18."""
    raw_ratio = sqrt_price_x96 * sqrt_price_x96
    ratio_x18 = raw_ratio * const.ONE_E18 // const.Q192
    if token0_decimals > token1_decimals:
        ratio_x18 *= scale_pow10(token0_decimals - token1_decimals)
    elif token1_decimals > token0_decimals:
        ratio_x18 //= scale_pow10(token1_decimals - token0_decimals)
    return ratio_x18


def orient_price(ratio_x18: int, base_is_token0: bool) -> int | None:
    """Express the pool ratio as the price of the base token in the other token."""
    if ratio_x18 == 0:
        return None
    price = ratio_x18 if base_is_token0 else invert_fixed(ratio_x18)
    return price or None


def base_side(pool: PoolState, base_token_address: str, base_symbol: str | None = None) -> bool | None:
    """Return True when the base token is token0, False for token1, None if absent.

    Addresses are compared case-insensitively; the symbol is only consulted
    when neither address matches.
    """
    base = base_token_address.lower()
    if pool.token0.lower() == base:
        return True
    if pool.token1.lower() == base:
        return False
    if base_symbol:
        wanted = base_symbol.upper()
        if pool.token0_symbol.upper() == wanted:
            return True
        if pool.token1_symbol.upper() == wanted:
            return False
    return None


def resolve_pool_price(
    pool: PoolState | None,
    base_token_address: str,
    base_symbol: str | None = const.BNOTE_SYMBOL,
) -> int | None:
    """Price of the base token in the pool's other token, scaled by 1e18."""
    if pool is None or not pool.initialized:
        return None
    side = base_side(pool, base_token_address, base_symbol)
    if side is None:
        return None
    ratio_x18 = price_x18_from_sqrt_price_x96(
        pool.sqrt_price_x96, pool.token0_decimals, pool.token1_decimals
    )
    return orient_price(ratio_x18, side)


def _symbol_has(symbol: str, tags: Sequence[str]) -> bool:
    upper = symbol.upper()
    return any(tag.upper() in upper for tag in tags)


def resolve_symbol_pair_price(
    pool: PoolState | None,
    base_tags: Sequence[str],
    quote_tags: Sequence[str],
) -> int | None:
    """Price of the base token in the quote token, matching sides by symbol substrings.

    Used for pools (e.g. WMON/USDC) whose tokens are not ours, so there is no
    address to match against.
    """
    if pool is None or not pool.initialized:
        return None
    token0_is_base = _symbol_has(pool.token0_symbol, base_tags)
    token1_is_base = _symbol_has(pool.token1_symbol, base_tags)
    token0_is_quote = _symbol_has(pool.token0_symbol, quote_tags)
    token1_is_quote = _symbol_has(pool.token1_symbol, quote_tags)

    if token0_is_base and token1_is_quote:
        side = True
    elif token1_is_base and token0_is_quote:
        side = False
    else:
        return None
    ratio_x18 = price_x18_from_sqrt_price_x96(
        pool.sqrt_price_x96, pool.token0_decimals, pool.token1_decimals
    )
    return orient_price(ratio_x18, side)


def format_price(price_x18: int | None, dp: int = const.PRICE_DISPLAY_DECIMALS) -> str:
    if price_x18 is None:
        return const.PLACEHOLDER
    return format_truncated(price_x18, 18, dp)
