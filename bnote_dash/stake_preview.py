"""Stake preview calculator.

Reproduces the staking contract's share issuance before a transaction is sent:

- LPB (longer pays better): linear in lock days, capped at LPB_MAX_YEARS
- BPB (bigger pays better): linear in amount, flat beyond BPB_CAP
- shares = amount * (BASIS + bonus) / share rate

Every step is integer floor division so the preview never overstates what the
contract will issue.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

import pandas as pd

from . import bnote_constants as const
from .fixed_point import InvalidAmountError, format_truncated, parse_units, require_uint


class InvalidParametersError(ValueError):
    """Raised when contract parameters cannot describe a valid contract state."""


@dataclass(frozen=True)
class StakePreviewParameters:
    """Bonus-curve parameters read from the staking token.

    ``share_rate`` is the raw on-chain value; normalization happens inside
    ``compute_stake_preview`` so the result can report what was used.
    ``share_rate_scale`` is the fixed-point scale of the share rate.
    """

    basis: int
    share_rate: int
    lpb_per_year_bps: int
    lpb_max_years: int
    bpb_max_bps: int
    bpb_cap: int
    share_rate_scale: int = const.ONE_E18

    def __post_init__(self) -> None:
        for name in (
            "basis",
            "share_rate",
            "lpb_per_year_bps",
            "lpb_max_years",
            "bpb_max_bps",
            "bpb_cap",
            "share_rate_scale",
        ):
            try:
                require_uint(getattr(self, name), name)
            except (TypeError, ValueError) as exc:
                raise InvalidParametersError(str(exc)) from exc
        if self.basis == 0:
            raise InvalidParametersError("basis must be non-zero")
        if self.share_rate_scale == 0:
            raise InvalidParametersError("share_rate_scale must be non-zero")


@dataclass(frozen=True)
class StakePreviewResult:
    time_bonus_bps: int
    size_bonus_bps: int
    total_bonus_bps: int
    estimated_shares_raw: int
    multiplier_numerator: int
    basis: int
    share_rate_used: int


@dataclass(frozen=True)
class StakePreviewDisplay:
    time_bonus_pct: str
    size_bonus_pct: str
    total_bonus_pct: str
    estimated_shares: str
    multiplier: str


def normalize_share_rate(basis: int, share_rate: int) -> int:
    """Scale a share rate up by 10 until it reaches basis (at most 6 steps).

    Some deployments report the rate one or more decimal places below the
    basis-points scale, which inflates shares by the same factor. This is a
    heuristic, not an inverse: a rate that is legitimately below basis is
    also scaled.
    """
    if basis == 0 or share_rate == 0:
        return share_rate
    rate = share_rate
    for _ in range(const.SHARE_RATE_MAX_NORMALIZE_STEPS):
        if rate >= basis:
            break
        rate *= 10
    return rate


def time_bonus_bps(lock_days: int, params: StakePreviewParameters) -> int:
    days = max(0, int(lock_days))
    max_days = params.lpb_max_years * const.DAYS_PER_YEAR
    effective_days = min(days, max_days)
    bonus = effective_days * params.lpb_per_year_bps // const.DAYS_PER_YEAR
    return min(bonus, params.lpb_max_years * params.lpb_per_year_bps)


def size_bonus_bps(amount_raw: int, params: StakePreviewParameters) -> int:
    if params.bpb_cap == 0:
        return 0
    capped = min(amount_raw, params.bpb_cap)
    return capped * params.bpb_max_bps // params.bpb_cap


def compute_stake_preview(
    amount_raw: int,
    lock_days: int,
    params: StakePreviewParameters,
) -> StakePreviewResult:
    """Compute bonuses and estimated shares for a stake of amount_raw token units.

    Negative or zero lock days yield no time bonus. A zero share rate yields
    zero shares (no stake has set the rate yet).
    """
    try:
        require_uint(amount_raw, "amount_raw")
    except (TypeError, ValueError) as exc:
        raise InvalidAmountError(str(exc)) from exc
    share_rate = normalize_share_rate(params.basis, params.share_rate)

    lpb = time_bonus_bps(lock_days, params)
    bpb = size_bonus_bps(amount_raw, params)
    total = lpb + bpb
    multiplier_numerator = params.basis + total

    if share_rate == 0:
        shares = 0
    else:
        shares = (amount_raw * multiplier_numerator * params.share_rate_scale) // (
            params.basis * share_rate
        )

    return StakePreviewResult(
        time_bonus_bps=lpb,
        size_bonus_bps=bpb,
        total_bonus_bps=total,
        estimated_shares_raw=shares,
        multiplier_numerator=multiplier_numerator,
        basis=params.basis,
        share_rate_used=share_rate,
    )


def format_bps_as_percent(bps: int) -> str:
    whole, frac = divmod(bps, 100)
    return f"{whole}.{frac:02d}%"


def format_scaled_token(
    value_scaled18: int, max_decimals: int = const.AMOUNT_DISPLAY_DECIMALS
) -> str:
    return format_truncated(value_scaled18, const.TOKEN_DECIMALS, max_decimals)


def format_multiplier(numerator: int, denominator: int) -> str:
    """Render numerator/denominator as a 2-dp truncated multiplier, e.g. "1.25x"."""
    if denominator == 0:
        return const.PLACEHOLDER
    scaled = numerator * 10**const.MULTIPLIER_DISPLAY_DECIMALS // denominator
    whole, frac = divmod(scaled, 10**const.MULTIPLIER_DISPLAY_DECIMALS)
    return f"{whole}.{frac:0{const.MULTIPLIER_DISPLAY_DECIMALS}d}x"


def clamp_lock_days(value: object) -> int:
    """Clamp UI lock-day input to the range stakeStart accepts."""
    try:
        days = int(value)  # type: ignore[call-overload]
    except (TypeError, ValueError):
        return const.MIN_LOCK_DAYS
    return max(const.MIN_LOCK_DAYS, min(const.MAX_LOCK_DAYS, days))


def display_preview(result: StakePreviewResult) -> StakePreviewDisplay:
    return StakePreviewDisplay(
        time_bonus_pct=format_bps_as_percent(result.time_bonus_bps),
        size_bonus_pct=format_bps_as_percent(result.size_bonus_bps),
        total_bonus_pct=format_bps_as_percent(result.total_bonus_bps),
        estimated_shares=format_scaled_token(result.estimated_shares_raw),
        multiplier=format_multiplier(result.multiplier_numerator, result.basis),
    )


def preview_stake(
    amount_text: str,
    lock_days: object,
    params: StakePreviewParameters,
    *,
    decimals: int = const.TOKEN_DECIMALS,
) -> StakePreviewDisplay:
    """Parse UI input, compute the preview and format it for display.

    Raises InvalidAmountError when the amount text is malformed; the
    computation does not run in that case.
    """
    amount_raw = parse_units(amount_text or "0", decimals)
    result = compute_stake_preview(amount_raw, clamp_lock_days(lock_days), params)
    return display_preview(result)


def build_preview_grid(
    params: StakePreviewParameters,
    amounts_raw: Iterable[int],
    lock_days: Sequence[int],
) -> pd.DataFrame:
    """Generate a preview table for every (amount, lock days) combination."""
    records = []
    for amount_raw in amounts_raw:
        for days in lock_days:
            result = compute_stake_preview(amount_raw, days, params)
            records.append(
                {
                    "amount": format_scaled_token(amount_raw),
                    "lock_days": int(days),
                    "time_bonus_bps": result.time_bonus_bps,
                    "size_bonus_bps": result.size_bonus_bps,
                    "total_bonus_bps": result.total_bonus_bps,
                    "multiplier": format_multiplier(
                        result.multiplier_numerator, result.basis
                    ),
                    "estimated_shares_raw": result.estimated_shares_raw,
                    "estimated_shares": format_scaled_token(result.estimated_shares_raw),
                }
            )
    df = pd.DataFrame(
        records,
        columns=[
            "amount",
            "lock_days",
            "time_bonus_bps",
            "size_bonus_bps",
            "total_bonus_bps",
            "multiplier",
            "estimated_shares_raw",
            "estimated_shares",
        ],
    )
    # uint256 values overflow int64
    df["estimated_shares_raw"] = df["estimated_shares_raw"].astype(object)
    return df
