"""bNOTE Protocol and Display Constants.

This module centralizes the magic numbers used by the preview calculator, the
pool price resolver and the display helpers. Each constant includes a note on
its source.
"""

from __future__ import annotations

# =============================================================================
# Fixed-Point Scales
# =============================================================================

# Canonical fixed-point scale (18 decimals), shared by bNOTE and WMON
ONE_E18 = 10**18

# bNOTE token decimals
# Source: ERC-20 `decimals()` on the deployed token
TOKEN_DECIMALS = 18

# Square-root price scaling used by concentrated-liquidity pools
# Source: Uniswap V3 `slot0().sqrtPriceX96` is sqrt(token1/token0) * 2**96
Q96 = 2**96
Q192 = 2**192

# Upper bounds of the on-chain integer types we accept
MAX_UINT160 = 2**160 - 1
MAX_UINT256 = 2**256 - 1


# =============================================================================
# Staking Protocol Constants
# =============================================================================

# Days per bonus year
# Source: contract LPB math divides by 365, not 365.25
DAYS_PER_YEAR = 365

# Lock duration bounds accepted by `stakeStart(amount, daysLocked, autoRenew)`
MIN_LOCK_DAYS = 1
MAX_LOCK_DAYS = 5555

# Maximum number of x10 steps applied when normalizing a share rate reported
# below the basis-points scale
SHARE_RATE_MAX_NORMALIZE_STEPS = 6

# Seconds per lock day, for deriving stake end timestamps
SECONDS_PER_DAY = 24 * 60 * 60


# =============================================================================
# Contract Parameter Names
# =============================================================================

# Public getters on the staking token used by the preview calculator
PARAM_BASIS = "BASIS"
PARAM_SHARE_RATE = "shareRate"
PARAM_LPB_PER_YEAR_BPS = "LPB_PER_YEAR_BPS"
PARAM_LPB_MAX_YEARS = "LPB_MAX_YEARS"
PARAM_BPB_MAX_BPS = "BPB_MAX_BPS"
PARAM_BPB_CAP = "BPB_CAP"

STAKE_PREVIEW_PARAMETERS: tuple[str, ...] = (
    PARAM_BASIS,
    PARAM_SHARE_RATE,
    PARAM_LPB_PER_YEAR_BPS,
    PARAM_LPB_MAX_YEARS,
    PARAM_BPB_MAX_BPS,
    PARAM_BPB_CAP,
)


# =============================================================================
# Display Conventions
# =============================================================================

PRICE_DISPLAY_DECIMALS = 6
PERCENT_DISPLAY_DECIMALS = 2
AMOUNT_DISPLAY_DECIMALS = 4
MULTIPLIER_DISPLAY_DECIMALS = 2
SHARE_RATE_DISPLAY_DECIMALS = 3

# Shown wherever a value is unavailable
PLACEHOLDER = "—"

# Symbol used for symbol-name fallback when matching the base token in a pool
BNOTE_SYMBOL = "BNOTE"
MON_SYMBOL_TAGS: tuple[str, ...] = ("WMON", "MON")
USD_SYMBOL_TAGS: tuple[str, ...] = ("USDC", "USD")
