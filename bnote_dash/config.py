"""Configuration helpers for the bNOTE dashboard data layer."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DATA_DIR = Path("data")
RAW_DATA_DIR = DATA_DIR / "raw"

DEFAULT_RPC_URL = "https://rpc.monad.xyz"
DEFAULT_CHAIN_ID = 143

DEFAULT_TOKEN_ADDRESS = "0x20780bF9eb35235cA33c62976CF6de5AA3395561"
DEFAULT_BNOTE_WMON_POOL = "0xf6545a50c7673410f5d88e2417e98531a0ee9a73"
DEFAULT_BNOTE_USDC_POOL = "0xB6cDd1ca78AE496D05B3C97b83aFD009AADf53F9"
DEFAULT_WMON_USDC_POOL = "0xc33e9e441e6f4e74cdb34f878be51189c9cb00d8"
DEFAULT_TREASURY_VESTING = "0xA512Dd0e6C42775784AC8cA6c438AaD9A17a6596"

DEFAULT_RPC_CACHE_TTL_SECONDS = 15.0


@dataclass(frozen=True)
class RetryConfig:
    """Settings for HTTP retry/backoff behaviour."""

    wait_min_seconds: float = 0.5
    wait_max_seconds: float = 8.0
    max_attempts: int = 5
    status_forcelist: tuple[int, ...] = field(
        default_factory=lambda: (429, 500, 502, 503, 504, 522, 525)
    )


DEFAULT_RETRY_CONFIG = RetryConfig()


@dataclass(frozen=True)
class ChainConfig:
    """Endpoints and contract addresses handed to the chain-read layer."""

    rpc_url: str = DEFAULT_RPC_URL
    chain_id: int = DEFAULT_CHAIN_ID
    token_address: str = DEFAULT_TOKEN_ADDRESS
    bnote_wmon_pool: str = DEFAULT_BNOTE_WMON_POOL
    bnote_usdc_pool: str = DEFAULT_BNOTE_USDC_POOL
    wmon_usdc_pool: str = DEFAULT_WMON_USDC_POOL
    treasury_vesting: str = DEFAULT_TREASURY_VESTING
    cache_ttl_seconds: float = DEFAULT_RPC_CACHE_TTL_SECONDS
    retry: RetryConfig = DEFAULT_RETRY_CONFIG


def _env_float(name: str, default: float) -> float:
    env_value = os.getenv(name)
    if env_value:
        try:
            return float(env_value)
        except ValueError:
            pass
    return default


def _env_int(name: str, default: int) -> int:
    env_value = os.getenv(name)
    if env_value:
        try:
            return int(env_value)
        except ValueError:
            pass
    return default


def load_chain_config() -> ChainConfig:
    """Build a ChainConfig from the environment, falling back to mainnet defaults."""
    return ChainConfig(
        rpc_url=os.getenv("BNOTE_RPC_URL", DEFAULT_RPC_URL),
        chain_id=_env_int("BNOTE_CHAIN_ID", DEFAULT_CHAIN_ID),
        token_address=os.getenv("BNOTE_TOKEN_ADDRESS", DEFAULT_TOKEN_ADDRESS),
        bnote_wmon_pool=os.getenv("BNOTE_WMON_POOL", DEFAULT_BNOTE_WMON_POOL),
        bnote_usdc_pool=os.getenv("BNOTE_USDC_POOL", DEFAULT_BNOTE_USDC_POOL),
        wmon_usdc_pool=os.getenv("WMON_USDC_POOL", DEFAULT_WMON_USDC_POOL),
        treasury_vesting=os.getenv("BNOTE_TREASURY_VESTING", DEFAULT_TREASURY_VESTING),
        cache_ttl_seconds=_env_float("BNOTE_RPC_CACHE_TTL", DEFAULT_RPC_CACHE_TTL_SECONDS),
    )


def resolve_cache_path(prefix: str, key: str, suffix: str = ".json") -> Path:
    """Return a deterministic cache path under data/raw for a given key."""
    sanitized_prefix = prefix.replace("/", "_")
    filename = f"{sanitized_prefix}_{key}{suffix}"
    return RAW_DATA_DIR / filename
