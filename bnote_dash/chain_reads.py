"""JSON-RPC chain reads for the staking token and its liquidity pools."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any, Sequence, TypeVar

import requests

from . import abi
from . import bnote_constants as const
from .config import ChainConfig
from .http_utils import (
    RequestOptions,
    TransientHTTPError,
    build_session,
    cached_json_request,
)
from .pool_price import PoolState
from .stake_preview import StakePreviewParameters

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

# Fixed getter signatures on the staking token; every parameter is a
# zero-argument uint256 view
PARAMETER_SIGNATURES: dict[str, str] = {
    name: f"{name}()" for name in const.STAKE_PREVIEW_PARAMETERS
}


class ChainReadError(Exception):
    """Raised when an eth_call reverts, errors or returns malformed data."""


def _rpc_ok(payload: Any) -> bool:
    return isinstance(payload, dict) and "error" not in payload and "result" in payload


class ChainReader:
    """Read-only access to one chain, configured once at construction.

    Responses are cached on disk for ``config.cache_ttl_seconds`` so that
    dashboard refreshes within one block interval don't hit the RPC again.
    """

    def __init__(
        self,
        config: ChainConfig,
        session: requests.Session | None = None,
    ) -> None:
        self.config = config
        self.session = session or build_session(
            {"Content-Type": "application/json", "User-Agent": "bnote-dash/1.0"}
        )

    def _rpc(self, method: str, params: list[Any]) -> Any:
        body = {"jsonrpc": "2.0", "id": 1, "method": method, "params": params}
        ttl = self.config.cache_ttl_seconds
        payload = cached_json_request(
            RequestOptions(
                prefix=f"rpc_{self.config.chain_id}_{method}",
                session=self.session,
                method="POST",
                url=self.config.rpc_url,
                json_body=body,
                ttl_seconds=ttl,
                force_refresh=ttl <= 0,
                retry_config=self.config.retry,
                should_cache=_rpc_ok,
            )
        )
        if not isinstance(payload, dict):
            raise ChainReadError(f"{method}: unexpected response {payload!r}")
        if "error" in payload:
            error = payload["error"] or {}
            message = error.get("message", error) if isinstance(error, dict) else error
            raise ChainReadError(f"{method}: {message}")
        if "result" not in payload:
            raise ChainReadError(f"{method}: response has no result")
        return payload["result"]

    def call(self, address: str, signature: str, args: Sequence[object] = ()) -> bytes:
        """eth_call a view function at the latest block and return raw return data."""
        calldata = abi.encode_call(signature, args)
        result = self._rpc("eth_call", [{"to": address, "data": calldata}, "latest"])
        if not isinstance(result, str):
            raise ChainReadError(f"{signature}: non-hex result {result!r}")
        data = abi.hex_to_bytes(result)
        if not data:
            raise ChainReadError(f"{signature} on {address} returned no data")
        return data

    def call_uint(self, address: str, signature: str, args: Sequence[object] = ()) -> int:
        return self._decode(signature, abi.decode_uint, self.call(address, signature, args))

    def call_address(self, address: str, signature: str) -> str:
        return self._decode(signature, abi.decode_address, self.call(address, signature))

    def call_string(self, address: str, signature: str) -> str:
        return self._decode(signature, abi.decode_string, self.call(address, signature))

    @staticmethod
    def _decode(signature: str, decoder: Callable[[bytes], T], data: bytes) -> T:
        try:
            return decoder(data)
        except abi.AbiDecodeError as exc:
            raise ChainReadError(f"{signature}: {exc}") from exc

    def read_block_number(self) -> int:
        result = self._rpc("eth_blockNumber", [])
        try:
            return int(result, 16)
        except (TypeError, ValueError) as exc:
            raise ChainReadError(f"eth_blockNumber: bad result {result!r}") from exc

    def read_contract_parameter(self, name: str) -> int:
        if name not in PARAMETER_SIGNATURES:
            raise KeyError(f"unknown contract parameter: {name}")
        return self.call_uint(self.config.token_address, PARAMETER_SIGNATURES[name])

    def read_stake_preview_parameters(self) -> StakePreviewParameters:
        values = {
            name: self.read_contract_parameter(name)
            for name in const.STAKE_PREVIEW_PARAMETERS
        }
        return StakePreviewParameters(
            basis=values[const.PARAM_BASIS],
            share_rate=values[const.PARAM_SHARE_RATE],
            lpb_per_year_bps=values[const.PARAM_LPB_PER_YEAR_BPS],
            lpb_max_years=values[const.PARAM_LPB_MAX_YEARS],
            bpb_max_bps=values[const.PARAM_BPB_MAX_BPS],
            bpb_cap=values[const.PARAM_BPB_CAP],
        )

    def read_token_balance(self, token: str, holder: str) -> int:
        return self.call_uint(token, "balanceOf(address)", [holder])

    def read_token_decimals(self, token: str) -> int:
        return self.call_uint(token, "decimals()")

    def read_token_symbol(self, token: str) -> str:
        return self.call_string(token, "symbol()")

    def read_pool_state(self, pool: str) -> PoolState:
        # slot0 returns seven words; sqrtPriceX96 is the first
        sqrt_price_x96 = self.call_uint(pool, "slot0()")
        token0 = self.call_address(pool, "token0()")
        token1 = self.call_address(pool, "token1()")
        return PoolState(
            sqrt_price_x96=sqrt_price_x96,
            token0=token0,
            token1=token1,
            token0_decimals=self.read_token_decimals(token0),
            token1_decimals=self.read_token_decimals(token1),
            token0_symbol=self.read_token_symbol(token0),
            token1_symbol=self.read_token_symbol(token1),
        )

    def read_global_totals(self) -> tuple[int, int, int]:
        """Return (totalSupply, totalShares, shareRate) for the staking token."""
        token = self.config.token_address
        return (
            self.call_uint(token, "totalSupply()"),
            self.call_uint(token, "totalShares()"),
            self.call_uint(token, "shareRate()"),
        )

    def read_stakes_of(self, user: str) -> list[list[int]]:
        data = self.call(
            self.config.token_address,
            "stakesOf(address)",
            [user],
        )
        return self._decode(
            "stakesOf(address)",
            lambda raw: abi.decode_static_tuple_array(raw, width=5),
            data,
        )


def safe_read(label: str, fn: Callable[[], T]) -> T | None:
    """Run a chain read, returning None (and logging) when the data is unavailable."""
    try:
        return fn()
    except (
        ChainReadError,
        TransientHTTPError,
        requests.RequestException,
        RuntimeError,
        ValueError,
    ) as exc:
        LOGGER.warning("Chain read %s unavailable: %s", label, exc)
        return None
