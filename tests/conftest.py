from __future__ import annotations

from pathlib import Path
from typing import Sequence

import pytest

from bnote_dash import abi, config


def word(value: int) -> str:
    return value.to_bytes(32, "big").hex()


def address_word(address: str) -> str:
    return address[2:].lower().rjust(64, "0")


def string_words(text: str) -> str:
    raw = text.encode()
    padded = raw.hex().ljust(((len(raw) + 31) // 32) * 64, "0")
    return word(32) + word(len(raw)) + padded


class DummyResponse:
    def __init__(self, status_code: int, payload: object, headers: dict[str, str] | None = None):
        self.status_code = status_code
        self._payload = payload
        self.headers = headers or {}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")

    def json(self):
        return self._payload


class FakeChain:
    """In-memory JSON-RPC endpoint keyed by (contract, calldata)."""

    def __init__(self, block_number: int = 16):
        self.block_number = block_number
        self.results: dict[tuple[str, str], str] = {}
        self.calls = 0

    def _key(self, address: str, signature: str, args: Sequence[object]) -> tuple[str, str]:
        return address.lower(), abi.encode_call(signature, args)

    def set_raw(self, address: str, signature: str, hex_words: str, args: Sequence[object] = ()) -> None:
        self.results[self._key(address, signature, args)] = "0x" + hex_words

    def set_uint(self, address: str, signature: str, value: int, args: Sequence[object] = ()) -> None:
        self.set_raw(address, signature, word(value), args)

    def set_address(self, address: str, signature: str, value: str) -> None:
        self.set_raw(address, signature, address_word(value))

    def set_string(self, address: str, signature: str, value: str) -> None:
        self.set_raw(address, signature, string_words(value))

    def add_token(self, address: str, symbol: str, decimals: int = 18) -> None:
        self.set_uint(address, "decimals()", decimals)
        self.set_string(address, "symbol()", symbol)

    def add_pool(self, pool: str, sqrt_price_x96: int, token0: str, token1: str) -> None:
        # slot0: sqrtPriceX96, tick, observation fields, feeProtocol, unlocked
        self.set_raw(pool, "slot0()", word(sqrt_price_x96) + word(0) * 5 + word(1))
        self.set_address(pool, "token0()", token0)
        self.set_address(pool, "token1()", token1)

    def request(self, method, url, params=None, json=None, headers=None, timeout=None):
        self.calls += 1
        body = json or {}
        reply: dict[str, object] = {"jsonrpc": "2.0", "id": body.get("id")}
        if body.get("method") == "eth_blockNumber":
            reply["result"] = hex(self.block_number)
        elif body.get("method") == "eth_call":
            call = body["params"][0]
            result = self.results.get((call["to"].lower(), call["data"]))
            if result is None:
                reply["error"] = {"code": 3, "message": "execution reverted"}
            else:
                reply["result"] = result
        else:
            reply["error"] = {"code": -32601, "message": "method not found"}
        return DummyResponse(200, reply)


@pytest.fixture()
def temp_cache(monkeypatch, tmp_path: Path):
    monkeypatch.setattr(config, "RAW_DATA_DIR", tmp_path)
    yield tmp_path


@pytest.fixture()
def fake_chain() -> FakeChain:
    return FakeChain()


@pytest.fixture()
def chain_config() -> config.ChainConfig:
    return config.ChainConfig(
        rpc_url="https://rpc.test",
        token_address="0x" + "aa" * 20,
        bnote_wmon_pool="0x" + "01" * 20,
        bnote_usdc_pool="0x" + "02" * 20,
        wmon_usdc_pool="0x" + "03" * 20,
        treasury_vesting="0x" + "04" * 20,
        cache_ttl_seconds=0,
        retry=config.RetryConfig(wait_min_seconds=0, wait_max_seconds=0, max_attempts=2),
    )
