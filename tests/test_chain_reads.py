from __future__ import annotations

import logging
from dataclasses import replace

import pytest

from bnote_dash import bnote_constants as const
from bnote_dash.chain_reads import ChainReadError, ChainReader, safe_read

ONE = 10**18
WMON = "0x" + "bb" * 20


@pytest.fixture()
def reader(temp_cache, fake_chain, chain_config) -> ChainReader:
    return ChainReader(chain_config, session=fake_chain)


def test_read_stake_preview_parameters(reader, fake_chain, chain_config):
    token = chain_config.token_address
    values = {
        "BASIS": 10_000,
        "shareRate": 1_000,
        "LPB_PER_YEAR_BPS": 2_000,
        "LPB_MAX_YEARS": 10,
        "BPB_MAX_BPS": 1_000,
        "BPB_CAP": 75_000 * ONE,
    }
    for name, value in values.items():
        fake_chain.set_uint(token, f"{name}()", value)

    params = reader.read_stake_preview_parameters()

    assert params.basis == 10_000
    # raw value; normalization happens in the calculator
    assert params.share_rate == 1_000
    assert params.lpb_per_year_bps == 2_000
    assert params.lpb_max_years == 10
    assert params.bpb_max_bps == 1_000
    assert params.bpb_cap == 75_000 * ONE


def test_read_contract_parameter_rejects_unknown_names(reader):
    with pytest.raises(KeyError, match="stakeCount"):
        reader.read_contract_parameter("stakeCount")


def test_missing_parameter_raises_chain_read_error(reader):
    with pytest.raises(ChainReadError, match="execution reverted"):
        reader.read_contract_parameter(const.PARAM_BASIS)


def test_read_pool_state(reader, fake_chain, chain_config):
    token = chain_config.token_address
    pool = chain_config.bnote_wmon_pool
    fake_chain.add_token(token, "bNOTE")
    fake_chain.add_token(WMON, "WMON")
    fake_chain.add_pool(pool, 2**96, token, WMON)

    state = reader.read_pool_state(pool)

    assert state.sqrt_price_x96 == 2**96
    assert state.token0 == token
    assert state.token1 == WMON
    assert (state.token0_decimals, state.token1_decimals) == (18, 18)
    assert (state.token0_symbol, state.token1_symbol) == ("bNOTE", "WMON")


def test_read_token_balance(reader, fake_chain, chain_config):
    holder = "0x" + "42" * 20
    fake_chain.set_uint(chain_config.token_address, "balanceOf(address)", 5 * ONE, [holder])
    assert reader.read_token_balance(chain_config.token_address, holder) == 5 * ONE


def test_read_block_number(reader, fake_chain):
    fake_chain.block_number = 0x1234
    assert reader.read_block_number() == 0x1234


def test_responses_are_cached_within_ttl(temp_cache, fake_chain, chain_config):
    reader = ChainReader(replace(chain_config, cache_ttl_seconds=60), session=fake_chain)
    assert reader.read_block_number() == 16
    fake_chain.block_number = 17
    assert reader.read_block_number() == 16
    assert fake_chain.calls == 1


def test_errors_are_not_cached(temp_cache, fake_chain, chain_config):
    reader = ChainReader(replace(chain_config, cache_ttl_seconds=60), session=fake_chain)
    token = chain_config.token_address
    with pytest.raises(ChainReadError):
        reader.call_uint(token, "totalSupply()")
    fake_chain.set_uint(token, "totalSupply()", 7)
    assert reader.call_uint(token, "totalSupply()") == 7


def test_short_return_data_raises(reader, fake_chain, chain_config):
    fake_chain.set_raw(chain_config.token_address, "totalSupply()", "00" * 4)
    with pytest.raises(ChainReadError, match="totalSupply"):
        reader.call_uint(chain_config.token_address, "totalSupply()")


def test_safe_read_returns_none_and_logs(reader, caplog):
    with caplog.at_level(logging.WARNING):
        assert safe_read("basis", lambda: reader.read_contract_parameter(const.PARAM_BASIS)) is None
    assert "basis unavailable" in caplog.text


def test_safe_read_passes_values_through():
    assert safe_read("constant", lambda: 3) == 3
