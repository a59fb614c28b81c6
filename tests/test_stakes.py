from __future__ import annotations

import logging
from datetime import UTC, datetime

import pytest

from bnote_dash import stakes
from bnote_dash.chain_reads import ChainReader
from conftest import word

ONE = 10**18
USER = "0x" + "42" * 20


def test_stakes_from_rows_drops_empty_and_sorts_newest_first():
    rows = [
        [1_700_000_000, 30, 5 * ONE, 5 * ONE, 0],
        [0, 0, 0, 0, 0],
        [1_710_000_000, 365, ONE, 2 * ONE, 1],
    ]
    result = stakes.stakes_from_rows(rows)

    assert [stake.idx for stake in result] == [2, 0]
    newest = result[0]
    assert newest.auto_renew is True
    assert newest.amount == "1"
    assert newest.shares == "2"
    assert newest.end_timestamp == 1_710_000_000 + 365 * 86_400
    assert newest.start_date == datetime.fromtimestamp(1_710_000_000, tz=UTC)


def test_zero_start_has_no_dates():
    stake = stakes.OnchainStake(
        idx=0, start_timestamp=0, lock_days=30, amount_raw=ONE, shares_raw=ONE, auto_renew=False
    )
    assert stake.start_date is None
    assert stake.end_date is None
    assert not stake.is_empty


def test_wallet_balance_from_raw():
    balance = stakes.wallet_balance_from_raw(1_234_567_891_234_567_891_234, 18)
    assert balance.formatted_exact == "1234.567891234567891234"
    assert balance.formatted_pretty == "1,234.5678"

    whole = stakes.wallet_balance_from_raw(2_000_000 * ONE, 18)
    assert whole.formatted_exact == "2000000"
    assert whole.formatted_pretty == "2,000,000"


@pytest.fixture()
def reader(temp_cache, fake_chain, chain_config) -> ChainReader:
    return ChainReader(chain_config, session=fake_chain)


def test_read_wallet_stakes(reader, fake_chain, chain_config):
    token = chain_config.token_address
    fake_chain.set_uint(token, "decimals()", 18)
    rows = [[1_700_000_000, 30, 5 * ONE, 4 * ONE, 0], [0, 0, 0, 0, 0]]
    payload = word(32) + word(len(rows)) + "".join(word(v) for row in rows for v in row)
    fake_chain.set_raw(token, "stakesOf(address)", payload, [USER])

    result = stakes.read_wallet_stakes(reader, USER)

    assert len(result) == 1
    assert result[0].idx == 0
    assert result[0].lock_days == 30
    assert result[0].amount == "5"
    assert result[0].shares == "4"


def test_read_wallet_balance_falls_back_to_18_decimals(reader, fake_chain, chain_config, caplog):
    token = chain_config.token_address
    fake_chain.set_uint(token, "balanceOf(address)", 15 * 10**17, [USER])

    with caplog.at_level(logging.WARNING):
        balance = stakes.read_wallet_balance(reader, USER)

    assert balance.decimals == 18
    assert balance.formatted_exact == "1.5"
    assert "Falling back to 18 decimals" in caplog.text


def test_read_wallet_balance_other_token(reader, fake_chain):
    usdc = "0x" + "cc" * 20
    fake_chain.set_uint(usdc, "decimals()", 6)
    fake_chain.set_uint(usdc, "balanceOf(address)", 12_345_678, [USER])
    balance = stakes.read_wallet_balance(reader, USER, token=usdc)
    assert balance.formatted_exact == "12.345678"
    assert balance.formatted_pretty == "12.3456"
