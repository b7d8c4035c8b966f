"""
Unit tests for the fixed-supply token ledger.
"""

import pytest

from clash.core.constants import (
    CLASH_TOKEN_NAME,
    CLASH_TOKEN_SYMBOL,
    CLASH_TOTAL_SUPPLY,
    UINT256_MAX,
    ZERO_ADDRESS,
)
from clash.core.contracts.erc20 import ERC20Token
from clash.core.vesting_exceptions import TokenTransferError
from tests.clash_tests.helpers import OTHER_USER, PUBLISHER, USER, tokens


@pytest.fixture
def token():
    return ERC20Token.create("Test Token", "TEST", owner=PUBLISHER, initial_supply=1_000, address="0x" + "2" * 40)


def test_clash_token_metadata(clash_token):
    assert clash_token.name == CLASH_TOKEN_NAME
    assert clash_token.symbol == CLASH_TOKEN_SYMBOL
    assert clash_token.decimals == 18
    assert clash_token.total_supply == CLASH_TOTAL_SUPPLY == tokens(5_000_000_000)
    assert clash_token.balance_of(PUBLISHER) == CLASH_TOTAL_SUPPLY


def test_create_emits_mint_transfer(token):
    event = token.events[0]
    assert event.event_type == "Transfer"
    assert event.from_address == ZERO_ADDRESS
    assert event.to_address == PUBLISHER
    assert event.value == 1_000


@pytest.mark.parametrize(
    "kwargs",
    [
        {"name": ""},
        {"symbol": ""},
        {"decimals": 19},
        {"owner": ZERO_ADDRESS},
        {"initial_supply": -1},
    ],
)
def test_create_rejects_invalid_parameters(kwargs):
    params = {"name": "T", "symbol": "T", "owner": PUBLISHER, "initial_supply": 1}
    params.update(kwargs)
    with pytest.raises(TokenTransferError):
        ERC20Token.create(**params)


def test_transfer_moves_balance(token):
    assert token.transfer(PUBLISHER, USER, 300) is True

    assert token.balance_of(PUBLISHER) == 700
    assert token.balance_of(USER.upper().replace("0X", "0x")) == 300
    assert token.events[-1].event_type == "Transfer"


def test_transfer_exceeding_balance(token):
    with pytest.raises(TokenTransferError) as exc_info:
        token.transfer(USER, OTHER_USER, 1)
    assert exc_info.value.details["balance"] == 0
    assert token.balance_of(OTHER_USER) == 0


@pytest.mark.parametrize("amount", [-1, 1.5, True, UINT256_MAX + 1])
def test_transfer_rejects_invalid_amounts(token, amount):
    with pytest.raises(TokenTransferError):
        token.transfer(PUBLISHER, USER, amount)


def test_transfer_to_zero_address(token):
    with pytest.raises(TokenTransferError):
        token.transfer(PUBLISHER, ZERO_ADDRESS, 1)


def test_allowance_flow(token):
    token.approve(PUBLISHER, USER, 200)
    assert token.allowance(PUBLISHER, USER) == 200

    token.transfer_from(USER, PUBLISHER, OTHER_USER, 150)
    assert token.allowance(PUBLISHER, USER) == 50
    assert token.balance_of(OTHER_USER) == 150

    with pytest.raises(TokenTransferError):
        token.transfer_from(USER, PUBLISHER, OTHER_USER, 51)


def test_unlimited_allowance_not_decremented(token):
    token.approve(PUBLISHER, USER, UINT256_MAX)
    token.transfer_from(USER, PUBLISHER, OTHER_USER, 10)

    assert token.allowance(PUBLISHER, USER) == UINT256_MAX


def test_increase_and_decrease_allowance(token):
    token.increase_allowance(PUBLISHER, USER, 40)
    token.increase_allowance(PUBLISHER, USER, 60)
    assert token.allowance(PUBLISHER, USER) == 100

    token.decrease_allowance(PUBLISHER, USER, 30)
    assert token.allowance(PUBLISHER, USER) == 70
    with pytest.raises(TokenTransferError):
        token.decrease_allowance(PUBLISHER, USER, 71)


def test_dict_round_trip(token):
    token.transfer(PUBLISHER, USER, 10)
    token.approve(PUBLISHER, OTHER_USER, 5)
    data = token.to_dict()

    assert data["total_supply"] == "1000"
    restored = ERC20Token.from_dict(data)
    assert restored.balance_of(USER) == 10
    assert restored.allowance(PUBLISHER, OTHER_USER) == 5
    assert restored.address == token.address
