"""Tests for the in-memory token ledger and unit helpers."""

from __future__ import annotations

import pytest
from conftest import BUYER, BUYER_FUNDS, DEPLOYER, SELLER, STRANGER

from timelock_escrow.config import Settings
from timelock_escrow.domain.collaborators import ZERO_ADDRESS, AssetLedger
from timelock_escrow.domain.exceptions import (
    InsufficientAllowanceError,
    InsufficientBalanceError,
    InvalidTransferError,
    LedgerError,
)
from timelock_escrow.infrastructure.token import (
    MAX_UINT256,
    TokenLedger,
    deploy_token,
    format_units,
    parse_units,
)


class TestUnits:
    @pytest.mark.parametrize(
        ("value", "decimals", "expected"),
        [
            ("1", 18, 10**18),
            ("500000", 18, 500_000 * 10**18),
            ("0.5", 18, 5 * 10**17),
            (3, 0, 3),
            ("1.25", 2, 125),
        ],
    )
    def test_parse_units(self, value, decimals, expected) -> None:
        assert parse_units(value, decimals) == expected

    def test_parse_units_rejects_garbage(self) -> None:
        with pytest.raises(ValueError, match="Not a decimal"):
            parse_units("lots")

    def test_parse_units_rejects_excess_precision(self) -> None:
        with pytest.raises(ValueError, match="decimal places"):
            parse_units("0.001", 2)

    def test_format_units(self) -> None:
        assert format_units(500_000 * 10**18) == "500000"
        assert format_units(5 * 10**17) == "0.5"
        assert format_units(0) == "0"


class TestTokenLedger:
    def test_satisfies_asset_ledger_protocol(self, token) -> None:
        assert isinstance(token, AssetLedger)

    def test_mint_tracks_supply(self) -> None:
        ledger = TokenLedger("T", "T")
        ledger.mint(DEPLOYER, 100)
        ledger.mint(BUYER, 50)
        assert ledger.total_supply == 150
        assert ledger.balance_of(BUYER) == 50

    def test_mint_to_zero_address(self) -> None:
        with pytest.raises(InvalidTransferError, match="mint to the zero address"):
            TokenLedger("T", "T").mint(ZERO_ADDRESS, 1)

    def test_transfer(self, token) -> None:
        token.transfer(BUYER, SELLER, 10)
        assert token.balance_of(SELLER) == 10
        assert token.balance_of(BUYER) == BUYER_FUNDS - 10

    def test_transfer_exceeding_balance(self, token) -> None:
        with pytest.raises(InsufficientBalanceError, match="exceeds balance") as exc_info:
            token.transfer(SELLER, BUYER, 1)
        assert exc_info.value.available == 0
        assert isinstance(exc_info.value, LedgerError)

    @pytest.mark.parametrize("amount", [-1, 1.0, True])
    def test_transfer_rejects_bad_amounts(self, token, amount) -> None:
        with pytest.raises(InvalidTransferError):
            token.transfer(BUYER, SELLER, amount)

    def test_transfer_to_zero_address(self, token) -> None:
        with pytest.raises(InvalidTransferError, match="to the zero address"):
            token.transfer(BUYER, ZERO_ADDRESS, 1)

    def test_addresses_are_case_insensitive(self, token) -> None:
        assert token.balance_of(BUYER.upper().replace("0X", "0x")) == BUYER_FUNDS

    def test_approve_overwrites(self, token) -> None:
        token.approve(BUYER, STRANGER, 10)
        token.approve(BUYER, STRANGER, 3)
        assert token.allowance(BUYER, STRANGER) == 3

    def test_approve_zero_spender(self, token) -> None:
        with pytest.raises(InvalidTransferError, match="approve to the zero address"):
            token.approve(BUYER, ZERO_ADDRESS, 1)

    def test_transfer_from_spends_allowance(self, token) -> None:
        token.approve(BUYER, STRANGER, 100)
        token.transfer_from(STRANGER, BUYER, SELLER, 60)
        assert token.allowance(BUYER, STRANGER) == 40
        assert token.balance_of(SELLER) == 60

    def test_transfer_from_without_allowance(self, token) -> None:
        with pytest.raises(InsufficientAllowanceError, match="insufficient allowance"):
            token.transfer_from(STRANGER, BUYER, SELLER, 1)
        assert token.balance_of(BUYER) == BUYER_FUNDS

    def test_failed_transfer_from_keeps_allowance(self, token) -> None:
        token.approve(BUYER, STRANGER, BUYER_FUNDS * 2)
        with pytest.raises(InsufficientBalanceError):
            token.transfer_from(STRANGER, BUYER, SELLER, BUYER_FUNDS + 1)
        assert token.allowance(BUYER, STRANGER) == BUYER_FUNDS * 2
        assert token.balance_of(SELLER) == 0

    def test_infinite_allowance_is_not_decremented(self, token) -> None:
        token.approve(BUYER, STRANGER, MAX_UINT256)
        token.transfer_from(STRANGER, BUYER, SELLER, 5)
        assert token.allowance(BUYER, STRANGER) == MAX_UINT256

    def test_pull_into_and_push_from(self, token) -> None:
        custody = "0x" + "ab" * 20
        token.approve(BUYER, custody, 7)
        assert token.pull_into(BUYER, custody, 7) is True
        assert token.balance_of(custody) == 7
        assert token.allowance(BUYER, custody) == 0
        assert token.push_from(custody, SELLER, 7) is True
        assert token.balance_of(SELLER) == 7
        assert token.balance_of(custody) == 0


class TestDeployToken:
    def test_mints_supply_to_deployer(self) -> None:
        settings = Settings(
            token_name="EscrowToken",
            token_symbol="EKT",
            token_decimals=18,
            token_initial_supply="1000000000",
            deployer_address=DEPLOYER.upper().replace("0X", "0x"),
        )
        ledger = deploy_token(settings)
        assert ledger.symbol == "EKT"
        assert ledger.total_supply == parse_units("1000000000")
        assert ledger.balance_of(DEPLOYER) == ledger.total_supply
