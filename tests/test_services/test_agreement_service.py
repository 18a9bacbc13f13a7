"""Tests for AgreementService: id/symbol resolution around the agreement."""

from __future__ import annotations

import pytest
from conftest import BUYER, BUYER_FUNDS, DEPOSIT, FIVE_DAYS, SELLER, START_TIME, STRANGER

from timelock_escrow.domain.enums import AgreementStage, EventType
from timelock_escrow.domain.exceptions import (
    AgreementNotFoundError,
    AssetNotFoundError,
    InvalidAssetError,
    TooEarlyError,
)
from timelock_escrow.infrastructure.token import TokenLedger


def settle(service, agreement_id: str, **overrides: object):
    kwargs: dict = {
        "caller": BUYER,
        "seller": SELLER,
        "period_seconds": FIVE_DAYS,
        "amount": DEPOSIT,
        "asset_symbol": "EKT",
    }
    kwargs.update(overrides)
    return service.settle(agreement_id, **kwargs)


@pytest.fixture
def created(service):
    agreement = service.create_agreement()
    service.approve("EKT", BUYER, agreement.custody_address, DEPOSIT)
    return agreement


class TestCreateAgreement:
    def test_creates_in_created_stage(self, service) -> None:
        agreement = service.create_agreement()
        assert agreement.stage is AgreementStage.CREATED
        assert service.count_agreements() == 1
        assert service.get_agreement(agreement.agreement_id).stage is AgreementStage.CREATED

    def test_custody_address_is_normalized(self, service) -> None:
        custody = "0x" + "AB" * 20
        agreement = service.create_agreement(custody_address=custody)
        assert agreement.custody_address == custody.lower()

    def test_unknown_agreement(self, service) -> None:
        with pytest.raises(AgreementNotFoundError):
            service.get_agreement("missing")
        with pytest.raises(AgreementNotFoundError):
            service.withdraw("missing", SELLER)


class TestSettleAndWithdraw:
    def test_full_lifecycle(self, service, created, clock) -> None:
        snapshot = settle(service, created.agreement_id)
        assert snapshot.stage is AgreementStage.SETTLED
        assert snapshot.unlock_timestamp == START_TIME + FIVE_DAYS
        assert snapshot.asset_symbol == "EKT"

        clock.advance(FIVE_DAYS)
        snapshot = service.withdraw(created.agreement_id, SELLER)
        assert snapshot.stage is AgreementStage.WITHDRAWN
        assert snapshot.deposit_amount == 0
        assert service.balance_of("EKT", SELLER) == DEPOSIT

    def test_asset_symbol_is_case_insensitive(self, service, created) -> None:
        assert settle(service, created.agreement_id, asset_symbol="ekt").asset_symbol == "EKT"

    @pytest.mark.parametrize("symbol", ["NOPE", None, ""])
    def test_unknown_symbol_is_invalid_asset(self, service, created, symbol) -> None:
        with pytest.raises(InvalidAssetError):
            settle(service, created.agreement_id, asset_symbol=symbol)
        assert service.get_agreement(created.agreement_id).stage is AgreementStage.CREATED

    def test_too_early_propagates(self, service, created) -> None:
        settle(service, created.agreement_id)
        with pytest.raises(TooEarlyError):
            service.withdraw(created.agreement_id, SELLER)


class TestReadHelpers:
    def test_list_agreements_by_party(self, service, created) -> None:
        other = service.create_agreement()
        settle(service, created.agreement_id)

        assert [s.agreement_id for s in service.list_agreements()] == [
            created.agreement_id,
            other.agreement_id,
        ]
        assert [s.agreement_id for s in service.list_agreements(party=SELLER)] == [
            created.agreement_id
        ]
        assert service.list_agreements(party=STRANGER) == []

    def test_status(self, service, created, clock) -> None:
        status = service.get_status(created.agreement_id)
        assert status["stage"] == "CREATED"
        assert status["allowed_events"] == ["settle"]
        assert status["seconds_until_unlock"] is None

        settle(service, created.agreement_id)
        clock.advance(100)
        status = service.get_status(created.agreement_id)
        assert status["allowed_events"] == ["withdraw"]
        assert status["seconds_until_unlock"] == FIVE_DAYS - 100
        assert status["now"] == START_TIME + 100

    def test_events(self, service, created) -> None:
        settle(service, created.agreement_id)
        events = service.get_events(created.agreement_id)
        assert [e.event_type for e in events] == [
            EventType.AGREEMENT_CREATED,
            EventType.AGREEMENT_SETTLED,
        ]


class TestAssets:
    def test_get_asset(self, service, token) -> None:
        assert service.get_asset("ekt") is token
        with pytest.raises(AssetNotFoundError):
            service.get_asset("NOPE")

    def test_register_second_asset(self, service) -> None:
        service.register_asset(TokenLedger("Other", "OTH", decimals=6))
        assert [ledger.symbol for ledger in service.list_assets()] == ["EKT", "OTH"]

    def test_transfer_and_allowance(self, service) -> None:
        service.transfer("EKT", BUYER, STRANGER, 5)
        service.approve("EKT", BUYER, STRANGER, 9)
        assert service.balance_of("EKT", BUYER) == BUYER_FUNDS - 5
        assert service.allowance("EKT", BUYER, STRANGER) == 9
