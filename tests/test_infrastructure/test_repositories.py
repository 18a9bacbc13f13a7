"""Tests for the in-memory repositories."""

from __future__ import annotations

import pytest
from conftest import BUYER, SELLER, STRANGER

from timelock_escrow.domain.agreement import EscrowAgreement
from timelock_escrow.domain.enums import AgreementStage
from timelock_escrow.infrastructure.repositories import AgreementRepository, AssetRepository
from timelock_escrow.infrastructure.token import TokenLedger


class TestAgreementRepository:
    def test_add_and_get(self, agreement) -> None:
        repo = AgreementRepository()
        repo.add(agreement)
        assert repo.get_by_id(agreement.agreement_id) is agreement
        assert repo.get_by_id("missing") is None
        assert len(repo) == 1

    def test_duplicate_id(self, clock) -> None:
        repo = AgreementRepository()
        repo.add(EscrowAgreement(clock, agreement_id="a-1"))
        with pytest.raises(ValueError, match="already registered"):
            repo.add(EscrowAgreement(clock, agreement_id="a-1"))

    def test_list_keeps_creation_order(self, clock) -> None:
        repo = AgreementRepository()
        ids = ["first", "second", "third"]
        for agreement_id in ids:
            repo.add(EscrowAgreement(clock, agreement_id=agreement_id))
        assert [a.agreement_id for a in repo.list_all()] == ids

    def test_get_by_stage_and_party(self, clock, settled_agreement) -> None:
        repo = AgreementRepository()
        fresh = EscrowAgreement(clock)
        repo.add(settled_agreement)
        repo.add(fresh)

        assert repo.get_by_stage(AgreementStage.SETTLED) == [settled_agreement]
        assert repo.get_by_stage(AgreementStage.CREATED) == [fresh]
        assert repo.get_by_party(BUYER) == [settled_agreement]
        assert repo.get_by_party(SELLER.upper().replace("0X", "0x")) == [settled_agreement]
        assert repo.get_by_party(STRANGER) == []


class TestAssetRepository:
    def test_lookup_is_case_insensitive(self, token) -> None:
        repo = AssetRepository()
        repo.add(token)
        assert repo.get("ekt") is token
        assert repo.get("EKT") is token
        assert repo.get("NOPE") is None
        assert repo.get(None) is None

    def test_duplicate_symbol(self, token) -> None:
        repo = AssetRepository()
        repo.add(token)
        with pytest.raises(ValueError):
            repo.add(TokenLedger("Other", "ekt"))
        assert len(repo) == 1
