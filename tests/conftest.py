"""Shared test fixtures for the escrow test suite.

Provides:
    - A ManualClock parked at a fixed timestamp
    - A deployed EscrowToken ledger with a funded buyer
    - Fresh and already-settled agreements
    - An AgreementService and a FastAPI TestClient wired to the same clock
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from timelock_escrow.config import Settings
from timelock_escrow.domain.agreement import EscrowAgreement
from timelock_escrow.infrastructure.clock import ManualClock
from timelock_escrow.infrastructure.token import TokenLedger, parse_units
from timelock_escrow.services.agreement_service import AgreementService

START_TIME = 1_700_000_000
FIVE_DAYS = 432_000

DEPLOYER = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
BUYER = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
SELLER = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"
STRANGER = "0x90f79bf6eb2c4f870365e785982e1f101e93b906"

BUYER_FUNDS = parse_units("1000000")
DEPOSIT = parse_units("500000")


# ---------------------------------------------------------------------------
# Domain Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock(start=START_TIME)


@pytest.fixture
def token() -> TokenLedger:
    """EscrowToken with the deployer holding the supply and the buyer holding 1M."""
    ledger = TokenLedger("EscrowToken", "EKT", decimals=18)
    ledger.mint(DEPLOYER, parse_units("1000000000"))
    ledger.transfer(DEPLOYER, BUYER, BUYER_FUNDS)
    return ledger


@pytest.fixture
def agreement(clock: ManualClock) -> EscrowAgreement:
    return EscrowAgreement(clock=clock)


@pytest.fixture
def settled_agreement(agreement: EscrowAgreement, token: TokenLedger) -> EscrowAgreement:
    """An agreement the buyer settled for DEPOSIT over FIVE_DAYS at START_TIME."""
    token.approve(BUYER, agreement.custody_address, DEPOSIT)
    agreement.settle(
        seller=SELLER,
        period_seconds=FIVE_DAYS,
        amount=DEPOSIT,
        asset=token,
        caller=BUYER,
    )
    return agreement


# ---------------------------------------------------------------------------
# Service / API Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def service(clock: ManualClock, token: TokenLedger) -> AgreementService:
    svc = AgreementService(clock=clock)
    svc.register_asset(token)
    return svc


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        app_env="development",
        app_log_level="WARNING",
        clock_mode="manual",
        manual_clock_start=START_TIME,
        deployer_address=DEPLOYER,
    )


@pytest.fixture
def client(test_settings: Settings, clock: ManualClock) -> Iterator[TestClient]:
    """TestClient over a fresh app whose token supply sits with DEPLOYER."""
    from timelock_escrow.main import create_app

    app = create_app(settings=test_settings, clock=clock)
    with TestClient(app) as test_client:
        yield test_client
