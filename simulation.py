#!/usr/bin/env python3
"""Time-Locked Escrow: End-to-End Simulation.

Drives the service layer on a ManualClock so the lock period can be skipped
instead of waited out.

    Scenario 1: Happy Path
        - Deployer sends the buyer 1,000,000 EKT
        - Buyer approves and settles 500,000 EKT for 5 days
        - Seller withdraws one second early -> TOO_EARLY
        - Seller withdraws at the unlock timestamp -> WITHDRAWN

    Scenario 2: Rejected Settlements
        - Invalid seller, zero period, zero amount, unknown asset,
          missing allowance -> each rejected, agreement stays CREATED

    Scenario 3: Unauthorized and Double Withdraw
        - A third party withdraws after unlock -> UNAUTHORIZED
        - Seller withdraws twice -> second call INVALID_STAGE

Usage:
    python simulation.py
    python simulation.py --scenario 1
    python simulation.py --json-logs
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import dataclass
from typing import TYPE_CHECKING

from timelock_escrow.config import Settings
from timelock_escrow.domain.collaborators import ZERO_ADDRESS
from timelock_escrow.domain.enums import AgreementStage
from timelock_escrow.domain.exceptions import EscrowError
from timelock_escrow.infrastructure.clock import ManualClock
from timelock_escrow.infrastructure.token import deploy_token, format_units, parse_units
from timelock_escrow.logging_config import get_logger, setup_logging
from timelock_escrow.services.agreement_service import AgreementService

if TYPE_CHECKING:
    from collections.abc import Callable

logger = get_logger("simulation")

FIVE_DAYS = 432_000
START_TIME = 1_700_000_000


class SimulationError(Exception):
    """Raised when a scenario observes an outcome it did not expect."""


# ---------------------------------------------------------------------------
# World setup
# ---------------------------------------------------------------------------
@dataclass
class World:
    """One freshly deployed token, clock and service per scenario."""

    service: AgreementService
    clock: ManualClock
    settings: Settings
    deployer: str = "0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266"
    buyer: str = "0x70997970c51812dc3a010c7d01b50e0d17dc79c8"
    seller: str = "0x3c44cdddb6a900fa2b585dd299e03d12fa4293bc"
    stranger: str = "0x90f79bf6eb2c4f870365e785982e1f101e93b906"

    @property
    def symbol(self) -> str:
        return self.settings.token_symbol

    def units(self, whole_tokens: str) -> int:
        return parse_units(whole_tokens, self.settings.token_decimals)

    def balance(self, address: str) -> str:
        raw = self.service.balance_of(self.symbol, address)
        return format_units(raw, self.settings.token_decimals)


def build_world() -> World:
    settings = Settings(
        clock_mode="manual",
        manual_clock_start=START_TIME,
        deployer_address="0xf39fd6e51aad88f6f4ce6ab8827279cfffb92266",
    )
    clock = ManualClock(start=settings.manual_clock_start)
    service = AgreementService(clock=clock)
    service.register_asset(deploy_token(settings))
    world = World(service=service, clock=clock, settings=settings)
    service.transfer(world.symbol, world.deployer, world.buyer, world.units("1000000"))
    return world


# ---------------------------------------------------------------------------
# Expectation helpers
# ---------------------------------------------------------------------------
def expect_rejection(code: str, action: Callable[[], object]) -> None:
    """Run ``action`` and require it to fail with the given error code."""
    try:
        action()
    except EscrowError as exc:
        if exc.code != code:
            raise SimulationError(f"expected {code}, got {exc.code}: {exc.message}") from exc
        print(f"  [rejected] {exc.code}: {exc.message}")
        return
    raise SimulationError(f"expected {code}, but the call succeeded")


def expect_equal(label: str, actual: object, expected: object) -> None:
    if actual != expected:
        raise SimulationError(f"{label}: expected {expected!r}, got {actual!r}")
    print(f"  [ok] {label} = {actual}")


# ---------------------------------------------------------------------------
# Print helpers
# ---------------------------------------------------------------------------
def banner(text: str) -> None:
    width = 70
    print("\n" + "=" * width)
    print(f"  {text}")
    print("=" * width + "\n")


def section(text: str) -> None:
    print(f"\n--- {text} ---\n")


def print_event_trail(world: World, agreement_id: str) -> None:
    print("\n  Event trail:")
    for i, evt in enumerate(world.service.get_events(agreement_id), 1):
        old = evt.old_stage or "-"
        print(f"    {i}. [{evt.event_type}] {old} -> {evt.new_stage} (by {evt.actor} at {evt.timestamp})")
    print()


def settle_default(world: World, agreement_id: str, amount: int) -> None:
    world.service.settle(
        agreement_id,
        caller=world.buyer,
        seller=world.seller,
        period_seconds=FIVE_DAYS,
        amount=amount,
        asset_symbol=world.symbol,
    )


# ===========================================================================
# Scenario 1: Happy Path
# ===========================================================================
def scenario_1_happy_path() -> None:
    banner("SCENARIO 1: Happy Path (settle, wait five days, withdraw)")
    world = build_world()
    svc = world.service
    deposit = world.units("500000")

    agreement = svc.create_agreement()
    agreement_id = agreement.agreement_id
    print(f"  Agreement {agreement_id} custody={agreement.custody_address}")

    section("Buyer approves and settles")
    svc.approve(world.symbol, world.buyer, agreement.custody_address, deposit)
    settled_at = world.clock.now()
    snapshot = svc.settle(
        agreement_id,
        caller=world.buyer,
        seller=world.seller,
        period_seconds=FIVE_DAYS,
        amount=deposit,
        asset_symbol=world.symbol,
    )
    expect_equal("stage", snapshot.stage, AgreementStage.SETTLED)
    expect_equal("unlock_timestamp", snapshot.unlock_timestamp, settled_at + FIVE_DAYS)
    expect_equal("custody balance", world.balance(agreement.custody_address), "500000")
    expect_equal("buyer balance", world.balance(world.buyer), "500000")

    section("Seller tries one second early")
    world.clock.advance(FIVE_DAYS - 1)
    expect_rejection("TOO_EARLY", lambda: svc.withdraw(agreement_id, world.seller))

    section("Seller withdraws at the unlock timestamp")
    world.clock.advance(1)
    snapshot = svc.withdraw(agreement_id, world.seller)
    expect_equal("stage", snapshot.stage, AgreementStage.WITHDRAWN)
    expect_equal("deposit_amount", snapshot.deposit_amount, 0)
    expect_equal("seller balance", world.balance(world.seller), "500000")

    print_event_trail(world, agreement_id)


# ===========================================================================
# Scenario 2: Rejected Settlements
# ===========================================================================
def scenario_2_rejected_settlements() -> None:
    banner("SCENARIO 2: Rejected Settlements")
    world = build_world()
    svc = world.service
    agreement = svc.create_agreement()
    agreement_id = agreement.agreement_id
    amount = world.units("500000")

    def attempt(**overrides: object) -> Callable[[], object]:
        kwargs: dict = {
            "caller": world.buyer,
            "seller": world.seller,
            "period_seconds": FIVE_DAYS,
            "amount": amount,
            "asset_symbol": world.symbol,
        }
        kwargs.update(overrides)
        return lambda: svc.settle(agreement_id, **kwargs)

    section("Invalid parameters")
    expect_rejection("INVALID_SELLER", attempt(seller=ZERO_ADDRESS))
    expect_rejection("INVALID_SELLER", attempt(seller=world.buyer))
    expect_rejection("INVALID_PERIOD", attempt(period_seconds=0))
    expect_rejection("INVALID_AMOUNT", attempt(amount=0))
    expect_rejection("INVALID_ASSET", attempt(asset_symbol=None))
    expect_rejection("INVALID_ASSET", attempt(asset_symbol="NOPE"))

    section("Missing allowance")
    expect_rejection("TRANSFER_FAILED", attempt())

    expect_equal("stage", svc.get_agreement(agreement_id).stage, AgreementStage.CREATED)
    expect_equal("buyer balance", world.balance(world.buyer), "1000000")

    section("Settle, then settle again")
    svc.approve(world.symbol, world.buyer, agreement.custody_address, amount)
    settle_default(world, agreement_id, amount)
    expect_rejection("ALREADY_SETTLED", attempt())


# ===========================================================================
# Scenario 3: Unauthorized and Double Withdraw
# ===========================================================================
def scenario_3_unauthorized_withdraw() -> None:
    banner("SCENARIO 3: Unauthorized and Double Withdraw")
    world = build_world()
    svc = world.service
    amount = world.units("250000")
    agreement = svc.create_agreement()
    agreement_id = agreement.agreement_id

    section("Withdraw before settlement")
    expect_rejection("UNAUTHORIZED", lambda: svc.withdraw(agreement_id, world.seller))

    svc.approve(world.symbol, world.buyer, agreement.custody_address, amount)
    settle_default(world, agreement_id, amount)
    world.clock.advance(FIVE_DAYS)

    section("Stranger and buyer after unlock")
    expect_rejection("UNAUTHORIZED", lambda: svc.withdraw(agreement_id, world.stranger))
    expect_rejection("UNAUTHORIZED", lambda: svc.withdraw(agreement_id, world.buyer))

    section("Seller withdraws twice")
    svc.withdraw(agreement_id, world.seller)
    expect_rejection("INVALID_STAGE", lambda: svc.withdraw(agreement_id, world.seller))
    expect_equal("seller balance", world.balance(world.seller), "250000")

    print_event_trail(world, agreement_id)


# ===========================================================================
# Main
# ===========================================================================
SCENARIOS: dict[int, Callable[[], None]] = {
    1: scenario_1_happy_path,
    2: scenario_2_rejected_settlements,
    3: scenario_3_unauthorized_withdraw,
}


def run(scenario: int = 0) -> int:
    """Run one scenario (or all when ``scenario`` is 0) and return an exit code."""
    if scenario and scenario not in SCENARIOS:
        print(f"Unknown scenario {scenario}. Available: {', '.join(map(str, SCENARIOS))}")
        return 2

    selected = [SCENARIOS[scenario]] if scenario else list(SCENARIOS.values())
    try:
        for run_scenario in selected:
            run_scenario()
    except SimulationError as exc:
        logger.error("simulation.failed", error=str(exc))
        print(f"\n  SIMULATION FAILED: {exc}\n")
        return 1

    print("\n" + "=" * 70)
    print("  ALL SCENARIOS COMPLETED SUCCESSFULLY")
    print("=" * 70 + "\n")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Time-Locked Escrow Simulation")
    parser.add_argument(
        "--scenario",
        type=int,
        default=0,
        help="Run a specific scenario (1, 2, or 3). Default: run all.",
    )
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Emit JSON log lines instead of colored console output.",
    )
    args = parser.parse_args()

    setup_logging(log_level="INFO", json_logs=args.json_logs)
    sys.exit(run(args.scenario))
