"""Agreement Service: use cases behind the HTTP API and the simulation.

Coordinates between:
    - EscrowAgreement (the stage machine and custody record)
    - AgreementRepository / AssetRepository (lookup)
    - the token ledgers callers approve and transfer through

Every business rule lives in the agreement itself; this layer resolves ids
and symbols, then delegates.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from timelock_escrow.domain.agreement import EscrowAgreement
from timelock_escrow.domain.exceptions import AgreementNotFoundError, AssetNotFoundError
from timelock_escrow.infrastructure.repositories import AgreementRepository, AssetRepository
from timelock_escrow.logging_config import get_logger

if TYPE_CHECKING:
    from timelock_escrow.domain.agreement import AgreementEvent, AgreementSnapshot
    from timelock_escrow.domain.collaborators import Clock
    from timelock_escrow.infrastructure.token import TokenLedger

logger = get_logger(__name__)


class AgreementService:
    """Manages escrow agreements and the assets they can hold."""

    def __init__(
        self,
        clock: Clock,
        agreements: AgreementRepository | None = None,
        assets: AssetRepository | None = None,
    ) -> None:
        self._clock = clock
        self._agreements = agreements if agreements is not None else AgreementRepository()
        self._assets = assets if assets is not None else AssetRepository()

    @property
    def clock(self) -> Clock:
        return self._clock

    # ------------------------------------------------------------------
    # Agreement lifecycle
    # ------------------------------------------------------------------

    def create_agreement(self, custody_address: str | None = None) -> EscrowAgreement:
        """Create a new agreement in CREATED stage."""
        agreement = EscrowAgreement(clock=self._clock, custody_address=custody_address)
        self._agreements.add(agreement)
        logger.info(
            "agreement.created",
            agreement_id=agreement.agreement_id,
            custody_address=agreement.custody_address,
        )
        return agreement

    def settle(
        self,
        agreement_id: str,
        caller: str,
        seller: str,
        period_seconds: int,
        amount: int,
        asset_symbol: str | None,
    ) -> AgreementSnapshot:
        """Settle an agreement. An unknown asset symbol surfaces as InvalidAssetError."""
        agreement = self._get_agreement_or_raise(agreement_id)
        agreement.settle(
            seller=seller,
            period_seconds=period_seconds,
            amount=amount,
            asset=self._assets.get(asset_symbol),
            caller=caller,
        )
        return agreement.snapshot()

    def withdraw(self, agreement_id: str, caller: str) -> AgreementSnapshot:
        agreement = self._get_agreement_or_raise(agreement_id)
        agreement.withdraw(caller)
        return agreement.snapshot()

    # ------------------------------------------------------------------
    # Read helpers
    # ------------------------------------------------------------------

    def get_agreement(self, agreement_id: str) -> AgreementSnapshot:
        return self._get_agreement_or_raise(agreement_id).snapshot()

    def list_agreements(self, party: str | None = None) -> list[AgreementSnapshot]:
        """All agreements, or only those where ``party`` is buyer or seller."""
        agreements = (
            self._agreements.get_by_party(party) if party else self._agreements.list_all()
        )
        return [a.snapshot() for a in agreements]

    def get_status(self, agreement_id: str) -> dict:
        """Stage plus what can happen next."""
        agreement = self._get_agreement_or_raise(agreement_id)
        return {
            "agreement_id": agreement.agreement_id,
            "stage": agreement.stage.value,
            "allowed_events": agreement.allowed_events(),
            "unlock_timestamp": agreement.unlock_timestamp,
            "seconds_until_unlock": agreement.seconds_until_unlock(),
            "now": self._clock.now(),
        }

    def get_events(self, agreement_id: str) -> list[AgreementEvent]:
        return list(self._get_agreement_or_raise(agreement_id).events)

    def count_agreements(self) -> int:
        return len(self._agreements)

    # ------------------------------------------------------------------
    # Assets
    # ------------------------------------------------------------------

    def register_asset(self, ledger: TokenLedger) -> TokenLedger:
        self._assets.add(ledger)
        logger.info("asset.registered", symbol=ledger.symbol, decimals=ledger.decimals)
        return ledger

    def get_asset(self, symbol: str) -> TokenLedger:
        ledger = self._assets.get(symbol)
        if ledger is None:
            raise AssetNotFoundError(symbol)
        return ledger

    def list_assets(self) -> list[TokenLedger]:
        return self._assets.list_all()

    def transfer(self, symbol: str, caller: str, to: str, amount: int) -> None:
        self.get_asset(symbol).transfer(caller, to, amount)

    def approve(self, symbol: str, caller: str, spender: str, amount: int) -> None:
        self.get_asset(symbol).approve(caller, spender, amount)

    def balance_of(self, symbol: str, address: str) -> int:
        return self.get_asset(symbol).balance_of(address)

    def allowance(self, symbol: str, owner: str, spender: str) -> int:
        return self.get_asset(symbol).allowance(owner, spender)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _get_agreement_or_raise(self, agreement_id: str) -> EscrowAgreement:
        agreement = self._agreements.get_by_id(agreement_id)
        if agreement is None:
            raise AgreementNotFoundError(agreement_id)
        return agreement
