"""In-memory repositories for agreements and asset ledgers.

Repositories only store and look things up; they never change an
agreement's state. That stays inside EscrowAgreement.
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING

from timelock_escrow.domain.collaborators import normalize_address

if TYPE_CHECKING:
    from timelock_escrow.domain.agreement import EscrowAgreement
    from timelock_escrow.domain.enums import AgreementStage
    from timelock_escrow.infrastructure.token import TokenLedger


class AgreementRepository:
    """Agreements by id, in creation order."""

    def __init__(self) -> None:
        self._agreements: dict[str, EscrowAgreement] = {}
        self._lock = threading.Lock()

    def add(self, agreement: EscrowAgreement) -> EscrowAgreement:
        with self._lock:
            if agreement.agreement_id in self._agreements:
                raise ValueError(f"Agreement already registered: {agreement.agreement_id}")
            self._agreements[agreement.agreement_id] = agreement
        return agreement

    def get_by_id(self, agreement_id: str) -> EscrowAgreement | None:
        return self._agreements.get(agreement_id)

    def get_by_stage(self, stage: AgreementStage) -> list[EscrowAgreement]:
        return [a for a in self.list_all() if a.stage is stage]

    def get_by_party(self, address: str) -> list[EscrowAgreement]:
        """Agreements where ``address`` is the buyer or the seller."""
        address = normalize_address(address)
        return [a for a in self.list_all() if address in (a.buyer, a.seller)]

    def list_all(self) -> list[EscrowAgreement]:
        with self._lock:
            return list(self._agreements.values())

    def __len__(self) -> int:
        return len(self._agreements)


class AssetRepository:
    """Token ledgers by (case-insensitive) symbol."""

    def __init__(self) -> None:
        self._ledgers: dict[str, TokenLedger] = {}

    def add(self, ledger: TokenLedger) -> TokenLedger:
        key = ledger.symbol.upper()
        if key in self._ledgers:
            raise ValueError(f"Asset already registered: {ledger.symbol}")
        self._ledgers[key] = ledger
        return ledger

    def get(self, symbol: str | None) -> TokenLedger | None:
        if not symbol:
            return None
        return self._ledgers.get(symbol.upper())

    def list_all(self) -> list[TokenLedger]:
        return list(self._ledgers.values())

    def __len__(self) -> int:
        return len(self._ledgers)
